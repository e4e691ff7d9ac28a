"""
Agenda activation resolver. Pure: picks the active and the next agenda item
for a venue-local time. No I/O, no mutation, safe to poll at any rate.

Rules, first match wins:
  1. Manual override: an item flagged is_active is active; next is the item
     right after it in schedule order.
  2. Time window: with auto-detect on, the first item (schedule order) whose
     start_time <= now <= end_time.
  3. Lookahead: unless rule 1 fired, next is the first item starting after now.
  4. Nothing matched: both are None.

Times are "HH:mm" strings; zero-padded 24h strings sort like the clock, so
plain string comparison is exact.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional, Sequence, Union
from zoneinfo import ZoneInfo

from ..core.errors import ValidationError
from ..schemas.agenda import AgendaItemOut, AgendaOut, normalize_hhmm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    active: Optional[AgendaItemOut] = None
    next: Optional[AgendaItemOut] = None


def venue_now(tz_name: str) -> datetime:
    return datetime.now(ZoneInfo(tz_name))


def clock_string(now: Union[datetime, time, str]) -> str:
    """Venue-local wall clock truncated to the minute, as "HH:mm"."""
    if isinstance(now, str):
        try:
            return normalize_hhmm(now)
        except ValueError as e:
            raise ValidationError(f"Invalid clock time {now!r}: {e}") from e
    return f"{now.hour:02d}:{now.minute:02d}"


def schedule_order(items: Sequence[AgendaItemOut]) -> list[AgendaItemOut]:
    """start_time ascending; stable, so equal starts keep list order."""
    return sorted(items, key=lambda it: it.start_time)


def resolve(
    agenda: Optional[AgendaOut],
    now: Union[datetime, time, str],
    *,
    force_auto_detect: bool = False,
) -> Resolution:
    if agenda is None or not agenda.items:
        return Resolution()

    items = schedule_order(agenda.items)
    clock = clock_string(now)

    for idx, item in enumerate(items):
        if item.is_active:
            nxt = items[idx + 1] if idx + 1 < len(items) else None
            logger.debug("Agenda %s: manual override %s at %s", agenda.id, item.id, clock)
            return Resolution(active=item, next=nxt)

    active = None
    if agenda.auto_detect_active or force_auto_detect:
        active = next(
            (it for it in items if it.start_time <= clock <= it.end_time),
            None,
        )

    nxt = next((it for it in items if it.start_time > clock), None)
    logger.debug(
        "Agenda %s at %s: active=%s next=%s",
        agenda.id, clock, active.id if active else None, nxt.id if nxt else None,
    )
    return Resolution(active=active, next=nxt)
