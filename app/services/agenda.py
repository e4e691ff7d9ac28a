"""
Agenda documents: CRUD, the single-active-item invariant, and the
"current agenda" pointer the kiosk resolves against.

The manual active flag is owned here, not by the resolver: every write
leaves at most one item flagged.
"""

import logging
from datetime import datetime, time
from typing import Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.errors import NotFoundError, ValidationError
from ..core.flags import get_flags
from ..core.locks import CURRENT_AGENDA_LOCK, agenda_lock, get_locks
from ..models.agenda import Agenda, AgendaItem
from ..schemas.agenda import (
    ActiveAgendaOut,
    AgendaIn,
    AgendaItemIn,
    AgendaOut,
    AgendaUpdate,
)
from ..schemas.media import validate_payload
from .agenda_resolver import clock_string, resolve, venue_now

logger = logging.getLogger(__name__)


def _build_items(
    items: list[AgendaItemIn], existing_ids: frozenset[str] = frozenset()
) -> list[AgendaItem]:
    """
    Rows for a full item list. A supplied id is kept only when it already
    belongs to the agenda being edited (`existing_ids`).
    """
    active = [it for it in items if it.is_active]
    if len(active) > 1:
        raise ValidationError(
            f"Only one agenda item can be active at a time ({len(active)} flagged)"
        )

    ids = [it.id for it in items if it.id]
    if len(ids) != len(set(ids)):
        raise ValidationError("Duplicate agenda item ids")
    foreign = [i for i in ids if i not in existing_ids]
    if foreign:
        raise ValidationError(f"Unknown agenda item id {foreign[0]}")

    ordered = sorted(items, key=lambda it: it.start_time)
    rows = []
    for pos, it in enumerate(ordered):
        row = AgendaItem(
            position=pos,
            start_time=it.start_time,
            end_time=it.end_time,
            name=it.name.strip(),
            title=it.title,
            company=it.company,
            role=it.role,
            photo_url=it.photo_url,
            info_image=it.info_image.model_dump(mode="json") if it.info_image else None,
            is_active=it.is_active,
        )
        if it.id:
            row.id = it.id
        rows.append(row)
    return rows


class AgendaService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self._locks = get_locks()

    # ── Reads ────────────────────────────────────────────────────────

    async def list_agendas(self) -> list[AgendaOut]:
        result = await self.db.execute(select(Agenda).order_by(Agenda.created_at.asc()))
        current_id = await self._current_id()
        return [AgendaOut.from_model(a, a.id == current_id) for a in result.scalars().all()]

    async def get_agenda(self, agenda_id: str) -> AgendaOut:
        agenda = await self._load(agenda_id)
        return AgendaOut.from_model(agenda, agenda.id == await self._current_id())

    async def get_current_agenda(self) -> Optional[AgendaOut]:
        current_id = await self._current_id()
        if current_id is None:
            return None
        agenda = await self.db.get(Agenda, current_id)
        if agenda is None:
            logger.warning("ACTIVE_AGENDA_ID %s does not exist", current_id)
            return None
        return AgendaOut.from_model(agenda, True)

    async def resolve_current(
        self, now: Optional[Union[datetime, time, str]] = None
    ) -> ActiveAgendaOut:
        """Active/next item of the current agenda on the venue clock."""
        tz_name = get_settings().venue_timezone
        if now is None:
            now = venue_now(tz_name)
        elif isinstance(now, datetime) and now.tzinfo is not None:
            now = now.astimezone(ZoneInfo(tz_name))
        agenda = await self.get_current_agenda()
        if agenda is None:
            return ActiveAgendaOut(now=clock_string(now))

        result = resolve(agenda, now, force_auto_detect=get_flags().force_agenda_auto_detect)
        return ActiveAgendaOut(
            agenda_id=agenda.id,
            now=clock_string(now),
            active_item=result.active,
            next_item=result.next,
        )

    # ── Mutations ────────────────────────────────────────────────────

    async def create_agenda(self, data) -> AgendaOut:
        data = validate_payload(AgendaIn, data)
        # A new agenda gets new item ids
        items = _build_items([it.model_copy(update={"id": None}) for it in data.items])

        async with self._locks.hold(CURRENT_AGENDA_LOCK):
            has_current = await self.db.scalar(
                select(Agenda.id).where(Agenda.is_current.is_(True)).limit(1)
            )
            agenda = Agenda(
                auto_detect_active=data.auto_detect_active,
                is_current=has_current is None,
                items=items,
            )
            self.db.add(agenda)
            await self.db.commit()

        logger.info("Agenda created: %s (%d items, current=%s)", agenda.id, len(items), agenda.is_current)
        return await self.get_agenda(agenda.id)

    async def update_agenda(self, agenda_id: str, data) -> AgendaOut:
        data = validate_payload(AgendaUpdate, data)

        async with self._locks.hold(agenda_lock(agenda_id)):
            agenda = await self._load(agenda_id)
            if data.items is not None:
                items = _build_items(data.items, frozenset(it.id for it in agenda.items))
                # Replace rows wholesale; delete-orphan drops the old ones
                agenda.items = []
                await self.db.flush()
                agenda.items = items
            if data.auto_detect_active is not None:
                agenda.auto_detect_active = data.auto_detect_active
            await self.db.commit()

        logger.info("Agenda updated: %s", agenda_id)
        return await self.get_agenda(agenda_id)

    async def set_item_active(self, agenda_id: str, item_id: str, active: bool = True) -> AgendaOut:
        """Flag one item as the manual override, clearing every other item."""
        async with self._locks.hold(agenda_lock(agenda_id)):
            agenda = await self._load(agenda_id)
            if not any(it.id == item_id for it in agenda.items):
                raise NotFoundError(f"Agenda item {item_id} not found")

            for it in agenda.items:
                it.is_active = active and it.id == item_id
            await self.db.commit()

        logger.info("Agenda %s: item %s active=%s", agenda_id, item_id, active)
        return await self.get_agenda(agenda_id)

    async def set_current_agenda(self, agenda_id: str) -> AgendaOut:
        async with self._locks.hold(CURRENT_AGENDA_LOCK):
            await self._load(agenda_id)
            await self.db.execute(
                update(Agenda).where(Agenda.id != agenda_id).values(is_current=False)
            )
            await self.db.execute(
                update(Agenda).where(Agenda.id == agenda_id).values(is_current=True)
            )
            await self.db.commit()
        logger.info("Current agenda set to %s", agenda_id)
        return await self.get_agenda(agenda_id)

    async def delete_agenda(self, agenda_id: str) -> None:
        # Agenda lock first, pointer lock second, everywhere both are taken
        async with self._locks.hold(agenda_lock(agenda_id)):
            async with self._locks.hold(CURRENT_AGENDA_LOCK):
                agenda = await self._load(agenda_id)
                was_current = agenda.is_current
                await self.db.delete(agenda)
                await self.db.flush()

                if was_current:
                    successor = await self.db.scalar(
                        select(Agenda)
                        .order_by(Agenda.created_at.desc(), Agenda.id.desc())
                        .limit(1)
                    )
                    if successor is not None:
                        successor.is_current = True
                await self.db.commit()

        logger.info("Agenda deleted: %s", agenda_id)

    # ── Helpers ──────────────────────────────────────────────────────

    async def _load(self, agenda_id: str) -> Agenda:
        agenda = await self.db.get(Agenda, agenda_id, populate_existing=True)
        if agenda is None:
            raise NotFoundError(f"Agenda {agenda_id} not found")
        return agenda

    async def _current_id(self) -> Optional[str]:
        pinned = get_settings().active_agenda_id
        if pinned:
            return pinned
        return await self.db.scalar(
            select(Agenda.id)
            .where(Agenda.is_current.is_(True))
            .order_by(Agenda.created_at.desc(), Agenda.id.desc())
            .limit(1)
        )
