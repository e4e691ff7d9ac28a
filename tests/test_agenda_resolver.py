"""Tests for the pure agenda resolver."""

from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from app.core.errors import ValidationError
from app.schemas.agenda import AgendaItemOut, AgendaOut
from app.services.agenda_resolver import Resolution, clock_string, resolve, schedule_order


def make_agenda(*windows, active_index=None, auto_detect=True) -> AgendaOut:
    items = [
        AgendaItemOut(
            id=f"item-{i + 1}",
            position=i,
            start_time=start,
            end_time=end,
            name=f"Speaker {i + 1}",
            is_active=(i == active_index),
        )
        for i, (start, end) in enumerate(windows)
    ]
    return AgendaOut(id="agenda-1", items=items, auto_detect_active=auto_detect)


def ids(result: Resolution):
    return (
        result.active.id if result.active else None,
        result.next.id if result.next else None,
    )


class TestManualOverride:
    @pytest.mark.parametrize("now", ["00:00", "07:00", "08:15", "09:10", "23:59"])
    def test_override_wins_at_any_time(self, now):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), ("09:00", "09:30"), active_index=1)
        assert ids(resolve(agenda, now)) == ("item-2", "item-3")

    def test_override_on_last_item_has_no_next(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), active_index=1)
        assert ids(resolve(agenda, "07:00")) == ("item-2", None)

    def test_next_follows_schedule_order_not_list_order(self):
        agenda = make_agenda(("09:00", "09:30"), ("08:00", "08:30"), ("08:30", "09:00"), active_index=1)
        # item-2 starts first, item-3 follows it in the schedule
        assert ids(resolve(agenda, "12:00")) == ("item-2", "item-3")

    def test_override_applies_even_with_auto_detect_off(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), active_index=0, auto_detect=False)
        assert ids(resolve(agenda, "08:45")) == ("item-1", "item-2")


class TestTimeWindow:
    def test_now_inside_second_window(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"))
        assert ids(resolve(agenda, "08:45")) == ("item-2", None)

    def test_before_everything(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"))
        assert ids(resolve(agenda, "07:00")) == (None, "item-1")

    def test_after_everything(self):
        agenda = make_agenda(("08:00", "08:30"))
        assert ids(resolve(agenda, "18:00")) == (None, None)

    def test_window_bounds_are_inclusive(self):
        agenda = make_agenda(("08:00", "08:30"), ("09:00", "09:30"))
        assert ids(resolve(agenda, "08:00")) == ("item-1", "item-2")
        assert ids(resolve(agenda, "08:30")) == ("item-1", "item-2")

    def test_gap_between_sessions(self):
        agenda = make_agenda(("08:00", "08:30"), ("09:00", "09:30"))
        assert ids(resolve(agenda, "08:40")) == (None, "item-2")

    def test_shared_boundary_goes_to_earlier_session(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"))
        assert ids(resolve(agenda, "08:30")) == ("item-1", None)

    def test_overlap_resolves_to_earliest_start(self):
        agenda = make_agenda(("08:15", "09:00"), ("08:00", "08:45"))
        assert ids(resolve(agenda, "08:30")) == ("item-2", None)

    def test_auto_detect_off_only_looks_ahead(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), auto_detect=False)
        assert ids(resolve(agenda, "08:10")) == (None, "item-2")

    def test_forced_auto_detect_overrides_agenda_flag(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), auto_detect=False)
        assert ids(resolve(agenda, "08:10", force_auto_detect=True)) == ("item-1", "item-2")


class TestInputs:
    def test_datetime_and_time_are_truncated_to_minutes(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:31", "09:00"))
        at = datetime(2026, 5, 1, 8, 30, 59, tzinfo=timezone.utc)

        assert ids(resolve(agenda, at)) == ("item-1", "item-2")
        assert ids(resolve(agenda, time(8, 30, 59))) == ("item-1", "item-2")

    def test_no_agenda_or_no_items(self):
        assert resolve(None, "08:00") == Resolution()
        assert resolve(make_agenda(), "08:00") == Resolution()

    def test_clock_string(self):
        assert clock_string(time(7, 5)) == "07:05"
        assert clock_string(datetime(2026, 1, 1, 23, 59, 1)) == "23:59"
        assert clock_string(" 8:45") == "08:45"

    def test_unpadded_string_compares_on_the_clock(self):
        agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), ("10:00", "10:30"))
        assert ids(resolve(agenda, "8:45")) == ("item-2", "item-3")

    @pytest.mark.parametrize("bad", ["25:00", "8:5", "noon", ""])
    def test_malformed_clock_string(self, bad):
        with pytest.raises(ValidationError):
            clock_string(bad)

    def test_schedule_order_is_stable(self):
        agenda = make_agenda(("09:00", "09:10"), ("08:00", "08:10"), ("09:00", "09:20"))
        assert [it.id for it in schedule_order(agenda.items)] == ["item-2", "item-1", "item-3"]


def test_resolve_is_idempotent_and_pure():
    agenda = make_agenda(("08:00", "08:30"), ("08:30", "09:00"), ("09:00", "09:30"))
    before = agenda.model_dump()

    first = resolve(agenda, "08:45")
    second = resolve(agenda, "08:45")

    assert first == second
    assert agenda.model_dump() == before
