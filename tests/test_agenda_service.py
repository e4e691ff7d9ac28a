"""Tests for agenda documents: CRUD, single active item, current pointer."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from sqlalchemy import select, update

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.models.agenda import Agenda
from app.services.agenda import AgendaService
from tests.utils import item


SCHEDULE = [
    item("09:00", "09:30", "Closing"),
    item("08:00", "08:30", "Opening"),
    item("08:30", "09:00", "Keynote", role="presenter", company="ACME"),
]


class TestCreateAgenda:
    async def test_items_stored_in_schedule_order(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})

        assert [it.name for it in agenda.items] == ["Opening", "Keynote", "Closing"]
        assert [it.position for it in agenda.items] == [0, 1, 2]
        assert agenda.items[1].role == "presenter"
        assert agenda.auto_detect_active is True

    async def test_first_agenda_becomes_current(self, agendas):
        first = await agendas.create_agenda({"items": SCHEDULE})
        second = await agendas.create_agenda({"items": []})

        assert first.is_current is True
        assert second.is_current is False
        assert (await agendas.get_current_agenda()).id == first.id

    async def test_more_than_one_active_item_is_rejected(self, agendas):
        items = [item("08:00", "08:30", is_active=True), item("08:30", "09:00", is_active=True)]
        with pytest.raises(ValidationError):
            await agendas.create_agenda({"items": items})

    @pytest.mark.parametrize(
        "bad",
        [
            item("8:3", "09:00"),
            item("24:00", "24:30"),
            item("09:30", "09:00"),
            {"start_time": "08:00", "end_time": "09:00", "name": ""},
            item("08:00", "09:00", role="host"),
        ],
    )
    async def test_malformed_items(self, agendas, bad):
        with pytest.raises(ValidationError):
            await agendas.create_agenda({"items": [bad]})

    async def test_unpadded_hours_are_normalized(self, agendas):
        agenda = await agendas.create_agenda({"items": [item("8:05", "9:00")]})
        assert (agenda.items[0].start_time, agenda.items[0].end_time) == ("08:05", "09:00")

    async def test_copied_items_get_new_ids(self, agendas):
        original = await agendas.create_agenda({"items": SCHEDULE})

        copy = await agendas.create_agenda({"items": [it.model_dump() for it in original.items]})

        assert [it.name for it in copy.items] == ["Opening", "Keynote", "Closing"]
        assert {it.id for it in copy.items}.isdisjoint({it.id for it in original.items})
        assert len((await agendas.get_agenda(original.id)).items) == 3


class TestUpdateAgenda:
    async def test_replace_items_keeps_supplied_ids(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        keep = agenda.items[0]

        updated = await agendas.update_agenda(
            agenda.id,
            {"items": [
                {**keep.model_dump(exclude={"position"}), "name": "Welcome"},
                item("10:00", "10:30", "Panel"),
            ]},
        )

        assert [it.name for it in updated.items] == ["Welcome", "Panel"]
        assert updated.items[0].id == keep.id

    async def test_toggle_auto_detect_only(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        updated = await agendas.update_agenda(agenda.id, {"auto_detect_active": False})

        assert updated.auto_detect_active is False
        assert len(updated.items) == 3

    async def test_unknown_agenda(self, agendas):
        with pytest.raises(NotFoundError):
            await agendas.update_agenda("missing", {"auto_detect_active": False})

    async def test_item_id_of_another_agenda_is_rejected(self, agendas):
        other = await agendas.create_agenda({"items": SCHEDULE})
        agenda = await agendas.create_agenda({"items": [item("10:00", "10:30", "Panel")]})

        with pytest.raises(ValidationError):
            await agendas.update_agenda(
                agenda.id, {"items": [item("10:00", "10:30", "Panel", id=other.items[0].id)]}
            )

        assert [it.id for it in (await agendas.get_agenda(agenda.id)).items] == [agenda.items[0].id]
        assert len((await agendas.get_agenda(other.id)).items) == 3


class TestSetItemActive:
    async def test_activating_one_clears_the_others(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        first, second, _ = agenda.items

        await agendas.set_item_active(agenda.id, first.id)
        updated = await agendas.set_item_active(agenda.id, second.id)

        assert [it.is_active for it in updated.items] == [False, True, False]

    async def test_clearing(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        target = agenda.items[2]

        await agendas.set_item_active(agenda.id, target.id)
        updated = await agendas.set_item_active(agenda.id, target.id, active=False)

        assert not any(it.is_active for it in updated.items)

    async def test_unknown_item(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        with pytest.raises(NotFoundError):
            await agendas.set_item_active(agenda.id, "nope")


class TestCurrentAgenda:
    async def test_switch_current(self, agendas):
        first = await agendas.create_agenda({"items": SCHEDULE})
        second = await agendas.create_agenda({"items": []})

        await agendas.set_current_agenda(second.id)

        listed = {a.id: a.is_current for a in await agendas.list_agendas()}
        assert listed == {first.id: False, second.id: True}

    async def test_deleting_current_promotes_newest_remaining(self, agendas):
        first = await agendas.create_agenda({"items": SCHEDULE})
        second = await agendas.create_agenda({"items": []})
        third = await agendas.create_agenda({"items": []})

        await agendas.delete_agenda(first.id)

        assert (await agendas.get_current_agenda()).id == third.id
        assert {a.id for a in await agendas.list_agendas()} == {second.id, third.id}
        with pytest.raises(NotFoundError):
            await agendas.get_agenda(first.id)

    async def test_configured_agenda_id_wins(self, agendas, monkeypatch):
        await agendas.create_agenda({"items": SCHEDULE})
        pinned = await agendas.create_agenda({"items": []})

        monkeypatch.setenv("ACTIVE_AGENDA_ID", pinned.id)
        get_settings.cache_clear()

        assert (await agendas.get_current_agenda()).id == pinned.id

    async def test_stray_current_flags_resolve_to_newest(self, agendas, db):
        await agendas.create_agenda({"items": SCHEDULE})
        newest = await agendas.create_agenda({"items": []})
        await db.execute(update(Agenda).values(is_current=True))
        await db.commit()

        assert (await agendas.get_current_agenda()).id == newest.id

    async def test_no_agenda(self, agendas):
        assert await agendas.get_current_agenda() is None
        result = await agendas.resolve_current("08:00")
        assert result.agenda_id is None
        assert result.active_item is None and result.next_item is None


class TestResolveCurrent:
    async def test_manual_override(self, agendas):
        agenda = await agendas.create_agenda({"items": SCHEDULE})
        await agendas.set_item_active(agenda.id, agenda.items[1].id)

        result = await agendas.resolve_current("07:00")

        assert result.agenda_id == agenda.id
        assert result.active_item.name == "Keynote"
        assert result.next_item.name == "Closing"

    async def test_time_window(self, agendas):
        await agendas.create_agenda({"items": SCHEDULE[1:]})

        result = await agendas.resolve_current("08:45")

        assert result.now == "08:45"
        assert result.active_item.name == "Keynote"
        assert result.next_item is None

    async def test_forced_auto_detect_flag(self, agendas, monkeypatch):
        await agendas.create_agenda({"items": SCHEDULE, "auto_detect_active": False})
        assert (await agendas.resolve_current("08:10")).active_item is None

        monkeypatch.setenv("FF_FORCE_AGENDA_AUTO_DETECT", "true")
        from app.core.flags import get_flags
        get_flags.cache_clear()

        assert (await agendas.resolve_current("08:10")).active_item.name == "Opening"

    async def test_aware_time_is_read_on_the_venue_clock(self, agendas, monkeypatch):
        monkeypatch.setenv("VENUE_TIMEZONE", "Europe/Berlin")
        get_settings.cache_clear()
        await agendas.create_agenda({"items": [item("10:00", "10:30", "Opening")]})

        # 09:15 UTC in January is 10:15 in Berlin
        result = await agendas.resolve_current(datetime(2026, 1, 15, 9, 15, tzinfo=timezone.utc))

        assert result.now == "10:15"
        assert result.active_item.name == "Opening"

    async def test_unpadded_clock_string(self, agendas):
        await agendas.create_agenda({"items": SCHEDULE})

        result = await agendas.resolve_current("8:45")

        assert result.now == "08:45"
        assert result.active_item.name == "Keynote"

    async def test_defaults_to_venue_clock(self, agendas):
        await agendas.create_agenda({"items": SCHEDULE})
        result = await agendas.resolve_current()
        assert len(result.now) == 5 and result.now[2] == ":"


async def test_separate_sessions_see_committed_agenda(session_factory):
    async with session_factory() as s1:
        created = await AgendaService(s1).create_agenda({"items": SCHEDULE})
    async with session_factory() as s2:
        loaded = await AgendaService(s2).get_agenda(created.id)
    assert [it.id for it in loaded.items] == [it.id for it in created.items]


async def test_concurrent_first_agendas_leave_one_current(session_factory):
    async def create():
        async with session_factory() as session:
            return await AgendaService(session).create_agenda({"items": SCHEDULE})

    created = await asyncio.gather(create(), create())

    async with session_factory() as check:
        current = (
            await check.execute(select(Agenda.id).where(Agenda.is_current.is_(True)))
        ).scalars().all()

    assert len(current) == 1
    assert current[0] in {a.id for a in created}
    assert sum(a.is_current for a in created) == 1
