"""Тесты перехода через полночь (RolloverService)."""

from datetime import date

import pytest

from conftest import FixedClock, RecordingNotifier
from database import Database, StoreError
from database.models import KIND_WORK
from services.rollover_service import RolloverService
from services.timesheet_service import TimesheetService

DAY = date(2026, 10, 18)
NEXT_DAY = date(2026, 10, 19)


# ---- Helpers ----

@pytest.fixture
def service(db):
    return TimesheetService(db)


def make_rollover(db, clock, notifier, auto_start=True, delay=5):
    return RolloverService(db, clock, notifier, auto_start=auto_start, auto_start_delay=delay)


async def working_since(service, clock, user_id, time_="08:00:00", chat_id=None):
    if chat_id:
        await service.record_interaction(user_id, chat_id, first_name=f"user{user_id}")
    await service.start(user_id, DAY, clock.at(f"2026-10-18 {time_}"))


# ---- rollover ----

class TestRollover:
    async def test_working_session_is_closed_and_continued(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier)

        clock.set("2026-10-19 00:00:00")
        rolled = await rollover.rollover(DAY, clock.now())

        assert len(rolled) == 1
        old = await db.get_session(1, DAY)
        old_periods = await db.get_periods(old["id"])
        assert old["status"] == "finished"
        assert old["finished_at"] == clock.at("2026-10-18 23:59:59")
        assert old_periods[0]["ended_at"] == clock.at("2026-10-18 23:59:59")

        new = await db.get_session(1, NEXT_DAY)
        new_periods = await db.get_periods(new["id"])
        assert new["status"] == "working"
        assert new["created_at"] == clock.at("2026-10-19 00:00:05")
        assert len(new_periods) == 1
        assert new_periods[0]["kind"] == KIND_WORK
        assert new_periods[0]["started_at"] == clock.at("2026-10-19 00:00:05")
        assert new_periods[0]["ended_at"] is None

    async def test_paused_session_is_closed_at_boundary(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        await service.pause(1, DAY, clock.at("2026-10-18 20:00:00"))
        rollover = make_rollover(db, clock, notifier, auto_start=False)

        clock.set("2026-10-19 00:00:30")
        await rollover.rollover(DAY, clock.now())

        session = await db.get_session(1, DAY)
        periods = await db.get_periods(session["id"])
        assert session["status"] == "finished"
        assert periods[-1]["kind"] == "pause"
        assert periods[-1]["ended_at"] == clock.at("2026-10-18 23:59:59")
        assert await db.get_session(1, NEXT_DAY) is None

    async def test_finished_sessions_are_untouched(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        await service.finish(1, DAY, clock.at("2026-10-18 17:00:00"))
        rollover = make_rollover(db, clock, notifier)

        clock.set("2026-10-19 00:00:00")
        rolled = await rollover.rollover(DAY, clock.now())

        assert rolled == []
        session = await db.get_session(1, DAY)
        assert session["finished_at"] == clock.at("2026-10-18 17:00:00")
        assert await db.get_session(1, NEXT_DAY) is None

    async def test_no_sessions_is_noop(self, db, clock, notifier):
        rollover = make_rollover(db, clock, notifier)

        assert await rollover.rollover(DAY, clock.at("2026-10-19 00:00:00")) == []
        assert notifier.sent == []

    async def test_same_date_is_processed_once(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier)

        clock.set("2026-10-19 00:00:00")
        first = await rollover.rollover(DAY, clock.now())
        clock.set("2026-10-19 00:01:00")
        second = await rollover.rollover(DAY, clock.now())

        assert len(first) == 1
        assert second == []
        new = await db.get_session(1, NEXT_DAY)
        assert len(await db.get_periods(new["id"])) == 1

    async def test_continuation_skipped_when_next_day_exists(self, db, service, notifier):
        """Пользователь нажал кнопку после полуночи, но до тика."""
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier)
        await service.ensure_session(1, NEXT_DAY, clock.at("2026-10-19 00:00:10"))

        clock.set("2026-10-19 00:00:40")
        rolled = await rollover.rollover(DAY, clock.now())

        assert rolled[0]["continued"] is False
        new = await db.get_session(1, NEXT_DAY)
        assert new["status"] == "paused"
        assert await db.get_periods(new["id"]) == []


# ---- tick ----

class TestTick:
    async def test_tick_fires_once_per_day_change(self, db, service, notifier):
        clock = FixedClock("2026-10-18 23:58:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier)

        assert await rollover.tick() == []

        clock.set("2026-10-19 00:00:30")
        assert len(await rollover.tick()) == 1
        assert rollover.last_date == NEXT_DAY

        clock.set("2026-10-19 00:01:30")
        assert await rollover.tick() == []

    async def test_tick_catches_up_skipped_days(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier, auto_start=False)

        clock.set("2026-10-20 09:00:00")
        rolled = await rollover.tick()

        assert len(rolled) == 1
        assert (await db.get_session(1, DAY))["status"] == "finished"
        assert rollover.last_date == date(2026, 10, 20)

    async def test_failed_rollover_is_retried_on_next_tick(self, db, service, notifier, tmp_path):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier, auto_start=False)

        # Каталог вместо файла: SQLite не откроет БД
        rollover.db = Database(tmp_path)
        clock.set("2026-10-19 00:00:30")
        with pytest.raises(StoreError):
            await rollover.tick()

        assert rollover.last_date == DAY
        assert (await db.get_session(1, DAY))["status"] == "working"

        rollover.db = db
        clock.set("2026-10-19 00:01:30")
        rolled = await rollover.tick()

        assert len(rolled) == 1
        assert (await db.get_session(1, DAY))["status"] == "finished"
        assert rollover.last_date == NEXT_DAY

    async def test_restore_catches_up_after_restart(self, db, service, notifier):
        """Бот был выключен в полночь: при старте вчерашний день еще открыт."""
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)

        clock.set("2026-10-19 09:00:00")
        rollover = make_rollover(db, clock, notifier)
        await rollover.restore()

        assert rollover.last_date == DAY
        rolled = await rollover.tick()
        assert len(rolled) == 1
        assert (await db.get_session(1, DAY))["status"] == "finished"
        assert (await db.get_session(1, NEXT_DAY))["status"] == "working"
        assert rollover.last_date == NEXT_DAY

    async def test_restore_without_open_days_keeps_today(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        await service.finish(1, DAY, clock.at("2026-10-18 17:00:00"))

        clock.set("2026-10-19 09:00:00")
        rollover = make_rollover(db, clock, notifier)
        await rollover.restore()

        assert rollover.last_date == NEXT_DAY
        assert await rollover.tick() == []


# ---- Notifications ----

class TestNotifications:
    async def test_summary_and_new_day_notice(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1, chat_id=500)
        rollover = make_rollover(db, clock, notifier)

        clock.set("2026-10-19 00:00:00")
        await rollover.rollover(DAY, clock.now())

        assert [m["chat_id"] for m in notifier.sent] == [500, 500]
        summary, notice = notifier.sent
        assert "18.10.2026" in summary["text"]
        assert "15:59" in summary["embed"]
        assert "08:00–23:59" in summary["embed"]
        assert notice["embed"] is None

    async def test_no_new_day_notice_without_auto_start(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1, chat_id=500)
        rollover = make_rollover(db, clock, notifier, auto_start=False)

        await rollover.rollover(DAY, clock.at("2026-10-19 00:00:00"))

        assert len(notifier.sent) == 1

    async def test_user_without_chat_is_skipped(self, db, service, notifier):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1)
        rollover = make_rollover(db, clock, notifier)

        rolled = await rollover.rollover(DAY, clock.at("2026-10-19 00:00:00"))

        assert len(rolled) == 1
        assert notifier.sent == []

    async def test_notify_failure_does_not_abort_batch(self, db, service):
        clock = FixedClock("2026-10-18 08:00:00")
        await working_since(service, clock, 1, chat_id=500)
        await working_since(service, clock, 2, chat_id=600)
        notifier = RecordingNotifier(fail_for=[500])
        rollover = make_rollover(db, clock, notifier)

        rolled = await rollover.rollover(DAY, clock.at("2026-10-19 00:00:00"))

        assert len(rolled) == 2
        assert (await db.get_session(1, DAY))["status"] == "finished"
        assert (await db.get_session(2, DAY))["status"] == "finished"
        assert {m["chat_id"] for m in notifier.sent} == {600}
