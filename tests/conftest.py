"""Общие фикстуры: временная БД, фиксированные часы, записывающий notifier."""

from datetime import datetime

import pytest
import pytest_asyncio

from database import Database
from services.clock import Clock

TIMEZONE = "Europe/Kiev"


class FixedClock(Clock):
    """Часы, которые показывают заданное время."""

    def __init__(self, current: str, timezone: str = TIMEZONE):
        super().__init__(timezone)
        self.set(current)

    def set(self, current: str):
        self.current = self.at(current)

    def at(self, value: str) -> datetime:
        return self.tz.localize(datetime.strptime(value, "%Y-%m-%d %H:%M:%S"))

    def now(self) -> datetime:
        return self.current


class RecordingNotifier:
    """Запоминает отправленные сообщения вместо отправки в Telegram."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, chat_id, text, embed=None):
        if chat_id in self.fail_for:
            raise RuntimeError(f"chat {chat_id} unavailable")
        if not chat_id:
            return False
        self.sent.append({"chat_id": chat_id, "text": text, "embed": embed})
        return True


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(tmp_path / "timesheet.db")
    await database.init_db()
    return database


@pytest.fixture
def clock():
    return FixedClock("2026-10-18 09:00:00")


@pytest.fixture
def notifier():
    return RecordingNotifier()
