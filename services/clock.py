"""
Часы в локальной временной зоне бота
"""
from datetime import date, datetime, time

import pytz


class Clock:
    """Текущее время и календарные дни в фиксированной временной зоне"""

    def __init__(self, timezone: str = "Europe/Kiev"):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, value: datetime) -> datetime:
        """Привязывает наивное время к зоне бота, aware-время переводит в нее"""
        if value.tzinfo is None:
            return self.tz.localize(value)
        return value.astimezone(self.tz)

    def end_of_day(self, day: date) -> datetime:
        """Граница дня: 23:59:59 по местному времени"""
        return self.tz.localize(datetime.combine(day, time(23, 59, 59)))
