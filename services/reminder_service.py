"""
Напоминания о затянувшейся паузе
"""
import html
import logging
from typing import Any, Dict, List

from database import Database
from services.clock import Clock
from services.notifier import Notifier

logger = logging.getLogger(__name__)


class PauseReminderService:
    """
    Одно напоминание на каждую паузу дольше порога

    Время отправки пишется в last_reminder_at периода и служит защелкой:
    пока пауза открыта, повторно она не напоминается. Новая пауза - новый
    период, поэтому защелка сбрасывается сама.
    """

    def __init__(self, db: Database, clock: Clock, notifier: Notifier,
                 threshold_minutes: int = 15):
        self.db = db
        self.clock = clock
        self.notifier = notifier
        self.threshold_minutes = threshold_minutes

    @property
    def enabled(self) -> bool:
        return self.threshold_minutes > 0

    async def scan(self) -> List[Dict[str, Any]]:
        """
        Проверяет открытые паузы за сегодня

        Returns:
            Паузы, по которым было отправлено напоминание
        """
        if not self.enabled:
            return []

        now = self.clock.now()
        pauses = await self.db.get_open_pauses(now.date())

        reminded = []
        for pause in pauses:
            if pause['last_reminder_at']:
                continue

            minutes = (now - pause['started_at']).total_seconds() / 60
            if minutes < self.threshold_minutes:
                continue

            # Пауза могла закрыться, пока шла выборка
            async with self.db.transaction() as q:
                latched = await q.set_period_reminder(pause['period_id'], now)
            if not latched:
                logger.debug(f"Пауза {pause['period_id']} уже неактуальна, напоминание пропущено")
                continue

            try:
                await self._remind(pause, minutes)
            except Exception as e:
                logger.error(f"❌ Ошибка напоминания пользователю {pause['user_id']}: {e}")

            reminded.append(pause)

        if reminded:
            logger.info(f"🔔 Отправлено напоминаний о паузе: {len(reminded)}")

        return reminded

    async def _remind(self, pause: Dict[str, Any], minutes: float):
        user_id = pause['user_id']
        name = html.escape(pause.get('first_name') or str(user_id))
        mention = f'<a href="tg://user?id={user_id}">{name}</a>'
        await self.notifier.send(
            pause['last_chat_id'],
            f"⏰ {mention}, ты на паузе уже {int(minutes)} мин. "
            f"Вернешься к <b>работе</b>?"
        )
