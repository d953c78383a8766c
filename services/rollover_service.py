"""
Переход через полночь: закрытие незавершенных дней и автостарт нового
"""
import html
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List

from database import Database, StoreError
from database.models import STATUS_WORKING, KIND_WORK
from services.clock import Clock
from services.notifier import Notifier
from services.summary import build_summary

logger = logging.getLogger(__name__)


class RolloverService:
    """
    Следит за сменой календарного дня

    tick() вызывается периодически (по умолчанию раз в минуту). Курсор
    last_date сдвигается до начала обработки, а отметка в таблице
    rollovers пишется в той же транзакции, что и закрытие сессий,
    поэтому одна дата не обрабатывается дважды.
    """

    def __init__(self, db: Database, clock: Clock, notifier: Notifier,
                 auto_start: bool = True, auto_start_delay: int = 5):
        self.db = db
        self.clock = clock
        self.notifier = notifier
        self.auto_start = auto_start
        self.auto_start_delay = auto_start_delay
        self.last_date = clock.today()

    async def restore(self):
        """
        Возвращает курсор на дни, пропущенные пока бот был выключен

        Вызывается при старте. Следующий tick() закроет все незавершенные
        сессии прошлых дат.
        """
        earliest = await self.db.get_earliest_active_date(self.last_date)
        if earliest:
            logger.info(f"⏪ Найдены незакрытые дни начиная с {earliest}")
            self.last_date = earliest

    async def tick(self) -> List[Dict[str, Any]]:
        """Проверяет смену дня, при смене запускает rollover"""
        now = self.clock.now()
        today = now.date()
        if today == self.last_date:
            return []

        prev_date = self.last_date
        self.last_date = today
        logger.info(f"🌙 Смена дня: {prev_date} → {today}")

        # Если тик пропустил несколько дней, закрываем каждый по очереди
        rolled = []
        day = prev_date
        try:
            while day < today:
                rolled.extend(await self.rollover(day, now))
                day += timedelta(days=1)
        except StoreError:
            # Необработанные даты повторятся на следующем тике
            self.last_date = day
            raise
        return rolled

    async def rollover(self, prev_date: date, now: datetime) -> List[Dict[str, Any]]:
        """
        Закрывает незавершенные сессии за prev_date

        Открытый период закрывается в 23:59:59 prev_date, сессия получает
        статус finished. При включенном автостарте на текущую дату
        создается сессия в статусе working с рабочим периодом,
        начинающимся через auto_start_delay секунд после now.

        Returns:
            Список обработанных сессий (с флагом continued)
        """
        boundary = self.clock.end_of_day(prev_date)
        today = now.date()
        started_at = self.clock.localize(now + timedelta(seconds=self.auto_start_delay))

        rolled = []
        async with self.db.transaction() as q:
            if not await q.mark_rollover(prev_date, now):
                logger.info(f"⏭️ Дата {prev_date} уже обработана")
                return []

            for session in await q.get_active_sessions(prev_date):
                await q.close_open_periods(session['id'], boundary)
                await q.finish_session(session['id'], boundary)

                continued = False
                if self.auto_start:
                    new_id = await q.insert_session(session['user_id'], today, STATUS_WORKING, started_at)
                    if new_id:
                        await q.insert_period(new_id, KIND_WORK, started_at)
                        continued = True
                    else:
                        logger.info(f"⏭️ У пользователя {session['user_id']} уже есть сессия на {today}")

                rolled.append({
                    'session': await q.get_session_by_id(session['id']),
                    'periods': await q.get_periods(session['id']),
                    'user': await q.get_user(session['user_id']),
                    'continued': continued,
                })

        if rolled:
            logger.info(f"✅ Закрыто сессий за {prev_date}: {len(rolled)}")

        for item in rolled:
            try:
                await self._notify(prev_date, item, boundary)
            except Exception as e:
                logger.error(f"❌ Ошибка уведомления пользователя {item['session']['user_id']}: {e}")

        return rolled

    async def _notify(self, prev_date: date, item: Dict[str, Any], boundary: datetime):
        user = item['user'] or {}
        chat_id = user.get('last_chat_id')
        if not chat_id:
            return

        user_id = item['session']['user_id']
        mention = f'<a href="tg://user?id={user_id}">{html.escape(user.get("first_name") or str(user_id))}</a>'
        name = user.get('first_name') or user.get('username') or str(user_id)
        summary = build_summary(name, item['periods'], boundary, tz=self.clock.tz)

        await self.notifier.send(
            chat_id,
            f"🌙 {mention}, твой день {prev_date.strftime('%d.%m.%Y')} закрыт автоматически.",
            summary
        )

        if item['continued']:
            await self.notifier.send(
                chat_id,
                f"☀️ {mention}, новый день начат автоматически. Хорошей работы! ✅"
            )
