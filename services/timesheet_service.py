"""
Учет рабочего дня: переходы между работой, паузой и завершением

Состояния сессии:
- paused (начальное) -> working: start / resume
- working -> paused: pause
- working | paused -> finished: finish
finished - конечное состояние, любые действия с ним отклоняются.

У сессии всегда не больше одного открытого периода, и его тип
соответствует статусу: working - work, paused - pause (или нет периода,
если день еще не начат), finished - открытых периодов нет.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from database import Database, Queries
from database.models import (
    STATUS_WORKING,
    STATUS_PAUSED,
    STATUS_FINISHED,
    KIND_WORK,
    KIND_PAUSE,
)

logger = logging.getLogger(__name__)


class InvalidTransition(Exception):
    """Действие недопустимо в текущем состоянии сессии"""


@dataclass
class TransitionResult:
    ok: bool
    message: str
    session: Optional[Dict[str, Any]] = None


# Сообщения для пользователя
MSG_STARTED = "✅ Работа начата."
MSG_PAUSED = "⏸️ Пауза."
MSG_RESUMED = "▶️ Работа продолжена."
MSG_FINISHED = "🏁 День завершен."
MSG_ALREADY_WORKING = "Ты уже работаешь."
MSG_WORK_ALREADY_OPEN = "Рабочий период уже открыт."
MSG_NOT_WORKING = "Ты сейчас не работаешь."
MSG_NOT_PAUSED = "Ты сейчас не на паузе."
MSG_ALREADY_FINISHED = "Этот день уже завершен."


class TimesheetService:
    """
    Машина состояний сессий и периодов

    Каждый переход выполняется в одной транзакции: закрытие старого
    периода, открытие нового и смена статуса видны только вместе.
    Если условие перехода не выполнено, транзакция откатывается целиком.
    """

    def __init__(self, db: Database):
        self.db = db

    # === USERS ===

    async def record_interaction(self, user_id: int, chat_id: Optional[int],
                                 username: str = None, first_name: str = None):
        """Запоминает чат пользователя для автоматических сообщений"""
        async with self.db.transaction() as q:
            await q.upsert_user(user_id, chat_id, username, first_name)

    # === SESSIONS ===

    async def _ensure(self, q: Queries, user_id: int, day: date, now: datetime) -> Dict[str, Any]:
        session = await q.get_session(user_id, day)
        if session:
            return session
        await q.insert_session(user_id, day, STATUS_PAUSED, now)
        return await q.get_session(user_id, day)

    async def ensure_session(self, user_id: int, day: date, now: datetime) -> Dict[str, Any]:
        """
        Возвращает сессию за день, создавая ее при первом обращении

        Новая сессия создается в статусе paused и без периодов.
        """
        async with self.db.transaction() as q:
            return await self._ensure(q, user_id, day, now)

    async def get_periods(self, session_id: int) -> List[Dict[str, Any]]:
        return await self.db.get_periods(session_id)

    async def status(self, user_id: int, day: date, now: datetime) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
        """Сессия за день и ее периоды (для кнопки статуса)"""
        async with self.db.transaction() as q:
            session = await self._ensure(q, user_id, day, now)
            periods = await q.get_periods(session['id'])
        return session, periods

    # === TRANSITIONS ===

    async def start(self, user_id: int, day: date, now: datetime) -> TransitionResult:
        """Начать работу: закрывает паузу (если есть) и открывает рабочий период"""
        try:
            async with self.db.transaction() as q:
                session = await self._ensure(q, user_id, day, now)

                if session['status'] == STATUS_FINISHED:
                    raise InvalidTransition(MSG_ALREADY_FINISHED)
                if session['status'] == STATUS_WORKING:
                    raise InvalidTransition(MSG_ALREADY_WORKING)
                if await q.get_open_period(session['id'], KIND_WORK):
                    raise InvalidTransition(MSG_WORK_ALREADY_OPEN)

                await q.close_open_periods(session['id'], now)
                await q.insert_period(session['id'], KIND_WORK, now)
                await q.set_session_status(session['id'], STATUS_WORKING)
        except InvalidTransition as e:
            return self._rejected("start", user_id, e)

        logger.info(f"▶️ Пользователь {user_id} начал работу ({day})")
        return TransitionResult(True, MSG_STARTED)

    async def pause(self, user_id: int, day: date, now: datetime) -> TransitionResult:
        """Пауза: закрывает рабочий период и открывает период паузы"""
        try:
            async with self.db.transaction() as q:
                session = await self._ensure(q, user_id, day, now)

                if session['status'] != STATUS_WORKING:
                    raise InvalidTransition(MSG_NOT_WORKING)

                await q.close_open_periods(session['id'], now)
                await q.insert_period(session['id'], KIND_PAUSE, now)
                await q.set_session_status(session['id'], STATUS_PAUSED)
        except InvalidTransition as e:
            return self._rejected("pause", user_id, e)

        logger.info(f"⏸️ Пользователь {user_id} на паузе ({day})")
        return TransitionResult(True, MSG_PAUSED)

    async def resume(self, user_id: int, day: date, now: datetime) -> TransitionResult:
        """Вернуться с паузы: закрывает паузу и открывает рабочий период"""
        try:
            async with self.db.transaction() as q:
                session = await self._ensure(q, user_id, day, now)

                if session['status'] != STATUS_PAUSED:
                    raise InvalidTransition(MSG_NOT_PAUSED)

                await q.close_open_periods(session['id'], now)
                await q.insert_period(session['id'], KIND_WORK, now)
                await q.set_session_status(session['id'], STATUS_WORKING)
        except InvalidTransition as e:
            return self._rejected("resume", user_id, e)

        logger.info(f"▶️ Пользователь {user_id} вернулся с паузы ({day})")
        return TransitionResult(True, MSG_RESUMED)

    async def finish(self, user_id: int, day: date, now: datetime) -> TransitionResult:
        """Завершить день: закрывает открытый период, сессия становится finished"""
        try:
            async with self.db.transaction() as q:
                session = await self._ensure(q, user_id, day, now)

                if session['status'] == STATUS_FINISHED:
                    raise InvalidTransition(MSG_ALREADY_FINISHED)

                await q.close_open_periods(session['id'], now)
                await q.finish_session(session['id'], now)
                session = await q.get_session_by_id(session['id'])
        except InvalidTransition as e:
            return self._rejected("finish", user_id, e)

        logger.info(f"🏁 Пользователь {user_id} завершил день ({day})")
        return TransitionResult(True, MSG_FINISHED, session)

    def _rejected(self, action: str, user_id: int, error: InvalidTransition) -> TransitionResult:
        logger.info(f"🚫 {action} отклонен для пользователя {user_id}: {error}")
        return TransitionResult(False, str(error))
