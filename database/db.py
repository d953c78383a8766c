"""
Асинхронная работа с SQLite базой данных
"""
import aiosqlite
import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import List, Dict, Any, Optional, AsyncIterator
from pathlib import Path

from .models import ALL_TABLES, STATUS_PAUSED, STATUS_WORKING, KIND_PAUSE

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Ошибка хранилища: транзакция откатена, состояние не изменилось"""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _day(value) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


def _session_from_row(row) -> Dict[str, Any]:
    session = dict(row)
    session['date'] = date.fromisoformat(session['date'])
    session['created_at'] = _parse(session['created_at'])
    session['finished_at'] = _parse(session['finished_at'])
    return session


def _period_from_row(row) -> Dict[str, Any]:
    period = dict(row)
    for key in ('started_at', 'ended_at', 'last_reminder_at'):
        if key in period:
            period[key] = _parse(period[key])
    return period


class Queries:
    """
    SQL-запросы поверх одного открытого соединения.

    Все изменения делаются только через Queries, выданный
    Database.transaction(), поэтому несколько шагов одного перехода
    коммитятся вместе или не коммитятся вовсе.
    """

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    # === USERS ===

    async def upsert_user(self, user_id: int, chat_id: Optional[int],
                          username: str = None, first_name: str = None):
        """Создает пользователя или обновляет последний чат"""
        await self.db.execute("""
            INSERT INTO users (user_id, last_chat_id, username, first_name)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                last_chat_id = COALESCE(excluded.last_chat_id, last_chat_id),
                username = COALESCE(excluded.username, username),
                first_name = COALESCE(excluded.first_name, first_name),
                last_active = CURRENT_TIMESTAMP
        """, (user_id, chat_id, username, first_name))

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        async with self.db.execute(
            "SELECT * FROM users WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return dict(row) if row else None

    # === SESSIONS ===

    async def get_session(self, user_id: int, day) -> Optional[Dict[str, Any]]:
        async with self.db.execute(
            "SELECT * FROM sessions WHERE user_id = ? AND date = ?",
            (user_id, _day(day))
        ) as cursor:
            row = await cursor.fetchone()
            return _session_from_row(row) if row else None

    async def get_session_by_id(self, session_id: int) -> Optional[Dict[str, Any]]:
        async with self.db.execute(
            "SELECT * FROM sessions WHERE id = ?", (session_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return _session_from_row(row) if row else None

    async def insert_session(self, user_id: int, day, status: str,
                             created_at: datetime) -> Optional[int]:
        """
        Создает сессию, если на эту дату ее еще нет

        Returns:
            ID новой сессии или None, если сессия уже существовала
        """
        cursor = await self.db.execute("""
            INSERT OR IGNORE INTO sessions (user_id, date, status, created_at)
            VALUES (?, ?, ?, ?)
        """, (user_id, _day(day), status, _iso(created_at)))
        return cursor.lastrowid if cursor.rowcount == 1 else None

    async def set_session_status(self, session_id: int, status: str):
        await self.db.execute(
            "UPDATE sessions SET status = ? WHERE id = ?", (status, session_id)
        )

    async def finish_session(self, session_id: int, finished_at: datetime):
        await self.db.execute("""
            UPDATE sessions SET status = 'finished', finished_at = ?
            WHERE id = ?
        """, (_iso(finished_at), session_id))

    async def get_sessions_by_date(self, day, statuses: List[str] = None) -> List[Dict[str, Any]]:
        """Получает сессии за дату, опционально только с нужными статусами"""
        query = "SELECT * FROM sessions WHERE date = ?"
        params = [_day(day)]

        if statuses:
            query += f" AND status IN ({', '.join('?' for _ in statuses)})"
            params.extend(statuses)

        query += " ORDER BY id"

        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [_session_from_row(row) for row in rows]

    async def get_active_sessions(self, day) -> List[Dict[str, Any]]:
        """Незавершенные сессии за дату"""
        return await self.get_sessions_by_date(day, [STATUS_WORKING, STATUS_PAUSED])

    async def get_earliest_active_date(self, before) -> Optional[date]:
        """Самая ранняя дата до before, на которой остались незавершенные сессии"""
        async with self.db.execute("""
            SELECT MIN(date) AS date FROM sessions
            WHERE date < ? AND status IN (?, ?)
        """, (_day(before), STATUS_WORKING, STATUS_PAUSED)) as cursor:
            row = await cursor.fetchone()
            return date.fromisoformat(row['date']) if row and row['date'] else None

    # === PERIODS ===

    async def insert_period(self, session_id: int, kind: str, started_at: datetime) -> int:
        cursor = await self.db.execute("""
            INSERT INTO periods (session_id, kind, started_at)
            VALUES (?, ?, ?)
        """, (session_id, kind, _iso(started_at)))
        return cursor.lastrowid

    async def close_open_periods(self, session_id: int, ended_at: datetime) -> int:
        """Закрывает открытые периоды сессии, возвращает количество закрытых"""
        cursor = await self.db.execute("""
            UPDATE periods SET ended_at = ?
            WHERE session_id = ? AND ended_at IS NULL
        """, (_iso(ended_at), session_id))
        return cursor.rowcount

    async def get_open_period(self, session_id: int, kind: str = None) -> Optional[Dict[str, Any]]:
        query = "SELECT * FROM periods WHERE session_id = ? AND ended_at IS NULL"
        params = [session_id]

        if kind:
            query += " AND kind = ?"
            params.append(kind)

        query += " ORDER BY id DESC LIMIT 1"

        async with self.db.execute(query, params) as cursor:
            row = await cursor.fetchone()
            return _period_from_row(row) if row else None

    async def get_periods(self, session_id: int) -> List[Dict[str, Any]]:
        async with self.db.execute("""
            SELECT * FROM periods
            WHERE session_id = ?
            ORDER BY id
        """, (session_id,)) as cursor:
            rows = await cursor.fetchall()
            return [_period_from_row(row) for row in rows]

    async def get_open_pauses(self, day) -> List[Dict[str, Any]]:
        """Открытые паузы за дату у сессий на паузе (для напоминаний)"""
        async with self.db.execute("""
            SELECT s.id AS session_id, s.user_id, s.date,
                   p.id AS period_id, p.started_at, p.last_reminder_at,
                   u.last_chat_id, u.first_name
            FROM sessions s
            JOIN periods p ON p.session_id = s.id
                AND p.kind = ? AND p.ended_at IS NULL
            LEFT JOIN users u ON u.user_id = s.user_id
            WHERE s.date = ? AND s.status = ?
            ORDER BY p.id
        """, (KIND_PAUSE, _day(day), STATUS_PAUSED)) as cursor:
            rows = await cursor.fetchall()
            return [_period_from_row(row) for row in rows]

    async def set_period_reminder(self, period_id: int, reminded_at: datetime) -> bool:
        """
        Ставит защелку напоминания на открытую паузу

        Returns:
            False если пауза уже закрыта, сессия не на паузе или
            напоминание уже было
        """
        cursor = await self.db.execute("""
            UPDATE periods SET last_reminder_at = ?
            WHERE id = ?
              AND kind = ?
              AND ended_at IS NULL
              AND last_reminder_at IS NULL
              AND session_id IN (SELECT id FROM sessions WHERE status = ?)
        """, (_iso(reminded_at), period_id, KIND_PAUSE, STATUS_PAUSED))
        return cursor.rowcount == 1

    # === ROLLOVERS ===

    async def mark_rollover(self, day, completed_at: datetime) -> bool:
        """
        Отмечает дату как обработанную при переходе через полночь

        Returns:
            False если дата уже была обработана ранее
        """
        cursor = await self.db.execute("""
            INSERT OR IGNORE INTO rollovers (date, completed_at)
            VALUES (?, ?)
        """, (_day(day), _iso(completed_at)))
        return cursor.rowcount == 1


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    async def init_db(self):
        """Инициализация базы данных"""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA journal_mode = WAL")
                for table_sql in ALL_TABLES:
                    await db.execute(table_sql)
                await db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Не удалось инициализировать БД: {e}") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Queries]:
        """
        Открывает транзакцию (BEGIN IMMEDIATE)

        Коммит при успешном выходе из блока, откат при любом исключении.
        Ошибки SQLite пробрасываются как StoreError.
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("BEGIN IMMEDIATE")
                try:
                    yield Queries(db)
                except Exception:
                    await db.rollback()
                    raise
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(f"❌ Ошибка транзакции: {e}")
            raise StoreError(f"Ошибка базы данных: {e}") from e

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[Queries]:
        """Соединение только для чтения"""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                yield Queries(db)
        except aiosqlite.Error as e:
            logger.error(f"❌ Ошибка чтения из БД: {e}")
            raise StoreError(f"Ошибка базы данных: {e}") from e

    # === READ HELPERS ===

    async def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Получает пользователя"""
        async with self.connect() as q:
            return await q.get_user(user_id)

    async def get_session(self, user_id: int, day) -> Optional[Dict[str, Any]]:
        """Получает сессию пользователя за дату"""
        async with self.connect() as q:
            return await q.get_session(user_id, day)

    async def get_periods(self, session_id: int) -> List[Dict[str, Any]]:
        """Получает все периоды сессии по порядку"""
        async with self.connect() as q:
            return await q.get_periods(session_id)

    async def get_sessions_by_date(self, day, statuses: List[str] = None) -> List[Dict[str, Any]]:
        async with self.connect() as q:
            return await q.get_sessions_by_date(day, statuses)

    async def get_open_pauses(self, day) -> List[Dict[str, Any]]:
        async with self.connect() as q:
            return await q.get_open_pauses(day)

    async def get_earliest_active_date(self, before) -> Optional[date]:
        async with self.connect() as q:
            return await q.get_earliest_active_date(before)
