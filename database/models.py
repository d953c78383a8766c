"""
Модели данных для SQLite
"""

# Статусы сессии (рабочего дня)
STATUS_WORKING = "working"
STATUS_PAUSED = "paused"
STATUS_FINISHED = "finished"

# Типы периодов
KIND_WORK = "work"
KIND_PAUSE = "pause"

# SQL схемы таблиц

USERS_TABLE = """
CREATE TABLE IF NOT EXISTS users (
    user_id INTEGER PRIMARY KEY,
    last_chat_id INTEGER,
    username TEXT,
    first_name TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    last_active TIMESTAMP DEFAULT CURRENT_TIMESTAMP
)
"""

SESSIONS_TABLE = """
CREATE TABLE IF NOT EXISTS sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER NOT NULL,
    date TEXT NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('working', 'paused', 'finished')),
    created_at TEXT NOT NULL,
    finished_at TEXT,
    FOREIGN KEY (user_id) REFERENCES users (user_id),
    UNIQUE(user_id, date)
)
"""

PERIODS_TABLE = """
CREATE TABLE IF NOT EXISTS periods (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id INTEGER NOT NULL,
    kind TEXT NOT NULL CHECK (kind IN ('work', 'pause')),
    started_at TEXT NOT NULL,
    ended_at TEXT,
    last_reminder_at TEXT,
    FOREIGN KEY (session_id) REFERENCES sessions (id)
)
"""

# Отметки о завершенном переходе через полночь (один раз на дату)
ROLLOVERS_TABLE = """
CREATE TABLE IF NOT EXISTS rollovers (
    date TEXT PRIMARY KEY,
    completed_at TEXT NOT NULL
)
"""

PERIODS_SESSION_INDEX = """
CREATE INDEX IF NOT EXISTS idx_periods_session ON periods (session_id)
"""

SESSIONS_DATE_INDEX = """
CREATE INDEX IF NOT EXISTS idx_sessions_date_status ON sessions (date, status)
"""

ALL_TABLES = [
    USERS_TABLE,
    SESSIONS_TABLE,
    PERIODS_TABLE,
    ROLLOVERS_TABLE,
    PERIODS_SESSION_INDEX,
    SESSIONS_DATE_INDEX,
]
