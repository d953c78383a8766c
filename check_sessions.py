"""
Скрипт для проверки сессий и открытых периодов в БД
"""
import sqlite3
import sys

import config

day = sys.argv[1] if len(sys.argv) > 1 else None

conn = sqlite3.connect(config.DATABASE_PATH)
cursor = conn.cursor()

if not day:
    cursor.execute("SELECT MAX(date) FROM sessions")
    day = cursor.fetchone()[0]

if not day:
    print("\n❌ Сессий в БД нет!\n")
    conn.close()
    sys.exit(0)

cursor.execute("""
    SELECT id, user_id, status, created_at, finished_at
    FROM sessions
    WHERE date = ?
    ORDER BY id
""", (day,))

sessions = cursor.fetchall()
print(f"\n📋 Сессий за {day}: {len(sessions)}\n")

for s in sessions:
    print(f"Сессия {s[0]}: пользователь {s[1]}")
    print(f"   Статус: {s[2]}")
    print(f"   Создана: {s[3]}")
    if s[4]:
        print(f"   Завершена: {s[4]}")

    cursor.execute("""
        SELECT kind, started_at, ended_at, last_reminder_at
        FROM periods
        WHERE session_id = ?
        ORDER BY id
    """, (s[0],))
    periods = cursor.fetchall()

    open_count = sum(1 for p in periods if p[2] is None)
    for p in periods:
        icon = "💼" if p[0] == "work" else "☕"
        end = p[2] or "…"
        reminder = " 🔔" if p[3] else ""
        print(f"   {icon} {p[1]} → {end}{reminder}")

    # Больше одного открытого периода - нарушение учета
    if open_count > 1:
        print(f"   ⚠️ ОТКРЫТЫХ ПЕРИОДОВ: {open_count}")
    print()

cursor.execute("SELECT date, completed_at FROM rollovers ORDER BY date DESC LIMIT 5")
rollovers = cursor.fetchall()
if rollovers:
    print("🌙 Последние переходы через полночь:")
    for r in rollovers:
        print(f"   {r[0]} (обработан {r[1]})")

conn.close()
