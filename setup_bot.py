"""
Скрипт для первичной настройки бота
"""
import asyncio
import sys
from pathlib import Path

# Фикс кодировки для Windows
if sys.platform == "win32":
    import codecs
    sys.stdout = codecs.getwriter("utf-8")(sys.stdout.detach())
    sys.stderr = codecs.getwriter("utf-8")(sys.stderr.detach())
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

async def setup():
    print("🚀 Настройка бота...\n")

    # Проверка .env файла
    env_file = Path(".env")
    if not env_file.exists():
        print("⚠️ Файл .env не найден, используются переменные окружения")

    # Проверка зависимостей
    deps = {
        "telegram": "python-telegram-bot[job-queue]",
        "aiosqlite": "aiosqlite",
        "dotenv": "python-dotenv",
        "pytz": "pytz",
    }
    missing = []
    for module, package in deps.items():
        try:
            __import__(module)
        except ImportError:
            missing.append(package)

    if missing:
        print(f"❌ Отсутствуют зависимости: {', '.join(missing)}")
        print("📦 Установите зависимости: pip install -e .")
        return False
    print("✅ Все зависимости установлены")

    # Проверка конфигурации
    try:
        import config
        config.validate_config()
        print("✅ Конфигурация валидна")
        print(f"   🌍 Временная зона: {config.TIMEZONE}")
        print(f"   🌙 Автостарт нового дня: {'да' if config.AUTO_START_NEXT_DAY else 'нет'}"
              f" (через {config.AUTO_START_DELAY_SECONDS} с)")
        if config.PAUSE_REMINDER_MINUTES > 0:
            print(f"   ⏰ Напоминание о паузе: через {config.PAUSE_REMINDER_MINUTES} мин")
        else:
            print("   🔕 Напоминания о паузе отключены")
    except Exception as e:
        print(f"❌ Ошибка конфигурации: {e}")
        print("📝 Проверьте файл .env")
        return False

    # Инициализация БД
    try:
        from database import Database
        db = Database(config.DATABASE_PATH)
        await db.init_db()
        print(f"✅ База данных инициализирована: {config.DATABASE_PATH}")
    except Exception as e:
        print(f"❌ Ошибка инициализации БД: {e}")
        return False

    print("\n✨ Настройка завершена успешно!")
    print("🚀 Запустите бота: python main.py")
    return True

if __name__ == "__main__":
    result = asyncio.run(setup())
    sys.exit(0 if result else 1)
