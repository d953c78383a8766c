"""
Конфигурация бота учета рабочего времени
"""
import os
from pathlib import Path
from dotenv import load_dotenv
import pytz

# Загружаем переменные окружения
load_dotenv()

# Базовые пути
BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / "data"
DATA_DIR.mkdir(exist_ok=True)


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Telegram
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
PANEL_COMMAND = os.getenv("PANEL_COMMAND", "panel")

# Настройки бота
TIMEZONE = os.getenv("TIMEZONE", "Europe/Kiev")  # Украина
DATABASE_PATH = Path(os.getenv("DATABASE_PATH", str(DATA_DIR / "timesheet.db")))

# Переход через полночь
AUTO_START_NEXT_DAY = _get_bool("AUTO_START_NEXT_DAY", True)  # новый день стартует сам
AUTO_START_DELAY_SECONDS = int(os.getenv("AUTO_START_DELAY_SECONDS", "5"))
ROLLOVER_CHECK_INTERVAL = int(os.getenv("ROLLOVER_CHECK_INTERVAL", "60"))

# Напоминание о паузе (0 отключает)
PAUSE_REMINDER_MINUTES = int(os.getenv("PAUSE_REMINDER_MINUTES", "15"))
REMINDER_CHECK_INTERVAL = int(os.getenv("REMINDER_CHECK_INTERVAL", "30"))


# Валидация конфига
def validate_config():
    """Проверяет наличие обязательных параметров"""
    errors = []

    if not TELEGRAM_BOT_TOKEN:
        errors.append("TELEGRAM_BOT_TOKEN не установлен")

    if TIMEZONE not in pytz.all_timezones_set:
        errors.append(f"Неизвестная временная зона: {TIMEZONE}")

    if AUTO_START_DELAY_SECONDS < 0:
        errors.append("AUTO_START_DELAY_SECONDS не может быть отрицательным")

    if ROLLOVER_CHECK_INTERVAL <= 0 or REMINDER_CHECK_INTERVAL <= 0:
        errors.append("Интервалы проверки должны быть больше нуля")

    if errors:
        raise ValueError(f"Ошибки конфигурации:\n" + "\n".join(f"- {e}" for e in errors))

if __name__ == "__main__":
    validate_config()
    print("✅ Конфигурация валидна!")
