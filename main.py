"""
Главный файл Telegram бота учета рабочего времени
"""
import asyncio
import logging
import sys

from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
)

import config
from database import Database
from handlers import TimesheetHandler
from keyboards import PANEL_BUTTONS
from services import (
    Clock,
    Notifier,
    TimesheetService,
    RolloverService,
    PauseReminderService,
)

# Настройка логирования
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)


class TimesheetBot:
    """
    Контекст процесса: БД, часы, сервисы и фоновые задачи

    post_init открывает БД и ставит задачи в job_queue,
    post_shutdown снимает их.
    """

    def __init__(self):
        self.db = Database(config.DATABASE_PATH)
        self.timesheet = TimesheetService(self.db)

        self.clock = None
        self.handler = None
        self.app = None
        self.notifier = None
        self.rollover = None
        self.reminders = None
        self.jobs = []

    def initialize(self):
        """Инициализация приложения и сервисов"""
        logger.info("🚀 Инициализация бота...")

        # Проверяем конфиг
        config.validate_config()

        # Временная зона уже проверена
        self.clock = Clock(config.TIMEZONE)
        self.handler = TimesheetHandler(self.timesheet, self.clock)

        # Создаем приложение
        self.app = (
            Application.builder()
            .token(config.TELEGRAM_BOT_TOKEN)
            .post_init(self._post_init)
            .post_shutdown(self._post_shutdown)
            .build()
        )

        self.notifier = Notifier(self.app.bot)
        self.rollover = RolloverService(
            self.db,
            self.clock,
            self.notifier,
            auto_start=config.AUTO_START_NEXT_DAY,
            auto_start_delay=config.AUTO_START_DELAY_SECONDS
        )
        self.reminders = PauseReminderService(
            self.db,
            self.clock,
            self.notifier,
            threshold_minutes=config.PAUSE_REMINDER_MINUTES
        )

        self._register_handlers()

        logger.info("✅ Обработчики зарегистрированы")
        logger.info(f"🌍 Временная зона: {config.TIMEZONE}")

    def _register_handlers(self):
        """Регистрирует все обработчики команд"""
        self.app.add_handler(CommandHandler("start", self.handler.start_command))
        self.app.add_handler(CommandHandler(config.PANEL_COMMAND, self.handler.panel_command))

        # Кнопки панели
        self.app.add_handler(CallbackQueryHandler(
            self.handler.button_callback,
            pattern=f"^({'|'.join(PANEL_BUTTONS)})$"
        ))

        # Обработчик ошибок
        self.app.add_error_handler(self.error_handler)

    async def _post_init(self, application: Application):
        """Открывает БД и запускает фоновые задачи"""
        await self.db.init_db()
        logger.info("✅ База данных инициализирована")

        await self.rollover.restore()

        if not application.job_queue:
            logger.warning("⚠️ Job queue недоступна - фоновые задачи отключены")
            return

        self.jobs.append(application.job_queue.run_repeating(
            self.check_rollover,
            interval=config.ROLLOVER_CHECK_INTERVAL,
            first=config.ROLLOVER_CHECK_INTERVAL,
            name="rollover"
        ))

        if self.reminders.enabled:
            self.jobs.append(application.job_queue.run_repeating(
                self.check_pause_reminders,
                interval=config.REMINDER_CHECK_INTERVAL,
                first=config.REMINDER_CHECK_INTERVAL,
                name="pause_reminders"
            ))
        else:
            logger.info("🔕 Напоминания о паузе отключены")

        logger.info(f"✅ Job queue настроена ({', '.join(job.name for job in self.jobs)})")

    async def _post_shutdown(self, application: Application):
        """Снимает фоновые задачи"""
        for job in self.jobs:
            job.schedule_removal()
        self.jobs.clear()
        logger.info("✅ Фоновые задачи остановлены")

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        """Обработчик ошибок"""
        logger.error(f"❌ Exception: {context.error}", exc_info=context.error)

        if isinstance(update, Update) and update.callback_query:
            try:
                await update.callback_query.answer("😔 Произошла ошибка при обработке нажатия.")
            except Exception as e:
                logger.debug(f"Не удалось ответить на callback: {e}")

    async def check_rollover(self, context: ContextTypes.DEFAULT_TYPE):
        """Проверяет смену дня (job)"""
        try:
            await self.rollover.tick()
        except Exception as e:
            logger.error(f"❌ Ошибка перехода через полночь: {e}", exc_info=True)

    async def check_pause_reminders(self, context: ContextTypes.DEFAULT_TYPE):
        """Проверяет затянувшиеся паузы (job)"""
        try:
            await self.reminders.scan()
        except Exception as e:
            logger.error(f"❌ Ошибка проверки пауз: {e}")

    def run(self):
        """Запускает бота"""
        try:
            self.app.run_polling(
                allowed_updates=Update.ALL_TYPES,
                drop_pending_updates=True
            )
        except KeyboardInterrupt:
            logger.info("⚠️ Получен сигнал остановки")
        finally:
            logger.info("✅ Бот остановлен")


def main():
    """Главная функция"""
    # Фикс для Windows - используем ProactorEventLoop
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    try:
        bot = TimesheetBot()
        bot.initialize()
        bot.run()
    except KeyboardInterrupt:
        print("\n👋 Бот остановлен пользователем")
    except Exception as e:
        logger.error(f"❌ Критическая ошибка: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
