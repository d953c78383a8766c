"""
Обработчики панели учета рабочего времени
"""
import html
import logging

from telegram import Update
from telegram.ext import ContextTypes

from database import StoreError
from keyboards import (
    get_panel_keyboard,
    BUTTON_START,
    BUTTON_PAUSE,
    BUTTON_RESUME,
    BUTTON_FINISH,
    BUTTON_STATUS,
)
from services.clock import Clock
from services.summary import build_summary
from services.timesheet_service import TimesheetService

logger = logging.getLogger(__name__)

PANEL_TEXT = (
    "🕐 <b>Учет рабочего времени</b>\n\n"
    "Используй кнопки ниже. Каждое нажатие влияет <b>только на тебя</b>."
)

MSG_STORE_FAILED = "😔 Не удалось сохранить действие. Попробуй еще раз."


class TimesheetHandler:
    """Кнопки панели: начать, пауза, вернуться, завершить, статус"""

    def __init__(self, timesheet: TimesheetService, clock: Clock):
        self.timesheet = timesheet
        self.clock = clock

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обработчик команды /start"""
        user = update.effective_user

        await self.timesheet.record_interaction(
            user.id,
            update.effective_chat.id,
            user.username,
            user.first_name
        )

        await update.message.reply_text(
            f"👋 Привет, <b>{html.escape(user.first_name or '')}</b>!\n\n"
            "Я считаю рабочее время и паузы за день.\n"
            "В полночь день закрывается автоматически, а итоги приходят в этот чат.",
            parse_mode='HTML'
        )
        await self.panel_command(update, context)

    async def panel_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """
        /panel - публикует панель с кнопками в текущем чате
        """
        await update.message.reply_text(
            PANEL_TEXT,
            parse_mode='HTML',
            reply_markup=get_panel_keyboard()
        )

    async def button_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Обрабатывает нажатия кнопок панели"""
        query = update.callback_query
        user = update.effective_user
        chat = update.effective_chat
        chat_id = chat.id if chat else None

        now = self.clock.now()
        today = now.date()
        name = user.first_name or user.username or str(user.id)

        try:
            # Запоминаем чат для автоматических отчетов
            await self.timesheet.record_interaction(user.id, chat_id, user.username, user.first_name)

            if query.data == BUTTON_STATUS:
                _, periods = await self.timesheet.status(user.id, today, now)
                await query.answer(
                    build_summary(name, periods, now, compact=True, tz=self.clock.tz),
                    show_alert=True
                )
                return

            if query.data == BUTTON_START:
                result = await self.timesheet.start(user.id, today, now)
            elif query.data == BUTTON_PAUSE:
                result = await self.timesheet.pause(user.id, today, now)
            elif query.data == BUTTON_RESUME:
                result = await self.timesheet.resume(user.id, today, now)
            elif query.data == BUTTON_FINISH:
                result = await self.timesheet.finish(user.id, today, now)
            else:
                await query.answer("❓ Неизвестная кнопка")
                return

            periods = None
            if result.session:
                periods = await self.timesheet.get_periods(result.session['id'])

        except StoreError as e:
            logger.error(f"❌ Ошибка БД при обработке '{query.data}' от {user.id}: {e}")
            await query.answer(MSG_STORE_FAILED, show_alert=True)
            return

        await query.answer(result.message, show_alert=not result.ok)

        # Итоги завершенного дня видны всему чату
        if periods is not None and chat_id:
            await context.bot.send_message(
                chat_id=chat_id,
                text=build_summary(name, periods, now, tz=self.clock.tz),
                parse_mode='HTML'
            )
