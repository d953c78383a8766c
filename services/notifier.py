"""
Отправка сообщений пользователю вне ответа на нажатие кнопки
"""
import logging
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

logger = logging.getLogger(__name__)


class Notifier:
    """
    Отправка в последний известный чат пользователя

    Доставка не гарантируется: ошибки Telegram логируются и не
    пробрасываются, чтобы не прерывать фоновые задачи.
    """

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(self, chat_id: Optional[int], text: str, embed: Optional[str] = None) -> bool:
        """
        Отправляет сообщение

        Args:
            chat_id: ID чата (None - некуда отправлять)
            text: Основной текст
            embed: Дополнительный блок (сводка), добавляется после текста

        Returns:
            True если сообщение отправлено
        """
        if not chat_id:
            return False

        message = f"{text}\n\n{embed}" if embed else text

        try:
            await self.bot.send_message(
                chat_id=chat_id,
                text=message,
                parse_mode='HTML'
            )
            return True
        except TelegramError as e:
            logger.warning(f"⚠️ Не удалось отправить сообщение в чат {chat_id}: {e}")
            return False
