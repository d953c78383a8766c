"""
Клавиатуры для Telegram бота
"""
from telegram import InlineKeyboardButton, InlineKeyboardMarkup

# callback_data кнопок панели
BUTTON_START = "start_work"
BUTTON_PAUSE = "pause"
BUTTON_RESUME = "resume"
BUTTON_FINISH = "finish"
BUTTON_STATUS = "status"

PANEL_BUTTONS = (BUTTON_START, BUTTON_PAUSE, BUTTON_RESUME, BUTTON_FINISH, BUTTON_STATUS)


def get_panel_keyboard():
    """
    Панель учета времени: каждое нажатие влияет только на нажавшего
    """
    keyboard = [
        [
            InlineKeyboardButton("▶️ Начать", callback_data=BUTTON_START),
            InlineKeyboardButton("⏸️ Пауза", callback_data=BUTTON_PAUSE),
            InlineKeyboardButton("⏯️ Вернуться", callback_data=BUTTON_RESUME),
        ],
        [
            InlineKeyboardButton("🏁 Завершить", callback_data=BUTTON_FINISH),
            InlineKeyboardButton("📊 Статус", callback_data=BUTTON_STATUS),
        ],
    ]

    return InlineKeyboardMarkup(keyboard)
