"""
Обработчики Telegram
"""
from .timesheet_handler import TimesheetHandler

__all__ = ["TimesheetHandler"]
