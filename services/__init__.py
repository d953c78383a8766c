"""
Сервисы бота
"""
from .clock import Clock
from .notifier import Notifier
from .timesheet_service import TimesheetService, TransitionResult, InvalidTransition
from .rollover_service import RolloverService
from .reminder_service import PauseReminderService
from .summary import Totals, summarize, format_duration, build_summary

__all__ = [
    "Clock",
    "Notifier",
    "TimesheetService",
    "TransitionResult",
    "InvalidTransition",
    "RolloverService",
    "PauseReminderService",
    "Totals",
    "summarize",
    "format_duration",
    "build_summary",
]
