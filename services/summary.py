"""
Подсчет итогов рабочего дня
"""
import html
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Any

from database.models import KIND_WORK


@dataclass
class Totals:
    work_seconds: float = 0.0
    pause_seconds: float = 0.0


def summarize(periods: Iterable[Dict[str, Any]], now: datetime) -> Totals:
    """
    Суммирует длительность работы и пауз

    Открытый период считается до now, поэтому живой статус показывает
    уже прошедшее время. Отрицательная длительность обрезается до нуля.
    """
    totals = Totals()
    for period in periods:
        end = period['ended_at'] or now
        duration = max(0.0, (end - period['started_at']).total_seconds())
        if period['kind'] == KIND_WORK:
            totals.work_seconds += duration
        else:
            totals.pause_seconds += duration
    return totals


def format_duration(seconds: float) -> str:
    """Форматирует секунды как ЧЧ:ММ"""
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours:02d}:{minutes:02d}"


def _format_time(value: datetime, tz=None) -> str:
    if tz is not None:
        value = value.astimezone(tz)
    return value.strftime('%H:%M')


def build_timeline(periods: List[Dict[str, Any]], tz=None) -> List[str]:
    lines = []
    for period in periods:
        start = _format_time(period['started_at'], tz)
        end = _format_time(period['ended_at'], tz) if period['ended_at'] else "…"
        icon = "💼" if period['kind'] == KIND_WORK else "☕"
        lines.append(f"{icon} {start}–{end}")
    return lines


def build_summary(name: str, periods: List[Dict[str, Any]], now: datetime,
                  compact: bool = False, tz=None) -> str:
    """
    Формирует HTML-сводку дня

    Args:
        name: Имя пользователя для заголовка
        periods: Периоды сессии по порядку
        now: Время, до которого считаются открытые периоды
        compact: Без хронологии (для короткого статуса)
        tz: Временная зона для отображения времени

    Returns:
        Текст сообщения (parse_mode='HTML')
    """
    totals = summarize(periods, now)

    if compact:
        return (
            f"Статус: {name}\n"
            f"Работа: {format_duration(totals.work_seconds)}\n"
            f"Пауза: {format_duration(totals.pause_seconds)}\n"
            f"Периодов: {len(periods)}"
        )

    message = f"📋 <b>Итоги дня:</b> {html.escape(name)}\n\n"
    message += f"💼 Работа: <b>{format_duration(totals.work_seconds)}</b>\n"
    message += f"☕ Пауза: <b>{format_duration(totals.pause_seconds)}</b>\n"
    message += f"🔢 Периодов: {len(periods)}"

    lines = build_timeline(periods, tz)
    if lines:
        message += "\n\n<b>Хронология:</b>\n" + "\n".join(lines)

    return message
