"""
Утилиты для работы со временем и расписанием
"""
from datetime import date, datetime, time
from typing import Union

from errors import InvalidRequestError

MINUTES_PER_DAY = 24 * 60

TimeLike = Union[str, time]


def parse_time_to_minutes(value: TimeLike) -> int:
    """
    Перевод времени "HH:MM" в минуты от полуночи
    Бросает ValueError при неверном формате
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.hour * 60 + parsed.minute


def format_minutes_to_time(minutes: int) -> str:
    """Перевод минут от полуночи в "HH:MM" (по кругу через полночь)"""
    minutes = minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def calculate_release_time(reservation_time: str, duration_minutes: int) -> str:
    """Время освобождения стола для брони"""
    return format_minutes_to_time(parse_time_to_minutes(reservation_time) + duration_minutes)


def parse_request_date(value: str) -> date:
    """
    Разбор даты запроса, только строго YYYY-MM-DD

    Дата хранится и сравнивается как строка, поэтому 20250602 или 2025-6-2
    отклоняются: иначе одна и та же дата не совпала бы с уже записанными бронями.
    """
    try:
        day = datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidRequestError(f"Некорректная дата: {value!r}") from e
    if day.isoformat() != value:
        raise InvalidRequestError(f"Некорректная дата: {value!r}")
    return day


def parse_request_time(value: str) -> int:
    """Разбор времени запроса (HH:MM), результат в минутах"""
    try:
        return parse_time_to_minutes(value)
    except (AttributeError, TypeError, ValueError) as e:
        raise InvalidRequestError(f"Некорректное время: {value!r}") from e


def normalize_time(value: str) -> str:
    """Приведение времени к виду HH:MM (9:05 -> 09:05)"""
    return format_minutes_to_time(parse_request_time(value))


def is_weekend(day: date) -> bool:
    """Суббота (5) и воскресенье (6)"""
    return day.weekday() in [5, 6]

