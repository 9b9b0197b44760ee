"""
Проверка конфигурации сервиса перед сохранением
"""
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Mapping, Optional, Union

from availability.models import ValidationResult
from config import settings
from database.models import (
    MODE_MANUAL, SERVICE_DINNER, SERVICE_LUNCH, SERVICE_TYPES, SLOT_MODES, Service
)
from utils.time_utils import format_minutes_to_time, parse_time_to_minutes


def _as_fields(service) -> Optional[Dict[str, Any]]:
    """Частичный сервис как словарь; None, если это не сервис и не словарь"""
    if service is None:
        return {}
    if is_dataclass(service) and not isinstance(service, type):
        return asdict(service)
    try:
        return dict(service)
    except (TypeError, ValueError):
        return None


def _in_range(value, low: int, high: int) -> bool:
    """Целое число (не bool) в диапазоне [low, high]"""
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def _window_error(service_type: str, start: int, end: int, open_time, close_time):
    """Ошибка, если интервал выходит за окно типа сервиса"""
    window_start = parse_time_to_minutes(open_time)
    window_end = parse_time_to_minutes(close_time)
    if start < window_start or end > window_end:
        return (
            f"The {service_type} service must be between "
            f"{format_minutes_to_time(window_start)} and {format_minutes_to_time(window_end)}"
        )
    return None


def validate_service_config(service: Union[Service, Mapping[str, Any]]) -> ValidationResult:
    """
    Проверка частичной конфигурации сервиса

    Проверяются только переданные поля, возвращаются все нарушения сразу.
    Исключений не бросает.
    """
    fields = _as_fields(service)
    if fields is None:
        return ValidationResult(valid=False, errors=['Service configuration must be a mapping'])
    errors = []

    service_type = fields.get('service_type')
    if service_type and service_type not in SERVICE_TYPES:
        errors.append('Service type must be "lunch" or "dinner"')

    start_time = fields.get('start_time')
    end_time = fields.get('end_time')
    if start_time and end_time:
        try:
            start = parse_time_to_minutes(start_time)
            end = parse_time_to_minutes(end_time)
        except (AttributeError, TypeError, ValueError):
            errors.append('Start and end times must use the HH:MM format')
        else:
            if start >= end:
                errors.append('Start time must be before end time')

            window_error = None
            if service_type == SERVICE_LUNCH:
                window_error = _window_error(
                    service_type, start, end, settings.LUNCH_OPEN, settings.LUNCH_CLOSE
                )
            elif service_type == SERVICE_DINNER:
                window_error = _window_error(
                    service_type, start, end, settings.DINNER_OPEN, settings.DINNER_CLOSE
                )
            if window_error:
                errors.append(window_error)

    duration = fields.get('default_duration_minutes')
    if duration is not None:
        if not _in_range(duration, settings.MIN_DURATION_MINUTES, settings.MAX_DURATION_MINUTES):
            errors.append(
                f"Duration must be between {settings.MIN_DURATION_MINUTES} "
                f"and {settings.MAX_DURATION_MINUTES} minutes"
            )

    buffer = fields.get('buffer_minutes')
    if buffer is not None:
        if not _in_range(buffer, settings.MIN_BUFFER_MINUTES, settings.MAX_BUFFER_MINUTES):
            errors.append(
                f"Buffer must be between {settings.MIN_BUFFER_MINUTES} "
                f"and {settings.MAX_BUFFER_MINUTES} minutes"
            )

    mode = fields.get('slot_generation_mode')
    if mode and mode not in SLOT_MODES:
        errors.append('Slot generation mode must be "auto" or "manual"')

    if mode == MODE_MANUAL and not fields.get('manual_slots'):
        errors.append('Manual mode requires at least one slot')

    return ValidationResult(valid=not errors, errors=errors)
