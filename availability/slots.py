"""
Генерация временных слотов сервиса
"""
from typing import List

from database.models import MODE_MANUAL, Service
from utils.time_utils import format_minutes_to_time, parse_time_to_minutes


def generate_auto_slots(service: Service) -> List[str]:
    """
    Автоматические слоты: от начала сервиса с шагом duration + buffer

    Слот выдаётся, пока курсор раньше конца сервиса; после слота, бронь
    с которого выходит за конец сервиса, генерация останавливается.
    13:00-16:00, 90+15 даёт 13:00 и 14:45.
    """
    start = parse_time_to_minutes(service.start_time)
    end = parse_time_to_minutes(service.end_time)
    duration = service.default_duration_minutes
    step = duration + service.buffer_minutes

    slots = []
    current = start
    while current < end:
        slots.append(format_minutes_to_time(current))
        if current + duration > end:
            break
        current += step

    return slots


def service_slots(service: Service) -> List[str]:
    """Все слоты сервиса: ручной список как есть или автоматические"""
    if service.slot_generation_mode == MODE_MANUAL:
        return list(service.manual_slots or [])
    return generate_auto_slots(service)
