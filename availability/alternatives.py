"""
Поиск альтернативных слотов внутри сервиса
"""
import logging
from typing import List

from availability.models import AlternativeSlot
from availability.slots import service_slots
from config import settings
from database.models import Service
from utils.time_utils import parse_request_time, parse_time_to_minutes

logger = logging.getLogger(__name__)


def nearby_slots(service: Service, time_str: str) -> List[str]:
    """Ближайшие к запрошенному времени слоты сервиса, не считая его самого"""
    base = parse_request_time(time_str)

    candidates = []
    for slot in service_slots(service):
        try:
            offset = parse_time_to_minutes(slot) - base
        except ValueError:
            logger.warning(f"Сервис {service.id}: пропущен некорректный слот {slot!r}")
            continue
        if offset == 0 or abs(offset) > settings.ALTERNATIVE_WINDOW_MINUTES:
            continue
        candidates.append((slot, offset))

    candidates.sort(key=lambda c: abs(c[1]))
    return [slot for slot, _ in candidates[:settings.MAX_ALTERNATIVE_SLOTS]]


def find_alternative_slots(checker, service: Service, date: str, time_str: str,
                           party_size: int, restaurant_id: str) -> List[AlternativeSlot]:
    """
    Проверка доступности ближайших слотов

    Каждый слот проверяется полной проверкой доступности, но без поиска
    альтернатив для него самого (глубина рекурсии - один уровень).
    """
    results = []
    for slot in nearby_slots(service, time_str):
        availability = checker.check_availability(
            restaurant_id, date, slot, party_size,
            search_alternatives=False
        )
        results.append(AlternativeSlot(time=slot, available=availability.available))

    logger.debug(
        f"Альтернативы для {date} {time_str}: "
        f"{sum(1 for r in results if r.available)} из {len(results)} свободны"
    )
    return results
