"""
Поиск пересекающихся броней
"""
import logging
from typing import Iterable, List, Optional, Set

from availability.models import TimeWindow
from config import settings
from database.models import ACTIVE_STATUSES, Reservation, Service
from utils.time_utils import parse_time_to_minutes

logger = logging.getLogger(__name__)


def conflict_duration(reservation: Reservation, service: Service) -> int:
    """
    Длительность занятости стола бронью

    По умолчанию берётся длительность, сохранённая в брони при создании;
    при CONFLICT_DURATION_SOURCE='service' - текущая длительность сервиса.
    """
    if (settings.CONFLICT_DURATION_SOURCE == 'reservation'
            and reservation.estimated_duration_minutes):
        return reservation.estimated_duration_minutes
    return service.default_duration_minutes


def reservation_overlaps(reservation: Reservation, window: TimeWindow, duration: int) -> bool:
    """R.start < W.end and R.start + duration > W.start"""
    start = parse_time_to_minutes(reservation.time)
    return window.overlaps(TimeWindow(start, start + duration))


def find_conflicts(repository, restaurant_id: str, date: str, window: TimeWindow,
                   service: Service, exclude_reservation_id: Optional[str] = None) -> List[Reservation]:
    """Активные брони ресторана на дату, пересекающиеся с окном"""
    reservations = repository.list_reservations(restaurant_id, date, ACTIVE_STATUSES)

    conflicts = []
    for reservation in reservations:
        if exclude_reservation_id and reservation.id == exclude_reservation_id:
            continue
        if reservation.restaurant_id != restaurant_id or reservation.date != date:
            continue
        if reservation.status not in ACTIVE_STATUSES:
            continue
        try:
            duration = conflict_duration(reservation, service)
            if reservation_overlaps(reservation, window, duration):
                conflicts.append(reservation)
        except ValueError:
            # Бронь с битым временем считаем занимающей столы весь день
            logger.warning(
                f"Бронь {reservation.id} имеет некорректное время {reservation.time!r}"
            )
            conflicts.append(reservation)

    logger.debug(
        f"Ресторан {restaurant_id}, {date} {window.start_str}-{window.end_str}: "
        f"конфликтов {len(conflicts)}"
    )
    return conflicts


def occupied_table_ids(conflicts: Iterable[Reservation]) -> Set[str]:
    """Столы, занятые конфликтующими бронями"""
    occupied = set()
    for reservation in conflicts:
        occupied.update(reservation.table_ids or [])
    return occupied
