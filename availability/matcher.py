"""
Выбор сервисов, действующих на дату и время
"""
import logging
from datetime import date
from typing import List

from database.models import DAY_WEEKDAY, DAY_WEEKEND, SEASON_ALL, Service
from utils.time_utils import is_weekend, parse_request_date, parse_request_time, parse_time_to_minutes

logger = logging.getLogger(__name__)


def date_matches(day, service: Service) -> bool:
    """
    Подходит ли дата сервису: диапазон дат, тип дня и сезон

    Неразбираемая дата (или диапазон) означает "не подходит".
    """
    if not isinstance(day, date):
        try:
            day = parse_request_date(day)
        except ValueError:
            return False

    if service.date_range:
        try:
            range_start = date.fromisoformat(service.date_range.start)
            range_end = date.fromisoformat(service.date_range.end)
        except (TypeError, ValueError):
            logger.warning(f"Сервис {service.id}: некорректный диапазон дат {service.date_range}")
            return False
        if day < range_start or day > range_end:
            return False

    if service.day_type == DAY_WEEKDAY and is_weekend(day):
        return False
    if service.day_type == DAY_WEEKEND and not is_weekend(day):
        return False

    if service.season == SEASON_ALL:
        return True

    # Сезоны по месяцам не поддерживаются: любой сезон подходит
    return True


def time_matches(minutes: int, service: Service) -> bool:
    """start_time <= время < end_time"""
    try:
        start = parse_time_to_minutes(service.start_time)
        end = parse_time_to_minutes(service.end_time)
    except ValueError:
        logger.warning(f"Сервис {service.id}: некорректное время {service.start_time}-{service.end_time}")
        return False
    return start <= minutes < end


def match_services_for_datetime(repository, restaurant_id: str, date_str: str, time_str: str) -> List[Service]:
    """
    Активные сервисы ресторана на дату и время, в порядке создания

    Первый элемент - действующий сервис (побеждает созданный раньше).
    Некорректные дата или время дают InvalidRequestError.
    """
    day = parse_request_date(date_str)
    minutes = parse_request_time(time_str)

    services = sorted(
        (s for s in repository.list_active_services(restaurant_id) if s.is_active),
        key=lambda s: s.created_at
    )

    return [
        service for service in services
        if date_matches(day, service) and time_matches(minutes, service)
    ]
