"""
Проверка доступности столов с учётом сервисов
"""
import logging
from typing import List, Optional

from availability.alternatives import find_alternative_slots
from availability.allocator import allocate_tables
from availability.conflicts import find_conflicts, occupied_table_ids
from availability.matcher import match_services_for_datetime
from availability.models import AvailabilityResult, TimeWindow
from database.models import Service, Table
from errors import InvalidRequestError
from utils.time_utils import normalize_time, parse_request_date

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Движок доступности

    Состояния не хранит: только репозиторий, через который читаются
    сервисы, столы и брони. Все методы только читают данные.
    """

    def __init__(self, repository):
        self.repository = repository

    def match_services_for_datetime(self, restaurant_id: str, date: str, time: str) -> List[Service]:
        """Сервисы, действующие на дату и время (первый - действующий)"""
        return match_services_for_datetime(self.repository, restaurant_id, date, time)

    def candidate_tables(self, restaurant_id: str, service: Service) -> List[Table]:
        """Столы ресторана, разрешённые сервисом"""
        tables = self.repository.list_tables(restaurant_id)
        if service.available_table_ids:
            allowed = set(service.available_table_ids)
            tables = [t for t in tables if t.id in allowed]
        return tables

    def check_availability(self, restaurant_id: str, date: str, time: str, party_size: int,
                           exclude_reservation_id: Optional[str] = None,
                           search_alternatives: bool = True) -> AvailabilityResult:
        """
        Проверка возможности брони

        exclude_reservation_id - бронь, которую не учитывать (перенос брони).
        search_alternatives=False отключает поиск соседних слотов.
        """
        parse_request_date(date)
        time = normalize_time(time)
        if not isinstance(party_size, int) or isinstance(party_size, bool) or party_size < 1:
            raise InvalidRequestError(f"Некорректный размер компании: {party_size!r}")

        services = self.match_services_for_datetime(restaurant_id, date, time)
        if not services:
            logger.debug(f"Ресторан {restaurant_id}: нет сервиса на {date} {time}")
            return AvailabilityResult(
                available=False,
                message='No service configured for this date and time'
            )

        # Побеждает сервис, созданный первым
        service = services[0]

        suitable = [
            t for t in self.candidate_tables(restaurant_id, service)
            if t.capacity >= party_size
        ]
        if not suitable:
            return AvailabilityResult(
                available=False,
                service=service,
                message=f'No tables available for {party_size} guests in this service'
            )

        window = TimeWindow.from_time(time, service.default_duration_minutes)
        conflicts = find_conflicts(
            self.repository, restaurant_id, date, window, service,
            exclude_reservation_id=exclude_reservation_id
        )
        occupied = occupied_table_ids(conflicts)
        free = [t for t in suitable if t.id not in occupied]

        if not free:
            alternatives = None
            if search_alternatives:
                alternatives = find_alternative_slots(
                    self, service, date, time, party_size, restaurant_id
                )
            return AvailabilityResult(
                available=False,
                service=service,
                message=f'No tables free at {time} for {service.name}',
                alternative_slots=alternatives
            )

        free.sort(key=lambda t: t.capacity)
        suggested = allocate_tables(free, party_size)
        logger.debug(
            f"Ресторан {restaurant_id}, {date} {time}, гостей {party_size}: "
            f"сервис {service.name}, столы {suggested}"
        )
        return AvailabilityResult(
            available=True,
            service=service,
            suggested_tables=suggested,
            available_tables=free
        )
