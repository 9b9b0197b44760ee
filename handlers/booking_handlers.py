"""
Обработчики бронирований: создание, перенос, смена статуса

Проверка доступности и запись брони выполняются в одной транзакции
BEGIN IMMEDIATE, а триггер на reservation_slots не даёт занять стол
дважды. Проигравший гонку получает BookingConflictError, и проверка
повторяется.
"""
import logging
import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from availability.models import AvailabilityResult
from availability.orchestrator import AvailabilityService
from config import settings
from database.models import (
    BOOKING_SOURCES, RESERVATION_STATUSES, STATUS_CANCELLED, STATUS_PENDING, Reservation
)
from errors import BookingConflictError, InvalidRequestError
from utils.time_utils import normalize_time, parse_request_date

logger = logging.getLogger(__name__)

# Без похожих символов (0/O, 1/I)
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
PHONE_RE = re.compile(r'^\+?\d{7,15}$')


def generate_reservation_code() -> str:
    """Код брони вида RES-XXXXX"""
    return "RES-" + "".join(random.choice(CODE_ALPHABET) for _ in range(5))


def normalize_phone(phone: str) -> str:
    """Удаление пробелов, дефисов и скобок из телефона"""
    return re.sub(r'[\s\-()]', '', phone or '')


@dataclass
class BookingRequest:
    """Запрос на бронирование"""
    restaurant_id: str
    customer_name: str
    customer_phone: str
    date: str
    time: str
    party_size: int
    source: str = 'IVR'
    session_id: Optional[str] = None
    special_requests: Optional[str] = None

    def validate(self) -> List[str]:
        """Список ошибок запроса (пустой, если всё верно)"""
        errors = []
        if len((self.customer_name or '').strip()) < 2:
            errors.append('Customer name must be at least 2 characters')
        if not PHONE_RE.match(normalize_phone(self.customer_phone)):
            errors.append('Invalid phone number')
        try:
            parse_request_date(self.date)
        except InvalidRequestError:
            errors.append('Invalid date format (YYYY-MM-DD)')
        try:
            normalize_time(self.time)
        except InvalidRequestError:
            errors.append('Invalid time format (HH:MM)')
        if (not isinstance(self.party_size, int) or isinstance(self.party_size, bool)
                or not 1 <= self.party_size <= settings.MAX_PARTY_SIZE):
            errors.append(f'Party size must be between 1 and {settings.MAX_PARTY_SIZE}')
        if self.source not in BOOKING_SOURCES:
            errors.append(f'Source must be one of {", ".join(BOOKING_SOURCES)}')
        return errors


@dataclass
class BookingOutcome:
    """Результат операции с бронью"""
    success: bool
    reservation: Optional[Reservation] = None
    availability: Optional[AvailabilityResult] = None
    message: Optional[str] = None
    errors: List[str] = field(default_factory=list)


def _unique_reservation_code(tx) -> str:
    """Код брони, ещё не занятый другой бронью"""
    code = generate_reservation_code()
    while tx.get_reservation_by_code(code) is not None:
        logger.debug(f"Код {code} уже занят, генерируем новый")
        code = generate_reservation_code()
    return code


def _lost_race_outcome() -> BookingOutcome:
    return BookingOutcome(
        success=False,
        message='The table was taken by a concurrent booking, please try again'
    )


def create_reservation(repository, request: BookingRequest,
                       now: Optional[datetime] = None) -> BookingOutcome:
    """Проверка доступности и создание брони в статусе PENDING"""
    errors = request.validate()
    if errors:
        return BookingOutcome(success=False, message='Invalid booking data', errors=errors)

    now = now or datetime.now()
    time = normalize_time(request.time)

    for attempt in range(1, settings.BOOKING_MAX_RETRIES + 1):
        try:
            with repository.transaction() as tx:
                if request.session_id and tx.get_reservation_by_session(request.session_id):
                    return BookingOutcome(
                        success=False,
                        message='A reservation already exists for this session'
                    )

                availability = AvailabilityService(tx).check_availability(
                    request.restaurant_id, request.date, time, request.party_size
                )
                if not availability.available:
                    return BookingOutcome(
                        success=False,
                        availability=availability,
                        message=availability.message
                    )

                service = availability.service
                reservation = Reservation(
                    id=None,
                    reservation_code=_unique_reservation_code(tx),
                    restaurant_id=request.restaurant_id,
                    service_id=service.id,
                    customer_name=request.customer_name.strip(),
                    customer_phone=normalize_phone(request.customer_phone),
                    date=request.date,
                    time=time,
                    party_size=request.party_size,
                    table_ids=list(availability.suggested_tables),
                    status=STATUS_PENDING,
                    estimated_duration_minutes=service.default_duration_minutes,
                    source=request.source,
                    session_id=request.session_id,
                    session_expires_at=(
                        now + timedelta(minutes=settings.SESSION_HOLD_MINUTES)
                        if request.session_id else None
                    ),
                    special_requests=request.special_requests,
                    created_at=now
                )
                tx.create_reservation(reservation)
                tx.add_history(
                    reservation.id, None, STATUS_PENDING, request.source,
                    {'source': request.source, 'session_id': request.session_id}
                )
        except BookingConflictError as e:
            logger.warning(f"Гонка за стол {e.table_id} на {e.date}, попытка {attempt}")
            continue

        logger.info(
            f"Создана бронь {reservation.reservation_code}: {reservation.date} {reservation.time}, "
            f"гостей {reservation.party_size}, столы {reservation.table_ids}"
        )
        return BookingOutcome(success=True, reservation=reservation, availability=availability)

    return _lost_race_outcome()


def reschedule_reservation(repository, reservation_id: str, new_date: Optional[str] = None,
                           new_time: Optional[str] = None, new_party_size: Optional[int] = None,
                           changed_by: str = 'MANUAL') -> BookingOutcome:
    """Перенос брони с повторной проверкой (сама бронь не учитывается)"""
    for attempt in range(1, settings.BOOKING_MAX_RETRIES + 1):
        try:
            with repository.transaction() as tx:
                reservation = tx.get_reservation(reservation_id)
                if reservation is None:
                    return BookingOutcome(success=False, message='Reservation not found')
                if not reservation.is_active:
                    return BookingOutcome(
                        success=False, reservation=reservation,
                        message=f'Cannot modify a {reservation.status} reservation'
                    )

                date = new_date or reservation.date
                time = normalize_time(new_time) if new_time else reservation.time
                party_size = new_party_size or reservation.party_size

                availability = AvailabilityService(tx).check_availability(
                    reservation.restaurant_id, date, time, party_size,
                    exclude_reservation_id=reservation.id
                )
                if not availability.available:
                    return BookingOutcome(
                        success=False, reservation=reservation,
                        availability=availability, message=availability.message
                    )

                previous = {'date': reservation.date, 'time': reservation.time,
                            'party_size': reservation.party_size}
                reservation.date = date
                reservation.time = time
                reservation.party_size = party_size
                reservation.table_ids = list(availability.suggested_tables)
                reservation.service_id = availability.service.id
                reservation.estimated_duration_minutes = availability.service.default_duration_minutes
                tx.reschedule_reservation(reservation)
                tx.add_history(
                    reservation.id, reservation.status, reservation.status, changed_by,
                    {'rescheduled_from': previous}
                )
        except BookingConflictError as e:
            logger.warning(f"Гонка при переносе брони {reservation_id} на стол {e.table_id}, попытка {attempt}")
            continue

        logger.info(f"Бронь {reservation.reservation_code} перенесена на {date} {time}")
        return BookingOutcome(success=True, reservation=reservation, availability=availability)

    return _lost_race_outcome()


def update_reservation_status(repository, reservation_id: str, new_status: str,
                              changed_by: str = 'MANUAL') -> BookingOutcome:
    """Смена статуса брони с записью в историю"""
    if new_status not in RESERVATION_STATUSES:
        return BookingOutcome(success=False, message=f'Unknown status: {new_status}')

    try:
        with repository.transaction() as tx:
            reservation = tx.get_reservation(reservation_id)
            if reservation is None:
                return BookingOutcome(success=False, message='Reservation not found')
            old_status = reservation.status
            if old_status == new_status:
                return BookingOutcome(success=True, reservation=reservation)
            tx.update_status(reservation, new_status)
            tx.add_history(reservation.id, old_status, new_status, changed_by)
    except BookingConflictError as e:
        # Повторная активация брони на уже занятый стол
        return BookingOutcome(success=False, message=str(e))

    logger.info(f"Бронь {reservation.reservation_code}: {old_status} -> {new_status}")
    return BookingOutcome(success=True, reservation=reservation)


def cancel_reservation(repository, reservation_id: str, changed_by: str = 'MANUAL') -> BookingOutcome:
    """Отмена брони (брони не удаляются)"""
    return update_reservation_status(repository, reservation_id, STATUS_CANCELLED, changed_by)
