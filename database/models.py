"""
Модели данных для работы с БД
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


# Статусы брони
STATUS_PENDING = 'PENDING'
STATUS_CONFIRMED = 'CONFIRMED'
STATUS_CANCELLED = 'CANCELLED'
STATUS_NO_SHOW = 'NO_SHOW'
RESERVATION_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELLED, STATUS_NO_SHOW)

# Только эти статусы занимают столы
ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED)

SERVICE_LUNCH = 'lunch'
SERVICE_DINNER = 'dinner'
SERVICE_TYPES = (SERVICE_LUNCH, SERVICE_DINNER)

DAY_WEEKDAY = 'weekday'
DAY_WEEKEND = 'weekend'
DAY_ALL = 'all'
DAY_TYPES = (DAY_WEEKDAY, DAY_WEEKEND, DAY_ALL)

SEASON_ALL = 'all'

MODE_AUTO = 'auto'
MODE_MANUAL = 'manual'
SLOT_MODES = (MODE_AUTO, MODE_MANUAL)

BOOKING_SOURCES = ('IVR', 'WHATSAPP', 'MANUAL', 'WEB')


@dataclass
class Restaurant:
    """Модель ресторана"""
    id: str
    name: str
    timezone: str = 'America/Bogota'
    is_active: bool = True


@dataclass
class Table:
    """Модель стола"""
    id: str
    restaurant_id: str
    table_number: str
    capacity: int
    location: Optional[str] = None  # patio, interior, terraza
    is_accessible: bool = False


@dataclass
class DateRange:
    """Диапазон дат сервиса (включительно)"""
    start: str
    end: str


@dataclass
class Service:
    """Модель сервиса (окно приёма броней)"""
    id: str
    restaurant_id: str
    name: str
    service_type: str  # lunch, dinner
    start_time: str
    end_time: str
    created_at: datetime
    default_duration_minutes: int = 90
    buffer_minutes: int = 15
    slot_generation_mode: str = MODE_AUTO
    season: str = SEASON_ALL
    day_type: str = DAY_ALL
    date_range: Optional[DateRange] = None
    manual_slots: Optional[List[str]] = None
    available_table_ids: Optional[List[str]] = None
    description: Optional[str] = None
    is_active: bool = True


@dataclass
class Reservation:
    """Модель бронирования"""
    id: Optional[str]
    restaurant_id: str
    date: str  # YYYY-MM-DD
    time: str  # HH:MM
    party_size: int
    customer_name: str = ''
    customer_phone: str = ''
    table_ids: List[str] = field(default_factory=list)
    status: str = STATUS_PENDING
    service_id: Optional[str] = None
    estimated_duration_minutes: Optional[int] = None
    reservation_code: Optional[str] = None
    source: str = 'IVR'
    session_id: Optional[str] = None
    session_expires_at: Optional[datetime] = None
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        """Занимает ли бронь столы"""
        return self.status in ACTIVE_STATUSES
