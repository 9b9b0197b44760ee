"""
Значения и результаты движка доступности
"""
from dataclasses import dataclass, field
from typing import List, Optional

from database.models import Service, Table
from utils.time_utils import format_minutes_to_time, parse_request_time


@dataclass(frozen=True)
class TimeWindow:
    """Полуинтервал [start, end) в минутах от полуночи"""
    start: int
    end: int

    @classmethod
    def from_time(cls, start_time: str, duration_minutes: int) -> 'TimeWindow':
        """Окно от времени "HH:MM" заданной длительности"""
        start = parse_request_time(start_time)
        return cls(start, start + duration_minutes)

    def overlaps(self, other: 'TimeWindow') -> bool:
        """Касание концами пересечением не считается"""
        return self.start < other.end and other.start < self.end

    @property
    def start_str(self) -> str:
        return format_minutes_to_time(self.start)

    @property
    def end_str(self) -> str:
        return format_minutes_to_time(self.end)


@dataclass
class AlternativeSlot:
    time: str
    available: bool


@dataclass
class AvailabilityResult:
    """Результат проверки доступности"""
    available: bool
    service: Optional[Service] = None
    suggested_tables: List[str] = field(default_factory=list)
    available_tables: List[Table] = field(default_factory=list)
    message: Optional[str] = None
    alternative_slots: Optional[List[AlternativeSlot]] = None


@dataclass
class ValidationResult:
    """Результат проверки конфигурации сервиса"""
    valid: bool
    errors: List[str] = field(default_factory=list)
