"""
Конфигурация проекта
"""
import os
from dataclasses import dataclass
from datetime import time


CONFLICT_SOURCES = ('reservation', 'service')


@dataclass
class Settings:
    """Настройки приложения"""
    # База данных
    DB_PATH: str = os.getenv('DB_PATH', 'data/reservations.db')
    DB_TIMEOUT_SECONDS: float = float(os.getenv('DB_TIMEOUT_SECONDS', '5'))

    # Логирование
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    DEFAULT_TIMEZONE: str = 'America/Bogota'

    # Окна сервисов
    LUNCH_OPEN: time = time(13, 0)
    LUNCH_CLOSE: time = time(16, 0)
    DINNER_OPEN: time = time(20, 0)
    DINNER_CLOSE: time = time(23, 0)

    # Бизнес-правила
    MIN_DURATION_MINUTES: int = 60
    MAX_DURATION_MINUTES: int = 180
    MIN_BUFFER_MINUTES: int = 10
    MAX_BUFFER_MINUTES: int = 30
    PERFECT_FIT_SLACK: int = 2
    MAX_PARTY_SIZE: int = 50

    # Поиск альтернатив
    ALTERNATIVE_WINDOW_MINUTES: int = 120
    MAX_ALTERNATIVE_SLOTS: int = 10

    # 'reservation' - длительность из брони, 'service' - текущая длительность сервиса
    CONFLICT_DURATION_SOURCE: str = os.getenv('CONFLICT_DURATION_SOURCE', 'reservation')

    # Сессии и бронирование
    SESSION_HOLD_MINUTES: int = 30
    SESSION_CLEANUP_INTERVAL_MINUTES: int = int(os.getenv('SESSION_CLEANUP_INTERVAL_MINUTES', '2'))
    BOOKING_MAX_RETRIES: int = 3

    def __post_init__(self):
        """Проверка настроек после создания объекта"""
        if self.CONFLICT_DURATION_SOURCE not in CONFLICT_SOURCES:
            raise ValueError(
                f"CONFLICT_DURATION_SOURCE должен быть одним из {CONFLICT_SOURCES}, "
                f"получено: {self.CONFLICT_DURATION_SOURCE!r}"
            )
        if self.BOOKING_MAX_RETRIES < 1:
            raise ValueError("BOOKING_MAX_RETRIES должен быть >= 1")


# Глобальный экземпляр настроек
settings = Settings()
