"""
Исключения движка доступности
"""


class AvailabilityError(Exception):
    """Базовое исключение проекта"""


class InvalidRequestError(AvailabilityError, ValueError):
    """Некорректные входные данные (дата, время, размер компании)"""


class RepositoryError(AvailabilityError):
    """Ошибка инфраструктуры (БД недоступна, таймаут и т.п.)

    Не означает отсутствие мест: вызывающая сторона не должна
    сообщать гостю, что всё занято.
    """


class BookingConflictError(AvailabilityError):
    """Стол занят параллельной бронью, проверку можно повторить"""

    def __init__(self, table_id: str, date: str, message: str = ''):
        self.table_id = table_id
        self.date = date
        super().__init__(message or f"Стол {table_id} уже занят на {date}")
