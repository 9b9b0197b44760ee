"""
Репозиторий для работы с данными
"""
import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional

from database.database import get_db
from database.models import (
    ACTIVE_STATUSES, DateRange, Reservation, Restaurant, Service, Table
)
from errors import BookingConflictError
from utils.time_utils import parse_time_to_minutes


def _dump(value) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def _load(value):
    return json.loads(value) if value else None


def _parse_dt(value) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SqliteRepository:
    """
    Репозиторий поверх SQLite

    Для движка доступности нужны только list_active_services, list_tables
    и list_reservations; остальное использует обработчик бронирований.
    Внутри transaction() все запросы идут через одно подключение.
    """

    def __init__(self, db_path: Optional[str] = None, connection: Optional[sqlite3.Connection] = None):
        self.db_path = db_path
        self._conn = connection

    @contextmanager
    def _db(self):
        if self._conn is not None:
            yield self._conn
        else:
            with get_db(self.db_path) as conn:
                yield conn

    @contextmanager
    def transaction(self):
        """Транзакция BEGIN IMMEDIATE: проверка и вставка выполняются атомарно"""
        if self._conn is not None:
            yield self
            return
        with get_db(self.db_path, immediate=True) as conn:
            yield SqliteRepository(self.db_path, connection=conn)

    # --- Рестораны, столы, сервисы ---

    def add_restaurant(self, restaurant: Restaurant) -> str:
        """Создание ресторана"""
        with self._db() as conn:
            conn.execute(
                "INSERT INTO restaurants (id, name, timezone, is_active) VALUES (?, ?, ?, ?)",
                (restaurant.id, restaurant.name, restaurant.timezone, int(restaurant.is_active))
            )
        return restaurant.id

    def get_restaurant(self, restaurant_id: str) -> Optional[Restaurant]:
        """Получение ресторана по ID"""
        with self._db() as conn:
            row = conn.execute("SELECT * FROM restaurants WHERE id = ?", (restaurant_id,)).fetchone()
            if row:
                return Restaurant(
                    id=row['id'],
                    name=row['name'],
                    timezone=row['timezone'],
                    is_active=bool(row['is_active'])
                )
            return None

    def add_table(self, table: Table) -> str:
        """Создание стола"""
        with self._db() as conn:
            conn.execute("""
                INSERT INTO tables (id, restaurant_id, table_number, capacity, location, is_accessible)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                table.id,
                table.restaurant_id,
                table.table_number,
                table.capacity,
                table.location,
                int(table.is_accessible)
            ))
        return table.id

    def list_tables(self, restaurant_id: str) -> List[Table]:
        """Все столы ресторана"""
        with self._db() as conn:
            rows = conn.execute(
                "SELECT * FROM tables WHERE restaurant_id = ? ORDER BY rowid",
                (restaurant_id,)
            ).fetchall()
            return [Table(
                id=row['id'],
                restaurant_id=row['restaurant_id'],
                table_number=row['table_number'],
                capacity=row['capacity'],
                location=row['location'],
                is_accessible=bool(row['is_accessible'])
            ) for row in rows]

    def add_service(self, service: Service) -> str:
        """Создание сервиса"""
        date_range = None
        if service.date_range:
            date_range = {'start': service.date_range.start, 'end': service.date_range.end}
        with self._db() as conn:
            conn.execute("""
                INSERT INTO services
                (id, restaurant_id, name, description, is_active, service_type, season, day_type,
                 start_time, end_time, default_duration_minutes, buffer_minutes,
                 slot_generation_mode, date_range, manual_slots, available_table_ids, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                service.id,
                service.restaurant_id,
                service.name,
                service.description,
                int(service.is_active),
                service.service_type,
                service.season,
                service.day_type,
                service.start_time,
                service.end_time,
                service.default_duration_minutes,
                service.buffer_minutes,
                service.slot_generation_mode,
                _dump(date_range),
                _dump(service.manual_slots),
                _dump(service.available_table_ids),
                service.created_at.isoformat()
            ))
        return service.id

    def list_active_services(self, restaurant_id: str) -> List[Service]:
        """Активные сервисы ресторана по порядку создания"""
        with self._db() as conn:
            rows = conn.execute("""
                SELECT * FROM services
                WHERE restaurant_id = ? AND is_active = 1
                ORDER BY created_at
            """, (restaurant_id,)).fetchall()
            return [SqliteRepository._row_to_service(row) for row in rows]

    # --- Брони ---

    def list_reservations(self, restaurant_id: str, date: str,
                          status_in: Iterable[str] = ACTIVE_STATUSES) -> List[Reservation]:
        """Брони ресторана на дату с заданными статусами"""
        statuses = list(status_in)
        placeholders = ', '.join('?' for _ in statuses)
        with self._db() as conn:
            rows = conn.execute(f"""
                SELECT * FROM reservations
                WHERE restaurant_id = ? AND reservation_date = ?
                AND status IN ({placeholders})
                ORDER BY reservation_time
            """, [restaurant_id, date] + statuses).fetchall()
            return [SqliteRepository._row_to_reservation(row) for row in rows]

    def get_reservation(self, reservation_id: str) -> Optional[Reservation]:
        """Получение брони по ID"""
        with self._db() as conn:
            row = conn.execute("SELECT * FROM reservations WHERE id = ?", (reservation_id,)).fetchone()
            return SqliteRepository._row_to_reservation(row) if row else None

    def get_reservation_by_code(self, code: str) -> Optional[Reservation]:
        """Получение брони по коду"""
        with self._db() as conn:
            row = conn.execute(
                "SELECT * FROM reservations WHERE reservation_code = ?", (code,)
            ).fetchone()
            return SqliteRepository._row_to_reservation(row) if row else None

    def get_reservation_by_session(self, session_id: str) -> Optional[Reservation]:
        """Получение брони по идентификатору сессии"""
        with self._db() as conn:
            row = conn.execute(
                "SELECT * FROM reservations WHERE session_id = ?", (session_id,)
            ).fetchone()
            return SqliteRepository._row_to_reservation(row) if row else None

    def create_reservation(self, reservation: Reservation) -> str:
        """Создание брони вместе с занятостью столов"""
        if reservation.id is None:
            reservation.id = str(uuid.uuid4())
        if reservation.created_at is None:
            reservation.created_at = datetime.now()
        with self._db() as conn:
            conn.execute("""
                INSERT INTO reservations
                (id, reservation_code, restaurant_id, service_id, customer_name, customer_phone,
                 reservation_date, reservation_time, party_size, table_ids, status,
                 estimated_duration_minutes, source, session_id, session_expires_at,
                 special_requests, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                reservation.id,
                reservation.reservation_code,
                reservation.restaurant_id,
                reservation.service_id,
                reservation.customer_name,
                reservation.customer_phone,
                reservation.date,
                reservation.time,
                reservation.party_size,
                json.dumps(reservation.table_ids or []),
                reservation.status,
                reservation.estimated_duration_minutes,
                reservation.source,
                reservation.session_id,
                reservation.session_expires_at.isoformat() if reservation.session_expires_at else None,
                reservation.special_requests,
                reservation.created_at.isoformat()
            ))
            if reservation.is_active:
                SqliteRepository._occupy_tables(conn, reservation)
        return reservation.id

    def reschedule_reservation(self, reservation: Reservation) -> None:
        """Новые дата, время, столы и длительность брони"""
        with self._db() as conn:
            conn.execute("""
                UPDATE reservations
                SET reservation_date = ?, reservation_time = ?, party_size = ?,
                    table_ids = ?, service_id = ?, estimated_duration_minutes = ?
                WHERE id = ?
            """, (
                reservation.date,
                reservation.time,
                reservation.party_size,
                json.dumps(reservation.table_ids or []),
                reservation.service_id,
                reservation.estimated_duration_minutes,
                reservation.id
            ))
            conn.execute("DELETE FROM reservation_slots WHERE reservation_id = ?", (reservation.id,))
            if reservation.is_active:
                SqliteRepository._occupy_tables(conn, reservation)

    def update_status(self, reservation: Reservation, new_status: str) -> None:
        """Смена статуса; отменённые и неявки освобождают столы"""
        with self._db() as conn:
            conn.execute(
                "UPDATE reservations SET status = ? WHERE id = ?",
                (new_status, reservation.id)
            )
            was_active = reservation.is_active
            reservation.status = new_status
            if not reservation.is_active:
                conn.execute(
                    "DELETE FROM reservation_slots WHERE reservation_id = ?", (reservation.id,)
                )
            elif not was_active:
                SqliteRepository._occupy_tables(conn, reservation)

    def add_history(self, reservation_id: str, old_status: Optional[str], new_status: str,
                    changed_by: str, metadata: Optional[dict] = None) -> None:
        """Запись в историю статусов"""
        with self._db() as conn:
            conn.execute("""
                INSERT INTO reservation_history
                (reservation_id, old_status, new_status, changed_by, metadata, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                reservation_id,
                old_status,
                new_status,
                changed_by,
                _dump(metadata),
                datetime.now().isoformat()
            ))

    def list_history(self, reservation_id: str) -> List[dict]:
        """История статусов брони"""
        with self._db() as conn:
            rows = conn.execute(
                "SELECT * FROM reservation_history WHERE reservation_id = ? ORDER BY id",
                (reservation_id,)
            ).fetchall()
            return [{
                'old_status': row['old_status'],
                'new_status': row['new_status'],
                'changed_by': row['changed_by'],
                'metadata': _load(row['metadata']),
            } for row in rows]

    def list_expired_sessions(self, now: datetime) -> List[Reservation]:
        """Неподтверждённые брони с истёкшей сессией"""
        with self._db() as conn:
            rows = conn.execute("""
                SELECT * FROM reservations
                WHERE status = 'PENDING'
                AND session_expires_at IS NOT NULL AND session_expires_at < ?
            """, (now.isoformat(),)).fetchall()
            return [SqliteRepository._row_to_reservation(row) for row in rows]

    @staticmethod
    def _occupy_tables(conn: sqlite3.Connection, reservation: Reservation):
        """Занятость столов брони; триггер отклоняет пересечения"""
        start = parse_time_to_minutes(reservation.time)
        end = start + (reservation.estimated_duration_minutes or 0)
        for table_id in reservation.table_ids or []:
            try:
                conn.execute("""
                    INSERT INTO reservation_slots
                    (reservation_id, table_id, reservation_date, start_minute, end_minute)
                    VALUES (?, ?, ?, ?, ?)
                """, (reservation.id, table_id, reservation.date, start, end))
            except sqlite3.IntegrityError as e:
                if 'table_overlap' in str(e):
                    raise BookingConflictError(table_id, reservation.date) from e
                raise

    @staticmethod
    def _row_to_service(row) -> Service:
        """Преобразование строки БД в объект Service"""
        date_range = _load(row['date_range'])
        return Service(
            id=row['id'],
            restaurant_id=row['restaurant_id'],
            name=row['name'],
            description=row['description'],
            is_active=bool(row['is_active']),
            service_type=row['service_type'],
            season=row['season'],
            day_type=row['day_type'],
            start_time=row['start_time'],
            end_time=row['end_time'],
            default_duration_minutes=row['default_duration_minutes'],
            buffer_minutes=row['buffer_minutes'],
            slot_generation_mode=row['slot_generation_mode'],
            date_range=DateRange(**date_range) if date_range else None,
            manual_slots=_load(row['manual_slots']),
            available_table_ids=_load(row['available_table_ids']),
            created_at=datetime.fromisoformat(row['created_at'])
        )

    @staticmethod
    def _row_to_reservation(row) -> Reservation:
        """Преобразование строки БД в объект Reservation"""
        return Reservation(
            id=row['id'],
            reservation_code=row['reservation_code'],
            restaurant_id=row['restaurant_id'],
            service_id=row['service_id'],
            customer_name=row['customer_name'],
            customer_phone=row['customer_phone'],
            date=row['reservation_date'],
            time=row['reservation_time'],
            party_size=row['party_size'],
            table_ids=json.loads(row['table_ids'] or '[]'),
            status=row['status'],
            estimated_duration_minutes=row['estimated_duration_minutes'],
            source=row['source'],
            session_id=row['session_id'],
            session_expires_at=_parse_dt(row['session_expires_at']),
            special_requests=row['special_requests'],
            created_at=_parse_dt(row['created_at'])
        )
