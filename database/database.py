"""
Модуль для работы с базой данных SQLite
"""
import sqlite3
import os
from contextlib import contextmanager
from typing import Generator, Optional
from config import settings
from errors import RepositoryError


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Получение подключения к БД"""
    conn = sqlite3.connect(
        db_path or settings.DB_PATH,
        timeout=settings.DB_TIMEOUT_SECONDS,
        check_same_thread=False
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db(db_path: Optional[str] = None,
           immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
    """
    Контекстный менеджер для работы с БД

    immediate=True открывает транзакцию BEGIN IMMEDIATE: блокировка на запись
    берётся сразу, поэтому параллельные проверки-с-вставкой выполняются по очереди.
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise RepositoryError(f"Не удалось подключиться к БД: {e}") from e
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise RepositoryError(f"Ошибка БД: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[str] = None):
    """Инициализация базы данных"""
    db_path = db_path or settings.DB_PATH

    # Создание директории для БД, если не существует
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)

    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS restaurants (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                timezone TEXT DEFAULT 'America/Bogota',
                is_active INTEGER DEFAULT 1
            )
        """)

        # Таблица столов
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS tables (
                id TEXT PRIMARY KEY,
                restaurant_id TEXT NOT NULL,
                table_number TEXT NOT NULL,
                capacity INTEGER NOT NULL CHECK (capacity >= 1),
                location TEXT,
                is_accessible INTEGER DEFAULT 0,
                FOREIGN KEY (restaurant_id) REFERENCES restaurants (id) ON DELETE CASCADE
            )
        """)

        # Таблица сервисов; списки и диапазон дат хранятся в JSON
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS services (
                id TEXT PRIMARY KEY,
                restaurant_id TEXT NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                is_active INTEGER DEFAULT 1,
                service_type TEXT NOT NULL,
                season TEXT NOT NULL DEFAULT 'all',
                day_type TEXT NOT NULL DEFAULT 'all',
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                default_duration_minutes INTEGER NOT NULL DEFAULT 90,
                buffer_minutes INTEGER NOT NULL DEFAULT 15,
                slot_generation_mode TEXT NOT NULL DEFAULT 'auto',
                date_range TEXT,
                manual_slots TEXT,
                available_table_ids TEXT,
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY (restaurant_id) REFERENCES restaurants (id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_services_restaurant
            ON services(restaurant_id, is_active, created_at)
        """)

        # Таблица бронирований
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reservations (
                id TEXT PRIMARY KEY,
                reservation_code TEXT NOT NULL UNIQUE,
                restaurant_id TEXT NOT NULL,
                service_id TEXT,
                customer_name TEXT NOT NULL,
                customer_phone TEXT NOT NULL,
                reservation_date TEXT NOT NULL,
                reservation_time TEXT NOT NULL,
                party_size INTEGER NOT NULL CHECK (party_size >= 1),
                table_ids TEXT NOT NULL DEFAULT '[]',
                status TEXT NOT NULL DEFAULT 'PENDING',
                estimated_duration_minutes INTEGER,
                source TEXT NOT NULL DEFAULT 'IVR',
                session_id TEXT UNIQUE,
                session_expires_at TIMESTAMP,
                special_requests TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (restaurant_id) REFERENCES restaurants (id),
                FOREIGN KEY (service_id) REFERENCES services (id)
            )
        """)

        # Индексы для быстрого поиска
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reservations_day
            ON reservations(restaurant_id, reservation_date, status)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reservations_session
            ON reservations(status, session_expires_at)
        """)

        # Занятость столов: по строке на (бронь, стол) для активных броней
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reservation_slots (
                reservation_id TEXT NOT NULL,
                table_id TEXT NOT NULL,
                reservation_date TEXT NOT NULL,
                start_minute INTEGER NOT NULL,
                end_minute INTEGER NOT NULL,
                PRIMARY KEY (reservation_id, table_id),
                FOREIGN KEY (reservation_id) REFERENCES reservations (id) ON DELETE CASCADE
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_reservation_slots_table
            ON reservation_slots(table_id, reservation_date)
        """)

        # Аналог exclusion constraint: один стол не может быть занят дважды
        # на пересекающихся интервалах [start, end)
        cursor.execute("""
            CREATE TRIGGER IF NOT EXISTS trg_reservation_slots_no_overlap
            BEFORE INSERT ON reservation_slots
            WHEN EXISTS (
                SELECT 1 FROM reservation_slots
                WHERE table_id = NEW.table_id
                AND reservation_date = NEW.reservation_date
                AND reservation_id != NEW.reservation_id
                AND start_minute < NEW.end_minute
                AND end_minute > NEW.start_minute
            )
            BEGIN
                SELECT RAISE(ABORT, 'table_overlap');
            END
        """)

        # История статусов
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reservation_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                reservation_id TEXT NOT NULL,
                old_status TEXT,
                new_status TEXT NOT NULL,
                changed_by TEXT NOT NULL,
                metadata TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (reservation_id) REFERENCES reservations (id) ON DELETE CASCADE
            )
        """)

        conn.commit()
