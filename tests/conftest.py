"""
Общие фикстуры тестов
"""
from datetime import datetime, timedelta
from itertools import count

import pytest

from database.database import init_db
from database.models import Reservation, Restaurant, Service, Table
from database.repository import SqliteRepository

RESTAURANT_ID = 'rest-1'
MONDAY = '2025-06-02'


class FakeRepository:
    """Репозиторий в памяти с подсчётом запросов"""

    def __init__(self):
        self.services = []
        self.tables = []
        self.reservations = []
        self.calls = {'services': 0, 'tables': 0, 'reservations': 0}

    def list_active_services(self, restaurant_id):
        self.calls['services'] += 1
        return [s for s in self.services if s.restaurant_id == restaurant_id and s.is_active]

    def list_tables(self, restaurant_id):
        self.calls['tables'] += 1
        return [t for t in self.tables if t.restaurant_id == restaurant_id]

    def list_reservations(self, restaurant_id, date, status_in):
        self.calls['reservations'] += 1
        statuses = set(status_in)
        return [
            r for r in self.reservations
            if r.restaurant_id == restaurant_id and r.date == date and r.status in statuses
        ]


@pytest.fixture
def fake_repo():
    return FakeRepository()


@pytest.fixture
def make_service():
    ids = count(1)
    base = datetime(2025, 1, 1, 12, 0)

    def factory(**overrides):
        number = next(ids)
        fields = dict(
            id=f'svc-{number}',
            restaurant_id=RESTAURANT_ID,
            name=f'Lunch {number}',
            service_type='lunch',
            start_time='13:00',
            end_time='16:00',
            created_at=base + timedelta(minutes=number),
            default_duration_minutes=90,
            buffer_minutes=15,
        )
        fields.update(overrides)
        return Service(**fields)

    return factory


@pytest.fixture
def make_table():
    def factory(table_id, capacity, **overrides):
        fields = dict(
            id=table_id,
            restaurant_id=RESTAURANT_ID,
            table_number=table_id.upper(),
            capacity=capacity,
        )
        fields.update(overrides)
        return Table(**fields)

    return factory


@pytest.fixture
def make_reservation():
    ids = count(1)

    def factory(time, table_ids, **overrides):
        fields = dict(
            id=f'res-{next(ids)}',
            restaurant_id=RESTAURANT_ID,
            date=MONDAY,
            time=time,
            party_size=2,
            table_ids=list(table_ids),
            status='CONFIRMED',
            estimated_duration_minutes=90,
        )
        fields.update(overrides)
        return Reservation(**fields)

    return factory


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / 'test.db')
    init_db(path)
    return path


@pytest.fixture
def sqlite_repo(db_path, make_service, make_table):
    """SQLite-репозиторий с рестораном, обеденным сервисом и двумя столами"""
    repo = SqliteRepository(db_path)
    repo.add_restaurant(Restaurant(id=RESTAURANT_ID, name='Casa Test'))
    repo.add_table(make_table('t2', 2))
    repo.add_table(make_table('t4', 4))
    repo.add_service(make_service(id='lunch', name='Lunch'))
    return repo
