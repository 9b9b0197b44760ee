import pytest

from availability.timeline import build_occupancy_timeline
from errors import InvalidRequestError

RESTAURANT_ID = 'rest-1'
MONDAY = '2025-06-02'


def test_timeline_for_lunch(fake_repo, make_service, make_table, make_reservation):
    service = make_service(id='lunch', available_table_ids=['t4'])
    fake_repo.services = [service, make_service(id='dinner', service_type='dinner',
                                                start_time='20:00', end_time='23:00')]
    fake_repo.tables = [make_table('t2', 2), make_table('t4', 4)]
    fake_repo.reservations = [
        make_reservation('13:00', ['t4'], service_id='lunch', estimated_duration_minutes=120),
        make_reservation('14:45', ['t4'], service_id='lunch', status='CANCELLED'),
        make_reservation('21:00', ['t2'], service_id='dinner'),
    ]

    timeline = build_occupancy_timeline(fake_repo, RESTAURANT_ID, MONDAY, 'lunch')

    assert timeline['service'].id == 'lunch'
    assert [t.id for t in timeline['tables']] == ['t4']
    assert timeline['time_slots'] == ['13:00', '14:45', '16:00']
    [entry] = timeline['reservations']
    assert entry['start_time'] == '13:00'
    assert entry['end_time'] == '15:00'
    assert entry['tables'] == [{'id': 't4', 'number': 'T4'}]


def test_timeline_without_service(fake_repo, make_service):
    fake_repo.services = [make_service(day_type='weekend')]
    assert build_occupancy_timeline(fake_repo, RESTAURANT_ID, MONDAY, 'lunch') is None


def test_timeline_rejects_unknown_type(fake_repo):
    with pytest.raises(InvalidRequestError):
        build_occupancy_timeline(fake_repo, RESTAURANT_ID, MONDAY, 'brunch')
