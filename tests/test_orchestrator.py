import pytest

from availability.alternatives import find_alternative_slots, nearby_slots
from availability.orchestrator import AvailabilityService
from errors import InvalidRequestError

RESTAURANT_ID = 'rest-1'
MONDAY = '2025-06-02'

QUARTER_SLOTS = [f'{h:02d}:{m:02d}' for h in (13, 14, 15) for m in (0, 15, 30, 45)]


@pytest.fixture
def engine(fake_repo):
    return AvailabilityService(fake_repo)


def test_no_service(engine):
    result = engine.check_availability(RESTAURANT_ID, MONDAY, '14:00', 2)
    assert not result.available
    assert result.service is None
    assert result.message == 'No service configured for this date and time'


def test_no_table_for_party_size(engine, fake_repo, make_service, make_table):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t2', 2), make_table('t4', 4)]

    result = engine.check_availability(RESTAURANT_ID, MONDAY, '14:00', 6)

    assert not result.available
    assert result.service.id == fake_repo.services[0].id
    assert result.suggested_tables == []
    assert '6 guests' in result.message


def test_available_suggests_best_fit(engine, fake_repo, make_service, make_table):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t10', 10), make_table('t4', 4), make_table('t2', 2)]

    result = engine.check_availability(RESTAURANT_ID, MONDAY, '13:00', 3)

    assert result.available
    assert result.suggested_tables == ['t4']
    assert [t.id for t in result.available_tables] == ['t4', 't10']
    assert result.alternative_slots is None


def test_service_allow_list(engine, fake_repo, make_service, make_table):
    fake_repo.services = [make_service(available_table_ids=['t6'])]
    fake_repo.tables = [make_table('t4', 4), make_table('t6', 6)]

    result = engine.check_availability(RESTAURANT_ID, MONDAY, '13:00', 4)

    assert result.suggested_tables == ['t6']


def test_occupied_tables_are_skipped(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t4', 4), make_table('t6', 6)]
    fake_repo.reservations = [make_reservation('13:00', ['t4'])]

    result = engine.check_availability(RESTAURANT_ID, MONDAY, '14:00', 4)

    assert result.available
    assert result.suggested_tables == ['t6']


def test_cancelled_reservations_do_not_block(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t4', 4)]
    fake_repo.reservations = [
        make_reservation('13:00', ['t4'], status='CANCELLED'),
        make_reservation('13:00', ['t4'], status='NO_SHOW'),
    ]

    assert engine.check_availability(RESTAURANT_ID, MONDAY, '13:00', 2).available


def test_exclude_reservation_for_reschedule(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t4', 4)]
    fake_repo.reservations = [make_reservation('13:00', ['t4'], id='mine')]

    assert not engine.check_availability(RESTAURANT_ID, MONDAY, '13:30', 2).available
    result = engine.check_availability(RESTAURANT_ID, MONDAY, '13:30', 2,
                                       exclude_reservation_id='mine')
    assert result.available


def test_fully_booked_offers_alternatives(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service(name='Lunch', slot_generation_mode='manual',
                                       manual_slots=QUARTER_SLOTS)]
    fake_repo.tables = [make_table('t4', 4)]
    fake_repo.reservations = [make_reservation('14:00', ['t4'])]

    result = engine.check_availability(RESTAURANT_ID, MONDAY, '14:00', 2)

    assert not result.available
    assert result.message == 'No tables free at 14:00 for Lunch'
    times = [slot.time for slot in result.alternative_slots]
    assert times == ['13:45', '14:15', '13:30', '14:30', '13:15',
                     '14:45', '13:00', '15:00', '15:15', '15:30']
    free = [slot.time for slot in result.alternative_slots if slot.available]
    # Бронь занимает [14:00, 15:30), слот 15:30 только касается её
    assert free == ['15:30']


def test_alternatives_search_is_one_level_deep(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service(slot_generation_mode='manual', manual_slots=QUARTER_SLOTS)]
    fake_repo.tables = [make_table('t4', 4)]
    fake_repo.reservations = [make_reservation('14:00', ['t4'])]

    engine.check_availability(RESTAURANT_ID, MONDAY, '14:00', 2)

    # Один основной запрос и по одному на каждую из 10 альтернатив
    assert fake_repo.calls['services'] == 11


def test_alternatives_bounds(engine, make_service):
    slots = [f'{h:02d}:{m:02d}' for h in range(10, 18) for m in (0, 10, 20, 30, 40, 50)]
    service = make_service(slot_generation_mode='manual', manual_slots=slots)

    nearby = nearby_slots(service, '14:00')

    assert len(nearby) == 10
    assert '14:00' not in nearby
    assert all(abs(int(t[:2]) * 60 + int(t[3:]) - 840) <= 120 for t in nearby)


def test_alternatives_outside_window_are_dropped(engine, make_service):
    service = make_service(slot_generation_mode='manual', manual_slots=['11:00', '14:00', '16:30'])
    assert nearby_slots(service, '14:00') == []
    assert find_alternative_slots(engine, service, MONDAY, '14:00', 2, RESTAURANT_ID) == []


def test_idempotent(engine, fake_repo, make_service, make_table, make_reservation):
    fake_repo.services = [make_service()]
    fake_repo.tables = [make_table('t4', 4)]
    fake_repo.reservations = [make_reservation('13:00', ['t4'])]

    first = engine.check_availability(RESTAURANT_ID, MONDAY, '13:00', 2)
    second = engine.check_availability(RESTAURANT_ID, MONDAY, '13:00', 2)

    assert first == second


@pytest.mark.parametrize('date, time, party_size', [
    ('2025-06-31', '14:00', 2),
    (MONDAY, '14h', 2),
    (MONDAY, '14:00', 0),
])
def test_invalid_input_raises(engine, date, time, party_size):
    with pytest.raises(InvalidRequestError):
        engine.check_availability(RESTAURANT_ID, date, time, party_size)
