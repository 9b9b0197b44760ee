from availability.validator import validate_service_config


def test_valid_lunch_service(make_service):
    result = validate_service_config(make_service())
    assert result.valid
    assert result.errors == []


def test_valid_dinner_mapping():
    result = validate_service_config({
        'service_type': 'dinner',
        'start_time': '20:00',
        'end_time': '23:00',
        'default_duration_minutes': 120,
        'buffer_minutes': 30,
        'slot_generation_mode': 'manual',
        'manual_slots': ['20:00', '21:00'],
    })
    assert result.valid


def test_reports_all_violations():
    result = validate_service_config({
        'service_type': 'lunch',
        'start_time': '12:00',
        'end_time': '17:00',
        'default_duration_minutes': 200,
        'buffer_minutes': 5,
        'slot_generation_mode': 'manual',
        'manual_slots': [],
    })
    assert not result.valid
    assert len(result.errors) == 4
    assert any('13:00' in e and '16:00' in e for e in result.errors)
    assert any('Duration' in e for e in result.errors)
    assert any('Buffer' in e for e in result.errors)
    assert any('Manual mode' in e for e in result.errors)


def test_start_after_end():
    result = validate_service_config({
        'service_type': 'dinner',
        'start_time': '22:00',
        'end_time': '21:00',
    })
    assert 'Start time must be before end time' in result.errors


def test_dinner_outside_window():
    result = validate_service_config({
        'service_type': 'dinner',
        'start_time': '19:00',
        'end_time': '22:00',
    })
    assert result.errors == ['The dinner service must be between 20:00 and 23:00']


def test_unknown_type_and_mode():
    result = validate_service_config({'service_type': 'brunch', 'slot_generation_mode': 'random'})
    assert len(result.errors) == 2


def test_partial_config_checks_only_given_fields():
    assert validate_service_config({'buffer_minutes': 10}).valid
    assert validate_service_config({}).valid


def test_unparsable_time_is_reported_not_raised():
    result = validate_service_config({'start_time': 'noon', 'end_time': '16:00'})
    assert not result.valid
    assert 'HH:MM' in result.errors[0]


def test_string_numbers_are_reported_not_raised():
    result = validate_service_config({'default_duration_minutes': '90', 'buffer_minutes': '15'})
    assert not result.valid
    assert result.errors == [
        'Duration must be between 60 and 180 minutes',
        'Buffer must be between 10 and 30 minutes',
    ]


def test_bool_is_not_a_duration():
    result = validate_service_config({'default_duration_minutes': True})
    assert not result.valid


def test_none_and_non_mapping_input():
    assert validate_service_config(None).valid
    result = validate_service_config(42)
    assert not result.valid
    assert result.errors == ['Service configuration must be a mapping']
