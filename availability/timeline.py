"""
Таймлайн занятости столов на дату для одного типа сервиса
"""
from typing import Any, Dict, Optional

from availability.matcher import date_matches
from availability.slots import generate_auto_slots
from database.models import ACTIVE_STATUSES, SERVICE_TYPES
from errors import InvalidRequestError
from utils.time_utils import calculate_release_time, parse_request_date


def build_occupancy_timeline(repository, restaurant_id: str, date: str,
                             service_type: str) -> Optional[Dict[str, Any]]:
    """
    Столы, брони с временем освобождения и слоты сервиса

    Возвращает None, если на дату нет активного сервиса этого типа.
    """
    day = parse_request_date(date)
    if service_type not in SERVICE_TYPES:
        raise InvalidRequestError(f"Некорректный тип сервиса: {service_type!r}")

    services = sorted(
        (s for s in repository.list_active_services(restaurant_id)
         if s.service_type == service_type and date_matches(day, s)),
        key=lambda s: s.created_at
    )
    if not services:
        return None
    service = services[0]

    tables = repository.list_tables(restaurant_id)
    if service.available_table_ids:
        allowed = set(service.available_table_ids)
        tables = [t for t in tables if t.id in allowed]
    table_numbers = {t.id: t.table_number for t in tables}

    reservations = [
        r for r in repository.list_reservations(restaurant_id, date, ACTIVE_STATUSES)
        if r.service_id == service.id
    ]

    timeline_reservations = []
    for reservation in reservations:
        duration = reservation.estimated_duration_minutes or service.default_duration_minutes
        timeline_reservations.append({
            'id': reservation.id,
            'table_ids': list(reservation.table_ids),
            'tables': [
                {'id': table_id, 'number': table_numbers.get(table_id)}
                for table_id in reservation.table_ids
            ],
            'customer_name': reservation.customer_name,
            'party_size': reservation.party_size,
            'start_time': reservation.time,
            'end_time': calculate_release_time(reservation.time, duration),
            'status': reservation.status,
        })

    # Начало и конец сервиса всегда входят в шкалу
    time_slots = generate_auto_slots(service)
    if not time_slots or time_slots[0] != service.start_time:
        time_slots.insert(0, service.start_time)
    if time_slots[-1] != service.end_time:
        time_slots.append(service.end_time)

    return {
        'date': date,
        'service': service,
        'tables': tables,
        'reservations': timeline_reservations,
        'time_slots': time_slots,
    }
