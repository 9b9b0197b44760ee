"""
Подбор столов под размер компании
"""
from typing import List, Sequence

from config import settings
from database.models import Table


def allocate_tables(available_tables: Sequence[Table], party_size: int) -> List[str]:
    """
    Выбор столов для компании

    1. Один стол вместимостью от party_size до party_size + 2
    2. Иначе самый маленький, если он вмещает компанию
    3. Иначе столы по возрастанию вместимости, пока суммарно не хватит мест

    Это эвристика, а не оптимальная упаковка; соседство столов не учитывается.
    """
    if not available_tables:
        raise ValueError("Нет свободных столов для подбора")

    # sorted стабилен: при равной вместимости сохраняется порядок на входе
    tables = sorted(available_tables, key=lambda t: t.capacity)

    for table in tables:
        if party_size <= table.capacity <= party_size + settings.PERFECT_FIT_SLACK:
            return [table.id]

    smallest = tables[0]
    if smallest.capacity >= party_size:
        return [smallest.id]

    selected = []
    total_capacity = 0
    for table in tables:
        selected.append(table.id)
        total_capacity += table.capacity
        if total_capacity >= party_size:
            break

    return selected
