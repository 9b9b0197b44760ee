import pytest

from availability.allocator import allocate_tables


def _capacity(tables, ids):
    by_id = {t.id: t.capacity for t in tables}
    return sum(by_id[i] for i in ids)


def test_perfect_fit_single_table(make_table):
    tables = [make_table('t10', 10), make_table('t6', 6), make_table('t2', 2), make_table('t4', 4)]
    assert allocate_tables(tables, 4) == ['t4']


def test_perfect_fit_without_exact_capacity(make_table):
    tables = [make_table('t2', 2), make_table('t6', 6), make_table('t10', 10)]
    assert allocate_tables(tables, 4) == ['t6']


def test_smallest_table_when_no_perfect_fit(make_table):
    tables = [make_table('t12', 12), make_table('t10', 10)]
    assert allocate_tables(tables, 2) == ['t10']


def test_combines_tables_for_large_party(make_table):
    tables = [make_table('a', 4), make_table('b', 2), make_table('c', 4), make_table('d', 2)]
    # По возрастанию: b(2), d(2), a(4), c(4) -> 2+2+4 = 8 >= 7
    assert allocate_tables(tables, 7) == ['b', 'd', 'a']


def test_ties_keep_input_order(make_table):
    tables = [make_table('first', 4), make_table('second', 4)]
    assert allocate_tables(tables, 3) == ['first']


def test_empty_input_raises():
    with pytest.raises(ValueError):
        allocate_tables([], 2)


@pytest.mark.parametrize('party_size', range(1, 21))
def test_allocation_always_sufficient(make_table, party_size):
    tables = [make_table('a', 2), make_table('b', 4), make_table('c', 6), make_table('d', 8)]
    selected = allocate_tables(tables, party_size)
    assert selected
    assert len(set(selected)) == len(selected)
    assert _capacity(tables, selected) >= party_size
