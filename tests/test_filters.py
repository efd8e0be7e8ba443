from datetime import date
from itertools import islice

from conftest import make_tx
from tracker.domain import PaymentMethod, TransactionType
from tracker.filters import (
    FilterCriteria,
    by_amount_range,
    by_date_range,
    by_query,
    iter_transactions,
)


def make_sample():
    return (
        make_tx("t1", 12.0, category="food", day="2026-10-01", description="Lunch", method="cash"),
        make_tx("t2", 300.0, "income", "salary", "2026-09-30", description="Paycheck", method="bank"),
        make_tx("t3", 45.5, category="transportation", day="2026-10-10", description="Taxi", notes="airport run", method="credit"),
        make_tx("t4", 80.0, category="food", day="2026-08-15", description="Dinner out", method="debit"),
    )


def test_date_range_is_inclusive():
    trans = make_sample()
    pred = by_date_range(date(2026, 9, 30), date(2026, 10, 1))
    assert [t.id for t in trans if pred(t)] == ["t1", "t2"]


def test_amount_range_is_inclusive():
    trans = make_sample()
    pred = by_amount_range(12.0, 80.0)
    assert [t.id for t in trans if pred(t)] == ["t1", "t3", "t4"]


def test_criteria_compose_with_and():
    trans = make_sample()
    criteria = FilterCriteria(
        type="expense",
        categories=["food", "transportation"],
        payment_methods=["cash", "credit"],
        start_date="2026-10-01",
    )
    assert [t.id for t in criteria.apply(trans)] == ["t1", "t3"]


def test_text_search_is_case_insensitive_over_description_and_notes():
    trans = make_sample()
    assert [t.id for t in FilterCriteria(search="AIRPORT").apply(trans)] == ["t3"]
    assert [t.id for t in FilterCriteria(search="dinner").apply(trans)] == ["t4"]
    # category is not part of the plain text filter
    assert FilterCriteria(search="salary").apply(trans) == ()


def test_query_also_matches_category_and_payment_method():
    trans = make_sample()
    assert [t.id for t in trans if by_query("salary")(t)] == ["t2"]
    assert [t.id for t in trans if by_query(" Debit ")(t)] == ["t4"]


def test_loose_inputs_are_normalized():
    criteria = FilterCriteria(type="all", categories=[], payment_methods=("bank",), end_date="2026-10-01")
    assert criteria.type is None
    assert criteria.categories is None
    assert criteria.payment_methods == frozenset({PaymentMethod.BANK})
    assert criteria.end_date == date(2026, 10, 1)
    assert FilterCriteria(type="income").type is TransactionType.INCOME


def test_empty_criteria_matches_everything():
    trans = make_sample()
    assert FilterCriteria().apply(trans) == trans


def test_iter_transactions_is_lazy():
    trans = make_sample()
    calls = {"n": 0}

    def pred(t):
        calls["n"] += 1
        return t.type is TransactionType.EXPENSE

    first = list(islice(iter_transactions(trans, pred), 1))
    assert [t.id for t in first] == ["t1"]
    assert calls["n"] == 1
