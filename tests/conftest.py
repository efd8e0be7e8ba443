from datetime import date, datetime

import pytest

from tracker.domain import PaymentMethod, Transaction, TransactionType
from tracker.persistence import MemoryKeyValueStore
from tracker.settings import Settings
from tracker.storage import Storage
from tracker.transactions import TransactionStore

NOW = datetime(2026, 10, 19, 12, 0, 0)
TODAY = NOW.date()


def make_tx(id, amount, type="expense", category="food", day="2026-10-05", description=None, method="cash", notes=""):
    return Transaction(
        id=id,
        description=description or f"tx {id}",
        amount=amount,
        type=TransactionType(type),
        category=category,
        date=date.fromisoformat(day),
        payment_method=PaymentMethod(method),
        notes=notes,
    )


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def storage(settings):
    s = Storage(MemoryKeyValueStore(), settings, clock=lambda: NOW)
    s.initialize()
    return s


@pytest.fixture
def store(storage):
    return TransactionStore(storage, clock=lambda: NOW)
