import json
from datetime import date, datetime

from conftest import NOW, TODAY
from tracker import aggregation
from tracker.domain import PaymentMethod, TransactionType
from tracker.errors import FormatError, NotFoundError, PersistenceError, ValidationError
from tracker.events import DATA_CHANGED
from tracker.filters import FilterCriteria
from tracker.persistence import MemoryKeyValueStore
from tracker.settings import Settings
from tracker.storage import TRANSACTIONS, Storage
from tracker.transactions import TransactionStore


def coffee(**overrides):
    data = {"description": "Coffee", "amount": 4.5, "type": "expense", "category": "food", "date": TODAY}
    data.update(overrides)
    return data


def test_add_coffee_gives_negative_balance(store):
    result = store.add(coffee())
    assert result.is_right()
    t = result.value
    assert t.id
    assert t.type is TransactionType.EXPENSE
    assert t.payment_method is PaymentMethod.CASH
    assert t.created_at == t.updated_at == NOW.isoformat()
    assert aggregation.balance(store.get_all()) == -4.5


def test_add_persists_whole_collection(store, storage):
    store.add(coffee(id="c1"))
    store.add(coffee(id="c2", description="Tea"))
    stored = storage.get(TRANSACTIONS)
    assert [d["id"] for d in stored] == ["c1", "c2"]
    assert stored[1]["paymentMethod"] == "cash"

    reopened = TransactionStore(storage, clock=lambda: NOW)
    assert reopened.get_all() == store.get_all()


def test_add_sanitizes_text(store):
    t = store.add(coffee(description=" <b>Latte</b> ", notes="javascript:alert(1)")).value
    assert t.description == "bLatte/b"
    assert t.notes == "alert(1)"


def test_add_rejects_invalid_and_does_not_notify(store):
    calls = []
    store.subscribe(DATA_CHANGED, lambda e, p: calls.append(p))

    result = store.add(coffee(amount=0, date=date(2026, 10, 20)))
    assert result.is_left()
    error = result.get_error()
    assert isinstance(error, ValidationError)
    assert set(error.errors) == {"amount", "date"}
    assert store.get_all() == ()
    assert calls == []


def test_add_accepts_camel_case_documents(store):
    t = store.add(coffee(paymentMethod="digital")).value
    assert t.payment_method is PaymentMethod.DIGITAL


def test_subscribers_see_committed_state(store):
    seen = []
    unsubscribe = store.subscribe(DATA_CHANGED, lambda e, p: seen.append((p["action"], len(store.get_all()))))

    t = store.add(coffee()).value
    store.update(t.id, {"amount": 5})
    store.delete(t.id)
    unsubscribe()
    store.add(coffee())

    assert seen == [("add", 1), ("update", 1), ("delete", 0)]


def test_add_then_delete_restores_collection(store):
    store.add(coffee(id="keep"))
    before = set(store.get_all())

    added = store.add(coffee(description="Bagel")).value
    assert store.delete(added.id).value == added.id
    assert set(store.get_all()) == before


def test_delete_missing_id_is_an_error(store):
    result = store.delete("nope")
    assert isinstance(result.get_error(), NotFoundError)
    assert result.get_error().id == "nope"


def test_update_missing_id(store):
    assert isinstance(store.update("nope", {"amount": 3}).get_error(), NotFoundError)


def test_update_with_empty_patch_only_touches_updated_at(storage):
    clock = {"now": NOW}
    store = TransactionStore(storage, clock=lambda: clock["now"])
    original = store.add(coffee(notes="morning")).value

    clock["now"] = datetime(2026, 10, 19, 18, 30)
    updated = store.update(original.id, {}).value

    assert updated.updated_at == "2026-10-19T18:30:00"
    assert updated.created_at == original.created_at
    for field in ("id", "description", "amount", "type", "category", "date", "payment_method", "notes"):
        assert getattr(updated, field) == getattr(original, field)


def test_update_validates_merged_record(store):
    t = store.add(coffee()).value

    result = store.update(t.id, {"type": "transfer"})
    assert result.get_error().errors == {"type": "Invalid transaction type"}
    assert store.get_by_id(t.id).get_or_else(None) == t

    changed = store.update(t.id, {"amount": "6.25", "description": "<i>Flat white</i>", "id": "hijack"}).value
    assert changed.id == t.id
    assert changed.amount == 6.25
    assert changed.description == "iFlat white/i"


def test_update_revalidates_date_against_current_day(storage):
    clock = {"now": NOW}
    store = TransactionStore(storage, clock=lambda: clock["now"])
    t = store.add(coffee(date=date(2016, 10, 19))).value

    clock["now"] = datetime(2026, 10, 21)
    result = store.update(t.id, {})
    assert "10 years" in result.get_error().errors["date"]


def test_filter_and_search(store):
    store.add(coffee(id="a", notes="with oat milk"))
    store.add(coffee(id="b", description="Salary", type="income", category="salary", amount=3000, payment_method="bank"))
    store.add(coffee(id="c", description="Bus", category="transportation", amount=2.75, date=date(2026, 9, 3)))

    assert [t.id for t in store.filter(type="expense", min_amount=3)] == ["a"]
    assert [t.id for t in store.filter(FilterCriteria(search="OAT"))] == ["a"]
    assert [t.id for t in store.search("bank")] == ["b"]
    assert [t.id for t in store.search("transport", FilterCriteria(type="expense"))] == ["c"]
    assert len(store.search("   ")) == 3
    assert [t.id for t in store.get_by_month(9, 2026)] == ["c"]
    assert [t.id for t in store.get_recent(2)] == ["a", "b"]


def test_import_merge_skips_duplicates_and_reports_errors(store):
    store.add(coffee(id="dup"))
    records = [
        {"id": "dup", "description": "Other", "amount": 1, "type": "expense", "category": "food", "date": "2026-10-01"},
        {"id": "x1", "description": "Coffee", "amount": 4.5, "type": "expense", "category": "food", "date": TODAY.isoformat()},
        {"id": "x2", "description": "Books", "amount": 30, "type": "expense", "category": "education", "date": "2026-10-02"},
        {"id": "x3", "description": "B", "amount": -1, "type": "expense", "category": "food", "date": "2026-10-02"},
        "garbage",
    ]
    report = store.import_transactions(records)

    assert report.success
    assert report.imported_count == 1
    assert report.skipped_count == 2
    assert report.total_count == 2
    assert report.errors == (
        "Transaction 4: Description must be at least 2 characters, Amount must be greater than 0",
        "Transaction 5: Invalid record",
    )


def test_import_overwrite_replaces_everything(store):
    store.add(coffee(id="old"))
    report = store.import_transactions(
        [{"id": "new", "description": "Rent", "amount": 900, "type": "expense", "category": "housing", "date": "2026-10-01"}],
        overwrite=True,
    )
    assert report.total_count == 1
    assert [t.id for t in store.get_all()] == ["new"]


def test_json_export_import_round_trip(store, settings):
    store.add(coffee(id="r1", notes='say "when"'))
    store.add(coffee(id="r2", description="Paycheck", type="income", category="salary", amount=2500, payment_method="bank"))
    exported = store.export("json").value

    fresh = TransactionStore(Storage(MemoryKeyValueStore(), settings, clock=lambda: NOW), clock=lambda: NOW)
    report = fresh.import_payload(exported).value

    assert report.imported_count == 2
    assert fresh.get_all() == store.get_all()


def test_csv_import_and_unsupported_export(store):
    content = 'Date,Description,Type,Category,Amount,Payment Method,Notes\n2026-10-01,"Groceries, weekly",expense,food,82.1,debit,""'
    report = store.import_payload(content).value
    assert report.imported_count == 1
    t = store.get_all()[0]
    assert t.description == "Groceries, weekly"
    assert t.payment_method is PaymentMethod.DEBIT

    assert isinstance(store.export("pdf").get_error(), FormatError)
    assert isinstance(store.import_payload("{broken").get_error(), FormatError)


def test_failed_write_leaves_store_untouched(settings):
    kv = MemoryKeyValueStore()
    storage = Storage(kv, settings, clock=lambda: NOW)
    storage.initialize()
    store = TransactionStore(storage, clock=lambda: NOW)
    calls = []
    store.subscribe(DATA_CHANGED, lambda e, p: calls.append(p))

    kv._quota = kv._used_without("") + 10
    result = store.add(coffee())

    assert isinstance(result.get_error(), PersistenceError)
    assert store.get_all() == ()
    assert calls == []


def test_restore_reloads_and_notifies(store, storage):
    store.add(coffee(id="before"))
    storage.backup()
    store.add(coffee(id="after"))
    calls = []
    store.subscribe(DATA_CHANGED, lambda e, p: calls.append(p["action"]))

    backup = storage.list_backups()[-1]["data"]
    assert store.restore(backup).is_right()
    assert [t.id for t in store.get_all()] == ["before"]
    assert calls == ["restore"]


def test_seed_file_imports_cleanly(store):
    with open("data/seed.json", encoding="utf-8") as f:
        content = f.read()
    report = store.import_payload(content).value
    assert report.errors == ()
    assert report.imported_count == len(json.loads(content)["transactions"])


def test_store_reloads_when_history_was_trimmed():
    settings = Settings(_env_file=None, history_cap=1)
    kv = MemoryKeyValueStore()
    storage = Storage(kv, settings, clock=lambda: NOW)
    store = TransactionStore(storage, clock=lambda: NOW)
    store.add(coffee(id="older", date=date(2026, 10, 1)))

    one_doc = len(json.dumps(storage.get(TRANSACTIONS)))
    kv._quota = one_doc + 20
    result = store.add(coffee(id="newer"))

    assert result.is_right()
    assert [t.id for t in store.get_all()] == ["newer"]


def test_add_rejects_an_id_already_in_use(store):
    store.add(coffee(id="x"))
    result = store.add(coffee(id="x", description="Bagel"))

    assert result.get_error().errors == {"id": "Transaction id already exists"}
    assert [t.id for t in store.get_all()] == ["x"]
    store.delete("x")
    assert store.get_all() == ()


def test_import_skips_known_ids_even_without_merge(store):
    store.add(coffee(id="x"))
    report = store.import_transactions(
        [
            {"id": "x", "description": "Rent", "amount": 900, "type": "expense", "category": "housing", "date": "2026-10-01"},
            {"id": "y", "description": "Coffee", "amount": 4.5, "type": "expense", "category": "food", "date": TODAY.isoformat()},
        ],
        merge=False,
    )
    assert report.imported_count == 1
    assert report.skipped_count == 1
    assert [t.id for t in store.get_all()] == ["x", "y"]


def test_add_fails_when_history_cap_evicts_the_new_record():
    settings = Settings(_env_file=None, history_cap=1)
    kv = MemoryKeyValueStore()
    storage = Storage(kv, settings, clock=lambda: NOW)
    store = TransactionStore(storage, clock=lambda: NOW)
    store.add(coffee(id="newer"))
    calls = []
    store.subscribe(DATA_CHANGED, lambda e, p: calls.append(p))

    one_doc = len(json.dumps(storage.get(TRANSACTIONS)))
    kv._quota = one_doc + 20
    result = store.add(coffee(id="older", date=date(2026, 10, 1)))

    assert isinstance(result.get_error(), PersistenceError)
    assert result.get_error().reason == "evicted by history cap"
    assert [t.id for t in store.get_all()] == ["newer"]
    assert calls == []
