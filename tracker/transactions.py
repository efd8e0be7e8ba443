"""Transaction store: the single owner of the canonical transaction list.

Every mutation builds a complete candidate, validates it, persists the whole
collection and only then swaps the in-memory tuple and notifies subscribers.
Readers always get an immutable tuple snapshot.
"""

from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from tracker.domain import ImportReport, Transaction
from tracker.errors import FormatError, NotFoundError, PersistenceError, ValidationError
from tracker.events import DATA_CHANGED, EventBus, Handler
from tracker.exchange import parse_payload, to_csv, to_json, to_record
from tracker.filters import FilterCriteria, by_query, iter_transactions
from tracker.functional import Either, Left, Maybe, Right
from tracker.storage import TRANSACTIONS, Storage
from tracker.utils import generate_id, get_logger, month_bounds
from tracker.validators import parse_amount, parse_date, sanitize_input, validate_transaction

logger = get_logger(__name__)

TEXT_FIELDS = ("description", "notes")
_STAMPED = ("id", "created_at", "updated_at")


class TransactionStore:

    def __init__(
        self,
        storage: Storage,
        clock: Callable[[], datetime] = datetime.now,
        bus: Optional[EventBus] = None,
    ):
        self.storage = storage
        self.clock = clock
        self._bus = bus or EventBus()
        self._transactions: tuple[Transaction, ...] = self._load()

    def _load(self) -> tuple[Transaction, ...]:
        loaded = []
        for doc in self.storage.get(TRANSACTIONS) or []:
            try:
                loaded.append(Transaction.from_dict(doc))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable stored transaction %r: %s", doc, exc)
        return tuple(loaded)

    def reload(self) -> None:
        self._transactions = self._load()

    def today(self) -> date:
        return self.clock().date()

    # --- reads

    def get_all(self) -> tuple[Transaction, ...]:
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def get_by_id(self, id: str) -> Maybe[Transaction]:
        return Maybe.of(next((t for t in self._transactions if t.id == id), None))

    def filter(self, criteria: Optional[FilterCriteria] = None, **kwargs) -> tuple[Transaction, ...]:
        criteria = criteria or FilterCriteria(**kwargs)
        return criteria.apply(self._transactions)

    def search(self, query: Optional[str], criteria: Optional[FilterCriteria] = None) -> tuple[Transaction, ...]:
        matching = self.filter(criteria)
        if not query or not query.strip():
            return matching
        return tuple(iter_transactions(matching, by_query(query)))

    def get_by_date_range(self, start, end) -> tuple[Transaction, ...]:
        return self.filter(FilterCriteria(start_date=start, end_date=end))

    def get_by_month(self, month: int, year: int) -> tuple[Transaction, ...]:
        return self.get_by_date_range(*month_bounds(month, year))

    def get_recent(self, limit: int = 10) -> tuple[Transaction, ...]:
        return tuple(sorted(self._transactions, key=lambda t: t.date, reverse=True)[:limit])

    # --- mutations

    def add(self, data: Mapping[str, Any]) -> Either[ValidationError | PersistenceError, Transaction]:
        record = to_record(dict(data))
        for field in TEXT_FIELDS:
            record[field] = sanitize_input(record.get(field) or "")

        checked = validate_transaction(record, self.today())
        if checked.is_left():
            logger.debug("Rejected new transaction: %s", checked.get_error().errors)
            return checked

        id = str(record.get("id") or generate_id())
        if self.get_by_id(id).is_some():
            return Left(ValidationError({"id": "Transaction id already exists"}))

        now = self.clock().isoformat()
        t = self._build(checked.value, id=id, created_at=now, updated_at=now)
        return self._commit(self._transactions + (t,), "add", t.id).map(lambda _: t)

    def update(self, id: str, patch: Mapping[str, Any]) -> Either[NotFoundError | ValidationError | PersistenceError, Transaction]:
        current = self.get_by_id(id).get_or_else(None)
        if current is None:
            return Left(NotFoundError(id))

        changes = {k: v for k, v in to_record(dict(patch)).items() if k not in _STAMPED}
        for field in TEXT_FIELDS:
            if field in changes:
                changes[field] = sanitize_input(changes[field] or "")
        candidate = {**to_record(current.to_dict()), **changes}

        checked = validate_transaction(candidate, self.today())
        if checked.is_left():
            logger.debug("Rejected update of %s: %s", id, checked.get_error().errors)
            return checked

        updated = self._build(checked.value, id=id, created_at=current.created_at, updated_at=self.clock().isoformat())
        replaced = tuple(updated if t.id == id else t for t in self._transactions)
        return self._commit(replaced, "update", id).map(lambda _: updated)

    def delete(self, id: str) -> Either[NotFoundError | PersistenceError, str]:
        remaining = tuple(t for t in self._transactions if t.id != id)
        if len(remaining) == len(self._transactions):
            return Left(NotFoundError(id))
        return self._commit(remaining, "delete", id).map(lambda _: id)

    def import_transactions(
        self,
        records: Iterable[Any],
        merge: bool = True,
        overwrite: bool = False,
    ) -> ImportReport:
        """Validate and append many records in one write.

        A record whose id is already kept is always skipped. With ``merge`` a
        record is also skipped when its description, amount and date together
        match a transaction already kept.
        """
        kept: list[Transaction] = [] if overwrite else list(self._transactions)
        imported = skipped = 0
        errors: list[str] = []
        now = self.clock().isoformat()

        for index, doc in enumerate(records, start=1):
            if not isinstance(doc, Mapping):
                errors.append(f"Transaction {index}: Invalid record")
                continue
            record = to_record(dict(doc))
            record["id"] = str(record.get("id") or generate_id())

            if any(t.id == record["id"] or (merge and _same_content(t, record)) for t in kept):
                skipped += 1
                continue

            for field in TEXT_FIELDS:
                record[field] = sanitize_input(record.get(field) or "")
            checked = validate_transaction(record, self.today())
            if checked.is_left():
                errors.append(f"Transaction {index}: {', '.join(checked.get_error().errors.values())}")
                continue

            kept.append(self._build(
                checked.value,
                id=record["id"],
                created_at=record.get("created_at") or now,
                updated_at=record.get("updated_at") or now,
            ))
            imported += 1

        result = self._commit(tuple(kept), "import", None)
        if result.is_left():
            errors.append(str(result.get_error()))
        logger.info("Imported %d transactions, skipped %d, %d errors", imported, skipped, len(errors))
        return ImportReport(
            success=result.is_right(),
            imported_count=imported,
            skipped_count=skipped,
            total_count=len(self._transactions),
            errors=tuple(errors),
        )

    def import_payload(self, content: str, merge: bool = True, overwrite: bool = False) -> Either[FormatError, ImportReport]:
        return parse_payload(content).map(
            lambda doc: self.import_transactions(doc["transactions"], merge=merge, overwrite=overwrite)
        )

    def export(self, fmt: str = "json", criteria: Optional[FilterCriteria] = None) -> Either[FormatError, str]:
        selected = self.filter(criteria)
        if fmt == "json":
            return Right(to_json(selected))
        if fmt == "csv":
            return Right(to_csv(selected))
        return Left(FormatError(f"Unsupported format: {fmt}"))

    def restore(self, backup: Mapping[str, Any]) -> Either[FormatError | PersistenceError, str]:
        result = self.storage.restore(dict(backup))
        if result.is_right():
            self.reload()
            self._notify("restore", None)
        return result

    # --- observers

    def subscribe(self, event: str, callback: Handler) -> Callable[[], None]:
        return self._bus.subscribe(event, callback)

    def _notify(self, action: str, id: Optional[str]) -> None:
        self._bus.publish(DATA_CHANGED, {"action": action, "id": id, "count": len(self._transactions)})

    def _commit(self, transactions: tuple[Transaction, ...], action: str, id: Optional[str]) -> Either[PersistenceError, tuple]:
        docs = [t.to_dict() for t in transactions]
        written = self.storage.write(TRANSACTIONS, docs)
        if written.is_left():
            logger.error("Could not %s transaction %s: %s", action, id, written.get_error())
            return written

        if len(written.value) == len(docs):
            self._transactions = transactions
        else:
            # quota remediation trimmed the history that was written
            self.reload()
            if action in ("add", "update") and self.get_by_id(id).is_none():
                logger.error("Transaction %s was evicted by the history cap", id)
                return Left(PersistenceError(self.storage.key(TRANSACTIONS), "evicted by history cap"))
        logger.info("Committed %s of %s (%d transactions)", action, id, len(self._transactions))
        self._notify(action, id)
        return Right(self._transactions)

    @staticmethod
    def _build(clean: dict[str, Any], id: str, created_at: str, updated_at: str) -> Transaction:
        return Transaction(
            id=id,
            description=clean["description"],
            amount=clean["amount"],
            type=clean["type"],
            category=clean["category"].strip(),
            date=clean["date"],
            payment_method=clean["payment_method"],
            notes=clean["notes"],
            created_at=created_at,
            updated_at=updated_at,
        )


def _same_content(t: Transaction, record: dict[str, Any]) -> bool:
    return (
        t.description == record.get("description")
        and t.amount == parse_amount(record.get("amount"))
        and t.date == parse_date(record.get("date"))
    )
