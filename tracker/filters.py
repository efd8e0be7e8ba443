from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Iterator, Optional

from tracker.domain import PaymentMethod, Transaction, TransactionType
from tracker.validators import parse_date

Predicate = Callable[[Transaction], bool]


def iter_transactions(trans: Iterable[Transaction], pred: Predicate) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def by_type(type: TransactionType) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.type is type

    return _filter


def by_categories(categories: frozenset[str]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.category in categories

    return _filter


def by_payment_methods(methods: frozenset[PaymentMethod]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.payment_method in methods

    return _filter


def by_date_range(start: Optional[date], end: Optional[date]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        if start is not None and t.date < start:
            return False
        return end is None or t.date <= end

    return _filter


def by_amount_range(min: Optional[float], max: Optional[float]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        if min is not None and t.amount < min:
            return False
        return max is None or t.amount <= max

    return _filter


def by_text(term: str) -> Predicate:
    needle = term.lower()

    def _filter(t: Transaction) -> bool:
        return needle in t.description.lower() or needle in t.notes.lower()

    return _filter


def by_query(query: str) -> Predicate:
    """Wider than ``by_text``: also matches category id and payment method."""
    needle = query.strip().lower()

    def _filter(t: Transaction) -> bool:
        return (
            needle in t.description.lower()
            or needle in t.notes.lower()
            or needle in t.category.lower()
            or needle in t.payment_method.value
        )

    return _filter


def all_of(preds: Iterable[Predicate]) -> Predicate:
    preds = tuple(preds)

    def _filter(t: Transaction) -> bool:
        return all(p(t) for p in preds)

    return _filter


@dataclass(frozen=True)
class FilterCriteria:
    """Independently optional criteria, combined with AND. ``None`` means no constraint."""

    type: Optional[TransactionType] = None
    categories: Optional[frozenset[str]] = None
    payment_methods: Optional[frozenset[PaymentMethod]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    search: Optional[str] = None

    def __post_init__(self):
        # accept loose inputs ("all", lists, ISO strings) and store canonical ones
        if self.type == "all":
            object.__setattr__(self, "type", None)
        elif self.type is not None:
            object.__setattr__(self, "type", TransactionType(self.type))
        if self.categories:
            object.__setattr__(self, "categories", frozenset(self.categories))
        else:
            object.__setattr__(self, "categories", None)
        if self.payment_methods:
            object.__setattr__(
                self, "payment_methods", frozenset(PaymentMethod(m) for m in self.payment_methods)
            )
        else:
            object.__setattr__(self, "payment_methods", None)
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, parse_date(value))

    def predicates(self) -> list[Predicate]:
        preds: list[Predicate] = []
        if self.type is not None:
            preds.append(by_type(self.type))
        if self.categories:
            preds.append(by_categories(self.categories))
        if self.payment_methods:
            preds.append(by_payment_methods(self.payment_methods))
        if self.start_date is not None or self.end_date is not None:
            preds.append(by_date_range(self.start_date, self.end_date))
        if self.min_amount is not None or self.max_amount is not None:
            preds.append(by_amount_range(self.min_amount, self.max_amount))
        if self.search:
            preds.append(by_text(self.search))
        return preds

    def matches(self, t: Transaction) -> bool:
        return all_of(self.predicates())(t)

    def apply(self, trans: Iterable[Transaction]) -> tuple[Transaction, ...]:
        return tuple(iter_transactions(trans, all_of(self.predicates())))
