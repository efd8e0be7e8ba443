from typing import Any, Mapping

from tracker.domain import Budget, Category
from tracker.errors import NotFoundError, PersistenceError, ValidationError
from tracker.functional import Either, Left, Maybe
from tracker.storage import BUDGETS, CATEGORIES, Storage
from tracker.validators import sanitize_input, validate_budget


class CategoryCatalog:
    """User-extensible category table. Transactions are not checked against it."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def list(self) -> tuple[Category, ...]:
        return tuple(Category.from_dict(c) for c in self.storage.get(CATEGORIES) or [])

    def get(self, id: str) -> Maybe[Category]:
        return Maybe.of(next((c for c in self.list() if c.id == id), None))

    def name_of(self, id: str) -> str:
        return self.get(id).map(lambda c: c.name).get_or_else(id)

    def add(self, data: Mapping[str, Any]) -> Either[ValidationError | PersistenceError, Category]:
        errors = {}
        for field in ("id", "name"):
            if not sanitize_input(data.get(field) or ""):
                errors[field] = f"Category {field} is required"
        if data.get("type") not in ("income", "expense"):
            errors["type"] = "Invalid transaction type"
        if not errors and self.get(sanitize_input(data["id"])).is_some():
            errors["id"] = "Category already exists"
        if errors:
            return Left(ValidationError(errors))

        category = Category.from_dict({**data, "id": sanitize_input(data["id"]), "name": sanitize_input(data["name"])})
        docs = [c.to_dict() for c in self.list()] + [category.to_dict()]
        return self.storage.write(CATEGORIES, docs).map(lambda _: category)

    def remove(self, id: str) -> Either[NotFoundError | PersistenceError, str]:
        current = self.list()
        remaining = [c.to_dict() for c in current if c.id != id]
        if len(remaining) == len(current):
            return Left(NotFoundError(id, "Category"))
        return self.storage.write(CATEGORIES, remaining).map(lambda _: id)


class BudgetBook:
    """Monthly per-category limits. At most one budget per category and month."""

    def __init__(self, storage: Storage):
        self.storage = storage

    def list(self) -> tuple[Budget, ...]:
        return tuple(Budget.from_dict(b) for b in self.storage.get(BUDGETS) or [])

    def for_month(self, month: int, year: int) -> tuple[Budget, ...]:
        return tuple(b for b in self.list() if b.month == month and b.year == year)

    def set(self, data: Mapping[str, Any]) -> Either[ValidationError | PersistenceError, Budget]:
        checked = validate_budget(dict(data))
        if checked.is_left():
            return checked
        budget = checked.value
        others = [b.to_dict() for b in self.list() if _slot(b) != _slot(budget)]
        return self.storage.write(BUDGETS, others + [budget.to_dict()]).map(lambda _: budget)

    def remove(self, category: str, month: int, year: int) -> Either[NotFoundError | PersistenceError, Budget]:
        current = self.list()
        match = next((b for b in current if _slot(b) == (category, month, year)), None)
        if match is None:
            return Left(NotFoundError(f"{category} {year}-{month:02d}", "Budget"))
        remaining = [b.to_dict() for b in current if b is not match]
        return self.storage.write(BUDGETS, remaining).map(lambda _: match)


def _slot(b: Budget) -> tuple[str, int, int]:
    return b.category, b.month, b.year
