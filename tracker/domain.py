from dataclasses import dataclass, field, asdict
from datetime import date
from enum import Enum
from typing import Any


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(str, Enum):
    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"
    BANK = "bank"
    DIGITAL = "digital"


@dataclass(frozen=True)
class Transaction:
    id: str
    description: str
    amount: float            # always positive, sign comes from type
    type: TransactionType
    category: str            # category id, not checked against the table
    date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""
    created_at: str = ""     # ISO timestamps stamped by the store
    updated_at: str = ""

    @property
    def signed_amount(self) -> float:
        return self.amount if self.type is TransactionType.INCOME else -self.amount

    @property
    def month_key(self) -> str:
        return f"{self.date.year}-{self.date.month:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "type": self.type.value,
            "category": self.category,
            "date": self.date.isoformat(),
            "paymentMethod": self.payment_method.value,
            "notes": self.notes,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        """Build from the camelCase document form. Expects already validated data."""
        raw_date = data["date"]
        return cls(
            id=str(data["id"]),
            description=data["description"],
            amount=float(data["amount"]),
            type=TransactionType(data["type"]),
            category=data["category"],
            date=raw_date if isinstance(raw_date, date) else date.fromisoformat(str(raw_date)[:10]),
            payment_method=PaymentMethod(data.get("paymentMethod") or PaymentMethod.CASH.value),
            notes=data.get("notes") or "",
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str
    type: TransactionType
    color: str

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["type"] = self.type.value
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data["name"],
            icon=data.get("icon", ""),
            type=TransactionType(data.get("type", "expense")),
            color=data.get("color", ""),
        )


# A spending limit for one category in one calendar month
@dataclass(frozen=True)
class Budget:
    category: str
    amount: float
    month: int
    year: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Budget":
        return cls(
            category=data["category"],
            amount=float(data["amount"]),
            month=int(data["month"]),
            year=int(data["year"]),
        )


@dataclass(frozen=True)
class ImportReport:
    success: bool
    imported_count: int
    skipped_count: int
    total_count: int
    errors: tuple[str, ...] = field(default_factory=tuple)


def _cat(id: str, name: str, icon: str, type: str, color: str) -> Category:
    return Category(id, name, icon, TransactionType(type), color)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    _cat("food", "Food & Dining", "utensils", "expense", "#FF6B6B"),
    _cat("transportation", "Transportation", "car", "expense", "#4ECDC4"),
    _cat("shopping", "Shopping", "shopping-bag", "expense", "#FFD166"),
    _cat("entertainment", "Entertainment", "film", "expense", "#06D6A0"),
    _cat("utilities", "Utilities", "bolt", "expense", "#118AB2"),
    _cat("health", "Health", "heartbeat", "expense", "#EF476F"),
    _cat("education", "Education", "graduation-cap", "expense", "#7209B7"),
    _cat("housing", "Housing", "home", "expense", "#073B4C"),
    _cat("other", "Other", "ellipsis-h", "expense", "#6C757D"),
    _cat("salary", "Salary", "money-bill-wave", "income", "#4CC9F0"),
    _cat("freelance", "Freelance", "laptop-code", "income", "#4361EE"),
    _cat("investment", "Investment", "chart-line", "income", "#3A0CA3"),
    _cat("gift", "Gifts Received", "gift", "income", "#F72585"),
)

DEFAULT_SETTINGS: dict[str, Any] = {
    "currency": "USD",
    "dateFormat": "MM/DD/YYYY",
    "theme": "auto",
    "notifications": {"enabled": True, "type": "browser", "threshold": 90},
    "exportFormat": "json",
    "autoBackup": True,
    "backupFrequency": "weekly",
}
