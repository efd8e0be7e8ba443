"""Validation and free-text normalization for tracker records.

Validators never raise on bad input. They return ``Right`` with the coerced
values or ``Left(ValidationError)`` holding one message per offending field.
"""

import math
import re
from datetime import date, datetime
from typing import Any

from tracker.domain import Budget, PaymentMethod, TransactionType
from tracker.errors import ValidationError
from tracker.functional import Either, Left, Right
from tracker.utils import years_before

MAX_AMOUNT = 1_000_000
MAX_TEXT_LENGTH = 1000
MAX_NOTES_LENGTH = 500
MAX_HISTORY_YEARS = 10

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def sanitize_input(value: Any) -> Any:
    """Display-safety normalization; not an injection defense."""
    if not isinstance(value, str):
        return value
    cleaned = _ANGLE_BRACKETS.sub("", value)
    cleaned = _JS_PROTOCOL.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned).strip()
    return cleaned[:MAX_TEXT_LENGTH]


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_amount(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(amount) or math.isinf(amount) else amount


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def validate_transaction(data: dict[str, Any], today: date) -> Either[ValidationError, dict[str, Any]]:
    """Check a candidate transaction against the record constraints as of ``today``.

    On success the returned dict carries coerced values: float amount, enum
    type and payment method, ``date`` object and a notes string.
    """
    errors: dict[str, str] = {}
    clean = dict(data)

    description = data.get("description")
    if _blank(description) or not isinstance(description, str):
        errors["description"] = "Description is required"
    elif len(description) < 2:
        errors["description"] = "Description must be at least 2 characters"
    elif len(description) > 100:
        errors["description"] = "Description cannot exceed 100 characters"

    raw_amount = data.get("amount")
    if _blank(raw_amount):
        errors["amount"] = "Amount is required"
    else:
        amount = parse_amount(raw_amount)
        if amount is None:
            errors["amount"] = "Amount must be a valid number"
        elif amount <= 0:
            errors["amount"] = "Amount must be greater than 0"
        elif amount > MAX_AMOUNT:
            errors["amount"] = "Amount cannot exceed 1,000,000"
        else:
            clean["amount"] = amount

    try:
        clean["type"] = TransactionType(data.get("type"))
    except ValueError:
        errors["type"] = "Invalid transaction type"

    category = data.get("category")
    if _blank(category) or not isinstance(category, str):
        errors["category"] = "Category is required"

    raw_date = data.get("date")
    if _blank(raw_date):
        errors["date"] = "Date is required"
    else:
        day = parse_date(raw_date)
        if day is None:
            errors["date"] = "Invalid date format"
        elif day > today:
            errors["date"] = "Date cannot be in the future"
        elif day < years_before(today, MAX_HISTORY_YEARS):
            errors["date"] = "Date cannot be more than 10 years ago"
        else:
            clean["date"] = day

    method = data.get("payment_method")
    if _blank(method):
        clean["payment_method"] = PaymentMethod.CASH
    else:
        try:
            clean["payment_method"] = PaymentMethod(method)
        except ValueError:
            errors["paymentMethod"] = "Invalid payment method"

    notes = data.get("notes") or ""
    if not isinstance(notes, str):
        notes = str(notes)
    if len(notes) > MAX_NOTES_LENGTH:
        errors["notes"] = "Notes cannot exceed 500 characters"
    clean["notes"] = notes

    if errors:
        return Left(ValidationError(errors))
    return Right(clean)


def validate_budget(data: dict[str, Any]) -> Either[ValidationError, Budget]:
    errors: dict[str, str] = {}

    raw_amount = data.get("amount")
    amount = parse_amount(raw_amount)
    if _blank(raw_amount):
        errors["amount"] = "Budget amount is required"
    elif amount is None:
        errors["amount"] = "Amount must be a valid number"
    elif amount < 0:
        errors["amount"] = "Budget cannot be negative"
    elif amount > MAX_AMOUNT:
        errors["amount"] = "Budget cannot exceed 1,000,000"

    category = data.get("category")
    if _blank(category) or not isinstance(category, str):
        errors["category"] = "Category is required"

    month = _as_int(data.get("month"))
    if month is None or not 1 <= month <= 12:
        errors["month"] = "Invalid month"

    year = _as_int(data.get("year"))
    if year is None or not 2000 <= year <= 2100:
        errors["year"] = "Invalid year"

    if errors:
        return Left(ValidationError(errors))
    return Right(Budget(category=category, amount=amount, month=month, year=year))


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
