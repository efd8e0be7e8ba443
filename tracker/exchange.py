"""JSON and CSV export, and payload parsing for imports."""

import io
import json
import re
from typing import Any, Iterable

import pandas as pd

from tracker.domain import Transaction
from tracker.errors import FormatError
from tracker.functional import Either, Left, Right
from tracker.utils import generate_id
from tracker.validators import parse_amount

CSV_HEADERS = ["Date", "Description", "Type", "Category", "Amount", "Payment Method", "Notes"]

# document (camelCase) key -> store field
_FIELD_NAMES = {
    "paymentMethod": "payment_method",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def _number(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


def to_csv(transactions: Iterable[Transaction]) -> str:
    rows = [
        ",".join([
            t.date.isoformat(),
            _quote(t.description),
            t.type.value,
            t.category,
            _number(t.amount),
            t.payment_method.value,
            _quote(t.notes),
        ])
        for t in transactions
    ]
    if not rows:
        return ""
    return "\n".join([",".join(CSV_HEADERS)] + rows)


def to_json(data: Any) -> str:
    if isinstance(data, (list, tuple)):
        data = [t.to_dict() if isinstance(t, Transaction) else t for t in data]
    return json.dumps(data, indent=2)


def _camel(header: str) -> str:
    words = re.split(r"\s+", header.strip())
    head, *rest = [w for w in words if w] or [""]
    return head.lower() + "".join(w.capitalize() for w in rest)


def parse_csv(content: str) -> list[dict[str, Any]]:
    """Parse exported CSV into camelCase transaction documents.

    Raises ``FormatError`` when the text is not a transaction table.
    """
    try:
        frame = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise FormatError(f"Unreadable CSV: {exc}") from exc

    frame.columns = [_camel(c) for c in frame.columns]
    if not {"date", "description"} <= set(frame.columns):
        raise FormatError("CSV must have Date and Description columns")

    records = []
    for row in frame.to_dict(orient="records"):
        record = {k: v.strip() for k, v in row.items() if isinstance(v, str) and v.strip()}
        if not record:
            continue
        record.setdefault("id", generate_id("csv_"))
        if "amount" in record:
            amount = parse_amount(record["amount"])
            record["amount"] = amount if amount is not None else record["amount"]
        records.append(record)
    return records


def parse_payload(content: str) -> Either[FormatError, dict[str, Any]]:
    """JSON first, CSV as the fallback. Always yields a document with a transactions list."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            return Right({"transactions": parse_csv(content)})
        except FormatError as exc:
            return Left(exc)

    if isinstance(data, list):
        data = {"transactions": data}
    if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
        return Left(FormatError("Invalid data format: transactions array required"))
    return Right(data)


def to_record(document: dict[str, Any]) -> dict[str, Any]:
    """Map a camelCase transaction document onto store field names."""
    return {_FIELD_NAMES.get(k, k): v for k, v in document.items()}
