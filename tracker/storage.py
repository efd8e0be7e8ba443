"""Storage manager: document keys, defaults, quota remediation and backups."""

import json
from datetime import datetime, timezone
from typing import Any, Callable

from tracker.domain import DEFAULT_CATEGORIES, DEFAULT_SETTINGS
from tracker.errors import FormatError, PersistenceError, QuotaExceededError
from tracker.functional import Either, Left, Right
from tracker.persistence import KeyValueStore
from tracker.settings import Settings
from tracker.utils import get_logger

logger = get_logger(__name__)

TRANSACTIONS = "transactions"
CATEGORIES = "categories"
BUDGETS = "budgets"
SETTINGS = "settings"
LAST_BACKUP = "last_backup"
BACKUPS = "backups"

DOCUMENT_KEYS = (TRANSACTIONS, CATEGORIES, BUDGETS, SETTINGS, LAST_BACKUP)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Storage:
    """Whole-document reads and writes over a ``KeyValueStore``.

    Only a write rejected for capacity triggers remediation: old backups are
    pruned and, as a last resort, transaction history is cut to the newest
    ``history_cap`` records. The write is then retried exactly once.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.backend = backend
        self.settings = settings or Settings()
        self.clock = clock

    def key(self, name: str) -> str:
        return f"{self.settings.key_prefix}{name}"

    def initialize(self) -> None:
        if self.get(TRANSACTIONS) is None:
            self.write(TRANSACTIONS, [])
        if not self.get(CATEGORIES):
            logger.info("Seeding %d default categories", len(DEFAULT_CATEGORIES))
            self.write(CATEGORIES, [c.to_dict() for c in DEFAULT_CATEGORIES])
        if self.get(BUDGETS) is None:
            self.write(BUDGETS, [])
        if self.get(SETTINGS) is None:
            self.write(SETTINGS, dict(DEFAULT_SETTINGS))

    def get(self, name: str) -> Any | None:
        return self.backend.get(self.key(name))

    def write(self, name: str, value: Any) -> Either[PersistenceError, Any]:
        """Persist ``value`` under ``name``; ``Right`` holds what was actually stored."""
        key = self.key(name)
        try:
            if self.backend.set(key, value):
                return Right(value)
            logger.error("Write to %s rejected by backend", key)
            return Left(PersistenceError(key))
        except QuotaExceededError as exc:
            logger.warning("Storage quota exceeded writing %s: %s", key, exc)

        value = self.handle_quota_exceeded(name, value)
        try:
            if self.backend.set(key, value):
                return Right(value)
        except QuotaExceededError:
            logger.error("Write to %s still exceeds quota after cleanup", key)
            return Left(PersistenceError(key, "quota exceeded"))
        return Left(PersistenceError(key))

    def handle_quota_exceeded(self, pending_name: str | None = None, pending: Any = None) -> Any:
        """Reclaim space; returns the pending value, trimmed if it is the transaction list."""
        keep = self.settings.backups_kept_on_quota
        backups = self.get(BACKUPS) or []
        if len(backups) > keep:
            backups.sort(key=lambda b: b["date"])
            self._set_quietly(BACKUPS, backups[-keep:])
            logger.warning("Pruned %d old backups", len(backups) - keep)

        cap = self.settings.history_cap
        stored = self.get(TRANSACTIONS) or []
        if len(stored) > cap:
            self._set_quietly(TRANSACTIONS, _newest(stored, cap))
            logger.warning("Truncated stored history from %d to %d transactions", len(stored), cap)
        if pending_name == TRANSACTIONS and isinstance(pending, list) and len(pending) > cap:
            logger.warning("Truncated pending history from %d to %d transactions", len(pending), cap)
            return _newest(pending, cap)
        return pending

    def _set_quietly(self, name: str, value: Any) -> None:
        try:
            self.backend.set(self.key(name), value)
        except QuotaExceededError:
            logger.error("Cleanup write to %s exceeded quota", name)

    def remove(self, name: str) -> bool:
        return self.backend.remove(self.key(name))

    def clear_all(self) -> None:
        for name in DOCUMENT_KEYS + (BACKUPS,):
            self.remove(name)

    def snapshot(self) -> dict[str, Any]:
        return {
            TRANSACTIONS: self.get(TRANSACTIONS) or [],
            CATEGORIES: self.get(CATEGORIES) or [],
            BUDGETS: self.get(BUDGETS) or [],
            SETTINGS: self.get(SETTINGS) or {},
        }

    def export_document(self) -> dict[str, Any]:
        doc = self.snapshot()
        doc["exportDate"] = self.clock().isoformat()
        doc["version"] = self.settings.data_version
        return doc

    def backup(self) -> Either[PersistenceError, dict[str, Any]]:
        data = {"timestamp": self.clock().isoformat(), **self.snapshot(), "version": self.settings.data_version}

        backups = self.get(BACKUPS) or []
        backups.append({"date": data["timestamp"], "data": data})
        if len(backups) > self.settings.max_backups:
            backups.sort(key=lambda b: b["date"])
            backups = backups[-self.settings.max_backups:]

        return (
            self.write(BACKUPS, backups)
            .bind(lambda _: self.write(LAST_BACKUP, data["timestamp"]))
            .map(lambda _: {"timestamp": data["timestamp"], "size": len(json.dumps(data))})
        )

    def list_backups(self) -> list[dict[str, Any]]:
        return sorted(self.get(BACKUPS) or [], key=lambda b: b["date"])

    def restore(self, data: Any) -> Either[FormatError | PersistenceError, str]:
        if (
            not isinstance(data, dict)
            or not isinstance(data.get(TRANSACTIONS), list)
            or not isinstance(data.get(CATEGORIES), list)
        ):
            return Left(FormatError("Invalid backup data"))

        result = self.write(TRANSACTIONS, data[TRANSACTIONS]).bind(
            lambda _: self.write(CATEGORIES, data[CATEGORIES])
        )
        if data.get(BUDGETS) is not None:
            result = result.bind(lambda _: self.write(BUDGETS, data[BUDGETS]))
        if data.get(SETTINGS) is not None:
            result = result.bind(lambda _: self.write(SETTINGS, data[SETTINGS]))
        if result.is_right():
            logger.info("Data restored from backup %s", data.get("timestamp"))
        return result.map(lambda _: data.get("timestamp", ""))

    def statistics(self) -> dict[str, dict[str, Any]]:
        stats: dict[str, dict[str, Any]] = {}
        for name in DOCUMENT_KEYS:
            data = self.get(name)
            if data is None:
                continue
            size = len(json.dumps(data))
            stats[name] = {
                "items": len(data) if isinstance(data, (list, dict)) else 1,
                "size": size,
                "size_formatted": f"{size / 1024:.2f} KB",
            }
        total = sum(s["size"] for s in stats.values())
        stats["total"] = {"size": total, "size_formatted": f"{total / 1024:.2f} KB"}
        return stats


def _newest(records: list[dict], cap: int) -> list[dict]:
    return sorted(records, key=lambda r: str(r.get("date", "")), reverse=True)[:cap]
