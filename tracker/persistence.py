"""
Key-value persistence backends.

Values are whole JSON documents; there are no partial writes.  ``set`` returns
``False`` on an ordinary failure and raises ``QuotaExceededError`` when the
write would exceed the backend's capacity, so callers can reclaim space and
retry.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from tracker.errors import QuotaExceededError
from tracker.utils import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the decoded document stored under ``key``, or ``None``."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> bool:
        ...

    @abstractmethod
    def remove(self, key: str) -> bool:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...

    def size_of(self, key: str) -> int:
        value = self.get(key)
        return 0 if value is None else len(json.dumps(value))


class MemoryKeyValueStore(KeyValueStore):
    """In-process store holding serialized documents, with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota = quota_bytes

    def _used_without(self, key: str) -> int:
        return sum(len(v) for k, v in self._items.items() if k != key)

    def get(self, key: str) -> Any | None:
        raw = self._items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.error("Corrupt document under %s", key)
            return None

    def set(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Cannot serialize %s: %s", key, exc)
            return False
        if self._quota is not None and self._used_without(key) + len(raw) > self._quota:
            raise QuotaExceededError(f"Writing {key} exceeds quota of {self._quota} bytes")
        self._items[key] = raw
        return True

    def remove(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def keys(self) -> list[str]:
        return list(self._items)

    def size_of(self, key: str) -> int:
        return len(self._items.get(key, ""))


class JsonFileKeyValueStore(KeyValueStore):
    """
    One pretty-printed JSON file per key inside ``directory``.

    Parameters
    ----------
    directory:
        Created on first write if missing.
    quota_bytes:
        Optional cap on the summed size of all documents.
    """

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: str | Path, quota_bytes: int | None = None) -> None:
        self._dir = Path(directory)
        self._quota = quota_bytes

    def _path(self, key: str) -> Path:
        return self._dir / f"{self._UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            return None

    def set(self, key: str, value: Any) -> bool:
        try:
            raw = json.dumps(value, indent=2)
        except (TypeError, ValueError) as exc:
            logger.error("Cannot serialize %s: %s", key, exc)
            return False
        path = self._path(key)
        if self._quota is not None:
            used = sum(p.stat().st_size for p in self._dir.glob("*.json") if p != path) if self._dir.exists() else 0
            if used + len(raw.encode("utf-8")) > self._quota:
                raise QuotaExceededError(f"Writing {key} exceeds quota of {self._quota} bytes")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(raw, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            logger.error("Error writing %s: %s", path, exc)
            return False
        return True

    def remove(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def keys(self) -> list[str]:
        # file names are the sanitized keys
        if not self._dir.exists():
            return []
        return sorted(p.stem for p in self._dir.glob("*.json"))
