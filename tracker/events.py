from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple

from tracker.utils import get_logger

__all__ = ['DATA_CHANGED', 'Event', 'EventBus', 'Handler']

logger = get_logger(__name__)

DATA_CHANGED = "dataChanged"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], Any]


class EventBus:
    """Same-thread observer list. Handlers run inline, in subscription order."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> Callable[[], None]:
        self._subscribers.setdefault(name, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(name, handler)

        return unsubscribe

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._subscribers.get(name)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, name: str) -> int:
        return len(self._subscribers.get(name, ()))

    def publish(self, name: str, payload: dict) -> List[Any]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)

        results = []
        for handler in handlers:
            # a failing subscriber must not undo or hide an already committed write
            try:
                results.append(handler(event, payload))
            except Exception:
                logger.exception("Subscriber %r failed on %s", handler, name)
                results.append(None)
        return results
