"""In-process publish/subscribe for committed reservation changes.

Calendar sync and notification senders subscribe here. Events are
only published after the owning transaction has committed, and a failing
handler never undoes or blocks the booking that triggered it.
"""

from __future__ import annotations

import datetime as dt
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

RESERVATION_CREATED = "reservation.created"
RESERVATION_UPDATED = "reservation.updated"
RESERVATION_STATUS_CHANGED = "reservation.status_changed"
RESERVATION_DELETED = "reservation.deleted"


@dataclass
class Event:
    event_type: str
    tenant_id: int
    data: dict[str, Any]
    timestamp: dt.datetime = field(default_factory=dt.datetime.now)


Handler = Callable[[Event], None]


class EventBus:
    """Dispatch events to handlers registered per event type."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def publish(self, event: Event) -> None:
        with self._lock:
            handlers = list(self._subscribers.get(event.event_type, []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler %s failed for %s",
                    getattr(handler, "__name__", repr(handler)),
                    event.event_type,
                )
