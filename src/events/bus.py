# src/events/bus.py — v1
"""In-process publish/subscribe channel for timestamped log lines.

Every component that narrates receives the bus instance explicitly. Subscribers are
called synchronously, in subscription order, once per published event. Nothing is
persisted; sinks decide what to keep.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from shipwright.core.models import Event

logger = logging.getLogger(__name__)

Subscriber = Callable[[Event], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventBus:
    """Append-only event stream with synchronous fan-out.

    Args:
        clock: Returns the timestamp stamped on each event.
    """

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._clock = clock
        self._subscribers: list[Subscriber] = []
        self._history: list[Event] = []

    def publish(self, text: str) -> Event:
        """Append ``text`` and deliver it to every current subscriber."""
        event = Event(timestamp=self._clock(), text=text)
        self._history.append(event)
        # Snapshot so a handler that (un)subscribes does not alter this delivery.
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception:
                logger.exception("Event subscriber %r failed", handler)
        return event

    def subscribe(self, handler: Subscriber) -> Callable[[], None]:
        """Register ``handler``; returns an idempotent unsubscribe function."""
        self._subscribers.append(handler)
        active = True

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            self._subscribers.remove(handler)

        return unsubscribe

    @property
    def history(self) -> tuple[Event, ...]:
        return tuple(self._history)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
