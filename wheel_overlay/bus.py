"""Session-scoped publish/subscribe transport."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from typing import Any, Callable, Optional, Protocol


LOGGER = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class Transport(Protocol):
    """At-least-once, unordered-across-names message bus."""

    def publish(self, session_id: str, event_name: str, payload: Any) -> None:
        ...

    def subscribe(self, session_id: str, event_name: str, handler: Handler) -> Subscription:
        ...


class LocalSubscription:
    """Handle returned by :meth:`LocalBus.subscribe`."""

    def __init__(self, bus: "LocalBus", key: tuple[str, str], handler: Handler) -> None:
        self._bus = bus
        self._key = key
        self._handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self._key, self._handler)


class LocalBus:
    """In-process bus that delivers synchronously to every subscriber.

    Payloads are serialised to JSON on publish and decoded separately for
    each delivery, so publishers and subscribers never share objects.
    ``duplicate_deliveries`` repeats every delivery to mimic an at-least-once
    network transport.
    """

    def __init__(self, duplicate_deliveries: int = 1) -> None:
        if duplicate_deliveries < 1:
            raise ValueError("duplicate_deliveries must be at least 1.")
        self.duplicate_deliveries = duplicate_deliveries
        self._handlers: dict[tuple[str, str], list[Handler]] = defaultdict(list)
        self._last_message: dict[tuple[str, str], str] = {}
        self.published = 0

    def subscribe(self, session_id: str, event_name: str, handler: Handler) -> LocalSubscription:
        key = (session_id, event_name)
        self._handlers[key].append(handler)
        return LocalSubscription(self, key, handler)

    def _remove(self, key: tuple[str, str], handler: Handler) -> None:
        handlers = self._handlers.get(key)
        if handlers and handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(key, None)

    def subscriber_count(self, session_id: str, event_name: str) -> int:
        return len(self._handlers.get((session_id, event_name), ()))

    def publish(self, session_id: str, event_name: str, payload: Any) -> None:
        message = json.dumps(payload)
        key = (session_id, event_name)
        self._last_message[key] = message
        self.published += 1
        LOGGER.debug("Publishing %s to session %s", event_name, session_id)
        self._deliver(key, message, self.duplicate_deliveries)

    def replay(self, session_id: str, event_name: str) -> bool:
        """Re-deliver the last message for ``event_name`` as a reconnect would."""

        key = (session_id, event_name)
        message: Optional[str] = self._last_message.get(key)
        if message is None:
            return False
        self._deliver(key, message, 1)
        return True

    def _deliver(self, key: tuple[str, str], message: str, copies: int) -> None:
        for _ in range(copies):
            for handler in list(self._handlers.get(key, ())):
                try:
                    handler(json.loads(message))
                except Exception:
                    LOGGER.exception("Subscriber for %s raised; continuing delivery", key[1])


__all__ = ["Handler", "LocalBus", "LocalSubscription", "Subscription", "Transport"]
