"""Exactly-once spin processing on top of at-least-once delivery."""

from __future__ import annotations

import logging
from typing import Optional

from .events import SpinEvent, Timestamp


LOGGER = logging.getLogger(__name__)


class EventDeduplicator:
    """Remember the last spin processed per wheel and reject replays."""

    def __init__(self) -> None:
        self._last_processed: dict[str, Timestamp] = {}

    def should_process(
        self,
        event: SpinEvent,
        displayed_wheel_id: Optional[str],
        is_spinning: bool,
    ) -> bool:
        """Return ``True`` exactly once per new spin for the displayed wheel.

        Acceptance records the event identity immediately so a duplicate that
        arrives while the first copy is still being planned is rejected.
        """

        if displayed_wheel_id is None or event.wheel_id != displayed_wheel_id:
            LOGGER.debug(
                "Ignoring spin %s for wheel %s (displaying %s)",
                event.timestamp,
                event.wheel_id,
                displayed_wheel_id,
            )
            return False
        if self._last_processed.get(event.wheel_id) == event.timestamp:
            LOGGER.debug("Duplicate spin %s for wheel %s", event.timestamp, event.wheel_id)
            return False
        if is_spinning:
            LOGGER.info(
                "Dropping spin %s for wheel %s: a spin is already in flight",
                event.timestamp,
                event.wheel_id,
            )
            return False

        self._last_processed[event.wheel_id] = event.timestamp
        return True

    def last_processed(self, wheel_id: str) -> Optional[Timestamp]:
        return self._last_processed.get(wheel_id)

    def forget(self, wheel_id: str) -> None:
        self._last_processed.pop(wheel_id, None)


__all__ = ["EventDeduplicator"]
