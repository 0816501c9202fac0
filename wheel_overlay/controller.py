"""Controller side: decide winners once and broadcast them to displays."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from .bus import Transport
from .events import SPIN_EVENT, WHEEL_CONFIG_UPDATE, WHEEL_LIST_UPDATE, SpinEvent
from .segments import (
    WheelDefinition,
    WheelNotFoundError,
    select_winning_index,
)
from .store import InMemoryWheelStore


LOGGER = logging.getLogger(__name__)
_SPIN_LOGGER = logging.getLogger("wheel_overlay.spins")


def configure_spin_log(path: Path) -> logging.Handler:
    """Append every broadcast spin to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s | %(message)s"))
    _SPIN_LOGGER.setLevel(logging.INFO)
    _SPIN_LOGGER.addHandler(handler)
    _SPIN_LOGGER.propagate = False
    return handler


def log_spin(event: SpinEvent, session_id: str) -> None:
    _SPIN_LOGGER.info(
        "%s | %s | %d | %s | %s",
        session_id,
        event.wheel_id,
        event.winning_index,
        event.winning_label,
        event.timestamp,
    )


@dataclass(frozen=True)
class SpinOutcome:
    """Winner chosen for a wheel before anything is published."""

    winning_index: int
    winning_label: str

    def to_dict(self) -> dict:
        return {"winningIndex": self.winning_index, "winningLabel": self.winning_label}


class WheelController:
    """Dashboard-side operations for one session."""

    def __init__(
        self,
        store: InMemoryWheelStore,
        transport: Transport,
        session_id: str,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.transport = transport
        self.session_id = session_id
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_timestamp = 0

    # ------------------------------------------------------------------
    # Spins
    # ------------------------------------------------------------------
    def request_spin(self, wheel_id: str) -> SpinOutcome:
        """Pick the winner for ``wheel_id`` against its current segments."""

        self._require_session(wheel_id)
        wheel = self.store.get_wheel(wheel_id)
        wheel.validate()
        index = select_winning_index(wheel.segments, self._rng)
        return SpinOutcome(winning_index=index, winning_label=wheel.segments[index].label)

    def _next_timestamp(self) -> int:
        now_ms = int(self._clock() * 1000)
        self._last_timestamp = max(now_ms, self._last_timestamp + 1)
        return self._last_timestamp

    def spin(self, wheel_id: Optional[str] = None) -> SpinEvent:
        """Select a winner and publish the spin; defaults to the active wheel."""

        if wheel_id is None:
            active = self.store.get_active_wheel(self.session_id)
            if active is None:
                raise WheelNotFoundError(f"Session {self.session_id} has no active wheel.")
            wheel_id = active.id

        outcome = self.request_spin(wheel_id)
        event = SpinEvent(
            wheel_id=wheel_id,
            winning_index=outcome.winning_index,
            winning_label=outcome.winning_label,
            timestamp=self._next_timestamp(),
        )
        LOGGER.info(
            "Spin %s on wheel %s: winner %d (%s)",
            event.timestamp,
            wheel_id,
            event.winning_index,
            event.winning_label,
        )
        self.transport.publish(self.session_id, SPIN_EVENT, event.to_payload())
        log_spin(event, self.session_id)
        return event

    # ------------------------------------------------------------------
    # Wheel administration
    # ------------------------------------------------------------------
    def broadcast_wheels(self) -> list[WheelDefinition]:
        wheels = self.store.list_wheels(self.session_id)
        self.transport.publish(
            self.session_id,
            WHEEL_LIST_UPDATE,
            {"wheels": [wheel.to_dict() for wheel in wheels]},
        )
        return wheels

    def create_wheel(self, name: str, segments: Sequence[Any], **options: Any) -> WheelDefinition:
        wheel = self.store.create_wheel(self.session_id, name, segments, **options)
        self.broadcast_wheels()
        return wheel

    def update_wheel(self, wheel_id: str, **changes: Any) -> WheelDefinition:
        self._require_session(wheel_id)
        wheel = self.store.update_wheel(wheel_id, **changes)
        if changes.get("is_active") is True:
            # Siblings were deactivated too; only the full list describes that.
            self.broadcast_wheels()
            return wheel
        self.transport.publish(self.session_id, WHEEL_CONFIG_UPDATE, {"wheel": wheel.to_dict()})
        self.broadcast_wheels()
        return wheel

    def activate_wheel(self, wheel_id: str) -> WheelDefinition:
        return self.update_wheel(wheel_id, is_active=True)

    def deactivate_wheel(self, wheel_id: str) -> WheelDefinition:
        return self.update_wheel(wheel_id, is_active=False)

    def delete_wheel(self, wheel_id: str) -> None:
        self._require_session(wheel_id)
        self.store.delete_wheel(wheel_id)
        self.broadcast_wheels()

    def cycle_active(self, step: int = 1) -> Optional[WheelDefinition]:
        """Activate the next wheel in list order (used by the operator hotkey)."""

        wheels = self.store.list_wheels(self.session_id)
        if not wheels:
            return None
        active = self.store.get_active_wheel(self.session_id)
        index = -1 if active is None else [wheel.id for wheel in wheels].index(active.id)
        target = wheels[(index + step) % len(wheels)]
        return self.activate_wheel(target.id)

    def _require_session(self, wheel_id: str) -> None:
        if self.store.session_of(wheel_id) != self.session_id:
            raise WheelNotFoundError(f"Wheel {wheel_id} is not part of session {self.session_id}")


__all__ = [
    "SpinOutcome",
    "WheelController",
    "configure_spin_log",
    "log_spin",
]
