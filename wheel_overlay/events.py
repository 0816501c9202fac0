"""Bus event names and the ``wheel-spin`` payload codec."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Mapping, Union


SPIN_EVENT = "wheel-spin"
WHEEL_LIST_UPDATE = "wheel-list-update"
WHEEL_CONFIG_UPDATE = "wheel-config-update"

Timestamp = Union[int, float]


class MalformedEventError(ValueError):
    """Raised when a bus payload does not describe a valid spin."""


@dataclass(frozen=True)
class SpinEvent:
    """A single broadcast spin, decided once by the controller."""

    wheel_id: str
    winning_index: int
    winning_label: str
    timestamp: Timestamp

    @classmethod
    def from_payload(cls, payload: Any) -> "SpinEvent":
        if not isinstance(payload, Mapping):
            raise MalformedEventError("Spin payload must be a mapping.")

        missing = [
            key
            for key in ("wheelId", "winningIndex", "winningLabel", "timestamp")
            if key not in payload
        ]
        if missing:
            raise MalformedEventError(f"Spin payload missing fields: {', '.join(missing)}")

        wheel_id = payload["wheelId"]
        if not isinstance(wheel_id, str) or not wheel_id:
            raise MalformedEventError("wheelId must be a non-empty string.")

        winning_index = payload["winningIndex"]
        if isinstance(winning_index, bool) or not isinstance(winning_index, int):
            raise MalformedEventError("winningIndex must be an integer.")
        if winning_index < 0:
            raise MalformedEventError("winningIndex must be zero or greater.")

        winning_label = payload["winningLabel"]
        if not isinstance(winning_label, str):
            raise MalformedEventError("winningLabel must be a string.")

        timestamp = payload["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, numbers.Real):
            raise MalformedEventError("timestamp must be a number.")
        if not math.isfinite(timestamp):
            raise MalformedEventError("timestamp must be finite.")

        return cls(
            wheel_id=wheel_id,
            winning_index=winning_index,
            winning_label=winning_label,
            timestamp=timestamp,
        )

    def to_payload(self) -> dict:
        return {
            "wheelId": self.wheel_id,
            "winningIndex": self.winning_index,
            "winningLabel": self.winning_label,
            "timestamp": self.timestamp,
        }


__all__ = [
    "MalformedEventError",
    "SPIN_EVENT",
    "SpinEvent",
    "WHEEL_CONFIG_UPDATE",
    "WHEEL_LIST_UPDATE",
]
