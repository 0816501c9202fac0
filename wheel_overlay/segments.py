"""Wheel segment definitions and weighted winner selection."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence


MIN_SEGMENTS = 2
DEFAULT_SPIN_DURATION = 5.0
DEFAULT_SOUND_VOLUME = 0.7


class SpinError(RuntimeError):
    """Raised when a spin cannot be planned for a wheel."""


class WheelNotFoundError(SpinError):
    """Raised when a wheel id does not resolve to a stored wheel."""


class InvalidWheelError(SpinError):
    """Raised when a wheel definition violates its invariants."""


@dataclass(frozen=True)
class Segment:
    """A single wedge of the wheel with a relative selection weight."""

    label: str
    color: str = "#ffffff"
    weight: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Segment":
        if not isinstance(data, Mapping):
            raise InvalidWheelError("Segment entries must be mappings.")
        label = data.get("label")
        color = data.get("color")
        if not label or not isinstance(label, str):
            raise InvalidWheelError("Segment label must be a non-empty string.")
        if not color or not isinstance(color, str):
            raise InvalidWheelError(f"Segment '{label}' must define a color.")
        raw_weight = data.get("weight")
        try:
            weight = 1.0 if raw_weight is None else float(raw_weight)
        except (TypeError, ValueError) as exc:
            raise InvalidWheelError(f"Segment '{label}' weight must be numeric.") from exc
        return cls(label=label, color=color, weight=weight)

    def to_dict(self) -> dict:
        return {"label": self.label, "color": self.color, "weight": self.weight}


@dataclass(frozen=True)
class WheelDefinition:
    """Immutable wheel configuration as read from the wheel store."""

    id: str
    segments: tuple[Segment, ...]
    name: str = ""
    spin_duration: float = DEFAULT_SPIN_DURATION
    is_active: bool = False
    sound_enabled: bool = True
    sound_volume: float = DEFAULT_SOUND_VOLUME
    created_at: float = field(default=0.0, compare=False)

    def validate(self) -> None:
        """Raise ``InvalidWheelError`` if the wheel cannot be spun."""

        validate_segments(self.segments)
        if self.spin_duration <= 0:
            raise InvalidWheelError(f"Wheel {self.id} spin duration must be positive.")

    @property
    def labels(self) -> list[str]:
        return [segment.label for segment in self.segments]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WheelDefinition":
        """Build a wheel from its wire form (camelCase keys, as broadcast)."""

        if not isinstance(data, Mapping):
            raise InvalidWheelError("Wheel payload must be a mapping.")
        wheel_id = data.get("id")
        if not wheel_id:
            raise InvalidWheelError("Wheel payload is missing an id.")
        raw_segments = data.get("segments")
        if not isinstance(raw_segments, (list, tuple)):
            raise InvalidWheelError(f"Wheel {wheel_id} segments must be a list.")
        try:
            spin_duration = float(data.get("spinDuration", DEFAULT_SPIN_DURATION))
            sound_volume = float(data.get("soundVolume", DEFAULT_SOUND_VOLUME))
            created_at = float(data.get("createdAt", 0.0))
        except (TypeError, ValueError) as exc:
            raise InvalidWheelError(f"Wheel {wheel_id} numeric fields are invalid.") from exc
        return cls(
            id=str(wheel_id),
            name=str(data.get("name", "")),
            segments=tuple(Segment.from_dict(entry) for entry in raw_segments),
            spin_duration=spin_duration,
            is_active=bool(data.get("isActive", False)),
            sound_enabled=bool(data.get("soundEnabled", True)),
            sound_volume=sound_volume,
            created_at=created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "segments": [segment.to_dict() for segment in self.segments],
            "spinDuration": self.spin_duration,
            "isActive": self.is_active,
            "soundEnabled": self.sound_enabled,
            "soundVolume": self.sound_volume,
            "createdAt": self.created_at,
        }


def validate_segments(segments: Sequence[Segment]) -> None:
    """Check the wheel invariants: at least two segments, all weights positive."""

    if len(segments) < MIN_SEGMENTS:
        raise InvalidWheelError(
            f"A wheel needs at least {MIN_SEGMENTS} segments (got {len(segments)})."
        )
    for segment in segments:
        if not segment.label:
            raise InvalidWheelError("Segment labels must be non-empty.")
        if segment.weight <= 0:
            raise InvalidWheelError(f"Segment '{segment.label}' weight must be positive.")


def segment_weights(segments: Iterable[Segment]) -> list[float]:
    return [float(segment.weight) for segment in segments]


def select_winning_index(
    segments: Sequence[Segment], rng: Optional[random.Random] = None
) -> int:
    """Return a segment index chosen with probability proportional to its weight.

    A uniform draw in ``[0, total_weight)`` is compared against the running
    weight sum with ``<=``, so a draw landing exactly on a boundary belongs to
    the earlier segment. Rounding can leave the final comparison short by an
    ulp; the last segment absorbs that case.
    """

    if not segments:
        raise ValueError("Cannot select from an empty segment list.")
    weights = segment_weights(segments)
    if any(weight <= 0 for weight in weights):
        raise ValueError("All segment weights must be positive.")

    rng_obj = rng or random
    total_weight = sum(weights)
    draw = rng_obj.random() * total_weight
    running = 0.0
    for index, weight in enumerate(weights):
        running += weight
        if draw <= running:
            return index
    return len(weights) - 1


__all__ = [
    "DEFAULT_SOUND_VOLUME",
    "DEFAULT_SPIN_DURATION",
    "InvalidWheelError",
    "MIN_SEGMENTS",
    "Segment",
    "SpinError",
    "WheelDefinition",
    "WheelNotFoundError",
    "segment_weights",
    "select_winning_index",
    "validate_segments",
]
