"""Wheel definitions per session, with the single-active-wheel rule."""

from __future__ import annotations

import itertools
import logging
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

import yaml

from .segments import (
    DEFAULT_SOUND_VOLUME,
    DEFAULT_SPIN_DURATION,
    InvalidWheelError,
    Segment,
    WheelDefinition,
    WheelNotFoundError,
)


LOGGER = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {
    "name",
    "segments",
    "is_active",
    "spin_duration",
    "sound_enabled",
    "sound_volume",
}


class WheelStore(Protocol):
    """Read access the spin engine needs from wheel persistence."""

    def get_active_wheel(self, session_id: str) -> Optional[WheelDefinition]:
        ...

    def list_segments(self, wheel_id: str) -> list[Segment]:
        ...

    def get_wheel(self, wheel_id: str) -> WheelDefinition:
        ...

    def list_wheels(self, session_id: str) -> list[WheelDefinition]:
        ...


def _coerce_duration(value: Any) -> float:
    try:
        duration = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidWheelError("spin_duration must be numeric.") from exc
    if duration <= 0:
        raise InvalidWheelError("spin_duration must be positive.")
    return duration


def _coerce_volume(value: Any) -> float:
    try:
        volume = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidWheelError("sound_volume must be numeric.") from exc
    return max(0.0, min(1.0, volume))


def _coerce_segments(segments: Iterable[Any]) -> tuple[Segment, ...]:
    coerced = []
    for entry in segments:
        if isinstance(entry, Segment):
            segment = entry
        else:
            segment = Segment.from_dict(entry)
        if not segment.color:
            raise InvalidWheelError(f"Segment '{segment.label}' must define a color.")
        coerced.append(segment)
    return tuple(coerced)


class InMemoryWheelStore:
    """Dictionary-backed wheel store scoped by session id."""

    def __init__(self) -> None:
        self._wheels: dict[str, WheelDefinition] = {}
        self._sessions: dict[str, str] = {}
        self._sequence = itertools.count()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_wheel(self, wheel_id: str) -> WheelDefinition:
        try:
            return self._wheels[wheel_id]
        except KeyError:
            raise WheelNotFoundError(f"Wheel not found: {wheel_id}") from None

    def session_of(self, wheel_id: str) -> str:
        self.get_wheel(wheel_id)
        return self._sessions[wheel_id]

    def list_wheels(self, session_id: str) -> list[WheelDefinition]:
        wheels = [
            wheel
            for wheel_id, wheel in self._wheels.items()
            if self._sessions[wheel_id] == session_id
        ]
        return sorted(wheels, key=lambda wheel: wheel.created_at, reverse=True)

    def get_active_wheel(self, session_id: str) -> Optional[WheelDefinition]:
        for wheel in self.list_wheels(session_id):
            if wheel.is_active:
                return wheel
        return None

    def list_segments(self, wheel_id: str) -> list[Segment]:
        return list(self.get_wheel(wheel_id).segments)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_wheel(
        self,
        session_id: str,
        name: str,
        segments: Sequence[Any],
        *,
        wheel_id: Optional[str] = None,
        spin_duration: Optional[float] = None,
        sound_enabled: Optional[bool] = None,
        sound_volume: Optional[float] = None,
    ) -> WheelDefinition:
        """Create an inactive wheel; activation is a separate update."""

        if not session_id or not name:
            raise InvalidWheelError("Wheels need a session id and a name.")
        if not isinstance(segments, (list, tuple)):
            raise InvalidWheelError("Wheel segments must be a list.")

        new_id = wheel_id or uuid.uuid4().hex
        if new_id in self._wheels:
            raise InvalidWheelError(f"Wheel id already exists: {new_id}")

        wheel = WheelDefinition(
            id=new_id,
            name=name,
            segments=_coerce_segments(segments),
            spin_duration=(
                DEFAULT_SPIN_DURATION if spin_duration is None else _coerce_duration(spin_duration)
            ),
            is_active=False,
            sound_enabled=True if sound_enabled is None else bool(sound_enabled),
            sound_volume=(
                DEFAULT_SOUND_VOLUME if sound_volume is None else _coerce_volume(sound_volume)
            ),
            # Sequence number keeps ordering stable for wheels created in the same tick.
            created_at=time.time() + next(self._sequence) * 1e-6,
        )
        self._wheels[new_id] = wheel
        self._sessions[new_id] = session_id
        LOGGER.info("Created wheel %s (%s) in session %s", new_id, name, session_id)
        return wheel

    def update_wheel(self, wheel_id: str, **changes: Any) -> WheelDefinition:
        """Apply ``changes``; activating a wheel deactivates its siblings."""

        wheel = self.get_wheel(wheel_id)
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise InvalidWheelError(f"Unknown wheel fields: {', '.join(sorted(unknown))}")

        updates = {key: value for key, value in changes.items() if value is not None}
        if "segments" in updates:
            updates["segments"] = _coerce_segments(updates["segments"])
        if "spin_duration" in updates:
            updates["spin_duration"] = _coerce_duration(updates["spin_duration"])
        if "sound_volume" in updates:
            updates["sound_volume"] = _coerce_volume(updates["sound_volume"])

        if updates.get("is_active"):
            session_id = self._sessions[wheel_id]
            for other_id, other in list(self._wheels.items()):
                if other_id != wheel_id and other.is_active and self._sessions[other_id] == session_id:
                    self._wheels[other_id] = replace(other, is_active=False)

        updated = replace(wheel, **updates)
        self._wheels[wheel_id] = updated
        return updated

    def delete_wheel(self, wheel_id: str) -> WheelDefinition:
        wheel = self.get_wheel(wheel_id)
        del self._wheels[wheel_id]
        del self._sessions[wheel_id]
        LOGGER.info("Deleted wheel %s", wheel_id)
        return wheel

    def activate(self, wheel_id: str) -> WheelDefinition:
        return self.update_wheel(wheel_id, is_active=True)


def wheels_from_config(
    store: InMemoryWheelStore, session_id: str, entries: Sequence[Mapping[str, Any]]
) -> list[WheelDefinition]:
    """Seed ``store`` from configuration entries; the first ``active`` wins."""

    created: list[WheelDefinition] = []
    active_id: Optional[str] = None
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise InvalidWheelError("Wheel entries must be mappings.")
        wheel = store.create_wheel(
            session_id,
            str(entry.get("name") or entry.get("id") or "Wheel"),
            entry.get("segments") or [],
            wheel_id=entry.get("id"),
            spin_duration=entry.get("spin_duration"),
            sound_enabled=entry.get("sound_enabled"),
            sound_volume=entry.get("sound_volume"),
        )
        created.append(wheel)
        if entry.get("active") and active_id is None:
            active_id = wheel.id
    if active_id is not None:
        store.activate(active_id)
    return [store.get_wheel(wheel.id) for wheel in created]


def load_wheels(store: InMemoryWheelStore, session_id: str, path: Path) -> list[WheelDefinition]:
    """Load wheel definitions from a YAML file with a top-level ``wheels`` list."""

    if not path.exists():
        raise WheelNotFoundError(f"Wheel file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    entries = data.get("wheels", []) if isinstance(data, Mapping) else data
    if not isinstance(entries, list):
        raise InvalidWheelError("Wheel file must contain a list of wheels.")
    return wheels_from_config(store, session_id, entries)


__all__ = ["InMemoryWheelStore", "WheelStore", "load_wheels", "wheels_from_config"]
