"""Spin animation state machine for a single wheel on a single display."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Final, Optional

from .audio import AudioPlayer, NullAudioPlayer
from .events import SpinEvent, Timestamp
from .planner import DEFAULT_EXTRA_SPINS, SpinPlan, plan_spin
from .segments import WheelDefinition


LOGGER = logging.getLogger(__name__)

DEFAULT_SETTLE_DURATION = 5.0
DEFAULT_WINNER_SOUND = "sounds/wheel-winner.mp3"


class AnimatorState(str, Enum):
    """Lifecycle of one spin on a display."""

    IDLE: Final[str] = "IDLE"
    SPINNING: Final[str] = "SPINNING"
    SETTLED: Final[str] = "SETTLED"


@dataclass(frozen=True)
class SpinResult:
    """Outcome reported once when a spin comes to rest."""

    wheel_id: str
    winning_index: int
    winning_label: str
    final_rotation: float
    event_id: Timestamp


@dataclass
class SpinAnimator:
    """Drive the eased rotation of one wheel and announce the winner.

    ``current_rotation`` is carried between spins so successive spins keep
    accumulating rotation instead of snapping back to zero.
    """

    wheel_id: str
    settle_duration: float = DEFAULT_SETTLE_DURATION
    extra_full_spins: int = DEFAULT_EXTRA_SPINS
    audio: AudioPlayer = field(default_factory=NullAudioPlayer)
    winner_sound: str = DEFAULT_WINNER_SOUND
    clock: Callable[[], float] = time.monotonic
    state: AnimatorState = AnimatorState.IDLE
    current_rotation: float = 0.0
    winner_label: Optional[str] = None
    last_processed_event_id: Optional[Timestamp] = None
    spins_completed: int = 0
    _plan: Optional[SpinPlan] = None
    _event: Optional[SpinEvent] = None
    _duration: float = 0.0
    _sound_enabled: bool = False
    _sound_volume: float = 0.0
    _state_started: float = 0.0

    @property
    def is_spinning(self) -> bool:
        return self.state is AnimatorState.SPINNING

    @property
    def plan(self) -> Optional[SpinPlan]:
        return self._plan

    def _now(self, now: Optional[float]) -> float:
        return self.clock() if now is None else now

    def transition(self, new_state: AnimatorState, now: Optional[float] = None) -> None:
        """Transition to ``new_state`` and reset the state timer."""

        if self.state is new_state:
            return
        self.state = new_state
        self._state_started = self._now(now)

    def start(
        self, event: SpinEvent, definition: WheelDefinition, now: Optional[float] = None
    ) -> bool:
        """Begin animating ``event``; ignored while a spin is already in flight."""

        if self.is_spinning:
            return False
        if event.wheel_id != self.wheel_id or definition.id != self.wheel_id:
            raise ValueError(
                f"Animator for wheel {self.wheel_id} cannot play a spin for {event.wheel_id}."
            )

        self._plan = plan_spin(
            self.current_rotation,
            definition.segments,
            event.winning_index,
            self.extra_full_spins,
        )
        self._event = event
        self._duration = float(definition.spin_duration)
        self._sound_enabled = definition.sound_enabled
        self._sound_volume = definition.sound_volume
        self.last_processed_event_id = event.timestamp
        self.winner_label = None
        self.transition(AnimatorState.SPINNING, now)
        LOGGER.info(
            "Spinning wheel %s toward %r (%.2f rad over %.1fs)",
            self.wheel_id,
            event.winning_label,
            self._plan.distance,
            self._duration,
        )
        return True

    def progress(self, now: Optional[float] = None) -> float:
        if self.state is not AnimatorState.SPINNING:
            return 0.0 if self._plan is None else 1.0
        if self._duration <= 0:
            return 1.0
        elapsed = self._now(now) - self._state_started
        return min(max(elapsed / self._duration, 0.0), 1.0)

    def update(self, now: Optional[float] = None) -> Optional[SpinResult]:
        """Advance one frame; return the result on the frame the spin settles."""

        timestamp = self._now(now)

        plan, event = self._plan, self._event
        if self.state is AnimatorState.SPINNING and plan is not None and event is not None:
            progress = self.progress(timestamp)
            self.current_rotation = plan.rotation_at(progress)
            if progress >= 1.0:
                return self._settle(plan, event, timestamp)
        elif (
            self.state is AnimatorState.SETTLED
            and timestamp - self._state_started >= self.settle_duration
        ):
            self.winner_label = None
            self.transition(AnimatorState.IDLE, timestamp)
        return None

    def time_in_state(self, now: Optional[float] = None) -> float:
        return self._now(now) - self._state_started

    def _settle(self, plan: SpinPlan, event: SpinEvent, now: float) -> SpinResult:
        self.current_rotation = plan.target_rotation
        self.winner_label = event.winning_label
        self.spins_completed += 1
        self.transition(AnimatorState.SETTLED, now)
        if self._sound_enabled:
            self._play_winner_sound()
        LOGGER.info("Wheel %s settled on %r", self.wheel_id, self.winner_label)
        return SpinResult(
            wheel_id=self.wheel_id,
            winning_index=event.winning_index,
            winning_label=event.winning_label,
            final_rotation=self.current_rotation,
            event_id=event.timestamp,
        )

    def _play_winner_sound(self) -> None:
        try:
            self.audio.play(self.winner_sound, self._sound_volume)
        except Exception:  # audio must never affect the animation
            LOGGER.debug("Winner sound failed for wheel %s", self.wheel_id, exc_info=True)


__all__ = [
    "AnimatorState",
    "DEFAULT_SETTLE_DURATION",
    "DEFAULT_WINNER_SOUND",
    "SpinAnimator",
    "SpinResult",
]
