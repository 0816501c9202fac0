"""Display side: follow the active wheel and animate broadcast spins."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

from .audio import AudioPlayer, NullAudioPlayer
from .bus import Subscription, Transport
from .dedup import EventDeduplicator
from .events import (
    SPIN_EVENT,
    WHEEL_CONFIG_UPDATE,
    WHEEL_LIST_UPDATE,
    MalformedEventError,
    SpinEvent,
)
from .layout import WheelLayout, compute_layout
from .planner import DEFAULT_EXTRA_SPINS
from .scheduler import FrameScheduler, FrameSubscription
from .segments import InvalidWheelError, WheelDefinition
from .states import (
    DEFAULT_SETTLE_DURATION,
    DEFAULT_WINNER_SOUND,
    AnimatorState,
    SpinAnimator,
    SpinResult,
)


LOGGER = logging.getLogger(__name__)

SpinListener = Callable[[SpinResult], None]


class WheelDisplay:
    """One overlay surface subscribed to a session's wheel events."""

    def __init__(
        self,
        session_id: str,
        transport: Transport,
        scheduler: FrameScheduler,
        *,
        audio: Optional[AudioPlayer] = None,
        clock: Callable[[], float] = time.monotonic,
        settle_duration: float = DEFAULT_SETTLE_DURATION,
        extra_full_spins: int = DEFAULT_EXTRA_SPINS,
        winner_sound: str = DEFAULT_WINNER_SOUND,
    ) -> None:
        self.session_id = session_id
        self.scheduler = scheduler
        self.audio = audio or NullAudioPlayer()
        self.clock = clock
        self.settle_duration = settle_duration
        self.extra_full_spins = extra_full_spins
        self.winner_sound = winner_sound
        self.active_wheel: Optional[WheelDefinition] = None
        self.dedup = EventDeduplicator()
        self._animators: dict[str, SpinAnimator] = {}
        self._frames: Optional[FrameSubscription] = None
        self._listeners: list[SpinListener] = []
        self._closed = False
        self._subscriptions: list[Subscription] = [
            transport.subscribe(session_id, SPIN_EVENT, self.handle_spin),
            transport.subscribe(session_id, WHEEL_LIST_UPDATE, self.handle_wheel_list),
            transport.subscribe(session_id, WHEEL_CONFIG_UPDATE, self.handle_wheel_config),
        ]

    # ------------------------------------------------------------------
    # Accessors used by the renderer
    # ------------------------------------------------------------------
    def animator_for(self, wheel_id: str) -> SpinAnimator:
        animator = self._animators.get(wheel_id)
        if animator is None:
            animator = SpinAnimator(
                wheel_id=wheel_id,
                settle_duration=self.settle_duration,
                extra_full_spins=self.extra_full_spins,
                audio=self.audio,
                winner_sound=self.winner_sound,
                clock=self.clock,
            )
            self._animators[wheel_id] = animator
        return animator

    @property
    def animator(self) -> Optional[SpinAnimator]:
        if self.active_wheel is None:
            return None
        return self.animator_for(self.active_wheel.id)

    @property
    def state(self) -> AnimatorState:
        animator = self.animator
        return AnimatorState.IDLE if animator is None else animator.state

    @property
    def rotation(self) -> float:
        animator = self.animator
        return 0.0 if animator is None else animator.current_rotation

    @property
    def winner_label(self) -> Optional[str]:
        animator = self.animator
        return None if animator is None else animator.winner_label

    @property
    def animating(self) -> bool:
        return self._frames is not None and self._frames.active

    def layout(self) -> Optional[WheelLayout]:
        if self.active_wheel is None:
            return None
        return compute_layout(self.active_wheel.segments)

    def add_spin_listener(self, listener: SpinListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Bus handlers
    # ------------------------------------------------------------------
    def handle_wheel_list(self, payload: Any) -> None:
        if self._closed:
            return
        try:
            entries = payload["wheels"]
            wheels = [WheelDefinition.from_dict(entry) for entry in entries]
        except (KeyError, TypeError, InvalidWheelError) as exc:
            LOGGER.warning("Dropping malformed wheel list: %s", exc)
            return

        known = {wheel.id for wheel in wheels}
        for wheel_id in list(self._animators):
            if wheel_id not in known and not self._animators[wheel_id].is_spinning:
                del self._animators[wheel_id]
                self.dedup.forget(wheel_id)

        active = next((wheel for wheel in wheels if wheel.is_active), None)
        self._set_active(active)

    def handle_wheel_config(self, payload: Any) -> None:
        if self._closed:
            return
        try:
            wheel = WheelDefinition.from_dict(payload["wheel"])
        except (KeyError, TypeError, InvalidWheelError) as exc:
            LOGGER.warning("Dropping malformed wheel update: %s", exc)
            return

        if wheel.is_active:
            self._set_active(wheel)
        elif self.active_wheel is not None and self.active_wheel.id == wheel.id:
            self._set_active(None)

    def handle_spin(self, payload: Any) -> None:
        if self._closed:
            return
        try:
            event = SpinEvent.from_payload(payload)
        except MalformedEventError as exc:
            LOGGER.warning("Dropping malformed spin event: %s", exc)
            return

        wheel = self.active_wheel
        if wheel is None:
            LOGGER.debug("Ignoring spin %s: no wheel is displayed", event.timestamp)
            return
        spinning = self.animator_for(wheel.id).is_spinning
        if not self.dedup.should_process(event, wheel.id, spinning):
            return

        try:
            started = self.animator_for(wheel.id).start(event, wheel, self.clock())
        except (IndexError, ValueError) as exc:
            LOGGER.warning("Cannot animate spin %s on wheel %s: %s", event.timestamp, wheel.id, exc)
            return
        if started:
            self._ensure_frames()

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------
    def _set_active(self, wheel: Optional[WheelDefinition]) -> None:
        previous = self.active_wheel
        self.active_wheel = wheel
        if wheel is None:
            if previous is not None:
                LOGGER.info("Display %s has no active wheel", self.session_id)
            return
        if previous is None or previous.id != wheel.id:
            LOGGER.info("Display %s now showing wheel %s", self.session_id, wheel.id)
        if self.animator_for(wheel.id).state is not AnimatorState.IDLE:
            self._ensure_frames()

    def _ensure_frames(self) -> None:
        if self._closed or self.animating:
            return
        self._frames = FrameSubscription(self.scheduler, self._on_frame)

    def _on_frame(self, frame_time: float) -> None:
        busy = False
        for animator in list(self._animators.values()):
            if animator.state is AnimatorState.IDLE:
                continue
            result = animator.update(self.clock())
            if result is not None:
                self._notify(result)
            if animator.state is not AnimatorState.IDLE:
                busy = True
        if not busy and self._frames is not None:
            self._frames.close()
            self._frames = None

    def _notify(self, result: SpinResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                LOGGER.exception("Spin listener failed for wheel %s", result.wheel_id)

    def close(self) -> None:
        """Tear down: stop animating and leave the bus."""

        if self._closed:
            return
        self._closed = True
        if self._frames is not None:
            self._frames.close()
            self._frames = None
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()

    def __enter__(self) -> "WheelDisplay":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["SpinListener", "WheelDisplay"]
