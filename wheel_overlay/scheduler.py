"""Per-frame callback scheduling with explicit cancellation."""

from __future__ import annotations

import itertools
import time
from typing import Callable, Optional


FrameCallback = Callable[[float], None]


class FrameScheduler:
    """One-shot frame callbacks, flushed once per rendered frame.

    Callbacks requested while a frame is running are deferred to the next
    frame, so a callback that re-arms itself runs once per frame.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._ids = itertools.count(1)
        self._pending: dict[int, FrameCallback] = {}
        self._frames_run = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    @property
    def frames_run(self) -> int:
        return self._frames_run

    def request_frame(self, callback: FrameCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._pending.pop(handle, None)

    def run_frame(self, now: Optional[float] = None) -> int:
        """Invoke every callback queued before this frame; return how many ran."""

        timestamp = self._clock() if now is None else now
        batch = self._pending
        self._pending = {}
        self._frames_run += 1
        for callback in batch.values():
            callback(timestamp)
        return len(batch)


class FrameSubscription:
    """Keep a callback armed every frame until closed.

    Usable as a context manager; the pending frame request is always released
    on exit, including when the owner is torn down mid-animation.
    """

    def __init__(self, scheduler: FrameScheduler, callback: FrameCallback) -> None:
        self._scheduler = scheduler
        self._callback = callback
        self._handle: Optional[int] = None
        self._closed = False
        self._arm()

    @property
    def active(self) -> bool:
        return not self._closed

    def _arm(self) -> None:
        self._handle = self._scheduler.request_frame(self._on_frame)

    def _on_frame(self, now: float) -> None:
        self._handle = None
        if self._closed:
            return
        self._callback(now)
        if not self._closed:
            self._arm()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._scheduler.cancel_frame(self._handle)
        self._handle = None

    def __enter__(self) -> "FrameSubscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["FrameCallback", "FrameScheduler", "FrameSubscription"]
