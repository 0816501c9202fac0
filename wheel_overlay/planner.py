"""Spin planning: where the wheel must stop and how it eases there."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .layout import TAU, compute_layout
from .segments import Segment


# Pointer fixed at twelve o'clock in the y-down screen convention.
POINTER_ANGLE = -math.pi / 2.0
DEFAULT_EXTRA_SPINS = 5


def ease_out_cubic(progress: float) -> float:
    """Fast start, slow finish: ``1 - (1 - t)^3``."""

    t = min(max(progress, 0.0), 1.0)
    return 1.0 - (1.0 - t) ** 3


@dataclass(frozen=True)
class SpinPlan:
    """Start and end rotation of a single spin."""

    start_rotation: float
    target_rotation: float
    winning_index: int
    winning_center: float
    delta: float
    extra_full_spins: int

    @property
    def distance(self) -> float:
        return self.target_rotation - self.start_rotation

    def rotation_at(self, progress: float) -> float:
        if progress >= 1.0:
            return self.target_rotation
        return self.start_rotation + self.distance * ease_out_cubic(progress)


def forward_delta(
    current_rotation: float, center_angle: float, pointer_angle: float = POINTER_ANGLE
) -> float:
    """Forward rotation in ``[0, 2π)`` bringing ``center_angle`` under the pointer."""

    delta = (pointer_angle - current_rotation - center_angle) % TAU
    # Float modulo of a tiny negative value can round up to exactly 2π.
    if delta >= TAU:
        delta = 0.0
    return delta


def plan_spin(
    current_rotation: float,
    segments: Sequence[Segment],
    winning_index: int,
    extra_full_spins: int = DEFAULT_EXTRA_SPINS,
    pointer_angle: float = POINTER_ANGLE,
) -> SpinPlan:
    """Plan a forward spin that stops with ``winning_index`` under the pointer."""

    if not 0 <= winning_index < len(segments):
        raise IndexError(
            f"Winning index {winning_index} out of range for {len(segments)} segments."
        )
    if extra_full_spins < 0:
        raise ValueError("extra_full_spins must be zero or greater.")

    layout = compute_layout(segments)
    center = layout.center_of(winning_index)
    delta = forward_delta(current_rotation, center, pointer_angle)
    target = current_rotation + extra_full_spins * TAU + delta
    return SpinPlan(
        start_rotation=current_rotation,
        target_rotation=target,
        winning_index=winning_index,
        winning_center=center,
        delta=delta,
        extra_full_spins=extra_full_spins,
    )


def pointer_alignment_error(
    rotation: float, center_angle: float, pointer_angle: float = POINTER_ANGLE
) -> float:
    """Smallest angular distance between a rotated segment center and the pointer."""

    diff = (rotation + center_angle - pointer_angle) % TAU
    return min(diff, TAU - diff)


__all__ = [
    "DEFAULT_EXTRA_SPINS",
    "POINTER_ANGLE",
    "SpinPlan",
    "ease_out_cubic",
    "forward_delta",
    "plan_spin",
    "pointer_alignment_error",
]
