"""Angular layout of weighted wheel segments.

Angles are radians in screen space: ``0`` points to three o'clock and angles
increase clockwise on a y-down surface, which is how pygame (and an HTML
canvas) interpret ``(cos a, sin a)`` offsets. Layout and spin planning share
this convention.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .segments import Segment, segment_weights


TAU = 2.0 * math.pi


@dataclass(frozen=True)
class SegmentSlice:
    """Angular extent of one segment."""

    start: float
    end: float

    @property
    def span(self) -> float:
        return self.end - self.start

    @property
    def center(self) -> float:
        return self.start + self.span / 2.0


@dataclass(frozen=True)
class WheelLayout:
    """Contiguous partition of a full turn into weighted slices."""

    slices: tuple[SegmentSlice, ...]
    total_weight: float
    base_rotation: float = 0.0

    def __len__(self) -> int:
        return len(self.slices)

    def center_of(self, index: int) -> float:
        return self.slices[index].center

    def segment_at(self, angle: float, rotation: float = 0.0) -> Optional[int]:
        """Return the slice index covering ``angle`` once the wheel is rotated."""

        if not self.slices:
            return None
        relative = (angle - rotation - self.base_rotation) % TAU
        for index, slice_ in enumerate(self.slices):
            if relative < slice_.end - self.base_rotation:
                return index
        return len(self.slices) - 1


def compute_layout(segments: Sequence[Segment], base_rotation: float = 0.0) -> WheelLayout:
    """Split a full turn between ``segments`` proportionally to their weights."""

    weights = np.asarray(segment_weights(segments), dtype=np.float64)
    if weights.size == 0:
        return WheelLayout(slices=(), total_weight=0.0, base_rotation=base_rotation)
    total_weight = float(weights.sum())
    if total_weight <= 0:
        raise ValueError("Total segment weight must be positive.")

    spans = weights / total_weight * TAU
    ends = np.cumsum(spans)
    # Pin the final edge so the slices close the circle exactly.
    ends[-1] = TAU
    starts = np.concatenate(([0.0], ends[:-1]))

    slices = tuple(
        SegmentSlice(start=base_rotation + float(start), end=base_rotation + float(end))
        for start, end in zip(starts, ends)
    )
    return WheelLayout(slices=slices, total_weight=total_weight, base_rotation=base_rotation)


__all__ = ["SegmentSlice", "TAU", "WheelLayout", "compute_layout"]
