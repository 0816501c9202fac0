"""Spin planning tests: landing, monotonic easing and argument checks."""

import math
import random
import unittest

from wheel_overlay.layout import TAU, compute_layout
from wheel_overlay.planner import (
    POINTER_ANGLE,
    ease_out_cubic,
    forward_delta,
    plan_spin,
    pointer_alignment_error,
)
from wheel_overlay.segments import Segment


def _segments(*weights):
    return [Segment(label=chr(ord("A") + i), weight=w) for i, w in enumerate(weights)]


class TestEasing(unittest.TestCase):

    def test_endpoints_and_midpoint(self):
        self.assertEqual(ease_out_cubic(0.0), 0.0)
        self.assertEqual(ease_out_cubic(1.0), 1.0)
        self.assertAlmostEqual(ease_out_cubic(0.5), 0.875)

    def test_clamped(self):
        self.assertEqual(ease_out_cubic(-0.5), 0.0)
        self.assertEqual(ease_out_cubic(2.0), 1.0)


class TestPlanSpin(unittest.TestCase):

    def test_winner_lands_under_pointer(self):
        rng = random.Random(42)
        for _ in range(500):
            weights = [rng.uniform(0.1, 5.0) for _ in range(rng.randint(2, 12))]
            segments = _segments(*weights)
            current = rng.uniform(-50.0, 50.0)
            index = rng.randrange(len(segments))

            plan = plan_spin(current, segments, index)

            center = compute_layout(segments).center_of(index)
            self.assertLess(pointer_alignment_error(plan.target_rotation, center), 1e-9)
            self.assertGreaterEqual(plan.delta, 0.0)
            self.assertLess(plan.delta, TAU)
            self.assertGreaterEqual(plan.target_rotation, current + 5 * TAU)

    def test_rotation_is_monotonic(self):
        plan = plan_spin(1.3, _segments(1, 2, 3), 2)
        previous = plan.rotation_at(0.0)
        self.assertEqual(previous, plan.start_rotation)
        for step in range(1, 101):
            value = plan.rotation_at(step / 100)
            self.assertGreaterEqual(value, previous)
            previous = value
        self.assertEqual(plan.rotation_at(1.0), plan.target_rotation)

    def test_two_equal_segments(self):
        segments = _segments(1, 1)
        layout = compute_layout(segments)

        first = plan_spin(0.0, segments, 0)
        self.assertAlmostEqual(first.delta, math.pi)
        self.assertEqual(layout.segment_at(POINTER_ANGLE, first.target_rotation), 0)

        second = plan_spin(0.0, segments, 1)
        self.assertEqual(layout.segment_at(POINTER_ANGLE, second.target_rotation), 1)
        self.assertLess(
            pointer_alignment_error(second.target_rotation, layout.center_of(1)), 1e-9
        )

    def test_zero_extra_spins(self):
        plan = plan_spin(0.4, _segments(1, 1, 1), 1, extra_full_spins=0)
        self.assertLess(plan.distance, TAU)
        self.assertGreaterEqual(plan.distance, 0.0)

    def test_successive_spins_accumulate(self):
        segments = _segments(3, 1, 2)
        first = plan_spin(0.0, segments, 1)
        second = plan_spin(first.target_rotation, segments, 2)
        self.assertEqual(second.start_rotation, first.target_rotation)
        self.assertGreater(second.target_rotation, first.target_rotation)

    def test_index_out_of_range(self):
        with self.assertRaises(IndexError):
            plan_spin(0.0, _segments(1, 1), 2)
        with self.assertRaises(IndexError):
            plan_spin(0.0, _segments(1, 1), -1)

    def test_negative_extra_spins(self):
        with self.assertRaises(ValueError):
            plan_spin(0.0, _segments(1, 1), 0, extra_full_spins=-1)


class TestForwardDelta(unittest.TestCase):

    def test_positive_delta_unchanged(self):
        self.assertAlmostEqual(forward_delta(0.0, -math.pi), math.pi / 2)

    def test_large_positive_delta_wrapped(self):
        # Raw distance exceeds a full turn when the wheel sits far behind the pointer.
        delta = forward_delta(-10.0, 0.5)
        self.assertGreaterEqual(delta, 0.0)
        self.assertLess(delta, TAU)
        self.assertLess(pointer_alignment_error(-10.0 + delta, 0.5), 1e-9)

    def test_delta_bounded_for_any_rotation(self):
        for current in (-100.0, -TAU, -1e-12, 0.0, 1e-12, TAU, 100.0):
            with self.subTest(current=current):
                delta = forward_delta(current, 1.0)
                self.assertGreaterEqual(delta, 0.0)
                self.assertLess(delta, TAU)

    def test_negative_delta_wrapped(self):
        delta = forward_delta(10.0, 0.5)
        self.assertGreaterEqual(delta, 0.0)
        self.assertLess(delta, TAU)
        self.assertLess(pointer_alignment_error(10.0 + delta, 0.5), 1e-9)


if __name__ == "__main__":
    unittest.main(verbosity=2)
