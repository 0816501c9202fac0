"""Headless drawing smoke tests (SDL dummy drivers)."""

import math
import os
import unittest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame  # noqa: E402

from wheel_overlay.render import (  # noqa: E402
    DiagnosticsData,
    DiagnosticsOverlay,
    PromptOverlay,
    WheelRenderer,
    WinnerBanner,
    parse_color,
    wedge_points,
)
from wheel_overlay.segments import Segment, WheelDefinition  # noqa: E402
from wheel_overlay.states import AnimatorState  # noqa: E402


WHEEL = WheelDefinition(
    id="w",
    name="Wheel",
    segments=(Segment("A", "#ff0000"), Segment("B", "#0000ff")),
)


class TestGeometry(unittest.TestCase):

    def test_wedge_points_follow_arc(self):
        points = wedge_points((0, 0), 10.0, 0.0, math.pi / 2)
        self.assertEqual(points[0], (0.0, 0.0))
        self.assertAlmostEqual(points[1][0], 10.0)
        self.assertAlmostEqual(points[1][1], 0.0)
        # y grows downward, so a quarter turn ends straight below the center.
        self.assertAlmostEqual(points[-1][0], 0.0)
        self.assertAlmostEqual(points[-1][1], 10.0)
        for x, y in points[1:]:
            self.assertAlmostEqual(math.hypot(x, y), 10.0)

    def test_parse_color_falls_back(self):
        self.assertEqual(tuple(parse_color("#00ff00"))[:3], (0, 255, 0))
        self.assertEqual(tuple(parse_color("not-a-colour"))[:3], (128, 128, 128))


class TestDrawing(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        pygame.init()

    @classmethod
    def tearDownClass(cls):
        pygame.quit()

    def setUp(self):
        self.surface = pygame.Surface((300, 300))
        self.center = (150, 150)

    def test_wedges_drawn_clockwise_from_three_oclock(self):
        WheelRenderer(radius=100).draw(self.surface, WHEEL, 0.0, self.center)
        # First segment covers [0, π): the lower half on screen.
        self.assertEqual(tuple(self.surface.get_at((150, 190)))[:3], (255, 0, 0))
        self.assertEqual(tuple(self.surface.get_at((150, 110)))[:3], (0, 0, 255))

    def test_rotation_moves_wedges(self):
        WheelRenderer(radius=100).draw(self.surface, WHEEL, math.pi, self.center)
        self.assertEqual(tuple(self.surface.get_at((150, 190)))[:3], (0, 0, 255))

    def test_overlays_draw_without_errors(self):
        WinnerBanner().draw(self.surface, "A", self.center)
        WinnerBanner().draw(self.surface, None, self.center)
        PromptOverlay().draw(self.surface, "No active wheel", self.center, "Press TAB")
        DiagnosticsOverlay().draw(
            self.surface,
            DiagnosticsData(
                fps=60.0,
                state=AnimatorState.SPINNING,
                wheel_name="Wheel",
                rotation=1.0,
                progress=0.5,
                segment_under_pointer="B",
                last_event_id=1000,
            ),
        )


if __name__ == "__main__":
    unittest.main(verbosity=2)
