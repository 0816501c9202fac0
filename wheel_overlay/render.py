"""pygame drawing for the wheel, its pointer and the winner banner."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import pygame

from .layout import WheelLayout, compute_layout
from .planner import POINTER_ANGLE
from .segments import WheelDefinition
from .states import AnimatorState


LOGGER = logging.getLogger(__name__)

ACCENT = (255, 196, 0)
ACCENT_LIGHT = (255, 230, 140)
PRIMARY = (88, 28, 135)
SECONDARY = (30, 64, 175)
FALLBACK_SEGMENT = (128, 128, 128)
BORDER = (255, 255, 255, 77)
_FONT_CANDIDATES: Sequence[str] = ("Inter", "Helvetica", "Arial", "DejaVu Sans")
# Degrees of arc per polygon vertex when approximating a wedge.
_ARC_STEP = math.radians(2.0)


def _load_font(size: int, bold: bool = False) -> pygame.font.Font:
    for name in _FONT_CANDIDATES:
        try:
            font = pygame.font.SysFont(name, size, bold=bold)
        except Exception:
            continue
        if font is not None:
            return font
    return pygame.font.Font(None, size)


def parse_color(value: str) -> pygame.Color:
    try:
        return pygame.Color(value)
    except (ValueError, TypeError):
        LOGGER.debug("Unrecognised segment color %r", value)
        return pygame.Color(*FALLBACK_SEGMENT)


def wedge_points(
    center: tuple[int, int], radius: float, start: float, end: float
) -> list[tuple[float, float]]:
    """Polygon approximating the wedge between ``start`` and ``end`` radians.

    Uses ``(cos, sin)`` offsets on pygame's y-down axes, so increasing angles
    sweep clockwise on screen.
    """

    cx, cy = center
    steps = max(2, int(math.ceil((end - start) / _ARC_STEP)) + 1)
    points = [(float(cx), float(cy))]
    for step in range(steps):
        angle = start + (end - start) * step / (steps - 1)
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


class WheelRenderer:
    """Draw a wheel definition at an arbitrary rotation."""

    def __init__(self, radius: int = 260) -> None:
        self.radius = radius
        self.label_font = _load_font(22, bold=True)
        self._layout_cache: dict[tuple, WheelLayout] = {}

    def _layout(self, definition: WheelDefinition) -> WheelLayout:
        key = tuple(segment.weight for segment in definition.segments)
        layout = self._layout_cache.get(key)
        if layout is None:
            layout = compute_layout(definition.segments)
            self._layout_cache[key] = layout
        return layout

    def draw(
        self,
        target: pygame.Surface,
        definition: WheelDefinition,
        rotation: float,
        center: tuple[int, int],
    ) -> None:
        layout = self._layout(definition)
        overlay = pygame.Surface(target.get_size(), pygame.SRCALPHA)

        for segment, slice_ in zip(definition.segments, layout.slices):
            points = wedge_points(center, self.radius, rotation + slice_.start, rotation + slice_.end)
            pygame.draw.polygon(overlay, parse_color(segment.color), points)
            pygame.draw.polygon(overlay, BORDER, points, width=2)
            self._draw_label(overlay, segment.label, center, rotation + slice_.center)

        pygame.draw.circle(overlay, PRIMARY, center, 30)
        pygame.draw.circle(overlay, ACCENT, center, 30, width=4)
        self._draw_pointer(overlay, center)
        target.blit(overlay, (0, 0))

    def _draw_label(
        self, target: pygame.Surface, label: str, center: tuple[int, int], angle: float
    ) -> None:
        text = self.label_font.render(label, True, (255, 255, 255))
        shadow = self.label_font.render(label, True, (0, 0, 0))
        # pygame rotates counter-clockwise for positive degrees.
        degrees = -math.degrees(angle)
        text = pygame.transform.rotate(text, degrees)
        shadow = pygame.transform.rotate(shadow, degrees)
        distance = self.radius * 0.7
        anchor = (
            center[0] + distance * math.cos(angle),
            center[1] + distance * math.sin(angle),
        )
        target.blit(shadow, shadow.get_rect(center=(anchor[0] + 2, anchor[1] + 2)))
        target.blit(text, text.get_rect(center=anchor))

    def _draw_pointer(self, target: pygame.Surface, center: tuple[int, int]) -> None:
        tip_distance = self.radius - 10
        base_distance = self.radius + 20
        tip = (
            center[0] + tip_distance * math.cos(POINTER_ANGLE),
            center[1] + tip_distance * math.sin(POINTER_ANGLE),
        )
        base_center = (
            center[0] + base_distance * math.cos(POINTER_ANGLE),
            center[1] + base_distance * math.sin(POINTER_ANGLE),
        )
        points = [tip, (base_center[0] - 20, base_center[1]), (base_center[0] + 20, base_center[1])]
        pygame.draw.polygon(target, ACCENT, points)
        pygame.draw.polygon(target, ACCENT_LIGHT, points, width=3)


class WinnerBanner:
    """Winner card shown while a spin is settled."""

    def __init__(self) -> None:
        self.title_font = _load_font(32, bold=True)
        self.label_font = _load_font(48, bold=True)

    def draw(self, target: pygame.Surface, label: Optional[str], center: tuple[int, int]) -> None:
        if not label:
            return
        title = self.title_font.render("WINNER!", True, ACCENT)
        body = self.label_font.render(label, True, (255, 255, 255))

        padding_x = 60
        padding_y = 40
        spacing = 10
        width = max(title.get_width(), body.get_width()) + padding_x * 2
        height = title.get_height() + body.get_height() + spacing + padding_y * 2
        card = pygame.Rect(0, 0, width, height)
        card.center = center

        overlay = pygame.Surface(target.get_size(), pygame.SRCALPHA)
        pygame.draw.rect(overlay, (*PRIMARY, 235), card, border_radius=20)
        pygame.draw.rect(overlay, ACCENT, card, width=4, border_radius=20)

        title_rect = title.get_rect(centerx=card.centerx, top=card.top + padding_y)
        overlay.blit(title, title_rect)
        body_rect = body.get_rect(centerx=card.centerx, top=title_rect.bottom + spacing)
        overlay.blit(body, body_rect)
        target.blit(overlay, (0, 0))


class PromptOverlay:
    """Centered guidance text for empty displays."""

    def __init__(self) -> None:
        self.title_font = _load_font(48, bold=True)
        self.body_font = _load_font(28)

    def draw(
        self,
        target: pygame.Surface,
        message: str,
        center: tuple[int, int],
        subtext: Optional[str] = None,
    ) -> None:
        if not message:
            return
        title = self.title_font.render(message, True, ACCENT_LIGHT)
        title_rect = title.get_rect(center=center)
        target.blit(title, title_rect)
        if subtext:
            body = self.body_font.render(subtext, True, (255, 255, 255))
            target.blit(body, body.get_rect(centerx=center[0], top=title_rect.bottom + 8))


@dataclass
class DiagnosticsData:
    """Values shown in the operator diagnostics overlay."""

    fps: float
    state: AnimatorState
    wheel_name: Optional[str]
    rotation: float
    progress: float
    segment_under_pointer: Optional[str]
    last_event_id: Optional[float]


class DiagnosticsOverlay:
    """Render animation diagnostics in the top-left corner."""

    def __init__(self) -> None:
        self.font = pygame.font.Font(None, 32)
        self.sub_font = pygame.font.Font(None, 26)

    def draw(self, target: pygame.Surface, data: Optional[DiagnosticsData]) -> None:
        if data is None:
            return

        lines = [
            f"FPS: {data.fps:5.1f}",
            f"State: {data.state.value}",
            f"Wheel: {data.wheel_name or 'none'}",
            f"Rotation: {math.degrees(data.rotation) % 360:6.1f} deg",
            f"Progress: {data.progress * 100:5.1f}%",
            f"Under pointer: {data.segment_under_pointer or '-'}",
            f"Last spin: {data.last_event_id if data.last_event_id is not None else '-'}",
        ]

        y = 20
        for idx, line in enumerate(lines):
            font = self.font if idx < 2 else self.sub_font
            surface = font.render(line, True, (255, 255, 255))
            target.blit(surface, (20, y))
            y += surface.get_height() + 6


__all__ = [
    "DiagnosticsData",
    "DiagnosticsOverlay",
    "PromptOverlay",
    "WheelRenderer",
    "WinnerBanner",
    "parse_color",
    "wedge_points",
]
