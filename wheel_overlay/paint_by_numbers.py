"""Paint-by-numbers templates from images via k-means colour quantisation."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
import yaml


LOGGER = logging.getLogger(__name__)

_KMEANS_ATTEMPTS = 3
_KMEANS_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 100, 0.5)


class PaintTemplateError(RuntimeError):
    """Raised when an image cannot be turned into a paint template."""


@dataclass
class PaintRegion:
    """All pixels sharing one palette colour."""

    id: int
    color: str
    pixels: list[list[int]]
    filled: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "color": self.color, "pixels": self.pixels, "filled": self.filled}


@dataclass
class PaintTemplate:
    id: str
    name: str
    description: str
    width: int
    height: int
    regions: list[PaintRegion] = field(default_factory=list)

    @property
    def palette(self) -> list[str]:
        return [region.color for region in self.regions]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "width": self.width,
            "height": self.height,
            "regions": [region.to_dict() for region in self.regions],
        }


@dataclass
class PaintResult:
    template: PaintTemplate
    preview: np.ndarray  # BGR, ready for cv2.imwrite


def rgb_to_hex(color: np.ndarray) -> str:
    r, g, b = (int(v) for v in color)
    return f"#{r:02x}{g:02x}{b:02x}"


def _fit_dimensions(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    if width <= max_dimension and height <= max_dimension:
        return width, height
    if width > height:
        return max_dimension, max(1, int(round(height * (max_dimension / width))))
    return max(1, int(round(width * (max_dimension / height)))), max_dimension


def _to_rgb(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    raise PaintTemplateError(f"Unsupported image shape: {image.shape}")


def border_mask(color_map: np.ndarray) -> np.ndarray:
    """Pixels whose 4-neighbourhood contains a different palette index."""

    mask = np.zeros(color_map.shape, dtype=bool)
    horizontal = color_map[:, 1:] != color_map[:, :-1]
    vertical = color_map[1:, :] != color_map[:-1, :]
    mask[:, 1:] |= horizontal
    mask[:, :-1] |= horizontal
    mask[1:, :] |= vertical
    mask[:-1, :] |= vertical
    return mask


class PaintTemplateGenerator:
    """Quantise an image into a fixed palette and extract one region per colour."""

    def __init__(
        self,
        num_colors: int = 10,
        max_dimension: int = 100,
        draw_borders: bool = True,
        name: str = "Paint by Numbers Template",
        description: str = "Generated paint by numbers template",
        seed: Optional[int] = None,
    ) -> None:
        if num_colors < 1:
            raise PaintTemplateError("num_colors must be at least 1.")
        if max_dimension < 1:
            raise PaintTemplateError("max_dimension must be at least 1.")
        self.num_colors = num_colors
        self.max_dimension = max_dimension
        self.draw_borders = draw_borders
        self.name = name
        self.description = description
        self.seed = seed

    def quantize(self, pixels: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Cluster ``pixels`` (N x 3 RGB); return labels (N,) and uint8 centres."""

        samples = pixels.reshape(-1, 3).astype(np.float32)
        unique_count = len(np.unique(samples, axis=0))
        k = max(1, min(self.num_colors, unique_count))
        if self.seed is not None:
            cv2.setRNGSeed(self.seed)
        _, labels, centers = cv2.kmeans(
            samples,
            k,
            None,
            _KMEANS_CRITERIA,
            _KMEANS_ATTEMPTS,
            cv2.KMEANS_PP_CENTERS,
        )
        palette = np.clip(np.rint(centers), 0, 255).astype(np.uint8)
        LOGGER.debug("Quantised %d pixels into %d colours", len(samples), k)
        return labels.reshape(-1), palette

    def generate(self, image: np.ndarray) -> PaintResult:
        if image is None or image.size == 0:
            raise PaintTemplateError("Image is empty.")

        rgb = _to_rgb(image)
        height, width = rgb.shape[:2]
        target_w, target_h = _fit_dimensions(width, height, self.max_dimension)
        if (target_w, target_h) != (width, height):
            rgb = cv2.resize(rgb, (target_w, target_h), interpolation=cv2.INTER_AREA)
            LOGGER.info("Resized %dx%d image to %dx%d", width, height, target_w, target_h)

        labels, palette = self.quantize(rgb)

        # Drop palette entries no pixel ended up using and compact the indices.
        used = np.unique(labels)
        remap = np.full(len(palette), -1, dtype=np.int64)
        remap[used] = np.arange(len(used))
        color_map = remap[labels].reshape(target_h, target_w)
        palette = palette[used]

        preview_rgb = palette[color_map]
        if self.draw_borders:
            preview_rgb = preview_rgb.copy()
            preview_rgb[border_mask(color_map)] = (0, 0, 0)

        regions = []
        for index, color in enumerate(palette):
            ys, xs = np.nonzero(color_map == index)
            regions.append(
                PaintRegion(
                    id=index + 1,
                    color=rgb_to_hex(color),
                    pixels=[[int(x), int(y)] for x, y in zip(xs, ys)],
                )
            )
        regions.sort(key=lambda region: len(region.pixels), reverse=True)
        for position, region in enumerate(regions, start=1):
            region.id = position

        assigned = sum(len(region.pixels) for region in regions)
        if assigned != target_w * target_h:
            raise PaintTemplateError(
                f"{target_w * target_h - assigned} pixels were not assigned to a region."
            )

        template = PaintTemplate(
            id=f"custom-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}",
            name=self.name,
            description=self.description,
            width=target_w,
            height=target_h,
            regions=regions,
        )
        LOGGER.info(
            "Built template %s: %d colours requested, %d used",
            template.id,
            self.num_colors,
            len(regions),
        )
        preview = cv2.cvtColor(preview_rgb.astype(np.uint8), cv2.COLOR_RGB2BGR)
        return PaintResult(template=template, preview=preview)

    def generate_from_file(self, path: Path) -> PaintResult:
        if not path.exists():
            raise PaintTemplateError(f"Image not found: {path}")
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise PaintTemplateError(f"Unable to decode image: {path}")
        return self.generate(image)


def save_template(path: Path, template: PaintTemplate) -> None:
    """Write ``template`` to ``path`` in YAML format."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(template.to_dict(), handle, sort_keys=False)


def load_template(path: Path) -> PaintTemplate:
    if not path.exists():
        raise PaintTemplateError(f"Template file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    try:
        regions = [
            PaintRegion(
                id=int(entry["id"]),
                color=str(entry["color"]),
                pixels=[[int(x), int(y)] for x, y in entry["pixels"]],
                filled=bool(entry.get("filled", False)),
            )
            for entry in data["regions"]
        ]
        return PaintTemplate(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            width=int(data["width"]),
            height=int(data["height"]),
            regions=regions,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise PaintTemplateError("Template file is malformed.") from exc


def save_preview(path: Path, preview: np.ndarray) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not cv2.imwrite(str(path), preview):
        raise PaintTemplateError(f"Unable to write preview image: {path}")


__all__ = [
    "PaintRegion",
    "PaintResult",
    "PaintTemplate",
    "PaintTemplateError",
    "PaintTemplateGenerator",
    "border_mask",
    "load_template",
    "rgb_to_hex",
    "save_preview",
    "save_template",
]
