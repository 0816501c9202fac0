#!/usr/bin/env python3
"""Generate a paint-by-numbers template and preview from an image."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

try:
    import cv2  # noqa: F401
except ModuleNotFoundError as exc:  # pragma: no cover - import guard
    raise SystemExit(
        "OpenCV (cv2) is required. Install it with 'pip install opencv-python' or "
        "'pip install -e .'."
    ) from exc

from wheel_overlay.paint_by_numbers import (
    PaintTemplateError,
    PaintTemplateGenerator,
    save_preview,
    save_template,
)


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a paint-by-numbers template.")
    parser.add_argument("image", type=Path, help="Source image (any format OpenCV can read).")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Template YAML path (defaults to <image>.template.yaml).",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        default=None,
        help="Preview PNG path (defaults to <image>.preview.png).",
    )
    parser.add_argument("--colors", type=int, default=10, help="Palette size (default: 10).")
    parser.add_argument(
        "--max-dimension",
        type=int,
        default=100,
        help="Longest side of the template grid in pixels (default: 100).",
    )
    parser.add_argument("--no-borders", action="store_true", help="Skip region borders in the preview.")
    parser.add_argument("--name", type=str, default=None, help="Template name.")
    parser.add_argument("--seed", type=int, default=None, help="Seed k-means for reproducible palettes.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    image_path = args.image.expanduser().resolve()
    output = args.output or image_path.with_suffix(".template.yaml")
    preview = args.preview or image_path.with_suffix(".preview.png")

    try:
        generator = PaintTemplateGenerator(
            num_colors=args.colors,
            max_dimension=args.max_dimension,
            draw_borders=not args.no_borders,
            name=args.name or image_path.stem,
            seed=args.seed,
        )
        result = generator.generate_from_file(image_path)
        save_template(output, result.template)
        save_preview(preview, result.preview)
    except PaintTemplateError as exc:
        print(f"[paint] {exc}", file=sys.stderr)
        return 1

    template = result.template
    print(f"[paint] {template.width}x{template.height} grid, {len(template.regions)} regions")
    print(f"[paint] Template saved to {output}")
    print(f"[paint] Preview saved to {preview}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
