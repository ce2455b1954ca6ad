"""Render one social graphic from an image file and a JSON payload.

Usage:
    python backend/scripts/render_graphic.py --image photo.jpg --config payload.json --out graphic.jpg [--seed 7]

The payload uses the camelCase fields of the orchestration layer
(text, compositionId, textPosition, subtitleOutline, artStyles, brandName,
badge, callouts). Set COMPOSER_DEBUG_LAYERS=1 to dump each layer as PNG.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError

from domain.errors import InvalidImageError
from domain.payloads import RenderPayload
from services.composite_renderer import render_composition

logger = logging.getLogger("render_graphic")


def load_image(path: Path) -> Image.Image:
    """Open and fully decode an image file."""
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (OSError, UnidentifiedImageError) as exc:
        raise InvalidImageError(f"Could not decode {path}: {exc}") from exc


def load_payload(path: Optional[Path]) -> RenderPayload:
    if path is None:
        return RenderPayload()
    return RenderPayload.model_validate(json.loads(path.read_text(encoding="utf-8")))


def main(argv=None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render a social graphic from an image and a JSON payload.")
    parser.add_argument("--image", required=True, help="Source photo (any format Pillow decodes).")
    parser.add_argument("--config", default=None, help="JSON payload with text/style/badge/callouts.")
    parser.add_argument("--out", required=True, help="Output path; .png keeps PNG, anything else is JPEG.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for random presets and text rotation.")
    parser.add_argument("--canvas", type=int, default=None, help="Override the canvas size in pixels.")
    args = parser.parse_args(argv)

    try:
        payload = load_payload(Path(args.config) if args.config else None)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error("Invalid payload: %s", exc)
        return 2

    try:
        image = load_image(Path(args.image))
    except InvalidImageError as exc:
        logger.error("%s", exc)
        return 1

    style, content = payload.to_domain()
    rng = random.Random(args.seed) if args.seed is not None else None
    result = render_composition(image, style, content, rng=rng, canvas_size=args.canvas)

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() == ".png":
        result.image.save(out_path, format="PNG")
    else:
        result.image.save(out_path, format="JPEG", quality=92)
    logger.info("Saved %s (preset=%s, size=%s)", out_path, result.preset.id, result.image.size)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
