"""
Dominant color extraction and palette derivation.

The image is shrunk to a small working copy, its opaque pixels are bucketed
into a coarse RGB grid and the busiest cells become the dominant colors.
Palettes are then derived from those colors per palette mode, with a
contrast guard so the stroke color always reads against the main fill.
"""
from __future__ import annotations

import colorsys
import logging
from typing import List, Sequence

import numpy as np
from PIL import Image

from domain.models import (
    BLACK, LIGHT_GRAY, RGB, WHITE, DominantColor, DominantColorSet, Palette, PaletteMode,
)
from settings import settings

logger = logging.getLogger(__name__)

# --- Tunables ---
BUCKET_WIDTH = 32          # channel value span per grid step (0..8 per channel)
ALPHA_THRESHOLD = 128      # pixels below this alpha are not counted
DEFAULT_COLOR_COUNT = 5
MIN_CONTRAST = 50.0        # luminance delta on the 0..255 scale
LIGHT_BLEND_TARGET = 200
DARK_BLEND_TARGET = 50
MIN_COMPLEMENT_LIGHTNESS = 0.5


def luminance(color: Sequence[int]) -> float:
    """Relative luminance on the 0..255 scale."""
    r, g, b = color[0], color[1], color[2]
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def _working_copy(image: Image.Image, max_dim: int) -> Image.Image:
    img = image.convert("RGBA")
    scale = min(max_dim / img.width, max_dim / img.height)
    size = (max(1, int(img.width * scale)), max(1, int(img.height * scale)))
    if size == img.size:
        return img
    return img.resize(size, Image.Resampling.BILINEAR)


def _most_frequent(keys: np.ndarray) -> tuple[int, int]:
    """Return (key, count) of the most frequent value; earliest occurrence wins ties."""
    values, first_idx, counts = np.unique(keys, return_index=True, return_counts=True)
    best = min(range(len(values)), key=lambda i: (-counts[i], first_idx[i]))
    return int(values[best]), int(counts[best])


def analyze(
    image: Image.Image,
    sample_budget: int | None = None,
    count: int = DEFAULT_COLOR_COUNT,
) -> DominantColorSet:
    """
    Extract up to `count` dominant colors from `image`.

    Args:
        image: Decoded raster in any Pillow mode.
        sample_budget: Longest side of the working copy (defaults to settings).
        count: Number of colors to return.

    Returns:
        DominantColorSet ordered by pixel count, most frequent first. Empty when
        the image has no opaque pixels.
    """
    max_dim = sample_budget or settings.ANALYSIS_MAX_DIM
    work = _working_copy(image, max_dim)
    arr = np.asarray(work, dtype=np.int64).reshape(-1, 4)
    pixels = arr[arr[:, 3] >= ALPHA_THRESHOLD][:, :3]
    if pixels.size == 0:
        logger.info("[palette] no opaque pixels in %sx%s working copy", work.width, work.height)
        return DominantColorSet(colors=(), sampled_pixels=0)

    levels = 256 // BUCKET_WIDTH + 1
    cells = np.floor(pixels / float(BUCKET_WIDTH) + 0.5).astype(np.int64)
    cell_keys = (cells[:, 0] * levels + cells[:, 1]) * levels + cells[:, 2]
    color_keys = (pixels[:, 0] << 16) | (pixels[:, 1] << 8) | pixels[:, 2]

    cell_ids, cell_first, cell_inverse, cell_counts = np.unique(
        cell_keys, return_index=True, return_inverse=True, return_counts=True
    )
    cell_inverse = cell_inverse.reshape(-1)
    ranked = sorted(range(len(cell_ids)), key=lambda i: (-cell_counts[i], cell_first[i]))

    colors: List[DominantColor] = []
    for idx in ranked[:count]:
        key, _ = _most_frequent(color_keys[cell_inverse == idx])
        rgb = ((key >> 16) & 0xFF, (key >> 8) & 0xFF, key & 0xFF)
        colors.append(DominantColor(color=rgb, count=int(cell_counts[idx])))

    return DominantColorSet(colors=tuple(colors), sampled_pixels=int(len(pixels)))


def default_palette(mode: PaletteMode | None = None) -> Palette:
    return Palette(fill1=WHITE, fill2=LIGHT_GRAY, stroke=BLACK, mode=mode)


def _blend(color: RGB, target: int) -> RGB:
    return tuple(_round_half_up((c + target) / 2) for c in color)  # type: ignore[return-value]


def _complement(color: RGB) -> RGB:
    r, g, b = (c / 255.0 for c in color)
    h, l, s = colorsys.rgb_to_hls(r, g, b)
    cr, cg, cb = colorsys.hls_to_rgb((h + 0.5) % 1.0, max(MIN_COMPLEMENT_LIGHTNESS, l), s)
    return (_round_half_up(cr * 255), _round_half_up(cg * 255), _round_half_up(cb * 255))


def ensure_contrast(palette: Palette) -> Palette:
    """Force the stroke to black or white when it does not separate from fill1."""
    fill_lum = luminance(palette.fill1)
    if abs(fill_lum - luminance(palette.stroke)) >= MIN_CONTRAST:
        return palette
    stroke = BLACK if fill_lum > 127.5 else WHITE
    logger.debug("[palette] contrast guard: stroke %s -> %s", palette.stroke, stroke)
    return Palette(fill1=palette.fill1, fill2=palette.fill2, stroke=stroke, mode=palette.mode)


def derive_palette(dominant: DominantColorSet, mode: PaletteMode | str) -> Palette:
    """
    Pick fill1/fill2/stroke from the dominant colors for the given mode.

    Falls back to white/light-gray/black when there is nothing to work with.
    """
    mode = PaletteMode(mode)
    colors = dominant.rgb()
    if not colors:
        return default_palette(mode)

    by_luminance = sorted(colors, key=luminance, reverse=True)
    lightest = by_luminance[0]
    darkest = by_luminance[-1]
    primary = colors[0]

    if mode == PaletteMode.LIGHT:
        palette = Palette(lightest, _blend(lightest, LIGHT_BLEND_TARGET), darkest, mode)
    elif mode == PaletteMode.DARK:
        palette = Palette(darkest, _blend(darkest, DARK_BLEND_TARGET), lightest, mode)
    elif mode == PaletteMode.COMPLEMENTARY:
        palette = Palette(primary, _complement(primary), lightest, mode)
    else:
        secondary = colors[1] if len(colors) > 1 else primary
        palette = Palette(primary, secondary, lightest, mode)

    return ensure_contrast(palette)
