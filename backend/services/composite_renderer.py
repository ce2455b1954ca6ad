"""
Composite renderer: turns a decoded photo plus style/content configuration
into the finished square graphic.

Pipeline:
1) Resolve the preset (random entries use the injected rng).
2) Analyse the photo and derive the working palette.
3) Solve the title/subtitle size, then place the block, letting callouts
   and the badge claim their corners first so contention rules apply.
4) Paint layers in LAYER_ORDER onto an RGBA surface.

The text layer is built on its own transparent canvas so the optional
rotation never touches the photo or the decorative elements.
When settings.DEBUG_LAYERS is on, the surface is written to
settings.DEBUG_DIR after every layer (01_base.png, 02_text.png, ...).
"""
import hashlib
import logging
import random
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFilter, ImageFont, ImageOps

from domain.errors import InvalidImageError
from domain.models import (
    BLACK, RGB, WHITE, AnchorZone, CompositionPreset, CompositionResult, ContentConfig,
    DecorativeElement, ElementKind, FontFace, FontPairing, Palette, PaletteMode, Placement,
    StyleConfig, StyleMode, SubtitleOutline, TextAlign, TextBlock, TitleMode, TypographyResult,
)
from services import presets
from services.color_analyzer import analyze, derive_palette, ensure_contrast
from services.fonts import WEIGHT_BOLD, font_pairing_for_styles, load_font
from services.layout_engine import ZoneReservations, max_text_height, max_text_width, resolve
from services.shape_renderer import draw_badge, draw_callouts, draw_watermark, plan_badge
from services.typography import measure, solve_size
from settings import settings

logger = logging.getLogger(__name__)

LAYER_ORDER: Tuple[str, ...] = ("base", "text", "callouts", "badge", "watermark")

MAX_ROTATION_DEG = 2.0

# Stroke line widths as a fraction of the font size (Pillow strokes grow outward,
# so half of the line width is used as stroke_width).
FILL_STROKE_RATIO = 0.05
GRADIENT_STROKE_RATIO = 0.04
SUBTITLE_AUTO_RATIO = 0.15
SUBTITLE_OUTLINE_RATIO = 0.2
SHADOW_COLOR = (0, 0, 0, 179)
SHADOW_BLUR = 0.1
SHADOW_OFFSET = 0.05
SUBTITLE_BOX_ALPHA = 153
SUBTITLE_BOX_PAD = 0.25

# Product-label title mode
LABEL_SIZE_FACTOR = 0.03
LABEL_TOP_FACTOR = 0.05
LABEL_STROKE_RATIO = 0.1

_ANCHORS = {TextAlign.LEFT: "la", TextAlign.CENTER: "ma", TextAlign.RIGHT: "ra"}


@dataclass(frozen=True)
class TextRun:
    """Lines of one block positioned on the canvas, all in one font."""
    origins: Tuple[Tuple[Tuple[float, float], str], ...]
    font: ImageFont.FreeTypeFont
    size: int
    anchor: str

    def shifted(self, dx: float, dy: float) -> "TextRun":
        moved = tuple(((x + dx, y + dy), line) for (x, y), line in self.origins)
        return replace(self, origins=moved)


# ============================================
# Low-level painting helpers
# ============================================

def _outward(size: int, ratio: float) -> int:
    return max(1, int(round(size * ratio / 2)))


def _text_mask(canvas: Tuple[int, int], run: TextRun, stroke_width: int = 0) -> Image.Image:
    mask = Image.new("L", canvas, 0)
    draw = ImageDraw.Draw(mask)
    for xy, line in run.origins:
        draw.text(xy, line, fill=255, font=run.font, anchor=run.anchor, stroke_width=stroke_width, stroke_fill=255)
    return mask


def _paint(layer: Image.Image, mask: Image.Image, color: Sequence[int]) -> None:
    """Composite a solid color onto `layer` through `mask`."""
    rgba = tuple(color) if len(color) == 4 else tuple(color) + (255,)
    solid = Image.new("RGBA", layer.size, rgba[:3] + (0,))
    alpha = mask if rgba[3] == 255 else mask.point(lambda v: v * rgba[3] // 255)
    solid.putalpha(alpha)
    layer.alpha_composite(solid)


def _horizontal_gradient(size: Tuple[int, int], x0: float, span: float, start: RGB, end: RGB) -> Image.Image:
    """Canvas-sized gradient running from `start` at x0 to `end` at x0 + span, clamped outside."""
    width, height = size
    t = np.clip((np.arange(width, dtype=np.float32) - x0) / max(span, 1.0), 0.0, 1.0)[:, None]
    row = np.asarray(start, dtype=np.float32) * (1.0 - t) + np.asarray(end, dtype=np.float32) * t
    arr = np.repeat(row[None, :, :], height, axis=0)
    return Image.fromarray(np.clip(np.round(arr), 0, 255).astype(np.uint8)).convert("RGBA")


def _paint_gradient(layer: Image.Image, run: TextRun, start: RGB, end: RGB) -> None:
    """Fill each line with its own left-to-right gradient across the line's width."""
    for xy, line in run.origins:
        single = replace(run, origins=((xy, line),))
        width = measure(run.font, line)
        grad = _horizontal_gradient(layer.size, _line_left(xy, width, run.anchor), width, start, end)
        grad.putalpha(_text_mask(layer.size, single))
        layer.alpha_composite(grad)


def _draw_line_boxes(layer: Image.Image, run: TextRun, color: Sequence[int], pad: float, line_height: float) -> None:
    boxes = Image.new("RGBA", layer.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(boxes)
    for xy, line in run.origins:
        width = measure(run.font, line)
        left = _line_left(xy, width, run.anchor)
        top = xy[1]
        draw.rectangle((left - pad, top - pad, left + width + pad, top + line_height + pad), fill=tuple(color))
    layer.alpha_composite(boxes)


def _paint_shadow(layer: Image.Image, run: TextRun) -> None:
    offset = run.size * SHADOW_OFFSET
    mask = _text_mask(layer.size, run.shifted(offset, offset))
    mask = mask.filter(ImageFilter.GaussianBlur(run.size * SHADOW_BLUR))
    _paint(layer, mask, SHADOW_COLOR)


def _line_left(xy: Tuple[float, float], width: float, anchor: str) -> float:
    x = xy[0]
    if anchor[0] == "m":
        return x - width / 2
    if anchor[0] == "r":
        return x - width
    return x


# ============================================
# Title painters (one per style mode)
# ============================================

TitlePainter = Callable[[Image.Image, TextRun, Palette], None]


def _title_fill(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


def _title_fill_stroke(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run, _outward(run.size, FILL_STROKE_RATIO)), palette.stroke)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


def _title_stroke(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    outer = _text_mask(layer.size, run, _outward(run.size, FILL_STROKE_RATIO))
    inner = _text_mask(layer.size, run)
    _paint(layer, ImageChops.subtract(outer, inner), palette.stroke)


def _title_gradient(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run, _outward(run.size, GRADIENT_STROKE_RATIO)), palette.stroke)
    _paint_gradient(layer, run, palette.fill1, palette.fill2)


_TITLE_PAINTERS: Dict[StyleMode, TitlePainter] = {
    StyleMode.FILL: _title_fill,
    StyleMode.FILL_STROKE: _title_fill_stroke,
    StyleMode.STROKE: _title_stroke,
    StyleMode.GRADIENT_ON_BLOCK: _title_gradient,
    # Vertical stacking is not supported by the drawer; it paints as fill.
    StyleMode.VERTICAL: _title_fill,
}


# ============================================
# Subtitle painters (one per outline style)
# ============================================

def _subtitle_auto(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run, _outward(run.size, SUBTITLE_AUTO_RATIO)), palette.stroke)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


def _subtitle_white(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run, _outward(run.size, SUBTITLE_OUTLINE_RATIO)), WHITE)
    _paint(layer, _text_mask(layer.size, run), palette.stroke)


def _subtitle_black(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint(layer, _text_mask(layer.size, run, _outward(run.size, SUBTITLE_OUTLINE_RATIO)), BLACK)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


def _subtitle_soft_shadow(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    _paint_shadow(layer, run)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


def _subtitle_transparent_box(layer: Image.Image, run: TextRun, palette: Palette) -> None:
    pad = run.size * SUBTITLE_BOX_PAD
    boxes = Image.new("RGBA", layer.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(boxes)
    for xy, line in run.origins:
        width = measure(run.font, line)
        left = _line_left(xy, width, run.anchor)
        top = xy[1]
        draw.rectangle(
            (left - pad, top - pad / 2, left + width + pad, top + run.size + pad / 2),
            fill=palette.stroke + (SUBTITLE_BOX_ALPHA,),
        )
    layer.alpha_composite(boxes)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)


_SUBTITLE_PAINTERS: Dict[SubtitleOutline, TitlePainter] = {
    SubtitleOutline.AUTO: _subtitle_auto,
    SubtitleOutline.WHITE: _subtitle_white,
    SubtitleOutline.BLACK: _subtitle_black,
    SubtitleOutline.SOFT_SHADOW: _subtitle_soft_shadow,
    SubtitleOutline.TRANSPARENT_BOX: _subtitle_transparent_box,
}


# ============================================
# Text block
# ============================================

def _text_run(block: TextBlock, face: FontFace, x: float, y: float) -> TextRun:
    step = block.font_size_px * block.line_height_factor
    origins = tuple(((x, y + i * step), line) for i, line in enumerate(block.lines))
    return TextRun(
        origins=origins,
        font=load_font(face, block.font_size_px),
        size=block.font_size_px,
        anchor=_ANCHORS[block.alignment],
    )


def _block_width(typography: TypographyResult, pairing: FontPairing) -> float:
    widths = [measure(load_font(pairing.title, typography.title_size), line) for line in typography.title.lines]
    widths += [measure(load_font(pairing.subtitle, typography.subtitle_size), line) for line in typography.subtitle.lines]
    return max(widths) if widths else 0.0


def _align_blocks(typography: TypographyResult, align: TextAlign) -> TypographyResult:
    return replace(
        typography,
        title=replace(typography.title, alignment=align),
        subtitle=replace(typography.subtitle, alignment=align),
    )


def draw_title_block(
    layer: Image.Image,
    typography: TypographyResult,
    placement: Placement,
    pairing: FontPairing,
    palette: Palette,
    preset: CompositionPreset,
    subtitle_outline: SubtitleOutline = SubtitleOutline.AUTO,
) -> None:
    """Paint the title lines, then the subtitle lines, onto the text layer."""
    y = placement.y
    title_run = None
    if not typography.title.is_empty:
        title_run = _text_run(typography.title, pairing.title, placement.x, y)
        y += typography.title.height + typography.gutter
    sub_run = None
    if not typography.subtitle.is_empty:
        sub_run = _text_run(typography.subtitle, pairing.subtitle, placement.x, y)

    if preset.background is not None and title_run is not None:
        pad = typography.title_size * preset.background.padding_factor
        line_height = typography.title_size * typography.title.line_height_factor
        _draw_line_boxes(layer, title_run, preset.background.color, pad, line_height)

    if title_run is not None:
        _TITLE_PAINTERS[preset.style_mode](layer, title_run, palette)
    if sub_run is not None:
        _SUBTITLE_PAINTERS[SubtitleOutline(subtitle_outline)](layer, sub_run, palette)


def draw_label(layer: Image.Image, title: str, pairing: FontPairing, palette: Palette) -> TypographyResult:
    """Small centred product label at the top of the canvas."""
    canvas_size = layer.width
    size = int(canvas_size * LABEL_SIZE_FACTOR)
    face = FontFace(pairing.title.family, WEIGHT_BOLD)
    block = TextBlock((title,), size, 1.0, TextAlign.CENTER)
    run = _text_run(block, face, canvas_size / 2, canvas_size * LABEL_TOP_FACTOR)

    _paint_shadow(layer, run)
    _paint(layer, _text_mask(layer.size, run, _outward(size, LABEL_STROKE_RATIO)), palette.stroke)
    _paint(layer, _text_mask(layer.size, run), palette.fill1)
    return TypographyResult(
        title=block,
        subtitle=TextBlock((), 0, 1.0, TextAlign.CENTER),
        title_size=size,
        subtitle_size=0,
        gutter=0.0,
    )


# ============================================
# Orchestration
# ============================================

def _validate_image(image) -> Image.Image:
    if image is None:
        raise InvalidImageError("No image supplied")
    if not isinstance(image, Image.Image):
        raise InvalidImageError(f"Expected a decoded PIL image, got {type(image).__name__}")
    if image.width <= 0 or image.height <= 0:
        raise InvalidImageError(f"Image has no pixels ({image.width}x{image.height})")
    try:
        image.load()
    except (OSError, ValueError) as exc:
        raise InvalidImageError(f"Image could not be decoded: {exc}") from exc
    return image


def _rotation_rng(preset: CompositionPreset, style: StyleConfig, content: ContentConfig) -> random.Random:
    key = f"{preset.id}|{AnchorZone(style.anchor).value}|{content.text}"
    seed = int(hashlib.sha256(key.encode("utf-8")).hexdigest()[:16], 16)
    return random.Random(seed)


def _dump_layer(surface: Image.Image, name: str) -> None:
    if not settings.DEBUG_LAYERS:
        return
    debug_dir = settings.DEBUG_DIR
    debug_dir.mkdir(parents=True, exist_ok=True)
    path = debug_dir / f"{LAYER_ORDER.index(name) + 1:02d}_{name}.png"
    surface.save(path)
    logger.debug("[compose] wrote %s", path)


def _working_palette(preset: CompositionPreset, dominant) -> Palette:
    palette = derive_palette(dominant, preset.palette_mode)
    if preset.forced_stroke is not None:
        palette = ensure_contrast(replace(palette, stroke=preset.forced_stroke))
    return palette


def render_composition(
    image: Image.Image,
    style: StyleConfig,
    content: ContentConfig,
    rng: Optional[random.Random] = None,
    canvas_size: Optional[int] = None,
) -> CompositionResult:
    """
    Render one social graphic.

    Args:
        image: Decoded source photo (any mode/size; cover-fitted to the canvas)
        style: Preset id, anchor, font hints, subtitle outline and title mode
        content: Title/subtitle text, callouts, badge and watermark
        rng: Random source for "random" presets and text rotation. When omitted,
            presets are drawn from the module generator and the rotation angle
            is derived from the content so repeated renders match.
        canvas_size: Output side in pixels (defaults to settings.CANVAS_SIZE)

    Returns:
        CompositionResult with an RGB image and the decisions taken.

    Raises:
        InvalidImageError: If the image is missing, empty or undecodable
    """
    image = _validate_image(image)
    size = int(canvas_size or settings.CANVAS_SIZE)
    canvas = (size, size)

    preset = presets.get(style.preset_id, rng)
    dominant = analyze(image)
    palette = _working_palette(preset, dominant)
    pairing = font_pairing_for_styles(style.font_styles)
    logger.info(
        "[compose] preset=%s palette=%s anchor=%s colors=%d",
        preset.id, preset.palette_mode.value, AnchorZone(style.anchor).value, len(dominant),
    )

    # Base
    surface = ImageOps.fit(image.convert("RGBA"), canvas, Image.Resampling.LANCZOS)
    _dump_layer(surface, "base")

    # Corner claims happen before the title is placed.
    reservations = ZoneReservations()
    placed_callouts = reservations.assign_callout_corners(content.callouts)
    badge_plan = plan_badge(content.badge, size)
    if badge_plan is not None:
        reservations.claim(content.badge.corner, ElementKind.BADGE)

    # Text
    title, subtitle = content.split_text()
    title = title.upper()
    if not preset.show_subtitle:
        subtitle = ""

    typography = None
    placement = None
    rotation = 0.0
    text_layer = Image.new("RGBA", canvas, (0, 0, 0, 0))
    if TitleMode(style.title_mode) == TitleMode.LABEL:
        if title:
            typography = draw_label(text_layer, title, pairing, derive_palette(dominant, PaletteMode.DARK))
            placement = Placement(size / 2, size * LABEL_TOP_FACTOR, TextAlign.CENTER, AnchorZone.TOP)
    elif title or subtitle:
        anchor = AnchorZone(style.anchor)
        typography = solve_size(title, subtitle, pairing, max_text_width(anchor, size), max_text_height(size))
        placement = resolve(
            anchor,
            (_block_width(typography, pairing), typography.block_height),
            size,
            reservations.as_mapping(),
        )
        typography = _align_blocks(typography, placement.align)
        draw_title_block(text_layer, typography, placement, pairing, palette, preset, style.subtitle_outline)

    if typography is not None and preset.allow_rotation:
        source = rng if rng is not None else _rotation_rng(preset, style, content)
        rotation = source.uniform(-MAX_ROTATION_DEG, MAX_ROTATION_DEG)
        text_layer = text_layer.rotate(rotation, resample=Image.Resampling.BICUBIC, center=(size / 2, size / 2))
    surface.alpha_composite(text_layer)
    _dump_layer(surface, "text")

    # Decorations
    elements: List[DecorativeElement] = []
    elements.extend(draw_callouts(surface, placed_callouts))
    _dump_layer(surface, "callouts")

    badge_element = draw_badge(surface, content.badge) if badge_plan is not None else None
    if badge_element is not None:
        elements.append(badge_element)
    _dump_layer(surface, "badge")

    watermark = draw_watermark(surface, content.watermark, derive_palette(dominant, PaletteMode.LIGHT))
    if watermark is not None:
        elements.append(watermark)
    _dump_layer(surface, "watermark")

    logger.info(
        "[compose] done size=%s title=%s rotation=%.2f elements=%d",
        size, typography.title_size if typography else None, rotation, len(elements),
    )
    return CompositionResult(
        image=surface.convert("RGB"),
        preset=preset,
        palette=palette,
        typography=typography,
        placement=placement,
        rotation_deg=rotation,
        elements=elements,
    )


def render_graphic(
    image: Image.Image,
    style: StyleConfig,
    content: ContentConfig,
    rng: Optional[random.Random] = None,
    canvas_size: Optional[int] = None,
) -> Image.Image:
    """Render and return only the finished RGB image."""
    return render_composition(image, style, content, rng=rng, canvas_size=canvas_size).image
