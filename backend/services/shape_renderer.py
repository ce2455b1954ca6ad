"""
Decorative shapes drawn over the composed image: badge, corner callouts and
the brand watermark.

Every draw_* function paints on its own transparent layer and composites it
onto the RGBA surface in place, returning the DecorativeElement(s) it drew
(or nothing when the element was skipped).
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from domain.models import (
    LIGHT_GRAY, WHITE, AnchorZone, BadgeColor, BadgeConfig, BadgeShape, Callout, DecorativeElement,
    ElementKind, Palette, Rect,
)
from services.fonts import WEIGHT_BLACK, WEIGHT_BOLD, WEIGHT_MEDIUM, WEIGHT_REGULAR, WEIGHT_SEMIBOLD, load_font, ui_face
from services.layout_engine import margin_for
from services.typography import fit_line_size, measure, wrap

logger = logging.getLogger(__name__)

# --- Badge ---
BADGE_PRIMARY_FACTOR = 0.06
BADGE_SECONDARY_FACTOR = 0.035
BADGE_MAX_LINE_FACTOR = 0.3
BADGE_HPAD = 0.5
BADGE_VPAD = 0.4
BADGE_LINE_GAP = 0.1
BURST_POINTS = 12
BURST_INSET = 0.7
BADGE_OUTLINE_FACTOR = 0.004

# --- Callouts ---
CALLOUT_INSET_FACTOR = 0.05
CALLOUT_WRAP_FACTOR = 0.4
CALLOUT_TITLE_FACTOR = 0.025
CALLOUT_DESC_FACTOR = 0.02
CALLOUT_DESC_LINE_HEIGHT = 1.25
CALLOUT_SPACING = 0.25
CALLOUT_PADDING = 0.75
CALLOUT_FILL = (0, 0, 0, 166)
CALLOUT_OUTLINE = (255, 255, 255, 128)
CALLOUT_RADIUS = 8

# --- Watermark ---
WATERMARK_FACTOR = 0.02
WATERMARK_INSET_FACTOR = 0.03
WATERMARK_ALPHA = 179


def _corner_origin(corner: AnchorZone, size: Tuple[float, float], canvas_size: int, inset: float) -> Tuple[float, float]:
    w, h = size
    left = inset
    right = canvas_size - inset - w
    top = inset
    bottom = canvas_size - inset - h
    return {
        AnchorZone.TOP_LEFT: (left, top),
        AnchorZone.TOP_RIGHT: (right, top),
        AnchorZone.BOTTOM_RIGHT: (right, bottom),
        AnchorZone.BOTTOM_LEFT: (left, bottom),
    }[AnchorZone(corner)]


def _composite(surface: Image.Image, layer: Image.Image) -> None:
    surface.alpha_composite(layer)


# ============================================
# Badge
# ============================================

@dataclass(frozen=True)
class BadgeLayout:
    primary: str
    secondary: str
    primary_size: int
    secondary_size: int
    text_width: float
    text_height: float
    gap: float
    footprint: Rect

    @property
    def center(self) -> Tuple[float, float]:
        return (self.footprint.x + self.footprint.width / 2, self.footprint.y + self.footprint.height / 2)


def _badge_text_size(text: str, weight: int, start: int, max_width: float) -> int:
    if not text:
        return start
    if measure(load_font(ui_face(weight), start), text) <= max_width:
        return start
    return fit_line_size(text, ui_face(weight), max_width, start)


def plan_badge(badge: Optional[BadgeConfig], canvas_size: int) -> Optional[BadgeLayout]:
    """Size and position the badge; None when it should not be drawn."""
    if badge is None or badge.is_empty or badge.corner is None:
        return None

    primary = badge.primary_text.strip()
    secondary = badge.secondary_text.strip()
    max_line = canvas_size * BADGE_MAX_LINE_FACTOR

    p_size = _badge_text_size(primary, WEIGHT_BLACK, int(canvas_size * BADGE_PRIMARY_FACTOR), max_line)
    s_size = _badge_text_size(secondary, WEIGHT_MEDIUM, int(canvas_size * BADGE_SECONDARY_FACTOR), max_line)

    p_width = measure(load_font(ui_face(WEIGHT_BLACK), p_size), primary) if primary else 0.0
    s_width = measure(load_font(ui_face(WEIGHT_MEDIUM), s_size), secondary) if secondary else 0.0

    gap = p_size * BADGE_LINE_GAP if primary and secondary else 0.0
    text_w = max(p_width, s_width)
    text_h = (p_size if primary else 0) + gap + (s_size if secondary else 0)

    hpad = p_size * BADGE_HPAD
    vpad = p_size * BADGE_VPAD
    if BadgeShape(badge.shape) == BadgeShape.TAG:
        size = (text_w + 2 * hpad, text_h + 2 * vpad)
    else:
        diameter = max(text_w, text_h) + 2 * hpad
        size = (diameter, diameter)

    x, y = _corner_origin(badge.corner, size, canvas_size, margin_for(canvas_size))
    return BadgeLayout(
        primary=primary,
        secondary=secondary,
        primary_size=p_size,
        secondary_size=s_size,
        text_width=text_w,
        text_height=text_h,
        gap=gap,
        footprint=Rect(x, y, size[0], size[1]),
    )


def badge_polygon(center: Tuple[float, float], radius: float, points: int = BURST_POINTS, inset: float = BURST_INSET) -> List[Tuple[float, float]]:
    """Star outline alternating outer/inner radius, first vertex straight up."""
    cx, cy = center
    vertices = []
    for i in range(points * 2):
        r = radius if i % 2 == 0 else radius * inset
        angle = -math.pi / 2 + i * math.pi / points
        vertices.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return vertices


def draw_badge(surface: Image.Image, badge: Optional[BadgeConfig]) -> Optional[DecorativeElement]:
    """
    Draw the badge shape with its centred text onto `surface`.

    Args:
        surface: RGBA canvas, modified in place
        badge: Badge request; skipped when empty or without a corner

    Returns:
        The drawn element, or None when skipped
    """
    canvas_size = surface.width
    plan = plan_badge(badge, canvas_size)
    if plan is None:
        logger.debug("[badge] skipped")
        return None

    layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    color = BadgeColor(badge.color)
    shape = BadgeShape(badge.shape)
    fill = color.rgb + (255,)
    outline_w = max(2, int(round(canvas_size * BADGE_OUTLINE_FACTOR)))
    box = plan.footprint.as_box()

    if shape == BadgeShape.CIRCLE:
        draw.ellipse(box, fill=fill, outline=WHITE, width=outline_w)
    elif shape == BadgeShape.BURST:
        vertices = badge_polygon(plan.center, plan.footprint.width / 2)
        draw.polygon(vertices, fill=fill, outline=WHITE, width=outline_w)
    else:
        draw.rectangle(box, fill=fill, outline=WHITE, width=outline_w)

    cx, cy = plan.center
    if plan.primary and plan.secondary:
        top = cy - plan.text_height / 2
        draw.text(
            (cx, top + plan.primary_size / 2), plan.primary,
            font=load_font(ui_face(WEIGHT_BLACK), plan.primary_size), fill=WHITE, anchor="mm",
        )
        draw.text(
            (cx, top + plan.primary_size + plan.gap + plan.secondary_size / 2), plan.secondary,
            font=load_font(ui_face(WEIGHT_MEDIUM), plan.secondary_size), fill=WHITE, anchor="mm",
        )
    elif plan.primary:
        draw.text((cx, cy), plan.primary, font=load_font(ui_face(WEIGHT_BLACK), plan.primary_size), fill=WHITE, anchor="mm")
    else:
        draw.text((cx, cy), plan.secondary, font=load_font(ui_face(WEIGHT_MEDIUM), plan.secondary_size), fill=WHITE, anchor="mm")

    _composite(surface, layer)
    logger.info("[badge] %s %s at %s", shape.value, color.value, AnchorZone(badge.corner).value)
    text = "\n".join(t for t in (plan.primary, plan.secondary) if t)
    return DecorativeElement(ElementKind.BADGE, text, AnchorZone(badge.corner), plan.footprint)


# ============================================
# Callouts
# ============================================

@dataclass(frozen=True)
class CalloutLayout:
    callout: Callout
    corner: AnchorZone
    title_lines: Tuple[str, ...]
    description_lines: Tuple[str, ...]
    title_size: int
    description_size: int
    padding: float
    spacing: float
    footprint: Rect


def plan_callout(callout: Callout, corner: AnchorZone, canvas_size: int) -> CalloutLayout:
    title_size = int(canvas_size * CALLOUT_TITLE_FACTOR)
    desc_size = int(canvas_size * CALLOUT_DESC_FACTOR)
    title_font = load_font(ui_face(WEIGHT_BOLD), title_size)
    desc_font = load_font(ui_face(WEIGHT_REGULAR), desc_size)
    wrap_width = canvas_size * CALLOUT_WRAP_FACTOR

    title_lines = wrap(callout.title.strip(), title_font, wrap_width)
    desc_lines = wrap(callout.description.strip(), desc_font, wrap_width)

    widths = [measure(title_font, line) for line in title_lines]
    widths += [measure(desc_font, line) for line in desc_lines]
    content_w = max(widths) if widths else 0.0

    spacing = title_size * CALLOUT_SPACING if title_lines and desc_lines else 0.0
    content_h = len(title_lines) * title_size + spacing + len(desc_lines) * desc_size * CALLOUT_DESC_LINE_HEIGHT

    padding = title_size * CALLOUT_PADDING
    size = (content_w + 2 * padding, content_h + 2 * padding)
    x, y = _corner_origin(corner, size, canvas_size, canvas_size * CALLOUT_INSET_FACTOR)
    return CalloutLayout(
        callout=callout,
        corner=AnchorZone(corner),
        title_lines=tuple(title_lines),
        description_lines=tuple(desc_lines),
        title_size=title_size,
        description_size=desc_size,
        padding=padding,
        spacing=spacing,
        footprint=Rect(x, y, size[0], size[1]),
    )


def plan_callouts(placed: Sequence[Tuple[Callout, AnchorZone]], canvas_size: int) -> List[CalloutLayout]:
    return [plan_callout(c, corner, canvas_size) for c, corner in placed if not c.is_empty]


def draw_callouts(surface: Image.Image, placed: Sequence[Tuple[Callout, AnchorZone]]) -> List[DecorativeElement]:
    """Draw each (callout, corner) pair as a translucent rounded box."""
    plans = plan_callouts(placed, surface.width)
    if not plans:
        return []

    layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    elements = []
    for plan in plans:
        draw.rounded_rectangle(
            plan.footprint.as_box(), radius=CALLOUT_RADIUS,
            fill=CALLOUT_FILL, outline=CALLOUT_OUTLINE, width=1,
        )
        x = plan.footprint.x + plan.padding
        y = plan.footprint.y + plan.padding

        title_font = load_font(ui_face(WEIGHT_BOLD), plan.title_size)
        for line in plan.title_lines:
            draw.text((x, y), line, font=title_font, fill=WHITE, anchor="la")
            y += plan.title_size
        y += plan.spacing

        desc_font = load_font(ui_face(WEIGHT_REGULAR), plan.description_size)
        for line in plan.description_lines:
            draw.text((x, y), line, font=desc_font, fill=LIGHT_GRAY, anchor="la")
            y += plan.description_size * CALLOUT_DESC_LINE_HEIGHT

        text = "\n".join(t for t in (plan.callout.title.strip(), plan.callout.description.strip()) if t)
        elements.append(DecorativeElement(ElementKind.CALLOUT, text, plan.corner, plan.footprint))

    _composite(surface, layer)
    logger.info("[callouts] drew %d at %s", len(plans), ", ".join(p.corner.value for p in plans))
    return elements


# ============================================
# Watermark
# ============================================

def draw_watermark(surface: Image.Image, text: str, palette: Palette) -> Optional[DecorativeElement]:
    """Small translucent brand line in the bottom-right corner."""
    text = (text or "").strip()
    if not text:
        return None

    canvas_size = surface.width
    font = load_font(ui_face(WEIGHT_SEMIBOLD), int(canvas_size * WATERMARK_FACTOR))
    inset = canvas_size * WATERMARK_INSET_FACTOR
    anchor_xy = (canvas_size - inset, canvas_size - inset)

    layer = Image.new("RGBA", surface.size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    draw.text(anchor_xy, text, font=font, fill=palette.stroke + (WATERMARK_ALPHA,), anchor="rd")
    _composite(surface, layer)

    left, top, right, bottom = draw.textbbox(anchor_xy, text, font=font, anchor="rd")
    return DecorativeElement(
        ElementKind.WATERMARK, text, AnchorZone.BOTTOM_RIGHT,
        Rect(left, top, right - left, bottom - top),
    )
