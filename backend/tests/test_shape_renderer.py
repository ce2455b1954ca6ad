import math

import pytest
from PIL import Image

from domain.models import (
    AnchorZone, BadgeColor, BadgeConfig, BadgeShape, Callout, ElementKind, Palette,
)
from services.fonts import WEIGHT_BLACK, load_font, ui_face
from services.shape_renderer import (
    badge_polygon, draw_badge, draw_callouts, draw_watermark, plan_badge, plan_callout,
)
from services.typography import measure


CANVAS = 1080


def _surface(color=(255, 255, 255, 255), size=CANVAS) -> Image.Image:
    return Image.new("RGBA", (size, size), color)


def test_single_line_badge_is_sized_from_that_line():
    badge = BadgeConfig(primary_text="-50%", shape=BadgeShape.CIRCLE, corner=AnchorZone.TOP_RIGHT)
    plan = plan_badge(badge, CANVAS)
    assert plan is not None
    assert plan.secondary == ""
    assert plan.gap == 0.0
    assert plan.text_height == plan.primary_size

    text_w = measure(load_font(ui_face(WEIGHT_BLACK), plan.primary_size), "-50%")
    hpad = plan.primary_size * 0.5
    expected = max(text_w, plan.primary_size) + 2 * hpad
    assert plan.footprint.width == pytest.approx(expected)
    assert plan.footprint.height == pytest.approx(expected)

    margin = 0.07 * CANVAS
    assert plan.footprint.right == pytest.approx(CANVAS - margin)
    assert plan.footprint.y == pytest.approx(margin)


def test_two_line_badge_stacks_with_gap():
    badge = BadgeConfig(primary_text="R$ 99", secondary_text="modelo X", shape=BadgeShape.TAG,
                        corner=AnchorZone.BOTTOM_LEFT)
    plan = plan_badge(badge, CANVAS)
    assert plan.primary_size == int(0.06 * CANVAS)
    assert plan.secondary_size == int(0.035 * CANVAS)
    assert plan.gap == pytest.approx(plan.primary_size * 0.1)
    assert plan.text_height == pytest.approx(plan.primary_size + plan.gap + plan.secondary_size)
    assert plan.footprint.height == pytest.approx(plan.text_height + 2 * plan.primary_size * 0.4)
    assert plan.footprint.width == pytest.approx(plan.text_width + 2 * plan.primary_size * 0.5)
    assert plan.footprint.x == pytest.approx(0.07 * CANVAS)


def test_long_badge_text_shrinks_to_max_width():
    badge = BadgeConfig(primary_text="MEGA PROMOÇÃO IMPERDÍVEL", corner=AnchorZone.TOP_LEFT)
    plan = plan_badge(badge, CANVAS)
    assert plan.primary_size < int(0.06 * CANVAS)
    assert plan.text_width <= 0.3 * CANVAS


def test_badge_skipped_without_corner_or_text():
    assert plan_badge(None, CANVAS) is None
    assert plan_badge(BadgeConfig(primary_text="  ", secondary_text=""), CANVAS) is None
    assert plan_badge(BadgeConfig(primary_text="X", corner=None), CANVAS) is None

    surface = _surface()
    before = surface.tobytes()
    assert draw_badge(surface, BadgeConfig(primary_text="", corner=AnchorZone.TOP_LEFT)) is None
    assert surface.tobytes() == before


def test_burst_polygon_has_24_vertices_starting_at_top():
    vertices = badge_polygon((100, 100), 50)
    assert len(vertices) == 24
    assert vertices[0] == pytest.approx((100, 50))
    outer = [math.dist((100, 100), v) for v in vertices[0::2]]
    inner = [math.dist((100, 100), v) for v in vertices[1::2]]
    assert all(r == pytest.approx(50) for r in outer)
    assert all(r == pytest.approx(35) for r in inner)


def test_draw_badge_paints_shape_color():
    badge = BadgeConfig(primary_text="NOVO", shape=BadgeShape.TAG, color=BadgeColor.BLUE,
                        corner=AnchorZone.TOP_LEFT)
    surface = _surface()
    element = draw_badge(surface, badge)
    assert element.kind == ElementKind.BADGE
    assert element.zone == AnchorZone.TOP_LEFT
    assert element.text == "NOVO"

    fp = element.footprint
    px = surface.getpixel((int(fp.x + 10), int(fp.y + fp.height / 2)))
    assert px[:3] == BadgeColor.BLUE.rgb


def test_tag_badge_has_square_corners():
    badge = BadgeConfig(primary_text="R$ 49", shape=BadgeShape.TAG, corner=AnchorZone.TOP_LEFT)
    surface = _surface(color=(0, 0, 0, 255))
    fp = draw_badge(surface, badge).footprint

    corner = surface.getpixel((math.ceil(fp.x) + 1, math.ceil(fp.y) + 1))
    assert corner[:3] != (0, 0, 0)
    far_corner = surface.getpixel((math.floor(fp.right) - 2, math.floor(fp.bottom) - 2))
    assert far_corner[:3] != (0, 0, 0)


def test_badge_accepts_plain_string_shape_and_color():
    badge = BadgeConfig(primary_text="X", color="red", shape="tag", corner=AnchorZone.TOP_LEFT)
    plan = plan_badge(badge, CANVAS)

    surface = _surface()
    element = draw_badge(surface, badge)
    fp = element.footprint
    assert element.footprint == plan.footprint
    px = surface.getpixel((int(fp.x + 10), int(fp.y + fp.height / 2)))
    assert px[:3] == BadgeColor.RED.rgb


def test_callout_plan_geometry():
    callout = Callout(title="Bateria", description="Dura o dia inteiro com uma carga")
    plan = plan_callout(callout, AnchorZone.BOTTOM_RIGHT, CANVAS)
    title_size = int(0.025 * CANVAS)
    desc_size = int(0.02 * CANVAS)
    assert plan.title_size == title_size
    assert plan.description_size == desc_size
    assert plan.padding == pytest.approx(title_size * 0.75)
    content_h = (
        len(plan.title_lines) * title_size
        + title_size * 0.25
        + len(plan.description_lines) * desc_size * 1.25
    )
    assert plan.footprint.height == pytest.approx(content_h + 2 * plan.padding)
    inset = 0.05 * CANVAS
    assert plan.footprint.right == pytest.approx(CANVAS - inset)
    assert plan.footprint.bottom == pytest.approx(CANVAS - inset)


def test_callout_wraps_long_description():
    callout = Callout(title="Tela", description=" ".join(["resolução incrível"] * 12))
    plan = plan_callout(callout, AnchorZone.TOP_LEFT, CANVAS)
    assert len(plan.description_lines) > 1
    assert plan.footprint.width <= 0.4 * CANVAS + 2 * plan.padding


def test_draw_callouts_darkens_box_and_reports_elements():
    surface = _surface()
    placed = [
        (Callout(title="A", description="first"), AnchorZone.TOP_LEFT),
        (Callout(title="B", description="second"), AnchorZone.BOTTOM_RIGHT),
    ]
    elements = draw_callouts(surface, placed)
    assert [e.zone for e in elements] == [AnchorZone.TOP_LEFT, AnchorZone.BOTTOM_RIGHT]
    assert all(e.kind == ElementKind.CALLOUT for e in elements)

    fp = elements[0].footprint
    r, g, b, _ = surface.getpixel((int(fp.x + 4), int(fp.bottom - 4)))
    assert r < 120 and g < 120 and b < 120


def test_draw_callouts_with_nothing_to_draw():
    surface = _surface()
    assert draw_callouts(surface, []) == []
    assert draw_callouts(surface, [(Callout(), AnchorZone.TOP_LEFT)]) == []


def test_watermark_bottom_right_and_translucent():
    surface = _surface((0, 0, 0, 255))
    palette = Palette(fill1=(250, 250, 250), fill2=(225, 225, 225), stroke=(255, 255, 255))
    element = draw_watermark(surface, "minhamarca.com", palette)
    assert element.kind == ElementKind.WATERMARK
    inset = 0.03 * CANVAS
    assert element.footprint.right <= CANVAS - inset + 1
    assert element.footprint.bottom <= CANVAS - inset + 1

    crop = surface.convert("L").crop(tuple(int(v) for v in element.footprint.as_box()))
    brightest = crop.getextrema()[1]
    assert 0 < brightest < 255


def test_empty_watermark_is_skipped():
    surface = _surface()
    palette = Palette(fill1=(250, 250, 250), fill2=(225, 225, 225), stroke=(0, 0, 0))
    assert draw_watermark(surface, "   ", palette) is None
