import pytest
from pydantic import ValidationError

from domain.models import AnchorZone, BadgeColor, BadgeShape, SubtitleOutline, TitleMode
from domain.payloads import RenderPayload


def _payload(**overrides) -> dict:
    data = {
        "text": "Promoção de Verão\naté 50% off",
        "compositionId": "impacto-dark",
        "textPosition": "top-right",
        "subtitleOutline": "soft_shadow",
        "artStyles": ["Comic-book", "Pop art"],
        "brandName": "minhaloja.com",
        "badge": {"text": "R$ 99", "modelText": "modelo X", "style": "burst", "position": "bottom-left", "color": "yellow"},
        "callouts": [
            {"title": "Bateria", "description": "Dura o dia todo"},
            {"title": "Tela", "description": "OLED", "corner": "bottom-right"},
        ],
    }
    data.update(overrides)
    return data


def test_payload_converts_to_domain_configs():
    style, content = RenderPayload.model_validate(_payload()).to_domain()
    assert style.preset_id == "impacto-dark"
    assert style.anchor == AnchorZone.TOP_RIGHT
    assert style.subtitle_outline == SubtitleOutline.SOFT_SHADOW
    assert style.font_styles == ["Comic-book", "Pop art"]
    assert style.title_mode == TitleMode.BLOCK

    assert content.text.startswith("Promoção")
    assert content.watermark == "minhaloja.com"
    assert content.badge.primary_text == "R$ 99"
    assert content.badge.secondary_text == "modelo X"
    assert content.badge.shape == BadgeShape.BURST
    assert content.badge.color == BadgeColor.YELLOW
    assert content.badge.corner == AnchorZone.BOTTOM_LEFT
    assert [c.title for c in content.callouts] == ["Bateria", "Tela"]
    assert content.callouts[0].corner is None
    assert content.callouts[1].corner == AnchorZone.BOTTOM_RIGHT


def test_defaults_for_minimal_payload():
    style, content = RenderPayload.model_validate({"text": "Oi"}).to_domain()
    assert style.preset_id == "random"
    assert style.anchor == AnchorZone.CENTER
    assert style.subtitle_outline == SubtitleOutline.AUTO
    assert content.badge is None
    assert content.callouts == []
    assert content.watermark == ""


def test_badge_position_none_disables_badge():
    _, content = RenderPayload.model_validate(_payload(badge={"text": "X", "position": "none"})).to_domain()
    assert content.badge.corner is None


def test_more_than_four_callouts_rejected():
    callouts = [{"title": f"c{i}", "description": "d"} for i in range(5)]
    with pytest.raises(ValidationError):
        RenderPayload.model_validate(_payload(callouts=callouts))


@pytest.mark.parametrize(
    "field,value",
    [
        ("subtitleOutline", "glow"),
        ("textPosition", "middle"),
        ("badge", {"text": "X", "style": "hexagon"}),
        ("badge", {"text": "X", "position": "center"}),
    ],
)
def test_invalid_enum_values_rejected(field, value):
    with pytest.raises(ValidationError):
        RenderPayload.model_validate(_payload(**{field: value}))
