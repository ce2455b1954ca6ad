import dataclasses
import logging
import random

import pytest

from domain.models import WHITE, PaletteMode, StyleMode
from services import presets


EXPECTED_IDS = [
    "random",
    "impacto-light",
    "impacto-dark",
    "impacto-vibrant",
    "impacto-contorno-branco",
    "legivel-light",
    "legivel-dark",
    "degrade",
    "contorno",
    "vertical",
]


def test_table_has_ten_entries_in_order():
    assert [p.id for p in presets.list_presets()] == EXPECTED_IDS
    assert len(presets.concrete_presets()) == 9
    assert all(not p.is_meta for p in presets.concrete_presets())


def test_concrete_preset_resolves_to_itself():
    preset = presets.get("degrade")
    assert preset.style_mode == StyleMode.GRADIENT_ON_BLOCK
    assert preset.palette_mode == PaletteMode.COMPLEMENTARY
    assert preset.background.color == (0, 0, 0, 102)
    assert preset.background.padding_factor == 0.15
    assert not preset.allow_rotation


def test_preset_flags():
    assert presets.get("impacto-contorno-branco").forced_stroke == WHITE
    assert presets.get("impacto-light").allow_rotation
    assert not presets.get("vertical").show_subtitle
    assert presets.get("legivel-light").background.color == (0, 0, 0, 128)
    assert presets.get("legivel-dark").background.color == (255, 255, 255, 153)
    assert presets.get("contorno").style_mode == StyleMode.STROKE


def test_random_is_reproducible_with_seeded_rng():
    first = [presets.get("random", random.Random(42)).id for _ in range(5)]
    second = [presets.get("random", random.Random(42)).id for _ in range(5)]
    assert first == second

    rng = random.Random(7)
    drawn = {presets.get("random", rng).id for _ in range(200)}
    assert "random" not in drawn
    assert drawn == set(EXPECTED_IDS[1:])


def test_unknown_id_resolves_like_random(caplog):
    with caplog.at_level(logging.WARNING):
        preset = presets.get("does-not-exist", random.Random(1))
    assert not preset.is_meta
    assert "unknown preset id" in caplog.text


def test_presets_are_immutable():
    preset = presets.get("contorno")
    with pytest.raises(dataclasses.FrozenInstanceError):
        preset.allow_rotation = True
