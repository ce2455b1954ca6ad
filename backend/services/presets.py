"""
Composition preset table.

Presets are plain data; the renderer dispatches once on `style_mode`.
The "random" entry is a placeholder that `get` swaps for a concrete preset.
"""
import logging
import random
from typing import Dict, Optional, Tuple

from domain.models import WHITE, BackgroundBox, CompositionPreset, PaletteMode, StyleMode

logger = logging.getLogger(__name__)

RANDOM_PRESET_ID = "random"

PRESETS: Tuple[CompositionPreset, ...] = (
    CompositionPreset(
        id=RANDOM_PRESET_ID,
        name="Aleatório",
        style_mode=StyleMode.FILL_STROKE,
        palette_mode=PaletteMode.LIGHT,
        allow_rotation=True,
    ),
    CompositionPreset(
        id="impacto-light",
        name="Impacto (Claro)",
        style_mode=StyleMode.FILL_STROKE,
        palette_mode=PaletteMode.LIGHT,
        allow_rotation=True,
    ),
    CompositionPreset(
        id="impacto-dark",
        name="Impacto (Escuro)",
        style_mode=StyleMode.FILL_STROKE,
        palette_mode=PaletteMode.DARK,
        allow_rotation=True,
    ),
    CompositionPreset(
        id="impacto-vibrant",
        name="Impacto (Vibrante)",
        style_mode=StyleMode.FILL_STROKE,
        palette_mode=PaletteMode.COMPLEMENTARY,
        allow_rotation=True,
    ),
    CompositionPreset(
        id="impacto-contorno-branco",
        name="Impacto (Contorno Branco)",
        style_mode=StyleMode.FILL_STROKE,
        palette_mode=PaletteMode.DARK,
        forced_stroke=WHITE,
        allow_rotation=True,
    ),
    CompositionPreset(
        id="legivel-light",
        name="Legível (Fundo Escuro)",
        style_mode=StyleMode.FILL,
        palette_mode=PaletteMode.LIGHT,
        background=BackgroundBox(color=(0, 0, 0, 128), padding_factor=0.2),
    ),
    CompositionPreset(
        id="legivel-dark",
        name="Legível (Fundo Claro)",
        style_mode=StyleMode.FILL,
        palette_mode=PaletteMode.DARK,
        background=BackgroundBox(color=(255, 255, 255, 153), padding_factor=0.2),
    ),
    CompositionPreset(
        id="degrade",
        name="Degradê",
        style_mode=StyleMode.GRADIENT_ON_BLOCK,
        palette_mode=PaletteMode.COMPLEMENTARY,
        background=BackgroundBox(color=(0, 0, 0, 102), padding_factor=0.15),
    ),
    CompositionPreset(
        id="contorno",
        name="Contorno",
        style_mode=StyleMode.STROKE,
        palette_mode=PaletteMode.LIGHT,
    ),
    CompositionPreset(
        id="vertical",
        name="Vertical",
        style_mode=StyleMode.VERTICAL,
        palette_mode=PaletteMode.LIGHT,
        show_subtitle=False,
    ),
)

_BY_ID: Dict[str, CompositionPreset] = {p.id: p for p in PRESETS}


def list_presets() -> Tuple[CompositionPreset, ...]:
    """All presets in display order, the random meta entry first."""
    return PRESETS


def concrete_presets() -> Tuple[CompositionPreset, ...]:
    return tuple(p for p in PRESETS if not p.is_meta)


def get(preset_id: Optional[str], rng: Optional[random.Random] = None) -> CompositionPreset:
    """
    Resolve a preset id to a concrete preset.

    "random" (and any unknown id) samples uniformly among the concrete
    presets using `rng`, or the module-level generator when none is given.
    """
    preset = _BY_ID.get(preset_id or RANDOM_PRESET_ID)
    if preset is not None and not preset.is_meta:
        return preset
    if preset is None:
        logger.warning("[presets] unknown preset id %r, picking a random one", preset_id)

    chooser = rng if rng is not None else random
    chosen = chooser.choice(concrete_presets())
    logger.info("[presets] random -> %s", chosen.id)
    return chosen
