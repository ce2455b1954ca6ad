"""
Font catalogue: style-name lookup and font file resolution.

Art-style hints coming from the caller (e.g. "Comic-book", "Old Money") pick a
title/subtitle pairing by case-sensitive substring match. Faces are resolved
to `<Family>-<Weight>.ttf` under the configured font directory, then to a
DejaVu system face, then to Pillow's bundled scalable font.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from PIL import ImageFont

from domain.models import FontFace, FontPairing
from settings import settings

logger = logging.getLogger(__name__)

# Weights used across the engine (CSS numeric weights)
WEIGHT_REGULAR = 400
WEIGHT_MEDIUM = 500
WEIGHT_SEMIBOLD = 600
WEIGHT_BOLD = 700
WEIGHT_BLACK = 900

_WEIGHT_NAMES = {
    WEIGHT_REGULAR: "Regular",
    WEIGHT_MEDIUM: "Medium",
    WEIGHT_SEMIBOLD: "SemiBold",
    WEIGHT_BOLD: "Bold",
    WEIGHT_BLACK: "Black",
}


def _pairing(title_family: str, subtitle_family: str = "Poppins") -> FontPairing:
    return FontPairing(
        title=FontFace(title_family, WEIGHT_BLACK),
        subtitle=FontFace(subtitle_family, WEIGHT_MEDIUM),
    )


DEFAULT_PAIRING = _pairing("Anton")

# Keyword -> pairing; checked in insertion order for every style hint.
FONT_MAP: Dict[str, FontPairing] = {
    "Comic-book": _pairing("Bangers"),
    "Meme": _pairing("Bangers"),
    "Lobster": _pairing("Lobster"),
    "Playfair Display": _pairing("Playfair Display"),
    "Old Money": _pairing("Playfair Display"),
    "Art Déco": _pairing("Playfair Display"),
    "Bauhaus": _pairing("Poppins"),
    "Minimalista": _pairing("Poppins"),
}

# UI faces used by badges, callouts and the watermark.
UI_FAMILY = "Poppins"

_SYSTEM_FALLBACKS = {
    False: ("DejaVuSans.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    True: ("DejaVuSans-Bold.ttf", "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
}


def font_pairing_for_styles(styles: Optional[Sequence[str]]) -> FontPairing:
    """Return the first pairing whose keyword occurs in any style hint."""
    if not styles:
        return DEFAULT_PAIRING
    for style in styles:
        for keyword, pairing in FONT_MAP.items():
            if keyword in style:
                return pairing
    return DEFAULT_PAIRING


def ui_face(weight: int) -> FontFace:
    return FontFace(UI_FAMILY, weight)


def _weight_name(weight: int) -> str:
    closest = min(_WEIGHT_NAMES, key=lambda w: abs(w - weight))
    return _WEIGHT_NAMES[closest]


def font_candidates(face: FontFace, font_dir: Optional[Path] = None) -> List[str]:
    """Ordered file candidates for a face; first existing/loadable one wins."""
    base = font_dir or settings.FONT_DIR
    family = face.family.replace(" ", "")
    candidates = [
        str(base / f"{family}-{_weight_name(face.weight)}.ttf"),
        str(base / f"{family}-Regular.ttf"),
        str(base / f"{family}.ttf"),
    ]
    candidates.extend(_SYSTEM_FALLBACKS[face.weight >= WEIGHT_SEMIBOLD])
    return candidates


@lru_cache(maxsize=512)
def load_font(face: FontFace, size: int) -> ImageFont.FreeTypeFont:
    """Load `face` at `size` px. Results are memoized per (face, size)."""
    size = max(1, int(size))
    for path in font_candidates(face):
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    logger.debug("[fonts] no file for %s, using bundled default at %spx", face, size)
    return ImageFont.load_default(size)
