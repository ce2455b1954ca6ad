"""
Line wrapping and font-size search for the title/subtitle block.
"""
import logging
from typing import Iterable, List, Sequence, Tuple

from PIL import ImageFont

from domain.models import FontFace, FontPairing, TextAlign, TextBlock, TypographyResult
from services.fonts import load_font

logger = logging.getLogger(__name__)

# Candidate sizes, largest first.
DEFAULT_SIZES: Tuple[int, ...] = tuple(range(250, 9, -5))

TITLE_LINE_HEIGHT = 1.1
SUBTITLE_LINE_HEIGHT = 1.2
SUBTITLE_SCALE = 0.4
GUTTER_FACTOR = 0.2


def measure(font: ImageFont.FreeTypeFont, text: str) -> float:
    """Advance width of `text` in pixels."""
    return font.getlength(text)


def wrap(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> List[str]:
    """
    Greedy word wrap. Paragraph breaks are kept, blank paragraphs dropped.

    A single word wider than `max_width` is emitted on its own line; callers
    detect that through the line widths.
    """
    lines: List[str] = []
    for paragraph in (text or "").split("\n"):
        words = paragraph.split()
        if not words:
            continue
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if measure(font, candidate) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


def _fits_width(lines: Iterable[str], font: ImageFont.FreeTypeFont, max_width: float) -> bool:
    return all(measure(font, line) <= max_width for line in lines)


def subtitle_size_for(title_size: int) -> int:
    return max(1, int(round(title_size * SUBTITLE_SCALE)))


def _layout_at(
    size: int,
    title: str,
    subtitle: str,
    pairing: FontPairing,
    max_width: float,
    alignment: TextAlign,
) -> Tuple[TypographyResult, bool]:
    """Wrap both blocks at `size`; returns the result and whether widths fit."""
    sub_size = subtitle_size_for(size)
    title_font = load_font(pairing.title, size)
    sub_font = load_font(pairing.subtitle, sub_size)

    title_lines = wrap(title, title_font, max_width)
    sub_lines = wrap(subtitle, sub_font, max_width)
    width_ok = _fits_width(title_lines, title_font, max_width) and _fits_width(
        sub_lines, sub_font, max_width
    )

    gutter = size * GUTTER_FACTOR if title_lines and sub_lines else 0.0
    result = TypographyResult(
        title=TextBlock(tuple(title_lines), size, TITLE_LINE_HEIGHT, alignment),
        subtitle=TextBlock(tuple(sub_lines), sub_size, SUBTITLE_LINE_HEIGHT, alignment),
        title_size=size,
        subtitle_size=sub_size,
        gutter=gutter,
    )
    return result, width_ok


def solve_size(
    title: str,
    subtitle: str,
    pairing: FontPairing,
    max_width: float,
    max_height: float,
    sizes: Sequence[int] = DEFAULT_SIZES,
    alignment: TextAlign = TextAlign.CENTER,
) -> TypographyResult:
    """
    Find the largest candidate size at which both blocks fit the box.

    Args:
        title: Title text (already cased by the caller). May be empty.
        subtitle: Subtitle text, drawn at 0.4x the title size. May be empty.
        pairing: Title/subtitle faces.
        max_width: Maximum measured width of any wrapped line.
        max_height: Maximum stacked height of title + gutter + subtitle.
        sizes: Candidate title sizes, searched in descending order.
        alignment: Alignment recorded on the produced text blocks.

    Returns:
        TypographyResult for the first candidate satisfying width and then
        height. When none does, the smallest candidate with fits=False.
    """
    candidates = sorted({int(s) for s in sizes}, reverse=True)
    if not candidates:
        raise ValueError("solve_size needs at least one candidate size")

    for size in candidates:
        result, width_ok = _layout_at(size, title, subtitle, pairing, max_width, alignment)
        if not width_ok:
            continue
        if result.block_height <= max_height:
            logger.debug(
                "[typography] solved size=%s sub=%s lines=%s/%s",
                size, result.subtitle_size, len(result.title.lines), len(result.subtitle.lines),
            )
            return result

    smallest = candidates[-1]
    result, _ = _layout_at(smallest, title, subtitle, pairing, max_width, alignment)
    logger.warning(
        "[typography] no candidate fits %.0fx%.0f; falling back to %spx",
        max_width, max_height, smallest,
    )
    return TypographyResult(
        title=result.title,
        subtitle=result.subtitle,
        title_size=result.title_size,
        subtitle_size=result.subtitle_size,
        gutter=result.gutter,
        fits=False,
    )


def fit_line_size(
    text: str,
    face: FontFace,
    max_width: float,
    start: int,
    minimum: int = 8,
    step: int = 1,
) -> int:
    """Largest size <= start at which the single line `text` fits max_width."""
    size = int(start)
    while size > minimum:
        if measure(load_font(face, size), text) <= max_width:
            return size
        size -= step
    return max(1, int(minimum))
