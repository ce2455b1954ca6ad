"""
Layout engine service.

Places the title/subtitle block on the square canvas and keeps track of
which corners decorative elements occupy.
Uses a registry pattern: one placement function per anchor zone.
"""
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from domain.models import CORNERS, AnchorZone, Callout, ElementKind, Placement, TextAlign

logger = logging.getLogger(__name__)

MARGIN_FACTOR = 0.07
SIDE_WIDTH_FACTOR = 0.4
FULL_WIDTH_FACTOR = 0.8
MAX_HEIGHT_FACTOR = 0.8

BlockSize = Tuple[float, float]
# (block_size, canvas_size) -> (x, y, align)
AnchorFunction = Callable[[BlockSize, int], Tuple[float, float, TextAlign]]

OccupiedZones = Mapping[AnchorZone, Iterable[ElementKind]]


# Registry of placement functions by anchor zone
_anchor_registry: Dict[AnchorZone, AnchorFunction] = {}


def register_anchor(zone: AnchorZone):
    """Decorator to register a placement function for an anchor zone."""
    def decorator(func: AnchorFunction) -> AnchorFunction:
        _anchor_registry[zone] = func
        return func
    return decorator


def margin_for(canvas_size: int) -> float:
    return canvas_size * MARGIN_FACTOR


def max_text_width(anchor: AnchorZone, canvas_size: int) -> float:
    """Side anchors get a narrow column; everything else spans most of the canvas."""
    if AnchorZone(anchor) in (AnchorZone.LEFT, AnchorZone.RIGHT):
        return canvas_size * SIDE_WIDTH_FACTOR
    return canvas_size * FULL_WIDTH_FACTOR


def max_text_height(canvas_size: int) -> float:
    return canvas_size * MAX_HEIGHT_FACTOR


# ============================================
# Zone contention
# ============================================

# (title zone, element kind, element zone, downward offset as canvas fraction)
_CONTENTION_RULES: Tuple[Tuple[AnchorZone, ElementKind, AnchorZone, float], ...] = (
    (AnchorZone.TOP_RIGHT, ElementKind.CALLOUT, AnchorZone.TOP_RIGHT, 0.15),
)


def contention_offset(anchor: AnchorZone, canvas_size: int, occupied_zones: Optional[OccupiedZones]) -> float:
    """Vertical offset the title block needs to clear elements sharing its zone."""
    if not occupied_zones:
        return 0.0
    offset = 0.0
    for title_zone, kind, zone, factor in _CONTENTION_RULES:
        if anchor == title_zone and kind in set(occupied_zones.get(zone, ())):
            offset += canvas_size * factor
    return offset


class ZoneReservations:
    """
    Which element kinds occupy which zone during one render.

    Callouts compete only with each other for the four corners; the badge
    records its corner so contention rules can see it.
    """

    def __init__(self) -> None:
        self._zones: Dict[AnchorZone, Set[ElementKind]] = {}

    def claim(self, zone: AnchorZone, kind: ElementKind) -> None:
        self._zones.setdefault(AnchorZone(zone), set()).add(kind)

    def occupants(self, zone: AnchorZone) -> Set[ElementKind]:
        return set(self._zones.get(AnchorZone(zone), set()))

    def is_free(self, zone: AnchorZone, kind: ElementKind) -> bool:
        return kind not in self._zones.get(AnchorZone(zone), set())

    def as_mapping(self) -> Dict[AnchorZone, Set[ElementKind]]:
        return {zone: set(kinds) for zone, kinds in self._zones.items()}

    def _next_free_corner(self, start: Optional[AnchorZone] = None) -> Optional[AnchorZone]:
        begin = CORNERS.index(start) if start in CORNERS else 0
        for i in range(len(CORNERS)):
            corner = CORNERS[(begin + i) % len(CORNERS)]
            if self.is_free(corner, ElementKind.CALLOUT):
                return corner
        return None

    def assign_callout_corners(self, callouts: Iterable[Callout]) -> List[Tuple[Callout, AnchorZone]]:
        """
        Give every non-empty callout its own corner and claim it.

        Explicit corners are honoured first; a callout whose corner is taken
        moves to the next free corner. Unplaced callouts fill the remaining
        corners in top-left, top-right, bottom-right, bottom-left order.
        Callouts left over once all corners are taken are dropped.

        Returns:
            (callout, corner) pairs in the input order.
        """
        pending = [c for c in callouts if not c.is_empty]
        assigned: Dict[int, AnchorZone] = {}

        requested = [i for i, c in enumerate(pending) if c.corner in CORNERS]
        automatic = [i for i, c in enumerate(pending) if c.corner not in CORNERS]

        for i in requested + automatic:
            wanted = pending[i].corner if i in requested else None
            corner = self._next_free_corner(wanted)
            if corner is None:
                logger.warning("[layout] no free corner for callout %r, dropping it", pending[i].title)
                continue
            if wanted is not None and corner != wanted:
                logger.info("[layout] callout %r moved from %s to %s", pending[i].title, wanted.value, corner.value)
            self.claim(corner, ElementKind.CALLOUT)
            assigned[i] = corner

        return [(pending[i], assigned[i]) for i in sorted(assigned)]


# ============================================
# Placement
# ============================================

def resolve(
    anchor: AnchorZone,
    block_size: BlockSize,
    canvas_size: int,
    occupied_zones: Optional[OccupiedZones] = None,
) -> Placement:
    """
    Compute the origin of the stacked title block.

    Args:
        anchor: Requested zone for the title block
        block_size: (width, height) of the stacked block in pixels
        canvas_size: Side of the square canvas
        occupied_zones: Zone -> element kinds already placed there

    Returns:
        Placement whose x is a left edge, centre or right edge depending on
        align, and whose y is the top of the block.

    Raises:
        ValueError: If no placement is registered for the anchor
    """
    zone = AnchorZone(anchor)
    anchor_func = _anchor_registry.get(zone)
    if not anchor_func:
        raise ValueError(f"No placement registered for anchor: {zone}")

    x, y, align = anchor_func(block_size, canvas_size)
    offset = contention_offset(zone, canvas_size, occupied_zones)
    if offset:
        logger.info("[layout] title at %s shifted down %.1fpx to clear a callout", zone.value, offset)
    return Placement(x=x, y=y + offset, align=align, zone=zone, offset_y=offset)


# ============================================
# Anchor implementations
# ============================================

@register_anchor(AnchorZone.CENTER)
def place_center(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    return canvas_size / 2, (canvas_size - h) / 2, TextAlign.CENTER


@register_anchor(AnchorZone.TOP)
def place_top(block_size: BlockSize, canvas_size: int):
    return canvas_size / 2, margin_for(canvas_size), TextAlign.CENTER


@register_anchor(AnchorZone.BOTTOM)
def place_bottom(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    return canvas_size / 2, canvas_size - margin_for(canvas_size) - h, TextAlign.CENTER


@register_anchor(AnchorZone.LEFT)
def place_left(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    return margin_for(canvas_size), (canvas_size - h) / 2, TextAlign.LEFT


@register_anchor(AnchorZone.RIGHT)
def place_right(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    return canvas_size - margin_for(canvas_size), (canvas_size - h) / 2, TextAlign.RIGHT


@register_anchor(AnchorZone.TOP_LEFT)
def place_top_left(block_size: BlockSize, canvas_size: int):
    m = margin_for(canvas_size)
    return m, m, TextAlign.LEFT


@register_anchor(AnchorZone.TOP_RIGHT)
def place_top_right(block_size: BlockSize, canvas_size: int):
    m = margin_for(canvas_size)
    return canvas_size - m, m, TextAlign.RIGHT


@register_anchor(AnchorZone.BOTTOM_LEFT)
def place_bottom_left(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    m = margin_for(canvas_size)
    return m, canvas_size - m - h, TextAlign.LEFT


@register_anchor(AnchorZone.BOTTOM_RIGHT)
def place_bottom_right(block_size: BlockSize, canvas_size: int):
    _, h = block_size
    m = margin_for(canvas_size)
    return canvas_size - m, canvas_size - m - h, TextAlign.RIGHT
