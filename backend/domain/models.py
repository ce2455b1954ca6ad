"""
Core domain models for the social graphic composer.
These are framework-agnostic and are created fresh for every render.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from PIL import Image


RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]

WHITE: RGB = (255, 255, 255)
LIGHT_GRAY: RGB = (224, 224, 224)
BLACK: RGB = (0, 0, 0)


class PaletteMode(str, Enum):
    """Strategy for deriving working colors from the dominant image colors."""
    LIGHT = "light"
    DARK = "dark"
    COMPLEMENTARY = "complementary"
    ANALOGOUS = "analogous"


class StyleMode(str, Enum):
    """How the title lines are painted."""
    FILL = "fill"
    STROKE = "stroke"
    FILL_STROKE = "fill-stroke"
    GRADIENT_ON_BLOCK = "gradient-on-block"
    VERTICAL = "vertical"


class TextAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class AnchorZone(str, Enum):
    """
    Named placement regions on the square canvas.

    Each decorative element declares the zone it occupies; the title block,
    the badge and the callouts negotiate the four corners.
    """
    CENTER = "center"
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"


# Callouts fill corners in this order when they do not ask for one.
CORNERS: Tuple[AnchorZone, ...] = (
    AnchorZone.TOP_LEFT,
    AnchorZone.TOP_RIGHT,
    AnchorZone.BOTTOM_RIGHT,
    AnchorZone.BOTTOM_LEFT,
)


class SubtitleOutline(str, Enum):
    AUTO = "auto"
    WHITE = "white"
    BLACK = "black"
    SOFT_SHADOW = "soft_shadow"
    TRANSPARENT_BOX = "transparent_box"


class TitleMode(str, Enum):
    """
    BLOCK draws the preset-driven title/subtitle block.
    LABEL draws only the first line as a small product label at the top.
    """
    BLOCK = "block"
    LABEL = "label"


class BadgeShape(str, Enum):
    CIRCLE = "circle"
    TAG = "tag"
    BURST = "burst"


class BadgeColor(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    BLUE = "blue"
    BLACK = "black"

    @property
    def rgb(self) -> RGB:
        return BADGE_COLORS[self]


BADGE_COLORS = {
    BadgeColor.RED: (0xEF, 0x44, 0x44),
    BadgeColor.YELLOW: (0xF5, 0x9E, 0x0B),
    BadgeColor.BLUE: (0x3B, 0x82, 0xF6),
    BadgeColor.BLACK: (0x1F, 0x29, 0x37),
}


class ElementKind(str, Enum):
    BADGE = "badge"
    CALLOUT = "callout"
    WATERMARK = "watermark"


# ============================================
# Color analysis
# ============================================

@dataclass(frozen=True)
class DominantColor:
    color: RGB
    count: int


@dataclass(frozen=True)
class DominantColorSet:
    """Representative colors ordered by pixel frequency, most frequent first."""
    colors: Tuple[DominantColor, ...] = ()
    sampled_pixels: int = 0

    def rgb(self) -> List[RGB]:
        return [c.color for c in self.colors]

    def __len__(self) -> int:
        return len(self.colors)


@dataclass(frozen=True)
class Palette:
    fill1: RGB
    fill2: RGB
    stroke: RGB
    mode: Optional[PaletteMode] = None


# ============================================
# Presets
# ============================================

@dataclass(frozen=True)
class BackgroundBox:
    """Solid box drawn behind each title line; padding is a fraction of the title size."""
    color: RGBA
    padding_factor: float = 0.1


@dataclass(frozen=True)
class CompositionPreset:
    id: str
    name: str
    style_mode: StyleMode
    palette_mode: PaletteMode
    background: Optional[BackgroundBox] = None
    forced_stroke: Optional[RGB] = None
    allow_rotation: bool = False
    show_subtitle: bool = True

    @property
    def is_meta(self) -> bool:
        return self.id == "random"


# ============================================
# Typography and layout
# ============================================

@dataclass(frozen=True)
class FontFace:
    family: str
    weight: int = 400


@dataclass(frozen=True)
class FontPairing:
    title: FontFace
    subtitle: FontFace


@dataclass(frozen=True)
class TextBlock:
    """Wrapped lines at a fixed size. Re-derived, never mutated."""
    lines: Tuple[str, ...]
    font_size_px: int
    line_height_factor: float
    alignment: TextAlign = TextAlign.CENTER

    @property
    def height(self) -> float:
        return len(self.lines) * self.font_size_px * self.line_height_factor

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True)
class TypographyResult:
    title: TextBlock
    subtitle: TextBlock
    title_size: int
    subtitle_size: int
    gutter: float
    fits: bool = True

    @property
    def block_height(self) -> float:
        return self.title.height + self.gutter + self.subtitle.height


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def as_box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.right, self.bottom)

    def intersects(self, other: "Rect") -> bool:
        return not (
            self.right <= other.x
            or other.right <= self.x
            or self.bottom <= other.y
            or other.bottom <= self.y
        )


@dataclass(frozen=True)
class Placement:
    """Origin of the stacked title block; x is interpreted according to align."""
    x: float
    y: float
    align: TextAlign
    zone: AnchorZone
    offset_y: float = 0.0


@dataclass(frozen=True)
class DecorativeElement:
    kind: ElementKind
    text: str
    zone: AnchorZone
    footprint: Rect


# ============================================
# Render request / result
# ============================================

@dataclass
class BadgeConfig:
    primary_text: str = ""
    secondary_text: str = ""
    shape: BadgeShape = BadgeShape.CIRCLE
    color: BadgeColor = BadgeColor.RED
    corner: Optional[AnchorZone] = AnchorZone.TOP_RIGHT

    @property
    def is_empty(self) -> bool:
        return not self.primary_text.strip() and not self.secondary_text.strip()


@dataclass
class Callout:
    title: str = ""
    description: str = ""
    corner: Optional[AnchorZone] = None

    @property
    def is_empty(self) -> bool:
        return not self.title.strip() and not self.description.strip()


@dataclass
class StyleConfig:
    preset_id: str = "random"
    anchor: AnchorZone = AnchorZone.CENTER
    font_styles: List[str] = field(default_factory=list)
    subtitle_outline: SubtitleOutline = SubtitleOutline.AUTO
    title_mode: TitleMode = TitleMode.BLOCK


@dataclass
class ContentConfig:
    """
    Text content for one graphic.

    `text` holds the title on its first line and the subtitle on the
    remaining lines.
    """
    text: str = ""
    callouts: List[Callout] = field(default_factory=list)
    badge: Optional[BadgeConfig] = None
    watermark: str = ""

    def split_text(self) -> Tuple[str, str]:
        lines = (self.text or "").split("\n")
        title = lines[0].strip() if lines else ""
        subtitle = "\n".join(lines[1:]).strip()
        return title, subtitle


@dataclass
class CompositionResult:
    image: Image.Image
    preset: CompositionPreset
    palette: Palette
    typography: Optional[TypographyResult] = None
    placement: Optional[Placement] = None
    rotation_deg: float = 0.0
    elements: List[DecorativeElement] = field(default_factory=list)
