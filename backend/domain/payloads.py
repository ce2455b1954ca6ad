"""
Inbound payload schema.

Validates the camelCase configuration produced by the orchestration layer
and converts it into the engine's StyleConfig/ContentConfig.
"""
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from domain.models import (
    AnchorZone, BadgeColor, BadgeConfig, BadgeShape, Callout, ContentConfig, StyleConfig,
    SubtitleOutline, TitleMode,
)

MAX_CALLOUTS = 4

CornerName = Literal["top-left", "top-right", "bottom-left", "bottom-right"]
BadgePosition = Union[Literal["none"], CornerName]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore", protected_namespaces=(),
    )


class BadgePayload(_CamelModel):
    text: str = ""
    model_text: str = ""
    style: BadgeShape = BadgeShape.CIRCLE
    position: BadgePosition = "none"
    color: BadgeColor = BadgeColor.RED

    def to_domain(self) -> BadgeConfig:
        corner = None if self.position == "none" else AnchorZone(self.position)
        return BadgeConfig(
            primary_text=self.text,
            secondary_text=self.model_text,
            shape=self.style,
            color=self.color,
            corner=corner,
        )


class CalloutPayload(_CamelModel):
    title: str = ""
    description: str = ""
    corner: Optional[CornerName] = None

    def to_domain(self) -> Callout:
        corner = AnchorZone(self.corner) if self.corner is not None else None
        return Callout(title=self.title, description=self.description, corner=corner)


class RenderPayload(_CamelModel):
    text: str = ""
    composition_id: str = "random"
    text_position: AnchorZone = AnchorZone.CENTER
    subtitle_outline: SubtitleOutline = SubtitleOutline.AUTO
    title_mode: TitleMode = TitleMode.BLOCK
    art_styles: List[str] = Field(default_factory=list)
    brand_name: str = ""
    badge: Optional[BadgePayload] = None
    callouts: List[CalloutPayload] = Field(default_factory=list, max_length=MAX_CALLOUTS)

    def to_domain(self) -> Tuple[StyleConfig, ContentConfig]:
        style = StyleConfig(
            preset_id=self.composition_id,
            anchor=self.text_position,
            font_styles=list(self.art_styles),
            subtitle_outline=self.subtitle_outline,
            title_mode=self.title_mode,
        )
        content = ContentConfig(
            text=self.text,
            callouts=[c.to_domain() for c in self.callouts],
            badge=self.badge.to_domain() if self.badge is not None else None,
            watermark=self.brand_name,
        )
        return style, content
