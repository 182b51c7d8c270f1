"""Watermark configuration and overlay node."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .theme import Theme
from .visual import VisualNode


DEFAULT_WATERMARK_TEXT = "Generated with mdtoimage"
LIGHT_BACKGROUNDS = frozenset({"#ffffff", "#fff"})


class WatermarkConfig(BaseModel):
    """Text overlay anchored to the bottom-right corner of the canvas."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    text: str = DEFAULT_WATERMARK_TEXT
    opacity: float = Field(default=0.5, ge=0.0, le=1.0)
    font_size: int = Field(default=12, gt=0)
    padding: int = Field(default=16, ge=0)
    color: str | None = None


def normalize_watermark(
    config: bool | WatermarkConfig | None, theme: Theme
) -> WatermarkConfig | None:
    """Resolve the caller's watermark setting against the active theme.

    ``False`` (or a config with ``enabled=False``) disables the overlay.
    ``True``/``None`` select the defaults with a colour contrasting with the
    background; a partial config keeps its values and inherits the theme text
    colour when it does not name one.
    """
    if config is False:
        return None

    if config is True or config is None:
        background = theme.colors.background.lower()
        color = "#999999" if background in LIGHT_BACKGROUNDS else "#cccccc"
        return WatermarkConfig(color=color)

    if not config.enabled:
        return None
    return config.model_copy(update={"color": config.color or theme.colors.text})


def build_watermark_node(watermark: WatermarkConfig, theme: Theme) -> VisualNode:
    """Return the absolutely positioned overlay node."""
    return VisualNode(
        "div",
        {
            "position": "absolute",
            "bottom": watermark.padding,
            "right": watermark.padding,
            "fontSize": watermark.font_size,
            "color": watermark.color or theme.colors.text,
            "opacity": watermark.opacity,
            "fontFamily": theme.fonts.body.name or "Inter",
            "whiteSpace": "nowrap",
        },
        [watermark.text],
    )


__all__ = [
    "DEFAULT_WATERMARK_TEXT",
    "WatermarkConfig",
    "build_watermark_node",
    "normalize_watermark",
]
