"""Caller-facing render configuration and results.

RenderOptions

`input` (`str | Path`)
: Path to a Markdown file, or the Markdown text itself when no such file exists.

`output` (`Path | None`)
: Destination written for `png` and `svg` formats when set.

`width` (`int`)
: Canvas width in pixels.

`height` (`int | None`)
: Explicit canvas height. When omitted the height is estimated.

`format` (`"png" | "svg" | "base64"`)
: Output artefact shape.

`theme` (`str | Theme`)
: Built-in theme name or a complete theme.

`fonts` (`FontOptions`)
: Per-role font file overrides.

`watermark` (`bool | WatermarkConfig`)
: Overlay selection, enabled by default.

`max_width` (`int | None`)
: Maximum content width, defaulting to the canvas width minus padding.

`fetch_fallback_fonts` (`bool`)
: Whether Roboto may be downloaded when no font file loads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mdtoimage.core.theme import THEME_MODES, FontConfig, Theme
from mdtoimage.core.watermark import WatermarkConfig


OutputFormat = Literal["png", "svg", "base64"]


class FontOptions(BaseModel):
    """Font overrides given as a file path or a full font reference."""

    model_config = ConfigDict(extra="forbid")

    body: str | FontConfig | None = None
    heading: str | FontConfig | None = None
    code: str | FontConfig | None = None


class RenderOptions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    input: str | Path
    output: Path | None = None
    width: int = Field(default=1200, gt=0)
    height: int | None = Field(default=None, gt=0)
    format: OutputFormat = "png"
    theme: str | Theme = "light"
    fonts: FontOptions = Field(default_factory=FontOptions)
    watermark: bool | WatermarkConfig = True
    max_width: int | None = Field(default=None, gt=0)
    fetch_fallback_fonts: bool = True

    @field_validator("theme")
    @classmethod
    def _validate_theme(cls, value: str | Theme) -> str | Theme:
        if isinstance(value, Theme):
            return value
        name = value.strip().lower()
        if name not in THEME_MODES:
            raise ValueError(f"Unknown theme '{value}', expected one of: {', '.join(THEME_MODES)}.")
        return name


@dataclass(slots=True)
class RenderResult:
    """Artefacts produced by a render call."""

    svg: str
    width: int
    height: int
    estimated: bool
    format: OutputFormat = "png"
    buffer: bytes | None = None
    base64: str | None = None
    output: Path | None = None
    front_matter: dict[str, Any] = field(default_factory=dict)


__all__ = ["FontOptions", "OutputFormat", "RenderOptions", "RenderResult"]
