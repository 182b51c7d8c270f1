"""Theme models bundling colours, spacing constants and font choices.

ThemeColors

`background` (`str`)
: Canvas background colour.

`text` (`str`)
: Body text colour, also used for list markers and emphasis.

`heading` (`dict[int, str]`)
: Colour per heading level 1-6.

`code` (`CodeColors`)
: Background and text colours for code blocks and code spans.

`blockquote` (`BlockquoteColors`)
: Border, background and text colours for block quotes. The border colour
  doubles as the thematic break colour.

`link` (`str`)
: Link and image placeholder colour.

ThemeSpacing

`padding` (`int`)
: Canvas padding applied on every side.

`gap` (`int`)
: Vertical gap inserted after each block.

`blockquote_padding` (`int`)
: Inner left padding of block quotes (half of it vertically).

`code_padding` (`int`)
: Inner padding of code blocks.

ThemeFonts

`body`, `heading`, `code` (`FontConfig`)
: Font file path, family name, weight and style per role.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml


ThemeMode = Literal["light", "dark"]
THEME_MODES: tuple[str, ...] = ("light", "dark")


class FontConfig(BaseModel):
    """Font file reference for one typographic role."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str = ""
    name: str | None = None
    weight: int | None = None
    style: Literal["normal", "italic"] | None = None


class CodeColors(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    background: str
    text: str


class BlockquoteColors(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    border: str
    background: str
    text: str


class ThemeColors(BaseModel):
    """Colour palette of a theme."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    background: str
    text: str
    heading: dict[int, str]
    code: CodeColors
    blockquote: BlockquoteColors
    link: str

    @field_validator("heading")
    @classmethod
    def _check_heading_levels(cls, value: dict[int, str]) -> dict[int, str]:
        missing = [level for level in range(1, 7) if level not in value]
        if missing:
            raise ValueError(f"Heading colours missing for levels: {missing}")
        return value


class ThemeSpacing(BaseModel):
    """Spacing constants shared by the visual tree and the height estimator."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    padding: int = Field(default=40, ge=0)
    gap: int = Field(default=24, ge=0)
    blockquote_padding: int = Field(default=20, ge=0)
    code_padding: int = Field(default=16, ge=0)


DEFAULT_BODY_FONT = FontConfig(name="Inter", weight=400, style="normal")
DEFAULT_HEADING_FONT = FontConfig(name="Inter", weight=700, style="normal")
DEFAULT_CODE_FONT = FontConfig(name="JetBrains Mono", weight=400, style="normal")


class ThemeFonts(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    body: FontConfig = DEFAULT_BODY_FONT
    heading: FontConfig = DEFAULT_HEADING_FONT
    code: FontConfig = DEFAULT_CODE_FONT


class Theme(BaseModel):
    """Complete theme applied uniformly during visual tree construction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    colors: ThemeColors
    spacing: ThemeSpacing = Field(default_factory=ThemeSpacing)
    fonts: ThemeFonts = Field(default_factory=ThemeFonts)


LIGHT_THEME = Theme(
    colors=ThemeColors(
        background="#ffffff",
        text="#1a1a1a",
        heading={
            1: "#000000",
            2: "#1a1a1a",
            3: "#2a2a2a",
            4: "#3a3a3a",
            5: "#4a4a4a",
            6: "#5a5a5a",
        },
        code=CodeColors(background="#f5f5f5", text="#1a1a1a"),
        blockquote=BlockquoteColors(border="#e0e0e0", background="#f9f9f9", text="#4a4a4a"),
        link="#0066cc",
    ),
)

DARK_THEME = Theme(
    colors=ThemeColors(
        background="#1a1a1a",
        text="#e0e0e0",
        heading={
            1: "#ffffff",
            2: "#f0f0f0",
            3: "#e0e0e0",
            4: "#d0d0d0",
            5: "#c0c0c0",
            6: "#b0b0b0",
        },
        code=CodeColors(background="#2a2a2a", text="#e0e0e0"),
        blockquote=BlockquoteColors(border="#404040", background="#252525", text="#b0b0b0"),
        link="#4da6ff",
    ),
)

_BUILTIN_THEMES: dict[str, Theme] = {"light": LIGHT_THEME, "dark": DARK_THEME}


def get_theme(selection: str | Theme) -> Theme:
    """Return a built-in theme by name, or the given theme unchanged."""
    if isinstance(selection, Theme):
        return selection
    key = str(selection).strip().lower()
    try:
        return _BUILTIN_THEMES[key]
    except KeyError as exc:
        raise ValueError(
            f"Unknown theme '{selection}', expected one of: {', '.join(THEME_MODES)}."
        ) from exc


def merge_theme(base: Theme, overrides: Mapping[str, Any] | Theme) -> Theme:
    """Merge overrides section by section over a base theme.

    Nested mappings (``colors.code``, ``fonts.body``, ...) are merged one
    level deep so partial overrides keep the remaining base values.
    """
    if isinstance(overrides, Theme):
        overrides = overrides.model_dump(exclude_unset=True)
    unknown = set(overrides) - {"colors", "spacing", "fonts"}
    if unknown:
        raise ValueError(f"Unknown theme sections: {', '.join(sorted(unknown))}")
    payload = base.model_dump()
    for section in ("colors", "spacing", "fonts"):
        section_overrides = overrides.get(section)
        if not section_overrides:
            continue
        merged = dict(payload[section])
        for key, value in dict(section_overrides).items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        payload[section] = merged
    return Theme.model_validate(payload)


def load_theme_file(path: Path) -> Theme:
    """Load a YAML or JSON theme override file merged over the light theme."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Theme file '{path}' must contain a mapping.")
    base_name = data.get("extends", "light")
    overrides = {key: value for key, value in data.items() if key != "extends"}
    return merge_theme(get_theme(base_name), overrides)


def theme_mode(selection: str | Theme) -> ThemeMode:
    """Return the highlighter mode matching a theme selection."""
    if isinstance(selection, Theme):
        if selection.colors.background == DARK_THEME.colors.background:
            return "dark"
        return "light"
    return "dark" if str(selection).strip().lower() == "dark" else "light"


__all__ = [
    "DARK_THEME",
    "LIGHT_THEME",
    "THEME_MODES",
    "BlockquoteColors",
    "CodeColors",
    "FontConfig",
    "Theme",
    "ThemeColors",
    "ThemeFonts",
    "ThemeMode",
    "ThemeSpacing",
    "get_theme",
    "load_theme_file",
    "merge_theme",
    "theme_mode",
]
