"""Primary public API for mdtoimage."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from mdtoimage.api import (
    FontOptions,
    MarkdownImageRenderer,
    RenderOptions,
    RenderResult,
    render_markdown_to_image,
)
from mdtoimage.core.blocks import BlockKind, NormalizedBlock
from mdtoimage.core.exceptions import (
    FontUnavailableError,
    HighlightError,
    InputError,
    MdImageError,
    RasterEncodingError,
)
from mdtoimage.core.layout import estimate_height
from mdtoimage.core.normalizer import normalize
from mdtoimage.core.theme import DARK_THEME, LIGHT_THEME, Theme, get_theme, merge_theme
from mdtoimage.core.watermark import WatermarkConfig


try:
    __version__ = _pkg_version("mdtoimage")
except PackageNotFoundError:
    __version__ = "0.0.0"


__all__ = [
    "DARK_THEME",
    "LIGHT_THEME",
    "BlockKind",
    "FontOptions",
    "FontUnavailableError",
    "HighlightError",
    "InputError",
    "MarkdownImageRenderer",
    "MdImageError",
    "NormalizedBlock",
    "RasterEncodingError",
    "RenderOptions",
    "RenderResult",
    "Theme",
    "WatermarkConfig",
    "__version__",
    "estimate_height",
    "get_theme",
    "merge_theme",
    "normalize",
    "render_markdown_to_image",
]
