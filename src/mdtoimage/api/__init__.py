"""Facade aggregating the embedding surface of mdtoimage.

Architecture
: `RenderOptions` models the caller's configuration (source, canvas size,
  theme, fonts, watermark and output format) and validates it before any
  rendering work starts.
: `MarkdownImageRenderer` sequences parsing, normalisation, height
  estimation, visual tree construction, vector rendering and raster encoding.
  Each collaborator can be swapped out, which keeps tests free of network
  and cairo access.
: `render_markdown_to_image` runs a render with the process-wide default
  renderer and returns a `RenderResult`.

Usage Example
:
    >>> from mdtoimage.api import MarkdownImageRenderer
    >>> renderer = MarkdownImageRenderer(font_loader=lambda fonts, **_: [])
    >>> result = renderer.render({"input": "# Hello\\n\\nWorld", "format": "svg"})
    >>> (result.width, result.height, result.estimated)
    (1200, 400, True)
"""

from __future__ import annotations

from mdtoimage.core.user_dir import cache_path, resolve_cache_root

from .options import FontOptions, OutputFormat, RenderOptions, RenderResult
from .service import (
    MarkdownImageRenderer,
    get_default_renderer,
    load_source,
    render_markdown_to_image,
    resolve_theme_fonts,
)


__all__ = [
    "FontOptions",
    "MarkdownImageRenderer",
    "OutputFormat",
    "RenderOptions",
    "RenderResult",
    "cache_path",
    "get_default_renderer",
    "load_source",
    "render_markdown_to_image",
    "resolve_cache_root",
    "resolve_theme_fonts",
]
