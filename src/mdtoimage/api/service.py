"""Render orchestration shared by the CLI and embedding integrations."""

from __future__ import annotations

import base64
from collections.abc import Callable, Mapping, Sequence
import logging
from pathlib import Path
from typing import Any

from mdtoimage.adapters.fonts import LoadedFont, load_fonts, normalize_font_config
from mdtoimage.adapters.highlight import tokenize
from mdtoimage.adapters.markdown import parse_markdown, split_front_matter
from mdtoimage.adapters.raster import encode_png
from mdtoimage.adapters.svg import render_svg
from mdtoimage.core.diagnostics import DiagnosticEmitter, ensure_emitter
from mdtoimage.core.exceptions import InputError, MdImageError
from mdtoimage.core.layout import estimate_height
from mdtoimage.core.normalizer import normalize
from mdtoimage.core.theme import Theme, ThemeFonts, get_theme, theme_mode
from mdtoimage.core.visual import BuildContext, Tokenizer, VisualNode, build_document_tree
from mdtoimage.core.watermark import build_watermark_node, normalize_watermark

from .options import FontOptions, RenderOptions, RenderResult


logger = logging.getLogger(__name__)

Parser = Callable[[str], Any]
SvgRenderer = Callable[[VisualNode, int, int, Sequence[LoadedFont]], str]
RasterEncoder = Callable[[str], bytes]
FontLoader = Callable[..., list[LoadedFont]]


def load_source(value: str | Path) -> str:
    """Return the Markdown text for ``value``.

    An existing file is read; anything else is taken as literal Markdown.
    """
    candidate = Path(value).expanduser()
    try:
        is_file = candidate.is_file()
    except (OSError, ValueError):
        is_file = False
    if not is_file:
        return str(value)
    try:
        return candidate.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InputError(f"Unable to read Markdown source '{candidate}': {exc}") from exc


def resolve_theme_fonts(theme: Theme, fonts: FontOptions) -> Theme:
    """Return ``theme`` with the caller's font overrides applied."""
    resolved = ThemeFonts(
        body=normalize_font_config(fonts.body, theme.fonts.body),
        heading=normalize_font_config(fonts.heading, theme.fonts.heading),
        code=normalize_font_config(fonts.code, theme.fonts.code),
    )
    return theme.model_copy(update={"fonts": resolved})


def _write_output(target: Path, payload: bytes | str) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(payload, bytes):
            target.write_bytes(payload)
        else:
            target.write_text(payload, encoding="utf-8")
    except OSError as exc:
        raise MdImageError(f"Unable to write output '{target}': {exc}") from exc


class MarkdownImageRenderer:
    """Sequence parsing, normalisation, layout and encoding for a render call."""

    def __init__(
        self,
        *,
        parser: Parser = parse_markdown,
        tokenizer: Tokenizer = tokenize,
        svg_renderer: SvgRenderer = render_svg,
        raster_encoder: RasterEncoder = encode_png,
        font_loader: FontLoader = load_fonts,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.parser = parser
        self.tokenizer = tokenizer
        self.svg_renderer = svg_renderer
        self.raster_encoder = raster_encoder
        self.font_loader = font_loader
        self.emitter = ensure_emitter(emitter)

    def render(
        self,
        options: RenderOptions | Mapping[str, Any],
        *,
        emitter: DiagnosticEmitter | None = None,
    ) -> RenderResult:
        """Render the configured Markdown source into the requested format."""
        if not isinstance(options, RenderOptions):
            options = RenderOptions.model_validate(dict(options))
        emitter = emitter if emitter is not None else self.emitter

        front_matter, body = split_front_matter(load_source(options.input))
        theme = resolve_theme_fonts(get_theme(options.theme), options.fonts)
        mode = theme_mode(options.theme)
        watermark = normalize_watermark(options.watermark, theme)

        blocks = normalize(self.parser(body))
        logger.debug("Normalised %d top-level blocks", len(blocks))

        content_width = options.max_width or max(options.width - 2 * theme.spacing.padding, 1)
        if options.height is not None:
            height = options.height
            estimated = False
        else:
            height = estimate_height(
                blocks, content_width, theme.spacing, watermark=watermark is not None
            )
            estimated = True
            emitter.event("height_estimated", {"height": height, "blocks": len(blocks)})

        context = BuildContext(theme=theme, mode=mode, tokenize=self.tokenizer, emitter=emitter)
        overlay = build_watermark_node(watermark, theme) if watermark is not None else None
        tree = build_document_tree(
            blocks, context, height=height, max_width=content_width, overlay=overlay
        )

        fonts = self.font_loader(
            theme.fonts, emitter=emitter, allow_download=options.fetch_fallback_fonts
        )
        svg = self.svg_renderer(tree, options.width, height, fonts)
        result = RenderResult(
            svg=svg,
            width=options.width,
            height=height,
            estimated=estimated,
            format=options.format,
            front_matter=front_matter,
        )

        if options.format == "svg":
            if options.output is not None:
                _write_output(options.output, svg)
                result.output = options.output
            return result

        png = self.raster_encoder(svg)
        if options.format == "base64":
            result.base64 = base64.b64encode(png).decode("ascii")
            return result

        result.buffer = png
        if options.output is not None:
            _write_output(options.output, png)
            result.output = options.output
        return result


_DEFAULT_RENDERER: MarkdownImageRenderer | None = None


def get_default_renderer() -> MarkdownImageRenderer:
    """Return the process-wide renderer using the stock collaborators."""
    global _DEFAULT_RENDERER
    if _DEFAULT_RENDERER is None:
        _DEFAULT_RENDERER = MarkdownImageRenderer()
    return _DEFAULT_RENDERER


def render_markdown_to_image(
    options: RenderOptions | Mapping[str, Any],
    *,
    emitter: DiagnosticEmitter | None = None,
) -> RenderResult:
    """Render Markdown to an image with the default renderer."""
    return get_default_renderer().render(options, emitter=emitter)


__all__ = [
    "MarkdownImageRenderer",
    "get_default_renderer",
    "load_source",
    "render_markdown_to_image",
    "resolve_theme_fonts",
]
