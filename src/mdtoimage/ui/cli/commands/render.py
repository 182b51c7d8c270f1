"""Implementation of the primary ``mdtoimage`` CLI command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
import typer
import yaml

from mdtoimage.adapters.markdown import parse_markdown, split_front_matter
from mdtoimage.api.options import RenderOptions
from mdtoimage.api.service import load_source, render_markdown_to_image
from mdtoimage.core.blocks import forest_to_dicts
from mdtoimage.core.exceptions import MdImageError
from mdtoimage.core.normalizer import normalize
from mdtoimage.core.theme import THEME_MODES, Theme, load_theme_file
from mdtoimage.core.watermark import WatermarkConfig

from .._options import (
    DebugOption,
    DumpBlocksOption,
    FontBodyOption,
    FontCodeOption,
    FontHeadingOption,
    FormatOption,
    HeightOption,
    InputArgument,
    MaxWidthOption,
    NoFontDownloadOption,
    NoWatermarkOption,
    OutputPathOption,
    ThemeOption,
    VerboseOption,
    WatermarkOpacityOption,
    WatermarkTextOption,
    WidthOption,
)
from ..diagnostics import CliEmitter
from ..state import debug_enabled, emit_error, set_cli_state


DEFAULT_PNG_OUTPUT = Path("output.png")


def _resolve_theme(value: str) -> str | Theme:
    """Return a built-in theme name or the theme loaded from a file."""
    name = value.strip().lower()
    if name in THEME_MODES:
        return name
    path = Path(value).expanduser()
    if not path.is_file():
        raise typer.BadParameter(
            f"'{value}' is neither a built-in theme ({', '.join(THEME_MODES)}) nor a theme file.",
            param_hint="'--theme'",
        )
    try:
        return load_theme_file(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise typer.BadParameter(
            f"Invalid theme file '{path}': {exc}", param_hint="'--theme'"
        ) from exc


def _watermark_option(
    disabled: bool, text: str | None, opacity: float | None
) -> bool | WatermarkConfig:
    if disabled:
        return False
    overrides: dict[str, Any] = {}
    if text:
        overrides["text"] = text
    if opacity is not None:
        overrides["opacity"] = opacity
    if not overrides:
        return True
    return WatermarkConfig(**overrides)


def _format_validation_error(exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "Invalid render options: " + "; ".join(details)


def _dump_blocks(source: str) -> None:
    _, body = split_front_matter(load_source(source))
    blocks = normalize(parse_markdown(body))
    typer.echo(json.dumps(forest_to_dicts(blocks), indent=2, ensure_ascii=False))


def render(
    input_source: InputArgument,
    output: OutputPathOption = None,
    width: WidthOption = 1200,
    height: HeightOption = None,
    theme: ThemeOption = "light",
    max_width: MaxWidthOption = None,
    output_format: FormatOption = "png",
    no_watermark: NoWatermarkOption = False,
    watermark_text: WatermarkTextOption = None,
    watermark_opacity: WatermarkOpacityOption = None,
    font_body: FontBodyOption = None,
    font_heading: FontHeadingOption = None,
    font_code: FontCodeOption = None,
    no_font_download: NoFontDownloadOption = False,
    dump_blocks: DumpBlocksOption = False,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Render a Markdown document into a PNG, SVG or base64 encoded image."""

    state = set_cli_state(
        ctx=click.get_current_context(silent=True), verbosity=verbose, debug=debug
    )

    if dump_blocks:
        _dump_blocks(input_source)
        raise typer.Exit()

    theme_selection = _resolve_theme(theme)
    fonts = {
        role: str(path)
        for role, path in (("body", font_body), ("heading", font_heading), ("code", font_code))
        if path is not None
    }
    if output_format == "png":
        destination: Path | None = output or DEFAULT_PNG_OUTPUT
    elif output_format == "svg":
        destination = output
    else:
        destination = None

    emitter = CliEmitter(state=state, debug_enabled=debug_enabled())
    try:
        options = RenderOptions(
            input=input_source,
            output=destination,
            width=width,
            height=height,
            format=output_format,
            theme=theme_selection,
            fonts=fonts,
            watermark=_watermark_option(no_watermark, watermark_text, watermark_opacity),
            max_width=max_width,
            fetch_fallback_fonts=not no_font_download,
        )
        result = render_markdown_to_image(options, emitter=emitter)
    except ValidationError as exc:
        emit_error(_format_validation_error(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    except MdImageError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    if output_format == "base64":
        typer.echo(result.base64)
    elif output_format == "svg":
        if result.output is not None:
            typer.echo(f"SVG saved to {result.output}")
        else:
            typer.echo(result.svg)
    else:
        typer.echo(f"Image saved to {result.output} ({result.width}x{result.height})")
