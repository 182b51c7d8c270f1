"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import click
import typer


OUTPUT_PANEL = "Output"
CANVAS_PANEL = "Canvas"
THEME_PANEL = "Theme"
WATERMARK_PANEL = "Watermark"
FONTS_PANEL = "Fonts"
DIAGNOSTICS_PANEL = "Diagnostics"

InputArgument = Annotated[
    str,
    typer.Argument(
        metavar="INPUT",
        help="Markdown file to render, or the Markdown text itself.",
        show_default=False,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Output file path (defaults to output.png for PNG output).",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

FormatOption = Annotated[
    str,
    typer.Option(
        "--format",
        "-f",
        click_type=click.Choice(["png", "svg", "base64"]),
        help="Output format.",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

WidthOption = Annotated[
    int,
    typer.Option(
        "--width",
        "-w",
        min=1,
        help="Canvas width in pixels.",
        rich_help_panel=CANVAS_PANEL,
    ),
]

HeightOption = Annotated[
    int | None,
    typer.Option(
        "--height",
        min=1,
        help="Canvas height in pixels (estimated from the content when omitted).",
        rich_help_panel=CANVAS_PANEL,
    ),
]

MaxWidthOption = Annotated[
    int | None,
    typer.Option(
        "--max-width",
        min=1,
        help="Maximum content width in pixels.",
        rich_help_panel=CANVAS_PANEL,
    ),
]

ThemeOption = Annotated[
    str,
    typer.Option(
        "--theme",
        "-t",
        help="Theme name (light, dark) or path to a YAML/JSON theme file.",
        rich_help_panel=THEME_PANEL,
    ),
]

NoWatermarkOption = Annotated[
    bool,
    typer.Option(
        "--no-watermark",
        help="Disable the watermark overlay.",
        rich_help_panel=WATERMARK_PANEL,
    ),
]

WatermarkTextOption = Annotated[
    str | None,
    typer.Option(
        "--watermark-text",
        help="Custom watermark text.",
        rich_help_panel=WATERMARK_PANEL,
    ),
]

WatermarkOpacityOption = Annotated[
    float | None,
    typer.Option(
        "--watermark-opacity",
        min=0.0,
        max=1.0,
        help="Watermark opacity between 0 and 1.",
        rich_help_panel=WATERMARK_PANEL,
    ),
]

FontBodyOption = Annotated[
    Path | None,
    typer.Option(
        "--font-body",
        help="Path to the body font file (TTF, OTF or WOFF).",
        rich_help_panel=FONTS_PANEL,
    ),
]

FontHeadingOption = Annotated[
    Path | None,
    typer.Option(
        "--font-heading",
        help="Path to the heading font file.",
        rich_help_panel=FONTS_PANEL,
    ),
]

FontCodeOption = Annotated[
    Path | None,
    typer.Option(
        "--font-code",
        help="Path to the code font file.",
        rich_help_panel=FONTS_PANEL,
    ),
]

NoFontDownloadOption = Annotated[
    bool,
    typer.Option(
        "--no-font-download",
        help="Never download fallback fonts when no font file can be loaded.",
        rich_help_panel=FONTS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Show full tracebacks when an unexpected error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DumpBlocksOption = Annotated[
    bool,
    typer.Option(
        "--dump-blocks",
        help="Print the normalised block forest as JSON and exit.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]


__all__ = [
    "CANVAS_PANEL",
    "DIAGNOSTICS_PANEL",
    "FONTS_PANEL",
    "OUTPUT_PANEL",
    "THEME_PANEL",
    "WATERMARK_PANEL",
    "DebugOption",
    "DumpBlocksOption",
    "FontBodyOption",
    "FontCodeOption",
    "FontHeadingOption",
    "FormatOption",
    "HeightOption",
    "InputArgument",
    "MaxWidthOption",
    "NoFontDownloadOption",
    "NoWatermarkOption",
    "OutputPathOption",
    "ThemeOption",
    "VerboseOption",
    "WatermarkOpacityOption",
    "WatermarkTextOption",
]
