"""Typer application wiring for the mdtoimage CLI."""

from __future__ import annotations

import typer

from mdtoimage.ui.cli.commands.render import render

from .state import debug_enabled, emit_error, get_cli_state


app = typer.Typer(
    help="Render Markdown documents into images.",
    context_settings={"help_option_names": ["--help", "-h"]},
    add_completion=False,
)

app.command()(render)


def _report_unexpected(exc: Exception) -> None:
    state = get_cli_state()
    if not state.show_tracebacks:
        emit_error(str(exc) or type(exc).__name__, exception=exc)
        return
    from rich.traceback import Traceback

    state.err_console.print(
        Traceback.from_exception(
            type(exc), exc, exc.__traceback__, show_locals=state.verbosity >= 2
        )
    )


def main() -> None:
    """Console script entry point."""
    try:
        app()
    except (typer.Exit, SystemExit):
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Rendering cancelled.", exception=exc)
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        _report_unexpected(exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]
