"""Shared CLI state: verbosity, recorded render events and rich consoles."""

from __future__ import annotations

from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
import sys
from typing import TYPE_CHECKING, Any, TextIO

import click

from mdtoimage.core.exceptions import exception_messages


if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "CLIState",
    "debug_enabled",
    "emit_error",
    "emit_warning",
    "get_cli_state",
    "render_message",
    "set_cli_state",
]

_LEVEL_STYLES = {"warning": "yellow", "error": "red"}


def _bound_console(console: Console | None, stream: TextIO, **kwargs: Any) -> Console:
    # Test runners swap sys.stdout/sys.stderr between invocations.
    if console is not None and console.file is stream:
        return console
    from rich.console import Console

    return Console(file=stream, **kwargs)


@dataclass(slots=True)
class CLIState:
    """Diagnostics settings for one CLI invocation."""

    verbosity: int = 0
    show_tracebacks: bool = False
    events: dict[str, list[dict[str, Any]]] = field(default_factory=dict, init=False)
    _console: Console | None = field(default=None, init=False, repr=False)
    _err_console: Console | None = field(default=None, init=False, repr=False)

    @property
    def console(self) -> Console:
        self._console = _bound_console(self._console, sys.stdout)
        return self._console

    @property
    def err_console(self) -> Console:
        self._err_console = _bound_console(self._err_console, sys.stderr, highlight=False)
        return self._err_console

    def record_event(self, name: str, payload: Mapping[str, Any] | None = None) -> None:
        """Keep a render event so commands can inspect it after the run."""
        self.events.setdefault(name, []).append(dict(payload or {}))


_STATE_VAR: ContextVar[CLIState | None] = ContextVar("mdtoimage_cli_state", default=None)


def get_cli_state(ctx: click.Context | None = None, *, create: bool = True) -> CLIState:
    """Return the state attached to the click context chain, or the ambient one."""
    ctx = ctx or click.get_current_context(silent=True)
    if ctx is not None:
        state = ctx.find_object(CLIState)
        if state is None and create:
            state = ctx.ensure_object(CLIState)
        if state is not None:
            _STATE_VAR.set(state)
            return state

    state = _STATE_VAR.get()
    if state is None:
        if not create:
            raise RuntimeError("CLI state is not initialised for this context.")
        state = CLIState()
        _STATE_VAR.set(state)
    return state


def set_cli_state(
    *,
    ctx: click.Context | None = None,
    verbosity: int | None = None,
    debug: bool | None = None,
) -> CLIState:
    """Apply the command's diagnostic flags to the current state."""
    state = get_cli_state(ctx)
    if verbosity is not None:
        state.verbosity = max(0, verbosity)
    if debug is not None:
        state.show_tracebacks = debug
    return state


def _details(exception: BaseException, message: str, verbosity: int) -> list[str]:
    chain = exception_messages(exception)
    lines = [chain[0]] if chain and chain[0] not in message else []
    lines.append(f"type: {type(exception).__name__}")
    if verbosity >= 2 and len(chain) > 1:
        lines.append("caused by:")
        lines.extend(f"  {entry}" for entry in chain[1:])
    return lines


def render_message(
    level: str,
    message: str,
    *,
    exception: BaseException | None = None,
) -> None:
    """Print a message on stderr.

    Info messages only appear with ``--verbose`` so stdout and stderr stay
    quiet for piped base64 or SVG output. One ``-v`` adds the exception type,
    two add the cause chain.
    """
    state = get_cli_state()
    if level == "info":
        if state.verbosity >= 1:
            state.err_console.log(message)
        return

    from rich.text import Text

    style = _LEVEL_STYLES.get(level, "yellow")
    text = Text.assemble((f"{level}: ", f"bold {style}"), (message, style))
    if exception is not None and state.verbosity >= 1:
        text.append("\n" + "\n".join(_details(exception, message, state.verbosity)), style=style)
    state.err_console.print(text)


def emit_warning(message: str, *, exception: BaseException | None = None) -> None:
    render_message("warning", message, exception=exception)


def emit_error(message: str, *, exception: BaseException | None = None) -> None:
    render_message("error", message, exception=exception)


def debug_enabled() -> bool:
    """Return whether ``--debug`` asked for full tracebacks."""
    try:
        return get_cli_state(create=False).show_tracebacks
    except RuntimeError:
        return False
