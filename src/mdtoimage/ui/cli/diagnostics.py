"""Render diagnostics printed through the CLI consoles."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from mdtoimage.core.diagnostics import format_event_message

from .state import CLIState, emit_error, emit_warning, get_cli_state, render_message


class CliEmitter:
    """Print warnings and errors, and record events for ``--verbose`` output."""

    def __init__(self, state: CLIState | None = None, *, debug_enabled: bool | None = None) -> None:
        self.state = state if state is not None else get_cli_state()
        self.debug_enabled = (
            self.state.show_tracebacks if debug_enabled is None else bool(debug_enabled)
        )

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        emit_warning(message, exception=exc)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        emit_error(message, exception=exc)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.state.record_event(name, payload)
        summary = format_event_message(name, payload)
        if summary is not None:
            render_message("info", summary)


__all__ = ["CliEmitter"]
