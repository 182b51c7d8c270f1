"""Custom exception hierarchy for the Markdown image pipeline."""

from __future__ import annotations


class MdImageError(RuntimeError):
    """Base exception for rendering failures."""


class InputError(MdImageError):
    """Raised when the Markdown source cannot be read."""


class HighlightError(MdImageError):
    """Raised when the highlighter cannot tokenize a code block."""

    def __init__(self, message: str, *, language: str | None = None) -> None:
        super().__init__(message)
        self.language = language


class FontUnavailableError(MdImageError):
    """Raised when no font at all can be obtained for the renderer.

    ``reason`` is ``"no-source"`` when nothing was configured and fallback
    downloads are disabled, and ``"network"`` when every fallback mirror failed.
    """

    NO_SOURCE = "no-source"
    NETWORK = "network"

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class RasterEncodingError(MdImageError):
    """Raised when SVG markup cannot be converted into a bitmap."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


__all__ = [
    "FontUnavailableError",
    "HighlightError",
    "InputError",
    "MdImageError",
    "RasterEncodingError",
    "exception_messages",
]
