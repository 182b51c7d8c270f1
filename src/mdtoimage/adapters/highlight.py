"""Pygments integration producing coloured code lines for the visual tree."""

from __future__ import annotations

import logging
from threading import Lock

from pygments.lexer import Lexer
from pygments.lexers import ClassNotFound, get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.token import _TokenType

from mdtoimage.core.exceptions import HighlightError
from mdtoimage.core.theme import THEME_MODES
from mdtoimage.core.visual import HighlightToken


logger = logging.getLogger(__name__)

STYLE_BY_MODE: dict[str, str] = {"light": "default", "dark": "github-dark"}


class CodeHighlighter:
    """Tokenize source code into per-line coloured fragments."""

    def __init__(self, *, style: str = "default") -> None:
        self.style = style
        self._style_cls = get_style_by_name(style)
        self._colors: dict[_TokenType, str | None] = {}

    def _color_for(self, token_type: _TokenType) -> str | None:
        if token_type not in self._colors:
            color = self._style_cls.style_for_token(token_type).get("color")
            self._colors[token_type] = f"#{color}" if color else None
        return self._colors[token_type]

    def _lexer_for(self, language: str) -> Lexer:
        try:
            return get_lexer_by_name(language, stripnl=False, ensurenl=False)
        except ClassNotFound as exc:
            raise HighlightError(
                f"No lexer available for language '{language}'", language=language
            ) from exc

    def tokenize(self, code: str, language: str | None) -> list[list[HighlightToken]]:
        """Return one list of tokens per line of ``code``.

        The result always holds exactly ``len(code.split("\\n"))`` lines.
        Without a language, lines are returned uncoloured.
        """
        expected = len(code.split("\n"))
        if not language:
            return [[HighlightToken(line)] for line in code.split("\n")]

        lexer = self._lexer_for(language)
        lines: list[list[HighlightToken]] = [[]]
        for token_type, value in lexer.get_tokens(code):
            color = self._color_for(token_type)
            parts = value.split("\n")
            for index, part in enumerate(parts):
                if index:
                    lines.append([])
                if part:
                    lines[-1].append(HighlightToken(part, color))

        if len(lines) < expected:
            lines.extend([] for _ in range(expected - len(lines)))
        return lines[:expected]


_HIGHLIGHTERS: dict[str, CodeHighlighter] = {}
_HIGHLIGHTER_LOCKS: dict[str, Lock] = {mode: Lock() for mode in THEME_MODES}


def get_highlighter(mode: str) -> CodeHighlighter:
    """Return the process-wide highlighter for a theme mode, building it once."""
    if mode not in STYLE_BY_MODE:
        raise ValueError(f"Unknown theme mode '{mode}'.")
    highlighter = _HIGHLIGHTERS.get(mode)
    if highlighter is not None:
        return highlighter
    with _HIGHLIGHTER_LOCKS[mode]:
        highlighter = _HIGHLIGHTERS.get(mode)
        if highlighter is None:
            logger.debug("Building %s highlighter with style %s", mode, STYLE_BY_MODE[mode])
            highlighter = CodeHighlighter(style=STYLE_BY_MODE[mode])
            _HIGHLIGHTERS[mode] = highlighter
    return highlighter


def reset_highlighters() -> None:
    """Drop every cached highlighter."""
    for mode in list(_HIGHLIGHTERS):
        with _HIGHLIGHTER_LOCKS[mode]:
            _HIGHLIGHTERS.pop(mode, None)


def tokenize(code: str, language: str | None, mode: str) -> list[list[HighlightToken]]:
    """Tokenize ``code`` with the cached highlighter for ``mode``."""
    return get_highlighter(mode).tokenize(code, language)


__all__ = [
    "STYLE_BY_MODE",
    "CodeHighlighter",
    "get_highlighter",
    "reset_highlighters",
    "tokenize",
]
