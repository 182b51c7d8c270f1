"""Markdown parsing utilities backed by markdown-it-py."""

from __future__ import annotations

from collections.abc import Iterable
import re
from threading import Lock
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
import yaml


__all__ = [
    "DEFAULT_MARKDOWN_RULES",
    "parse_markdown",
    "split_front_matter",
]


DEFAULT_MARKDOWN_RULES: tuple[str, ...] = ("table", "strikethrough")


_PARSER_CACHE: dict[tuple[str, ...], MarkdownIt] = {}
_PARSER_CACHE_GUARD = Lock()
_FRONT_MATTER = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?P<yaml>.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def _resolve_parser(rules: tuple[str, ...]) -> MarkdownIt:
    parser = _PARSER_CACHE.get(rules)
    if parser is not None:
        return parser
    with _PARSER_CACHE_GUARD:
        parser = _PARSER_CACHE.get(rules)
        if parser is None:
            parser = MarkdownIt("commonmark")
            if rules:
                parser.enable(list(rules))
            _PARSER_CACHE[rules] = parser
    return parser


def parse_markdown(source: str, rules: Iterable[str] | None = None) -> SyntaxTreeNode:
    """Parse Markdown source into a syntax tree rooted at a ``root`` node."""
    active_rules = tuple(DEFAULT_MARKDOWN_RULES if rules is None else rules)
    parser = _resolve_parser(active_rules)
    tokens = parser.parse(source)
    return SyntaxTreeNode(tokens)


def split_front_matter(source: str) -> tuple[dict[str, Any], str]:
    """Split a leading YAML front matter block from the Markdown body.

    The body is returned exactly as it follows the closing fence. Documents
    whose front matter is unterminated, invalid YAML or not a mapping are
    returned untouched with empty metadata.
    """
    match = _FRONT_MATTER.match(source)
    if match is None:
        return {}, source
    try:
        metadata = yaml.safe_load(match.group("yaml")) or {}
    except yaml.YAMLError:
        return {}, source
    if not isinstance(metadata, dict):
        return {}, source
    return metadata, source[match.end() :]
