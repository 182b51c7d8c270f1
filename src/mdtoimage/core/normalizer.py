"""Reduce a Markdown syntax tree into the normalised block forest.

Block-level syntax nodes are dispatched on their ``type`` through a small
handler registry. Container nodes (block quotes, list items) recurse through
:func:`normalize_blocks`, the very function used for the document root, so
nested content is normalised exactly like top-level content. Node types with
no registered handler (raw HTML, tables, front matter, ...) produce nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import logging
import re
from typing import Any

from .blocks import MAX_HEADING_LEVEL, MIN_HEADING_LEVEL, BlockKind, NormalizedBlock
from .inline import node_attr, normalize_inline


logger = logging.getLogger(__name__)

BlockHandler = Callable[[Any], Sequence[NormalizedBlock]]

_BLOCK_HANDLERS: dict[str, BlockHandler] = {}
_HEADING_TAG = re.compile(r"^h(-?\d+)$", re.IGNORECASE)


def _handles(*node_types: str) -> Callable[[BlockHandler], BlockHandler]:
    def decorator(handler: BlockHandler) -> BlockHandler:
        for node_type in node_types:
            _BLOCK_HANDLERS[node_type] = handler
        return handler

    return decorator


def _children(node: Any) -> Sequence[Any]:
    return getattr(node, "children", None) or ()


def _inline_children(node: Any) -> list[Any]:
    """Return the inline nodes of a heading or paragraph, unwrapping ``inline`` holders."""
    nodes: list[Any] = []
    for child in _children(node):
        if getattr(child, "type", None) == "inline":
            nodes.extend(_children(child))
        else:
            nodes.append(child)
    return nodes


def clamp_heading_level(value: Any) -> int:
    """Coerce a source heading depth into the representable ``[1, 6]`` range."""
    try:
        level = int(value)
    except (TypeError, ValueError):
        return MIN_HEADING_LEVEL
    return max(MIN_HEADING_LEVEL, min(MAX_HEADING_LEVEL, level))


def _heading_level(node: Any) -> int:
    tag = getattr(node, "tag", "") or ""
    match = _HEADING_TAG.match(tag)
    if match:
        return clamp_heading_level(match.group(1))
    return clamp_heading_level(getattr(node, "level", None))


def _strip_final_newline(text: str) -> str:
    return text[:-1] if text.endswith("\n") else text


def _info_language(node: Any) -> str | None:
    info = (getattr(node, "info", "") or "").strip()
    if not info:
        return None
    return info.split()[0]


def _list_start(node: Any) -> int:
    value = node_attr(node, "start")
    if value is None:
        return 1
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


@_handles("heading")
def _heading(node: Any) -> Sequence[NormalizedBlock]:
    return (
        NormalizedBlock(
            BlockKind.HEADING,
            level=_heading_level(node),
            children=normalize_inline(_inline_children(node)),
        ),
    )


@_handles("paragraph")
def _paragraph(node: Any) -> Sequence[NormalizedBlock]:
    children = normalize_inline(_inline_children(node))
    return (NormalizedBlock(BlockKind.PARAGRAPH, children=children),)


@_handles("fence", "code_block")
def _code(node: Any) -> Sequence[NormalizedBlock]:
    content = _strip_final_newline(getattr(node, "content", "") or "")
    return (NormalizedBlock(BlockKind.CODE_BLOCK, content=content, language=_info_language(node)),)


@_handles("blockquote")
def _blockquote(node: Any) -> Sequence[NormalizedBlock]:
    return (NormalizedBlock(BlockKind.BLOCKQUOTE, children=normalize_blocks(_children(node))),)


@_handles("bullet_list", "ordered_list")
def _list(node: Any) -> Sequence[NormalizedBlock]:
    ordered = getattr(node, "type", None) == "ordered_list"
    items = tuple(
        NormalizedBlock(BlockKind.LIST_ITEM, children=normalize_blocks(_children(item)))
        for item in _children(node)
        if getattr(item, "type", None) == "list_item"
    )
    return (
        NormalizedBlock(
            BlockKind.LIST,
            ordered=ordered,
            start=_list_start(node) if ordered else 1,
            children=items,
        ),
    )


@_handles("hr")
def _thematic_break(node: Any) -> Sequence[NormalizedBlock]:
    return (NormalizedBlock(BlockKind.THEMATIC_BREAK),)


def normalize_node(node: Any) -> Sequence[NormalizedBlock]:
    """Normalise a single block-level syntax node; unsupported kinds yield nothing."""
    node_type = getattr(node, "type", None)
    handler = _BLOCK_HANDLERS.get(node_type) if isinstance(node_type, str) else None
    if handler is None:
        logger.debug("Dropping unsupported syntax node '%s'", node_type)
        return ()
    return handler(node)


def normalize_blocks(nodes: Iterable[Any]) -> tuple[NormalizedBlock, ...]:
    """Normalise a sequence of sibling block nodes in document order."""
    blocks: list[NormalizedBlock] = []
    for node in nodes:
        blocks.extend(normalize_node(node))
    return tuple(blocks)


def normalize(root: Any) -> tuple[NormalizedBlock, ...]:
    """Return the block forest for a syntax tree root (or a single block node)."""
    if getattr(root, "type", None) == "root":
        return normalize_blocks(_children(root))
    return tuple(normalize_node(root))


__all__ = [
    "clamp_heading_level",
    "normalize",
    "normalize_blocks",
    "normalize_node",
]
