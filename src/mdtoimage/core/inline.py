"""Inline run merging for paragraph-level content.

Adjacent plain-text syntax nodes are coalesced into a single text run while
formatting boundaries (code spans, emphasis, links, images) stay explicit.
Line breaks do not split runs: they append ``"\\n"`` to the pending text.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .blocks import BlockKind, NormalizedBlock, text_block


TEXT_NODES = frozenset({"text"})
BREAK_NODES = frozenset({"softbreak", "hardbreak"})


def node_attr(node: Any, name: str) -> Any:
    """Return a node attribute value or ``None`` when undeclared."""
    attrs = getattr(node, "attrs", None) or {}
    value = attrs.get(name)
    if value is None or value == "":
        return None
    return value


def _children(node: Any) -> Sequence[Any]:
    return getattr(node, "children", None) or ()


def _label_text(nodes: Iterable[Any]) -> str:
    parts: list[str] = []
    for node in nodes:
        kind = getattr(node, "type", None)
        if kind in TEXT_NODES or kind == "code_inline":
            parts.append(getattr(node, "content", "") or "")
        elif kind in BREAK_NODES:
            parts.append(" ")
        else:
            parts.append(_label_text(_children(node)))
    return "".join(parts)


def _image_alt(node: Any) -> str:
    """Return the plain text of the image label, without its Markdown markup."""
    label = _label_text(_children(node))
    if label:
        return label
    return str(node_attr(node, "alt") or getattr(node, "content", "") or "")


def _inline_block(node: Any) -> NormalizedBlock | None:
    """Convert a non-text inline node, or return ``None`` when it is unsupported."""
    kind = getattr(node, "type", None)

    if kind == "code_inline":
        return NormalizedBlock(BlockKind.INLINE_CODE, content=getattr(node, "content", "") or "")

    if kind == "strong":
        return NormalizedBlock(BlockKind.STRONG, children=normalize_inline(_children(node)))

    if kind == "em":
        return NormalizedBlock(BlockKind.EMPHASIS, children=normalize_inline(_children(node)))

    if kind == "link":
        return NormalizedBlock(
            BlockKind.LINK,
            url=node_attr(node, "href"),
            title=node_attr(node, "title"),
            children=normalize_inline(_children(node)),
        )

    if kind == "image":
        return NormalizedBlock(
            BlockKind.IMAGE,
            url=node_attr(node, "src"),
            alt=_image_alt(node),
            title=node_attr(node, "title"),
        )

    # html_inline, strikethrough and anything unknown are dropped.
    return None


def normalize_inline(nodes: Iterable[Any]) -> tuple[NormalizedBlock, ...]:
    """Merge a sequence of inline syntax nodes into normalised inline blocks.

    The pending text accumulator is flushed before any structural inline
    block is emitted and once more after the scan, so the output never holds
    two adjacent text runs. Nested constructs recurse with their own
    accumulator.
    """
    blocks: list[NormalizedBlock] = []
    pending = ""

    for node in nodes:
        kind = getattr(node, "type", None)
        if kind in TEXT_NODES:
            pending += getattr(node, "content", "") or ""
            continue
        if kind in BREAK_NODES:
            pending += "\n"
            continue

        block = _inline_block(node)
        if block is None:
            continue
        if pending:
            blocks.append(text_block(pending))
            pending = ""
        blocks.append(block)

    if pending:
        blocks.append(text_block(pending))
    return tuple(blocks)


__all__ = ["BREAK_NODES", "TEXT_NODES", "node_attr", "normalize_inline"]
