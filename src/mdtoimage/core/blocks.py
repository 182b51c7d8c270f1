"""Render-agnostic block model produced from the Markdown syntax tree.

The model is a forest of immutable :class:`NormalizedBlock` nodes. Each node
carries a :class:`BlockKind` tag plus the handful of fields relevant to that
kind. Parents own their children exclusively; nodes are never shared or
mutated after construction.

Kinds

`HEADING`
: ``level`` in ``[1, 6]``, inline children.

`PARAGRAPH`
: inline children.

`CODE_BLOCK`
: verbatim ``content`` and an optional ``language`` (never empty).

`BLOCKQUOTE`, `LIST_ITEM`
: block children normalised exactly like the document root.

`LIST`
: ``ordered`` and ``start`` plus :attr:`BlockKind.LIST_ITEM` children only.

`THEMATIC_BREAK`
: no payload.

`TEXT`, `INLINE_CODE`
: ``content`` only.

`STRONG`, `EMPHASIS`, `LINK`
: inline children; links also carry ``url`` and ``title``.

`IMAGE`
: leaf carrying ``url``, ``alt`` and ``title``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


MIN_HEADING_LEVEL = 1
MAX_HEADING_LEVEL = 6


class BlockKind(str, Enum):
    """Tag identifying the variant of a :class:`NormalizedBlock`."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE_BLOCK = "code"
    INLINE_CODE = "inlineCode"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "listItem"
    THEMATIC_BREAK = "thematicBreak"
    TEXT = "text"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    LINK = "link"
    IMAGE = "image"


INLINE_KINDS = frozenset(
    {
        BlockKind.TEXT,
        BlockKind.INLINE_CODE,
        BlockKind.STRONG,
        BlockKind.EMPHASIS,
        BlockKind.LINK,
        BlockKind.IMAGE,
    }
)


@dataclass(frozen=True, slots=True)
class NormalizedBlock:
    """Single node of the normalised block forest."""

    kind: BlockKind
    content: str | None = None
    children: tuple[NormalizedBlock, ...] = field(default_factory=tuple)
    level: int | None = None
    ordered: bool | None = None
    start: int | None = None
    language: str | None = None
    url: str | None = None
    title: str | None = None
    alt: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))
        if self.kind is BlockKind.HEADING:
            if self.level is None or not MIN_HEADING_LEVEL <= self.level <= MAX_HEADING_LEVEL:
                raise ValueError(f"Heading level must be within [1, 6], got {self.level!r}.")
        if self.kind is BlockKind.LIST:
            if any(child.kind is not BlockKind.LIST_ITEM for child in self.children):
                raise ValueError("List children must all be list items.")
        if self.kind is BlockKind.CODE_BLOCK and self.language == "":
            object.__setattr__(self, "language", None)

    @property
    def is_inline(self) -> bool:
        """Return True for inline constructs (text runs, emphasis, links, ...)."""
        return self.kind in INLINE_KINDS

    def walk(self) -> Iterator[NormalizedBlock]:
        """Yield this block and every descendant in document order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation omitting unset fields."""
        payload: dict[str, Any] = {"type": self.kind.value}
        for name in ("content", "level", "ordered", "start", "language", "url", "title", "alt"):
            value = getattr(self, name)
            if value is not None:
                payload[name] = value
        if self.children:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


def text_block(content: str) -> NormalizedBlock:
    """Build a plain text run."""
    return NormalizedBlock(BlockKind.TEXT, content=content)


def plain_text(block: NormalizedBlock | Sequence[NormalizedBlock]) -> str:
    """Concatenate the textual payload of a block (or forest) in document order."""
    if isinstance(block, NormalizedBlock):
        blocks: Sequence[NormalizedBlock] = (block,)
    else:
        blocks = block
    parts: list[str] = []
    for root in blocks:
        for node in root.walk():
            if node.kind in {BlockKind.TEXT, BlockKind.INLINE_CODE, BlockKind.CODE_BLOCK}:
                parts.append(node.content or "")
            elif node.kind is BlockKind.IMAGE:
                parts.append(node.alt or "")
    return "".join(parts)


def forest_to_dicts(blocks: Sequence[NormalizedBlock]) -> list[dict[str, Any]]:
    """Serialise a block forest for debugging output."""
    return [block.to_dict() for block in blocks]


__all__ = [
    "INLINE_KINDS",
    "MAX_HEADING_LEVEL",
    "MIN_HEADING_LEVEL",
    "BlockKind",
    "NormalizedBlock",
    "forest_to_dicts",
    "plain_text",
    "text_block",
]
