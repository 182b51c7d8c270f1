"""Map normalised blocks onto the styled visual tree consumed by the SVG renderer.

Every block kind has a builder registered through :func:`builds`. Builders
receive the block, a :class:`BuildContext` (theme, highlighter mode and
tokenizer, diagnostics) and the maximum content width inherited from their
parent. List items narrow that width so nested content wraps inside them.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any, NamedTuple, Optional, Protocol, Union

from .blocks import BlockKind, NormalizedBlock
from .diagnostics import DiagnosticEmitter, NullEmitter
from .exceptions import HighlightError
from .layout import heading_pixel_size
from .theme import Theme


logger = logging.getLogger(__name__)

BODY_FONT_SIZE = 16
BODY_LINE_HEIGHT = 1.6
CODE_FONT_SIZE = 14
CODE_LINE_HEIGHT = 1.5
LIST_ITEM_INDENT = 30
LIST_MARKER_GAP = 12
BULLET = "• "


class HighlightToken(NamedTuple):
    """Single highlighted fragment of a code line."""

    text: str
    color: str | None = None


class Tokenizer(Protocol):
    def __call__(
        self, code: str, language: str | None, mode: str
    ) -> Sequence[Sequence[HighlightToken]]: ...


VisualChild = Union["VisualNode", str]


@dataclass(slots=True)
class VisualNode:
    """Styled box: ``div`` nodes are blocks, ``span`` nodes are inline runs."""

    type: str
    style: dict[str, Any] = field(default_factory=dict)
    children: list[VisualChild] = field(default_factory=list)

    @property
    def is_inline(self) -> bool:
        return self.type == "span"

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{type, props: {style, children}}`` shape."""
        return {
            "type": self.type,
            "props": {
                "style": dict(self.style),
                "children": [
                    child.to_dict() if isinstance(child, VisualNode) else child
                    for child in self.children
                ],
            },
        }


def plain_tokenizer(code: str, language: str | None, mode: str) -> list[list[HighlightToken]]:
    """Tokenizer returning un-coloured lines."""
    return [[HighlightToken(line)] for line in code.split("\n")]


@dataclass(slots=True)
class BuildContext:
    theme: Theme
    mode: str = "light"
    tokenize: Tokenizer = plain_tokenizer
    emitter: DiagnosticEmitter = field(default_factory=NullEmitter)


Builder = Callable[[NormalizedBlock, "BuildContext", Optional[float]], Optional[VisualChild]]

_BUILDERS: dict[BlockKind, Builder] = {}


def builds(*kinds: BlockKind) -> Callable[[Builder], Builder]:
    """Register a visual builder for the given block kinds."""

    def decorator(func: Builder) -> Builder:
        for kind in kinds:
            _BUILDERS[kind] = func
        return func

    return decorator


def _width(max_width: float | None) -> float | str:
    return max_width if max_width is not None else "100%"


def _build_children(
    blocks: Sequence[NormalizedBlock], context: BuildContext, max_width: float | None
) -> list[VisualChild]:
    children: list[VisualChild] = []
    for child in blocks:
        node = build_block(child, context, max_width)
        if node is not None:
            children.append(node)
    return children


def build_block(
    block: NormalizedBlock, context: BuildContext, max_width: float | None = None
) -> VisualChild | None:
    """Build the visual node for a single block."""
    builder = _BUILDERS.get(block.kind)
    if builder is None:
        return None
    return builder(block, context, max_width)


@builds(BlockKind.HEADING)
def _heading(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> VisualNode:
    theme = context.theme
    level = block.level or 1
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "fontSize": heading_pixel_size(level),
            "fontWeight": theme.fonts.heading.weight or 700,
            "color": theme.colors.heading[level],
            "fontFamily": theme.fonts.heading.name or "Inter",
            "marginBottom": theme.spacing.gap * 0.5,
            "lineHeight": 1.2,
            "maxWidth": _width(max_width),
        },
        _build_children(block.children, context, max_width),
    )


@builds(BlockKind.PARAGRAPH)
def _paragraph(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "fontSize": BODY_FONT_SIZE,
            "lineHeight": BODY_LINE_HEIGHT,
            "color": theme.colors.text,
            "fontFamily": theme.fonts.body.name or "Inter",
            "marginBottom": theme.spacing.gap,
            "maxWidth": _width(max_width),
        },
        _build_children(block.children, context, max_width),
    )


def _code_lines(block: NormalizedBlock, context: BuildContext) -> list[VisualChild]:
    theme = context.theme
    content = block.content or ""
    font_family = theme.fonts.code.name or "JetBrains Mono"
    try:
        tokens = context.tokenize(content, block.language, context.mode)
    except Exception as exc:
        context.emitter.event("highlight_fallback", {"language": block.language})
        if isinstance(exc, HighlightError):
            logger.debug("Falling back to plain code lines: %s", exc)
        else:
            logger.warning("Highlighter failed, using plain code lines", exc_info=exc)
        return [
            VisualNode(
                "div",
                {
                    "fontFamily": font_family,
                    "fontSize": CODE_FONT_SIZE,
                    "lineHeight": CODE_LINE_HEIGHT,
                    "color": theme.colors.code.text,
                },
                [line or " "],
            )
            for line in content.split("\n")
        ]

    lines: list[VisualChild] = []
    for line_tokens in tokens:
        spans: list[VisualChild] = [
            VisualNode("span", {"color": token.color or theme.colors.code.text}, [token.text])
            for token in line_tokens
            if token.text
        ]
        lines.append(
            VisualNode(
                "div",
                {
                    "fontFamily": font_family,
                    "fontSize": CODE_FONT_SIZE,
                    "lineHeight": CODE_LINE_HEIGHT,
                    "display": "flex",
                    "flexWrap": "wrap",
                },
                spans or [VisualNode("span", {}, [" "])],
            )
        )
    return lines


@builds(BlockKind.CODE_BLOCK)
def _code_block(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "backgroundColor": theme.colors.code.background,
            "color": theme.colors.code.text,
            "fontFamily": theme.fonts.code.name or "JetBrains Mono",
            "fontSize": CODE_FONT_SIZE,
            "lineHeight": CODE_LINE_HEIGHT,
            "padding": theme.spacing.code_padding,
            "borderRadius": 6,
            "marginBottom": theme.spacing.gap,
            "maxWidth": _width(max_width),
            "overflow": "hidden",
            "whiteSpace": "pre",
        },
        _code_lines(block, context),
    )


@builds(BlockKind.INLINE_CODE)
def _inline_code(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    return VisualNode(
        "span",
        {
            "backgroundColor": theme.colors.code.background,
            "color": theme.colors.code.text,
            "fontFamily": theme.fonts.code.name or "JetBrains Mono",
            "fontSize": CODE_FONT_SIZE,
            "padding": "2px 6px",
            "borderRadius": 3,
        },
        [block.content or ""],
    )


@builds(BlockKind.BLOCKQUOTE)
def _blockquote(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "borderLeft": f"4px solid {theme.colors.blockquote.border}",
            "backgroundColor": theme.colors.blockquote.background,
            "paddingLeft": theme.spacing.blockquote_padding,
            "paddingTop": theme.spacing.blockquote_padding * 0.5,
            "paddingBottom": theme.spacing.blockquote_padding * 0.5,
            "marginBottom": theme.spacing.gap,
            "color": theme.colors.blockquote.text,
            "maxWidth": _width(max_width),
        },
        _build_children(block.children, context, max_width),
    )


@builds(BlockKind.LIST_ITEM)
def _list_item(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    inner_width = max_width - LIST_ITEM_INDENT if max_width is not None else None
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "flex": 1,
            "fontSize": BODY_FONT_SIZE,
            "lineHeight": BODY_LINE_HEIGHT,
            "color": theme.colors.text,
            "fontFamily": theme.fonts.body.name or "Inter",
            "maxWidth": _width(inner_width),
        },
        _build_children(block.children, context, inner_width),
    )


@builds(BlockKind.LIST)
def _list(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> VisualNode:
    theme = context.theme
    start = block.start if block.start is not None else 1
    rows: list[VisualChild] = []
    for index, item in enumerate(block.children):
        marker = f"{start + index}. " if block.ordered else BULLET
        rows.append(
            VisualNode(
                "div",
                {
                    "display": "flex",
                    "flexDirection": "row",
                    "marginBottom": theme.spacing.gap * 0.5,
                },
                [
                    VisualNode(
                        "span",
                        {
                            "marginRight": LIST_MARKER_GAP,
                            "color": theme.colors.text,
                            "fontFamily": theme.fonts.body.name or "Inter",
                        },
                        [marker],
                    ),
                    _list_item(item, context, max_width),
                ],
            )
        )
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "marginBottom": theme.spacing.gap,
            "maxWidth": _width(max_width),
        },
        rows,
    )


@builds(BlockKind.THEMATIC_BREAK)
def _thematic_break(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    theme = context.theme
    return VisualNode(
        "div",
        {
            "height": 1,
            "backgroundColor": theme.colors.blockquote.border,
            "marginTop": theme.spacing.gap,
            "marginBottom": theme.spacing.gap,
            "maxWidth": _width(max_width),
        },
    )


@builds(BlockKind.TEXT)
def _text(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> str:
    return block.content or ""


@builds(BlockKind.STRONG)
def _strong(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> VisualNode:
    return VisualNode(
        "span",
        {"fontWeight": 700, "color": context.theme.colors.text},
        _build_children(block.children, context, None),
    )


@builds(BlockKind.EMPHASIS)
def _emphasis(
    block: NormalizedBlock, context: BuildContext, max_width: float | None
) -> VisualNode:
    return VisualNode(
        "span",
        {"fontStyle": "italic", "color": context.theme.colors.text},
        _build_children(block.children, context, None),
    )


@builds(BlockKind.LINK)
def _link(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> VisualNode:
    children = _build_children(block.children, context, None)
    if block.url:
        children.append(f" ({block.url})")
    return VisualNode(
        "span",
        {"color": context.theme.colors.link, "textDecoration": "underline"},
        children,
    )


@builds(BlockKind.IMAGE)
def _image(block: NormalizedBlock, context: BuildContext, max_width: float | None) -> VisualNode:
    label = block.alt or block.url or "image"
    return VisualNode(
        "span",
        {"color": context.theme.colors.link, "fontStyle": "italic"},
        [f"[Image: {label}]"],
    )


def build_document_tree(
    blocks: Sequence[NormalizedBlock],
    context: BuildContext,
    *,
    height: int,
    max_width: float | None = None,
    overlay: VisualNode | None = None,
) -> VisualNode:
    """Return the root node for a canvas of the committed ``height``."""
    theme = context.theme
    children = _build_children(blocks, context, max_width)
    if overlay is not None:
        children.append(overlay)
    return VisualNode(
        "div",
        {
            "display": "flex",
            "flexDirection": "column",
            "width": "100%",
            "height": f"{height}px",
            "backgroundColor": theme.colors.background,
            "padding": theme.spacing.padding,
            "position": "relative",
            "color": theme.colors.text,
            "fontFamily": theme.fonts.body.name or "Inter",
            "fontSize": BODY_FONT_SIZE,
            "lineHeight": BODY_LINE_HEIGHT,
        },
        children,
    )


__all__ = [
    "BuildContext",
    "HighlightToken",
    "Tokenizer",
    "VisualNode",
    "build_block",
    "build_document_tree",
    "builds",
    "plain_tokenizer",
]
