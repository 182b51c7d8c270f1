"""Canvas height estimation for the fixed-size vector render.

The vector renderer needs a committed canvas height before it runs, so the
height is estimated up front from the normalised forest using per-kind text
metric heuristics. The pass walks the top-level blocks only: lists and block
quotes are approximated with flat container heuristics regardless of what
they nest, and pathological documents are bounded by the final clamp.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math

from .blocks import BlockKind, NormalizedBlock, plain_text
from .theme import ThemeSpacing


HEADING_PIXEL_SIZES: dict[int, int] = {1: 36, 2: 30, 3: 24, 4: 20, 5: 18, 6: 16}
DEFAULT_HEADING_PIXEL_SIZE = 16
HEADING_LINE_HEIGHT = 1.2

CODE_LINE_HEIGHT = 20
PARAGRAPH_LINE_HEIGHT = 24
AVERAGE_GLYPH_ADVANCE = 9
LIST_ITEM_HEIGHT = 28
BLOCKQUOTE_HEIGHT = 60
DEFAULT_BLOCK_HEIGHT = 30
WATERMARK_RESERVE = 40

MIN_CANVAS_HEIGHT = 400
MAX_CANVAS_HEIGHT = 20000


def heading_pixel_size(level: int | None) -> int:
    """Return the font size used for a heading level (16px when out of range)."""
    if level is None:
        return DEFAULT_HEADING_PIXEL_SIZE
    return HEADING_PIXEL_SIZES.get(level, DEFAULT_HEADING_PIXEL_SIZE)


def chars_per_line(content_width: float) -> int:
    """Approximate how many body glyphs fit on one line."""
    return max(1, math.floor(content_width / AVERAGE_GLYPH_ADVANCE))


@dataclass(slots=True)
class _HeightAccumulator:
    spacing: ThemeSpacing
    content_width: float
    total: float = 0.0

    def add_code(self, block: NormalizedBlock) -> None:
        line_count = len((block.content or "").split("\n"))
        self.total += (
            line_count * CODE_LINE_HEIGHT + 2 * self.spacing.code_padding + self.spacing.gap
        )

    def add_heading(self, block: NormalizedBlock) -> None:
        self.total += heading_pixel_size(block.level) * HEADING_LINE_HEIGHT + self.spacing.gap / 2

    def add_paragraph(self, block: NormalizedBlock) -> None:
        text_length = len(plain_text(block))
        line_count = max(1, math.ceil(text_length / chars_per_line(self.content_width)))
        self.total += line_count * PARAGRAPH_LINE_HEIGHT + self.spacing.gap

    def add_list(self, block: NormalizedBlock) -> None:
        self.total += len(block.children) * LIST_ITEM_HEIGHT + self.spacing.gap

    def add_blockquote(self, block: NormalizedBlock) -> None:
        self.total += BLOCKQUOTE_HEIGHT + self.spacing.gap

    def add_other(self, block: NormalizedBlock) -> None:
        self.total += DEFAULT_BLOCK_HEIGHT + self.spacing.gap

    def add(self, block: NormalizedBlock) -> None:
        if block.kind is BlockKind.CODE_BLOCK:
            self.add_code(block)
        elif block.kind is BlockKind.HEADING:
            self.add_heading(block)
        elif block.kind is BlockKind.PARAGRAPH:
            self.add_paragraph(block)
        elif block.kind is BlockKind.LIST:
            self.add_list(block)
        elif block.kind is BlockKind.BLOCKQUOTE:
            self.add_blockquote(block)
        else:
            self.add_other(block)


def clamp_canvas_height(height: float) -> int:
    """Round up and bound a raw height into the supported canvas range."""
    return max(MIN_CANVAS_HEIGHT, min(math.ceil(height), MAX_CANVAS_HEIGHT))


def estimate_height(
    blocks: Sequence[NormalizedBlock],
    content_width: float,
    spacing: ThemeSpacing,
    watermark: bool = False,
) -> int:
    """Estimate the canvas height in pixels for a block forest.

    ``content_width`` is the width available to block content (the canvas
    width minus padding, or the caller's maximum content width).
    """
    accumulator = _HeightAccumulator(spacing=spacing, content_width=content_width)
    accumulator.total = 2 * spacing.padding
    for block in blocks:
        accumulator.add(block)
    if watermark:
        accumulator.total += WATERMARK_RESERVE
    return clamp_canvas_height(accumulator.total)


__all__ = [
    "AVERAGE_GLYPH_ADVANCE",
    "BLOCKQUOTE_HEIGHT",
    "CODE_LINE_HEIGHT",
    "DEFAULT_BLOCK_HEIGHT",
    "HEADING_PIXEL_SIZES",
    "LIST_ITEM_HEIGHT",
    "MAX_CANVAS_HEIGHT",
    "MIN_CANVAS_HEIGHT",
    "PARAGRAPH_LINE_HEIGHT",
    "WATERMARK_RESERVE",
    "chars_per_line",
    "clamp_canvas_height",
    "estimate_height",
    "heading_pixel_size",
]
