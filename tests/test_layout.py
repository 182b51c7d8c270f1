import pytest

from mdtoimage.core.blocks import BlockKind, NormalizedBlock, text_block
from mdtoimage.core.layout import (
    MAX_CANVAS_HEIGHT,
    MIN_CANVAS_HEIGHT,
    WATERMARK_RESERVE,
    chars_per_line,
    clamp_canvas_height,
    estimate_height,
    heading_pixel_size,
)
from mdtoimage.core.theme import ThemeSpacing


SPACING = ThemeSpacing()
CONTENT_WIDTH = 1120


def _code(lines: int) -> NormalizedBlock:
    return NormalizedBlock(BlockKind.CODE_BLOCK, content="\n".join(["x"] * lines))


def _paragraph(text: str) -> NormalizedBlock:
    return NormalizedBlock(BlockKind.PARAGRAPH, children=[text_block(text)])


def _list(items: int, ordered: bool = False) -> NormalizedBlock:
    return NormalizedBlock(
        BlockKind.LIST,
        ordered=ordered,
        start=1,
        children=[
            NormalizedBlock(BlockKind.LIST_ITEM, children=[_paragraph(f"item {index}")])
            for index in range(items)
        ],
    )


BASE = [_code(20)]


def _estimate(blocks, watermark: bool = False) -> int:
    return estimate_height(blocks, CONTENT_WIDTH, SPACING, watermark=watermark)


def test_base_document_is_above_the_minimum() -> None:
    assert _estimate(BASE) == 80 + 20 * 20 + 2 * 16 + 24


def test_code_block_adds_line_height_padding_and_gap() -> None:
    delta = _estimate([*BASE, _code(10)]) - _estimate(BASE)
    assert delta == 10 * 20 + 2 * SPACING.code_padding + SPACING.gap


def test_list_adds_item_height_and_gap() -> None:
    delta = _estimate([*BASE, _list(3)]) - _estimate(BASE)
    assert delta == 3 * 28 + SPACING.gap


def test_nested_lists_use_the_flat_container_estimate() -> None:
    nested = NormalizedBlock(
        BlockKind.LIST,
        ordered=False,
        start=1,
        children=[
            NormalizedBlock(BlockKind.LIST_ITEM, children=[_list(10), _code(30)]),
            NormalizedBlock(BlockKind.LIST_ITEM, children=[_paragraph("x")]),
        ],
    )
    assert _estimate([*BASE, nested]) == _estimate([*BASE, _list(2)])


def test_blockquote_uses_a_fixed_height() -> None:
    small = NormalizedBlock(BlockKind.BLOCKQUOTE, children=[_paragraph("x")])
    large = NormalizedBlock(BlockKind.BLOCKQUOTE, children=[_code(50), _list(10)])
    assert _estimate([*BASE, small]) - _estimate(BASE) == 60 + SPACING.gap
    assert _estimate([*BASE, large]) == _estimate([*BASE, small])


def test_heading_uses_pixel_size_table() -> None:
    heading = NormalizedBlock(BlockKind.HEADING, level=1, children=[text_block("T")])
    raw = 80 + 20 * 20 + 2 * 16 + 24 + 36 * 1.2 + SPACING.gap / 2
    assert _estimate([*BASE, heading]) == clamp_canvas_height(raw)


def test_paragraph_line_count_follows_content_width() -> None:
    assert chars_per_line(CONTENT_WIDTH) == 124
    paragraph = _paragraph("x" * 250)
    delta = _estimate([*BASE, paragraph]) - _estimate(BASE)
    assert delta == 3 * 24 + SPACING.gap


def test_short_paragraph_counts_as_one_line() -> None:
    delta = _estimate([*BASE, _paragraph("")]) - _estimate(BASE)
    assert delta == 24 + SPACING.gap


def test_other_blocks_use_the_default_height() -> None:
    delta = _estimate([*BASE, NormalizedBlock(BlockKind.THEMATIC_BREAK)]) - _estimate(BASE)
    assert delta == 30 + SPACING.gap


def test_watermark_adds_exactly_the_reserve() -> None:
    assert _estimate(BASE, watermark=True) - _estimate(BASE) == WATERMARK_RESERVE


def test_height_is_clamped() -> None:
    assert _estimate([]) == MIN_CANVAS_HEIGHT
    assert _estimate([_code(2000)]) == MAX_CANVAS_HEIGHT


def test_estimate_is_monotonic_for_repeated_paragraphs() -> None:
    heights = [_estimate([_paragraph("Lorem ipsum dolor sit amet")] * count) for count in range(60)]
    assert heights == sorted(heights)
    assert all(MIN_CANVAS_HEIGHT <= height <= MAX_CANVAS_HEIGHT for height in heights)


def test_narrow_content_never_divides_by_zero() -> None:
    assert chars_per_line(3) == 1
    assert estimate_height([_paragraph("abc")], 0, SPACING) == MIN_CANVAS_HEIGHT


@pytest.mark.parametrize(("level", "size"), [(1, 36), (2, 30), (3, 24), (4, 20), (5, 18), (6, 16)])
def test_heading_pixel_sizes(level: int, size: int) -> None:
    assert heading_pixel_size(level) == size


def test_heading_pixel_size_default() -> None:
    assert heading_pixel_size(None) == 16
    assert heading_pixel_size(9) == 16


def test_custom_spacing_is_honoured() -> None:
    spacing = ThemeSpacing(padding=10, gap=0, code_padding=0)
    assert estimate_height([_code(30)], CONTENT_WIDTH, spacing) == 20 + 30 * 20
