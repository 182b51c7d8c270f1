import pytest

from mdtoimage.core.blocks import (
    BlockKind,
    NormalizedBlock,
    forest_to_dicts,
    plain_text,
    text_block,
)


def test_heading_level_outside_range_is_rejected() -> None:
    with pytest.raises(ValueError):
        NormalizedBlock(BlockKind.HEADING, level=7)
    with pytest.raises(ValueError):
        NormalizedBlock(BlockKind.HEADING, level=0)
    with pytest.raises(ValueError):
        NormalizedBlock(BlockKind.HEADING)


def test_list_accepts_only_list_items() -> None:
    item = NormalizedBlock(BlockKind.LIST_ITEM, children=[text_block("a")])
    block = NormalizedBlock(BlockKind.LIST, ordered=False, start=1, children=[item])
    assert block.children == (item,)

    with pytest.raises(ValueError):
        NormalizedBlock(BlockKind.LIST, children=[text_block("a")])


def test_empty_code_language_becomes_none() -> None:
    block = NormalizedBlock(BlockKind.CODE_BLOCK, content="x", language="")
    assert block.language is None


def test_children_are_stored_as_tuple() -> None:
    block = NormalizedBlock(BlockKind.PARAGRAPH, children=[text_block("a")])
    assert isinstance(block.children, tuple)


def test_plain_text_collects_inline_payloads() -> None:
    paragraph = NormalizedBlock(
        BlockKind.PARAGRAPH,
        children=[
            text_block("Hello "),
            NormalizedBlock(BlockKind.STRONG, children=[text_block("bold")]),
            NormalizedBlock(BlockKind.INLINE_CODE, content=" x()"),
            NormalizedBlock(BlockKind.IMAGE, url="a.png", alt=" pic"),
        ],
    )
    assert plain_text(paragraph) == "Hello bold x() pic"
    assert plain_text([paragraph, paragraph]) == "Hello bold x() pic" * 2


def test_walk_visits_in_document_order() -> None:
    tree = NormalizedBlock(
        BlockKind.BLOCKQUOTE,
        children=[NormalizedBlock(BlockKind.PARAGRAPH, children=[text_block("a")])],
    )
    assert [node.kind for node in tree.walk()] == [
        BlockKind.BLOCKQUOTE,
        BlockKind.PARAGRAPH,
        BlockKind.TEXT,
    ]


def test_to_dict_omits_unset_fields() -> None:
    heading = NormalizedBlock(BlockKind.HEADING, level=2, children=[text_block("Title")])
    assert forest_to_dicts([heading]) == [
        {"type": "heading", "level": 2, "children": [{"type": "text", "content": "Title"}]}
    ]


def test_inline_kinds_are_flagged() -> None:
    assert text_block("a").is_inline
    assert not NormalizedBlock(BlockKind.THEMATIC_BREAK).is_inline
