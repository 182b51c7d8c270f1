import re
from xml.etree import ElementTree

import pytest

from mdtoimage.adapters.fonts import LoadedFont
from mdtoimage.adapters.svg import font_face_rules, is_monospace, measure_text, render_svg
from mdtoimage.core.blocks import BlockKind, NormalizedBlock, text_block
from mdtoimage.core.theme import LIGHT_THEME
from mdtoimage.core.visual import BuildContext, VisualNode, build_document_tree
from mdtoimage.core.watermark import WatermarkConfig, build_watermark_node


def _tree(blocks, height: int = 400, overlay: VisualNode | None = None) -> VisualNode:
    return build_document_tree(
        blocks, BuildContext(theme=LIGHT_THEME), height=height, max_width=1120, overlay=overlay
    )


def _paragraph(text: str) -> NormalizedBlock:
    return NormalizedBlock(BlockKind.PARAGRAPH, children=[text_block(text)])


def test_canvas_dimensions_are_committed() -> None:
    svg = render_svg(_tree([_paragraph("Hello world")]), 1200, 480)
    assert svg.startswith('<svg xmlns="http://www.w3.org/2000/svg" width="1200" height="480"')
    assert 'viewBox="0 0 1200 480"' in svg
    assert svg.endswith("</svg>")
    assert "Hello world" in svg


@pytest.mark.parametrize(("width", "height"), [(0, 100), (100, 0), (-5, 10)])
def test_non_positive_dimensions_are_rejected(width: int, height: int) -> None:
    with pytest.raises(ValueError):
        render_svg(_tree([]), width, height)


def test_text_is_escaped() -> None:
    svg = render_svg(_tree([_paragraph("a < b & c > d")]), 600, 400)
    assert "a &lt; b &amp; c &gt; d" in svg


def test_background_is_painted() -> None:
    svg = render_svg(_tree([]), 300, 400)
    assert f'fill="{LIGHT_THEME.colors.background}"' in svg


def test_long_paragraphs_wrap_onto_several_lines() -> None:
    words = " ".join(["word"] * 60)
    svg = render_svg(_tree([_paragraph(words)]), 400, 800)
    lines = re.findall(r"<text y=\"([\d.]+)\"", svg)
    assert len(lines) > 3
    assert [float(value) for value in lines] == sorted(float(value) for value in lines)


def test_code_lines_are_kept_verbatim() -> None:
    code = NormalizedBlock(BlockKind.CODE_BLOCK, content="if x:\n    y  =  1")
    svg = render_svg(_tree([code]), 800, 400)
    assert "    y  =  1" in svg
    assert 'xml:space="preserve"' in svg


def test_watermark_is_anchored_bottom_right() -> None:
    watermark = WatermarkConfig(text="Made here", color="#999999")
    overlay = build_watermark_node(watermark, LIGHT_THEME)
    svg = render_svg(_tree([], overlay=overlay), 500, 400)
    match = re.search(r'<text x="([\d.]+)" y="([\d.]+)" text-anchor="end" opacity="0.5"', svg)
    assert match is not None
    assert float(match.group(1)) == 500 - watermark.padding
    assert float(match.group(2)) < 400 - watermark.padding
    assert "Made here" in svg


def test_fonts_are_embedded_as_data_uris() -> None:
    font = LoadedFont(name="Test Sans", data=b"abc", weight=700)
    svg = render_svg(_tree([_paragraph("x")]), 300, 400, [font])
    assert "@font-face{font-family:'Test Sans';" in svg
    assert "data:font/ttf;base64,YWJj" in svg
    assert "font-weight:700" in svg
    assert "&#x27;Test Sans&#x27;" in svg or "'Test Sans'" in svg


def test_font_face_rules_use_the_font_format() -> None:
    rules = font_face_rules([LoadedFont(name="R", data=b"\x00", format="woff")])
    assert "data:font/woff;base64," in rules
    assert "format('woff')" in rules


def test_monospace_measurement_is_wider() -> None:
    assert is_monospace("JetBrains Mono")
    assert not is_monospace("Inter")
    proportional = measure_text("abcd", {"fontSize": 10, "fontFamily": "Inter"})
    monospace = measure_text("abcd", {"fontSize": 10, "fontFamily": "JetBrains Mono"})
    assert proportional == pytest.approx(22.0)
    assert monospace == pytest.approx(24.0)


def test_list_rows_place_marker_beside_item() -> None:
    item = NormalizedBlock(BlockKind.LIST_ITEM, children=[_paragraph("entry")])
    listing = NormalizedBlock(BlockKind.LIST, ordered=True, start=1, children=[item])
    svg = render_svg(_tree([listing]), 600, 400)
    marker = re.search(r'<tspan x="([\d.]+)"[^>]*>1\.</tspan>', svg)
    entry = re.search(r'<tspan x="([\d.]+)"[^>]*>entry</tspan>', svg)
    assert marker is not None and entry is not None
    assert float(entry.group(1)) > float(marker.group(1))


def test_control_characters_never_reach_the_markup() -> None:
    code = NormalizedBlock(BlockKind.CODE_BLOCK, content="\x1b[31mred\x1b[0m\n\x0cpage")
    overlay = build_watermark_node(WatermarkConfig(text="mark\x07"), LIGHT_THEME)
    svg = render_svg(_tree([code, _paragraph("bell\x07 and\x00 nul")], overlay=overlay), 600, 400)
    root = ElementTree.fromstring(svg)
    text = "".join(root.itertext())
    assert "[31mred[0m" in text
    assert "page" in text
    assert "\x1b" not in svg
    assert "\x0c" not in svg


def test_font_names_with_quotes_stay_well_formed() -> None:
    font = LoadedFont(name="O'Brien \"Sans\" & Co", data=b"abc")
    svg = render_svg(_tree([_paragraph("quoted")]), 300, 400, [font])
    root = ElementTree.fromstring(svg)
    style = root.find("{http://www.w3.org/2000/svg}defs/{http://www.w3.org/2000/svg}style")
    assert style is not None
    assert "font-family:'O\\'Brien \"Sans\" & Co';" in style.text
    families = {
        element.get("font-family")
        for element in root.iter("{http://www.w3.org/2000/svg}tspan")
    }
    assert any("'O\\'Brien \"Sans\" & Co'" in family for family in families)
