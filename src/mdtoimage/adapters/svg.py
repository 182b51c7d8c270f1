"""Render a visual tree into fixed-size SVG markup.

The layout is a single top-to-bottom pass. Block nodes stack their children
vertically unless styled ``flexDirection: "row"``; consecutive inline
children form a run that is wrapped greedily using an approximate glyph
advance. Absolutely positioned nodes are anchored to the bottom-right corner
of the canvas once the flow is laid out. Anything past the canvas is clipped
by the SVG viewport.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import re
from typing import Any
from xml.sax.saxutils import escape, quoteattr

from mdtoimage.core.visual import VisualChild, VisualNode

from .fonts import LoadedFont


SVG_NAMESPACE = "http://www.w3.org/2000/svg"

PROPORTIONAL_ADVANCE = 0.55
MONOSPACE_ADVANCE = 0.6
BASELINE_RATIO = 0.8
DEFAULT_FONT_SIZE = 16.0
DEFAULT_LINE_HEIGHT = 1.2

INHERITED_PROPERTIES = (
    "color",
    "fontSize",
    "fontFamily",
    "fontWeight",
    "fontStyle",
    "lineHeight",
    "textDecoration",
    "whiteSpace",
)

_MONOSPACE_HINTS = ("mono", "code", "courier", "consol")
_MIME_BY_FORMAT = {
    "truetype": "font/ttf",
    "opentype": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
}
_NUMBER = re.compile(r"^\s*(-?\d+(?:\.\d+)?)(?:px)?\s*$")
_TOKENS = re.compile(r"\S+|\s+")
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _NUMBER.match(value)
        if match:
            return float(match.group(1))
    return default


def _edges(value: Any) -> list[float]:
    """Expand a CSS padding shorthand into top, right, bottom, left."""
    if isinstance(value, str):
        parts = [_number(part) for part in value.split()]
    elif value is None:
        parts = [0.0]
    else:
        parts = [_number(value)]
    if len(parts) == 1:
        return parts * 4
    if len(parts) == 2:
        return [parts[0], parts[1], parts[0], parts[1]]
    if len(parts) == 3:
        return [parts[0], parts[1], parts[2], parts[1]]
    return parts[:4]


def _border(value: Any) -> tuple[float, str | None]:
    if not isinstance(value, str):
        return 0.0, None
    width = 0.0
    color: str | None = None
    for part in value.split():
        if part.endswith("px") or _NUMBER.match(part):
            width = _number(part)
        elif part not in {"solid", "dashed", "dotted", "none"}:
            color = part
    return width, color


def _xml_text(text: str) -> str:
    """Escape character data, dropping code points XML 1.0 cannot carry."""
    return escape(_XML_ILLEGAL.sub("", text))


def _css_string(name: str) -> str:
    return "'" + name.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text if text not in {"", "-0"} else "0"


def _inherit(parent: Mapping[str, Any], style: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(parent)
    for key in INHERITED_PROPERTIES:
        if key in style:
            merged[key] = style[key]
    return merged


def _font_size(style: Mapping[str, Any]) -> float:
    return _number(style.get("fontSize"), DEFAULT_FONT_SIZE) or DEFAULT_FONT_SIZE


def _line_height(style: Mapping[str, Any]) -> float:
    value = style.get("lineHeight", DEFAULT_LINE_HEIGHT)
    factor = _number(value, DEFAULT_LINE_HEIGHT)
    if isinstance(value, str) and value.strip().endswith("px"):
        return factor
    return factor * _font_size(style)


def is_monospace(family: str | None) -> bool:
    lowered = (family or "").lower()
    return any(hint in lowered for hint in _MONOSPACE_HINTS)


def measure_text(text: str, style: Mapping[str, Any]) -> float:
    """Approximate the rendered width of ``text``."""
    ratio = MONOSPACE_ADVANCE if is_monospace(style.get("fontFamily")) else PROPORTIONAL_ADVANCE
    return len(text) * _font_size(style) * ratio


@dataclass(slots=True)
class _Segment:
    text: str
    style: dict[str, Any]
    background: str | None = None


@dataclass(slots=True)
class _Piece:
    text: str
    segment: _Segment
    width: float


@dataclass(slots=True)
class _Canvas:
    width: int
    height: int
    families: tuple[str, ...]
    elements: list[str] = field(default_factory=list)
    overlays: list[tuple[VisualNode, dict[str, Any]]] = field(default_factory=list)

    def font_family(self, family: str | None) -> str:
        names: list[str] = []
        for name in (family, *self.families):
            if name and name not in names:
                names.append(name)
        generic = "monospace" if is_monospace(family) else "sans-serif"
        return ", ".join([*(_css_string(name) for name in names), generic])

    def text_attributes(self, style: Mapping[str, Any]) -> str:
        family = _XML_ILLEGAL.sub("", self.font_family(style.get("fontFamily")))
        attrs = [
            f"font-family={quoteattr(family)}",
            f'font-size="{_fmt(_font_size(style))}"',
        ]
        if style.get("color"):
            attrs.append(f"fill={quoteattr(str(style['color']))}")
        if style.get("fontWeight"):
            attrs.append(f'font-weight="{style["fontWeight"]}"')
        if style.get("fontStyle"):
            attrs.append(f"font-style={quoteattr(str(style['fontStyle']))}")
        if style.get("textDecoration"):
            attrs.append(f"text-decoration={quoteattr(str(style['textDecoration']))}")
        return " ".join(attrs)

    def rect(
        self, x: float, y: float, width: float, height: float, fill: str, radius: float = 0.0
    ) -> str:
        corner = f' rx="{_fmt(radius)}"' if radius else ""
        return (
            f'<rect x="{_fmt(x)}" y="{_fmt(y)}" width="{_fmt(max(width, 0.0))}" '
            f'height="{_fmt(max(height, 0.0))}"{corner} fill={quoteattr(fill)}/>'
        )


def _flatten(child: VisualChild, inherited: dict[str, Any], out: list[_Segment]) -> None:
    if isinstance(child, str):
        if child:
            out.append(_Segment(child, inherited))
        return
    style = _inherit(inherited, child.style)
    background = child.style.get("backgroundColor")
    for grandchild in child.children:
        if isinstance(grandchild, str):
            if grandchild:
                out.append(_Segment(grandchild, style, background))
        else:
            _flatten(grandchild, style, out)


def _wrap(segments: Sequence[_Segment], available: float) -> list[list[_Piece]]:
    lines: list[list[_Piece]] = [[]]
    used = 0.0
    for segment in segments:
        preformatted = segment.style.get("whiteSpace") == "pre"
        if preformatted:
            for index, part in enumerate(segment.text.split("\n")):
                if index:
                    lines.append([])
                    used = 0.0
                if part:
                    width = measure_text(part, segment.style)
                    lines[-1].append(_Piece(part, segment, width))
                    used += width
            continue

        text = re.sub(r"\s+", " ", segment.text)
        for token in _TOKENS.findall(text):
            width = measure_text(token, segment.style)
            if token.isspace():
                if not lines[-1]:
                    continue
            elif lines[-1] and used + width > available:
                _trim_trailing_space(lines[-1])
                lines.append([])
                used = 0.0
            last = lines[-1][-1] if lines[-1] else None
            if last is not None and last.segment is segment:
                last.text += token
                last.width += width
            else:
                lines[-1].append(_Piece(token, segment, width))
            used += width
    for line in lines:
        _trim_trailing_space(line)
    return [line for line in lines if line] or [[]]


def _trim_trailing_space(line: list[_Piece]) -> None:
    while line:
        last = line[-1]
        stripped = last.text.rstrip(" ")
        if stripped == last.text:
            return
        if stripped:
            last.text = stripped
            last.width = measure_text(stripped, last.segment.style)
            return
        line.pop()


def _layout_inline(
    canvas: _Canvas,
    children: Sequence[VisualChild],
    inherited: dict[str, Any],
    x: float,
    y: float,
    available: float,
) -> float:
    segments: list[_Segment] = []
    for child in children:
        _flatten(child, inherited, segments)
    if not segments:
        return 0.0

    cursor_y = y
    for line in _wrap(segments, available):
        if not line:
            cursor_y += _line_height(inherited)
            continue
        line_height = max(_line_height(piece.segment.style) for piece in line)
        font_size = max(_font_size(piece.segment.style) for piece in line)
        baseline = cursor_y + (line_height - font_size) / 2 + font_size * BASELINE_RATIO
        cursor_x = x
        spans: list[str] = []
        for piece in line:
            if piece.segment.background:
                canvas.elements.append(
                    canvas.rect(
                        cursor_x,
                        cursor_y,
                        piece.width,
                        line_height,
                        piece.segment.background,
                        3.0,
                    )
                )
            spans.append(
                f'<tspan x="{_fmt(cursor_x)}" {canvas.text_attributes(piece.segment.style)}>'
                f"{_xml_text(piece.text)}</tspan>"
            )
            cursor_x += piece.width
        canvas.elements.append(
            f'<text y="{_fmt(baseline)}" xml:space="preserve">{"".join(spans)}</text>'
        )
        cursor_y += line_height
    return cursor_y - y


def _inline_width(child: VisualChild, inherited: dict[str, Any]) -> float:
    segments: list[_Segment] = []
    _flatten(child, inherited, segments)
    width = sum(measure_text(segment.text, segment.style) for segment in segments)
    if isinstance(child, VisualNode):
        width += _number(child.style.get("marginRight"))
    return width


def _layout_row(
    canvas: _Canvas,
    node: VisualNode,
    inherited: dict[str, Any],
    x: float,
    y: float,
    available: float,
) -> float:
    cursor_x = x
    height = 0.0
    for child in node.children:
        remaining = max(x + available - cursor_x, 0.0)
        if isinstance(child, str) or child.is_inline:
            child_height = _layout_inline(canvas, [child], inherited, cursor_x, y, remaining)
            cursor_x += _inline_width(child, inherited)
        else:
            child_height = _layout_block(canvas, child, inherited, cursor_x, y, remaining)
            cursor_x += remaining
        height = max(height, child_height)
    return height


def _layout_column(
    canvas: _Canvas,
    node: VisualNode,
    inherited: dict[str, Any],
    x: float,
    y: float,
    available: float,
) -> float:
    cursor = y
    run: list[VisualChild] = []
    for child in node.children:
        if isinstance(child, VisualNode) and child.style.get("position") == "absolute":
            canvas.overlays.append((child, inherited))
            continue
        if isinstance(child, str) or child.is_inline:
            run.append(child)
            continue
        if run:
            cursor += _layout_inline(canvas, run, inherited, x, cursor, available)
            run = []
        cursor += _layout_block(canvas, child, inherited, x, cursor, available)
    if run:
        cursor += _layout_inline(canvas, run, inherited, x, cursor, available)
    return cursor - y


def _layout_block(
    canvas: _Canvas,
    node: VisualNode,
    inherited: dict[str, Any],
    x: float,
    y: float,
    available: float,
) -> float:
    """Lay out a block node and return the vertical space it consumed."""
    style = node.style
    resolved = _inherit(inherited, style)
    margin_top = _number(style.get("marginTop"))
    margin_bottom = _number(style.get("marginBottom"))

    box_width = available
    if isinstance(style.get("width"), (int, float)):
        box_width = float(style["width"])
    if isinstance(style.get("maxWidth"), (int, float)):
        box_width = min(box_width, float(style["maxWidth"]))

    top, right, bottom, left = _edges(style.get("padding"))
    top = _number(style.get("paddingTop"), top)
    right = _number(style.get("paddingRight"), right)
    bottom = _number(style.get("paddingBottom"), bottom)
    left = _number(style.get("paddingLeft"), left)
    border_width, border_color = _border(style.get("borderLeft"))

    box_top = y + margin_top
    inner_x = x + border_width + left
    inner_width = max(box_width - border_width - left - right, 0.0)

    background_slot = len(canvas.elements)
    canvas.elements.append("")

    if style.get("flexDirection") == "row":
        content_height = _layout_row(canvas, node, resolved, inner_x, box_top + top, inner_width)
    else:
        content_height = _layout_column(
            canvas, node, resolved, inner_x, box_top + top, inner_width
        )

    box_height = top + content_height + bottom
    if "height" in style:
        box_height = _number(style["height"], box_height)

    decorations: list[str] = []
    background = style.get("backgroundColor")
    if background:
        decorations.append(
            canvas.rect(
                x, box_top, box_width, box_height, background, _number(style.get("borderRadius"))
            )
        )
    if border_width and border_color:
        decorations.append(canvas.rect(x, box_top, border_width, box_height, border_color))
    canvas.elements[background_slot] = "".join(decorations)

    return margin_top + box_height + margin_bottom


def _render_overlay(canvas: _Canvas, node: VisualNode, inherited: dict[str, Any]) -> None:
    style = _inherit(inherited, node.style)
    segments: list[_Segment] = []
    for child in node.children:
        _flatten(child, style, segments)
    text = "".join(segment.text for segment in segments)
    if not text:
        return
    font_size = _font_size(style)
    x = canvas.width - _number(node.style.get("right"))
    baseline = canvas.height - _number(node.style.get("bottom")) - font_size * (1 - BASELINE_RATIO)
    opacity = node.style.get("opacity")
    opacity_attr = f' opacity="{_fmt(_number(opacity, 1.0))}"' if opacity is not None else ""
    canvas.elements.append(
        f'<text x="{_fmt(x)}" y="{_fmt(baseline)}" text-anchor="end"{opacity_attr} '
        f'{canvas.text_attributes(style)} xml:space="preserve">{_xml_text(text)}</text>'
    )


def font_face_rules(fonts: Sequence[LoadedFont]) -> str:
    """Return ``@font-face`` rules embedding each font as a data URI."""
    rules: list[str] = []
    for font in fonts:
        payload = base64.b64encode(font.data).decode("ascii")
        mime = _MIME_BY_FORMAT.get(font.format, "font/ttf")
        rules.append(
            f"@font-face{{font-family:{_xml_text(_css_string(font.name))};"
            f"src:url(data:{mime};base64,{payload}) format('{font.format}');"
            f"font-weight:{font.weight};font-style:{font.style};}}"
        )
    return "".join(rules)


def render_svg(
    tree: VisualNode, width: int, height: int, fonts: Sequence[LoadedFont] = ()
) -> str:
    """Lay out ``tree`` on a ``width`` x ``height`` canvas and return SVG markup."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas dimensions must be positive, got {width}x{height}.")

    families = tuple(dict.fromkeys(font.name for font in fonts))
    canvas = _Canvas(width=width, height=height, families=families)
    _layout_block(canvas, tree, {}, 0.0, 0.0, float(width))
    for node, inherited in canvas.overlays:
        _render_overlay(canvas, node, inherited)

    parts = [
        f'<svg xmlns="{SVG_NAMESPACE}" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    if fonts:
        parts.append(f"<defs><style>{font_face_rules(fonts)}</style></defs>")
    parts.extend(element for element in canvas.elements if element)
    parts.append("</svg>")
    return "".join(parts)


__all__ = [
    "font_face_rules",
    "is_monospace",
    "measure_text",
    "render_svg",
]
