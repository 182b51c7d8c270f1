import base64
from pathlib import Path
from xml.etree import ElementTree

from pydantic import ValidationError
import pytest

from mdtoimage.api import service
from mdtoimage.api.options import FontOptions, RenderOptions
from mdtoimage.api.service import (
    MarkdownImageRenderer,
    load_source,
    render_markdown_to_image,
    resolve_theme_fonts,
)
from mdtoimage.core.exceptions import FontUnavailableError, InputError, MdImageError
from mdtoimage.core.theme import DARK_THEME, LIGHT_THEME
from mdtoimage.core.visual import plain_tokenizer


FAKE_PNG = b"\x89PNG\r\n\x1a\nfake"


def _no_fonts(fonts, **_kwargs):
    return []


def _renderer(**overrides) -> MarkdownImageRenderer:
    params = {"font_loader": _no_fonts, "raster_encoder": lambda svg: FAKE_PNG}
    params.update(overrides)
    return MarkdownImageRenderer(**params)


def test_svg_render_estimates_height(emitter) -> None:
    result = _renderer().render({"input": "# Hello\n\nWorld", "format": "svg"}, emitter=emitter)
    assert result.format == "svg"
    assert result.width == 1200
    assert result.height == 400
    assert result.estimated is True
    assert result.svg.startswith("<svg")
    assert 'width="1200"' in result.svg
    assert "Hello" in result.svg
    assert result.buffer is None
    assert ("height_estimated", {"height": 400, "blocks": 2}) in emitter.events


def test_explicit_height_skips_estimation(emitter) -> None:
    result = _renderer().render(
        RenderOptions(input="text", format="svg", width=300, height=150), emitter=emitter
    )
    assert (result.width, result.height, result.estimated) == (300, 150, False)
    assert "height_estimated" not in emitter.event_names()
    assert 'height="150"' in result.svg


def test_png_render_writes_output(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.png"
    result = _renderer().render({"input": "Hi", "output": target})
    assert result.buffer == FAKE_PNG
    assert result.output == target
    assert target.read_bytes() == FAKE_PNG


def test_png_render_without_output_keeps_buffer_only() -> None:
    result = _renderer().render({"input": "Hi"})
    assert result.buffer == FAKE_PNG
    assert result.output is None


def test_base64_render_encodes_png() -> None:
    result = _renderer().render({"input": "Hi", "format": "base64"})
    assert result.base64 == base64.b64encode(FAKE_PNG).decode("ascii")
    assert result.buffer is None


def test_svg_output_file_is_written(tmp_path: Path) -> None:
    target = tmp_path / "out.svg"
    result = _renderer().render({"input": "Hi", "format": "svg", "output": target})
    assert result.output == target
    assert target.read_text(encoding="utf-8") == result.svg


def test_dark_theme_reaches_tokenizer_and_canvas() -> None:
    calls = []

    def tokenizer(code, language, mode):
        calls.append((language, mode))
        return plain_tokenizer(code, language, mode)

    result = _renderer(tokenizer=tokenizer).render(
        {"input": "```python\nx = 1\n```\n", "format": "svg", "theme": "Dark"}
    )
    assert calls == [("python", "dark")]
    assert DARK_THEME.colors.background in result.svg


def test_max_width_limits_content_column() -> None:
    seen = {}

    def svg_renderer(tree, width, height, fonts):
        seen["tree"] = tree
        return "<svg/>"

    _renderer(svg_renderer=svg_renderer).render(
        {"input": "Hi", "format": "svg", "max_width": 500, "watermark": False}
    )
    column = seen["tree"].children[0]
    assert column.style["maxWidth"] == 500


def test_watermark_overlay_is_optional() -> None:
    with_mark = _renderer().render({"input": "Hi", "format": "svg"})
    without = _renderer().render({"input": "Hi", "format": "svg", "watermark": False})
    assert "Generated with mdtoimage" in with_mark.svg
    assert "Generated with mdtoimage" not in without.svg


def test_font_loader_receives_download_flag() -> None:
    calls = []

    def loader(fonts, *, emitter, allow_download):
        calls.append((fonts.body.path, allow_download))
        return []

    _renderer(font_loader=loader).render(
        {
            "input": "Hi",
            "format": "svg",
            "fonts": {"body": "/fonts/body.ttf"},
            "fetch_fallback_fonts": False,
        }
    )
    assert calls == [("/fonts/body.ttf", False)]


def test_font_errors_propagate() -> None:
    def loader(fonts, **_kwargs):
        raise FontUnavailableError("no fonts", reason=FontUnavailableError.NO_SOURCE)

    with pytest.raises(FontUnavailableError) as excinfo:
        _renderer(font_loader=loader).render({"input": "Hi", "format": "svg"})
    assert excinfo.value.reason == FontUnavailableError.NO_SOURCE


def test_invalid_options_are_rejected() -> None:
    with pytest.raises(ValidationError):
        _renderer().render({"input": "Hi", "width": 0})
    with pytest.raises(ValidationError):
        _renderer().render({"input": "Hi", "theme": "neon"})
    with pytest.raises(ValidationError):
        _renderer().render({"input": "Hi", "format": "jpeg"})
    with pytest.raises(ValidationError):
        _renderer().render({"input": "Hi", "colour": "red"})


def test_front_matter_is_returned_and_not_rendered() -> None:
    result = _renderer().render(
        {"input": "---\ntitle: Demo\n---\nBody text\n", "format": "svg", "watermark": False}
    )
    assert result.front_matter == {"title": "Demo"}
    assert "title" not in result.svg
    assert "Body text" in result.svg


def test_write_failures_are_reported(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(MdImageError):
        _renderer().render({"input": "Hi", "output": blocker / "out.png"})


def test_load_source_reads_files_and_accepts_literals(tmp_path: Path) -> None:
    document = tmp_path / "doc.md"
    document.write_text("# From file\n", encoding="utf-8")
    assert load_source(document) == "# From file\n"
    assert load_source(str(document)) == "# From file\n"
    assert load_source("# Inline\n\nText") == "# Inline\n\nText"
    assert load_source(str(tmp_path / "missing.md")) == str(tmp_path / "missing.md")


def test_load_source_rejects_undecodable_files(tmp_path: Path) -> None:
    document = tmp_path / "doc.md"
    document.write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(InputError):
        load_source(document)


def test_resolve_theme_fonts_overrides_paths_only() -> None:
    theme = resolve_theme_fonts(LIGHT_THEME, FontOptions(code="/fonts/mono.ttf"))
    assert theme.fonts.code.path == "/fonts/mono.ttf"
    assert theme.fonts.code.name == LIGHT_THEME.fonts.code.name
    assert theme.fonts.body == LIGHT_THEME.fonts.body


def test_render_markdown_to_image_uses_default_renderer(monkeypatch) -> None:
    monkeypatch.setattr(service, "_DEFAULT_RENDERER", _renderer())
    result = render_markdown_to_image({"input": "Hi", "format": "base64"})
    assert result.base64 == base64.b64encode(FAKE_PNG).decode("ascii")
    assert service.get_default_renderer() is service._DEFAULT_RENDERER


def test_code_blocks_never_abort_the_render() -> None:
    def tokenizer(code, language, mode):
        raise RuntimeError("highlighter crashed")

    result = _renderer(tokenizer=tokenizer).render(
        {"input": "```py\na\nb\n```\n\n```\n\x1b[31mred\x1b[0m\n```\n", "format": "svg"}
    )
    root = ElementTree.fromstring(result.svg)
    text = "".join(root.itertext())
    assert "[31mred[0m" in text
    assert "\x1b" not in result.svg
