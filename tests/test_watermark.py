from pydantic import ValidationError
import pytest

from mdtoimage.core.theme import DARK_THEME, LIGHT_THEME
from mdtoimage.core.watermark import (
    DEFAULT_WATERMARK_TEXT,
    WatermarkConfig,
    build_watermark_node,
    normalize_watermark,
)


def test_false_disables_the_overlay() -> None:
    assert normalize_watermark(False, LIGHT_THEME) is None
    assert normalize_watermark(WatermarkConfig(enabled=False), LIGHT_THEME) is None


@pytest.mark.parametrize(
    ("theme", "colour"), [(LIGHT_THEME, "#999999"), (DARK_THEME, "#cccccc")]
)
def test_defaults_contrast_with_the_background(theme, colour: str) -> None:
    for value in (True, None):
        watermark = normalize_watermark(value, theme)
        assert watermark is not None
        assert watermark.color == colour
        assert watermark.text == DEFAULT_WATERMARK_TEXT
        assert watermark.opacity == 0.5
        assert watermark.font_size == 12
        assert watermark.padding == 16


def test_partial_config_inherits_theme_text_colour() -> None:
    watermark = normalize_watermark(WatermarkConfig(text="Mine", opacity=0.3), DARK_THEME)
    assert watermark is not None
    assert watermark.text == "Mine"
    assert watermark.opacity == 0.3
    assert watermark.color == DARK_THEME.colors.text


def test_explicit_colour_is_kept() -> None:
    watermark = normalize_watermark(WatermarkConfig(color="#123456"), LIGHT_THEME)
    assert watermark is not None
    assert watermark.color == "#123456"


def test_opacity_is_validated() -> None:
    with pytest.raises(ValidationError):
        WatermarkConfig(opacity=1.5)
    with pytest.raises(ValidationError):
        WatermarkConfig(font_size=0)


def test_overlay_node_is_absolutely_positioned() -> None:
    watermark = WatermarkConfig(text="Stamp", padding=10, color="#abcdef")
    node = build_watermark_node(watermark, LIGHT_THEME)
    assert node.style["position"] == "absolute"
    assert node.style["bottom"] == 10
    assert node.style["right"] == 10
    assert node.style["opacity"] == 0.5
    assert node.style["color"] == "#abcdef"
    assert node.children == ["Stamp"]
