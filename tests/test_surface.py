from __future__ import annotations

import pytest
from PIL import Image

from cwkgen.surface import Surface, cover_fit, parse_color


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#fff", (255, 255, 255, 255)),
        ("#7289DA", (114, 137, 218, 255)),
        ("rgba(0, 0, 0, 0.5)", (0, 0, 0, 128)),
        ("rgb(10, 20, 30)", (10, 20, 30, 255)),
        ("transparent", (0, 0, 0, 0)),
        ("white", (255, 255, 255, 255)),
        ((1, 2, 3), (1, 2, 3, 255)),
    ],
)
def test_parse_color(value, expected):
    assert parse_color(value) == expected


@pytest.mark.parametrize("value", ["", "#12", "rgba(1, 2)", "not-a-color", None, (1, 2)])
def test_parse_color_rejects(value):
    with pytest.raises(ValueError):
        parse_color(value)


def test_translucent_fill_blends():
    surface = Surface(4, 4, "#000000")
    surface.fill("rgba(255, 255, 255, 0.5)")
    r, g, b, a = surface.image.getpixel((1, 1))
    assert a == 255
    assert abs(r - 128) <= 1 and r == g == b


def test_fill_rect_and_stroke():
    surface = Surface(20, 20, "#000000")
    surface.fill_rect(5, 5, 10, 10, "#FF0000")
    surface.stroke_rect(5, 5, 10, 10, "#00FF00", line_width=2)
    assert surface.image.getpixel((10, 10)) == (255, 0, 0, 255)
    assert surface.image.getpixel((5, 10))[:3] == (0, 255, 0)
    assert surface.image.getpixel((1, 1)) == (0, 0, 0, 255)


def test_fill_circle():
    surface = Surface(40, 40, "#000000")
    surface.fill_circle(20, 20, 10, "#FFFFFF")
    assert surface.image.getpixel((20, 20))[:3] == (255, 255, 255)
    assert surface.image.getpixel((2, 2)) == (0, 0, 0, 255)


def test_draw_image_with_opacity():
    surface = Surface(10, 10, "#000000")
    surface.draw_image(Image.new("RGBA", (10, 10), (200, 0, 0, 255)), 0, 0, opacity=0.5)
    r, g, b, _ = surface.image.getpixel((5, 5))
    assert 95 <= r <= 105 and g == 0 and b == 0


def test_cover_fit_fills_target():
    fitted = cover_fit(Image.new("RGB", (300, 100), (5, 5, 5)), (100, 100))
    assert fitted.size == (100, 100)
    assert fitted.mode == "RGBA"


def test_to_png_signature():
    assert Surface(3, 3).to_png()[:8] == b"\x89PNG\r\n\x1a\n"
