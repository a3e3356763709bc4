from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from conftest import AVATAR_URL
from cwkgen.errors import ValidationError
from cwkgen.surface import parse_color
from cwkgen.generators.rank import (
    RankComposer,
    format_number,
    progress_fill_width,
    progress_label,
)


def test_progress_fill_width():
    assert progress_fill_width(620, 1250, 2000) == pytest.approx(0.625 * 620)
    assert progress_fill_width(620, 5000, 2000) == 620
    assert progress_fill_width(620, 0, 2000) == 0


def test_progress_label_rounds_half_up():
    assert progress_label(1250, 2000) == "63%"
    assert progress_label(1, 3) == "33%"
    assert progress_label(9000, 2000) == "100%"


def test_progress_rejects_zero_requirement():
    with pytest.raises(ValueError):
        progress_fill_width(100, 1, 0)


def test_format_number():
    assert format_number(1250) == "1250"
    assert format_number(1250.0) == "1250"
    assert format_number(12.5) == "12.5"


def _rank_options(**overrides):
    options = {
        "username": "alice",
        "avatarURL": AVATAR_URL,
        "level": 7,
        "xp": 1250,
        "requiredXp": 2000,
        "rank": 3,
        "color": "#0000FF",
        "progressColor": "#FF0000",
    }
    options.update(overrides)
    return options


def test_rank_card_progress_bar_pixels(loader, fonts, masks):
    composer = RankComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(composer.render(_rank_options()))
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    with Image.open(BytesIO(data)) as image:
        assert image.size == (800, 200)
        rgba = image.convert("RGBA")
        # Bar spans x 150..770 at y 150..170; the fill ends near x 537.
        assert rgba.getpixel((300, 155))[:3] == (255, 0, 0)
        assert rgba.getpixel((600, 155))[0] < 50
    assert loader.calls == [AVATAR_URL]


def test_rank_card_without_background_is_plain_color(loader, fonts, masks):
    composer = RankComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(composer.render(_rank_options(color="#7289DA")))
    with Image.open(BytesIO(data)) as image:
        assert image.convert("RGBA").getpixel((5, 5)) == parse_color("#7289DA")


def test_rank_card_validation_happens_before_fetch(loader, fonts, masks):
    composer = RankComposer(loader=loader, fonts=fonts, masks=masks)
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(composer.render(_rank_options(requiredXp=0)))
    assert excinfo.value.field == "required_xp"
    assert loader.calls == []
