from __future__ import annotations

import asyncio
import logging
from io import BytesIO

import pytest
from PIL import Image

from conftest import AVATAR_URL, png_bytes
from cwkgen.errors import RenderError, ValidationError
from cwkgen.generators.profile import (
    BADGE_LABEL_HEIGHT,
    BADGE_SPACING,
    MAX_STAT_COLUMNS,
    ProfileComposer,
    badge_origin,
    stat_columns,
)
from cwkgen.options import Stat
from cwkgen.surface import parse_color

BADGE_URL = "https://cdn.example.test/badges/early.png"
BROKEN_BADGE_URL = "https://cdn.example.test/badges/broken.png"


def test_badge_origin_wraps_rows():
    assert badge_origin(0, 200, 150, 40) == (200, 150)
    assert badge_origin(4, 200, 150, 40) == (200 + 4 * (40 + BADGE_SPACING), 150)
    assert badge_origin(5, 200, 150, 40) == (200, 150 + 40 + BADGE_SPACING + BADGE_LABEL_HEIGHT)


def test_stat_columns_are_capped():
    stats = [Stat(f"s{idx}", str(idx)) for idx in range(7)]
    columns = stat_columns(stats, 540)
    assert len(columns) == MAX_STAT_COLUMNS
    assert columns[1][1] == pytest.approx(108)
    assert stat_columns([], 540) == []


def test_profile_card_with_badges_and_stats(loader, fonts, masks, caplog):
    loader.assets[BADGE_URL] = png_bytes((255, 215, 0, 255), (16, 16))
    composer = ProfileComposer(loader=loader, fonts=fonts, masks=masks)
    with caplog.at_level(logging.WARNING, logger="cwkgen.render"):
        data = asyncio.run(
            composer.render(
                {
                    "username": "alice",
                    "avatarURL": AVATAR_URL,
                    "bio": "Collects rare badges and writes bios.",
                    "stats": [{"name": f"Stat {idx}", "value": idx * 10} for idx in range(7)],
                    "badges": [
                        {"name": "Early", "icon": BADGE_URL},
                        {"name": "Broken", "icon": BROKEN_BADGE_URL},
                        {"name": "Plain"},
                    ],
                }
            )
        )
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    with Image.open(BytesIO(data)) as image:
        assert image.size == (600, 400)
        rgba = image.convert("RGBA")
        # First badge icon sits at (200, 150) with a gold fill.
        assert rgba.getpixel((210, 160))[:3] == (255, 215, 0)
        # Second badge fell back to the gray placeholder.
        assert rgba.getpixel((265, 165))[:3] == (128, 128, 128)
    assert BADGE_URL in loader.calls
    assert BROKEN_BADGE_URL in loader.calls
    assert "Broken" in caplog.text


def test_profile_without_bio_moves_badges_up(loader, fonts, masks):
    loader.assets[BADGE_URL] = png_bytes((255, 215, 0, 255), (16, 16))
    composer = ProfileComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(
        composer.render(username="alice", avatar_url=AVATAR_URL, badges=[{"name": "", "icon": BADGE_URL}])
    )
    with Image.open(BytesIO(data)) as image:
        assert image.convert("RGBA").getpixel((210, 110))[:3] == (255, 215, 0)


def test_profile_fallback_background_is_plain_color(loader, fonts, masks):
    composer = ProfileComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(
        composer.render(
            username="alice",
            avatar_url=AVATAR_URL,
            color="#7289DA",
            background="https://unreachable.example.test/bg.png",
        )
    )
    with Image.open(BytesIO(data)) as image:
        assert image.convert("RGBA").getpixel((5, 5)) == (114, 137, 218, 255)


def test_profile_validation(loader, fonts, masks):
    composer = ProfileComposer(loader=loader, fonts=fonts, masks=masks)
    with pytest.raises(ValidationError):
        asyncio.run(composer.render(username="alice", avatar_url=AVATAR_URL, badges="nope"))
    assert loader.calls == []


def test_profile_wraps_unexpected_errors(loader, fonts, masks, monkeypatch):
    def explode(self, *args, **kwargs):
        raise KeyError("panel")

    monkeypatch.setattr(ProfileComposer, "_paint_stats", explode)
    composer = ProfileComposer(loader=loader, fonts=fonts, masks=masks)
    with pytest.raises(RenderError, match="Failed to generate profile card for alice"):
        asyncio.run(
            composer.render(username="alice", avatar_url=AVATAR_URL, stats=[{"name": "a", "value": 1}])
        )
