from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from conftest import BACKGROUND_URL
from cwkgen.errors import ValidationError
from cwkgen.generators.banner import BannerComposer, members_label


def test_members_label_uses_thousands_separator():
    assert members_label(12345) == "12,345 Members"
    assert members_label(7) == "7 Members"


def test_banner_without_background_makes_no_fetch(loader, fonts, masks):
    composer = BannerComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(composer.render(serverName="Guild", memberCount=1500, color="#00FF00"))
    with Image.open(BytesIO(data)) as image:
        assert image.size == (800, 300)
        # Solid color under the fixed half-transparent black overlay.
        r, g, b, a = image.convert("RGBA").getpixel((5, 5))
        assert (r, b, a) == (0, 0, 255)
        assert 126 <= g <= 129
    assert loader.calls == []


def test_banner_with_background(loader, fonts, masks):
    composer = BannerComposer(loader=loader, fonts=fonts, masks=masks)
    data = asyncio.run(
        composer.render({"serverName": "Guild", "memberCount": 42, "background": BACKGROUND_URL})
    )
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    assert loader.calls == [BACKGROUND_URL]


@pytest.mark.parametrize("member_count", [None, -1, "many", True])
def test_banner_member_count_validation(loader, fonts, masks, member_count):
    composer = BannerComposer(loader=loader, fonts=fonts, masks=masks)
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(composer.render(server_name="Guild", member_count=member_count))
    assert excinfo.value.field == "member_count"
