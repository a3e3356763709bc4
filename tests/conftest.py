from __future__ import annotations

from contextlib import asynccontextmanager
from io import BytesIO
from typing import Dict, List, Sequence, Tuple

import pytest
from PIL import Image

from cwkgen.assets import AssetLoader, validate_image_bytes
from cwkgen.errors import AssetLoadError
from cwkgen.fonts import FontRegistry
from cwkgen.masks import MaskCache

AVATAR_URL = "https://cdn.example.test/avatars/alice.png"
BACKGROUND_URL = "https://cdn.example.test/backgrounds/stars.png"


def png_bytes(color=(200, 40, 40, 255), size: Tuple[int, int] = (64, 64)) -> bytes:
    output = BytesIO()
    Image.new("RGBA", size, color).save(output, format="PNG")
    return output.getvalue()


def gif_bytes(colors: Sequence[Tuple[int, int, int]], size: Tuple[int, int] = (32, 32)) -> bytes:
    frames = [Image.new("RGB", size, color) for color in colors]
    output = BytesIO()
    frames[0].save(
        output,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        loop=0,
        duration=100,
    )
    return output.getvalue()


class FakeLoader(AssetLoader):
    """Serves canned bytes by source and records every request."""

    def __init__(self, assets: Dict[object, bytes] = None) -> None:
        super().__init__(attempts=1)
        self.assets = dict(assets or {})
        self.calls: List[object] = []

    def _lookup(self, source) -> bytes:
        self.calls.append(source)
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        if source in self.assets:
            return self.assets[source]
        raise AssetLoadError(f"Fetch failed: {source}", source=str(source))

    async def load(self, source, *, session=None) -> bytes:
        return validate_image_bytes(self._lookup(source), source=source)

    async def fetch(self, source, *, session=None) -> bytes:
        return self._lookup(source)

    @asynccontextmanager
    async def session(self, *sources):
        yield None


@pytest.fixture
def avatar_png() -> bytes:
    return png_bytes((220, 60, 60, 255), (128, 96))


@pytest.fixture
def loader(avatar_png) -> FakeLoader:
    return FakeLoader({AVATAR_URL: avatar_png, BACKGROUND_URL: png_bytes((20, 120, 200, 255), (300, 100))})


@pytest.fixture
def fonts() -> FontRegistry:
    return FontRegistry()


@pytest.fixture
def masks() -> MaskCache:
    return MaskCache()
