from __future__ import annotations

import math
import threading
from io import BytesIO
from typing import Dict, Optional

from PIL import Image, ImageChops, UnidentifiedImageError

from cwkgen.errors import AvatarProcessingError
from cwkgen.surface import cover_fit


def build_circular_mask(diameter: int) -> Image.Image:
    """Anti-aliased circle: full alpha inside, ~1px soft edge, zero outside.

    The four corner pixels are always zero for ``diameter >= 2``; a 2px mask
    is therefore fully transparent and a 1px mask is a single opaque pixel.
    """
    radius = diameter / 2.0
    data = []
    for y in range(diameter):
        dy = y + 0.5 - radius
        for x in range(diameter):
            distance = math.hypot(x + 0.5 - radius, dy)
            coverage = min(1.0, max(0.0, radius + 0.5 - distance))
            data.append(int(round(coverage * 255)))
    if diameter >= 2:
        last = diameter - 1
        for x, y in ((0, 0), (last, 0), (0, last), (last, last)):
            data[y * diameter + x] = 0
    mask = Image.new("L", (diameter, diameter), 0)
    mask.putdata(data)
    return mask


class MaskCache:
    """Circular masks keyed by diameter, kept for the process lifetime.

    Masks are shared between all avatar draws of the same diameter and must
    be treated as read-only by callers.
    """

    def __init__(self) -> None:
        self._masks: Dict[int, Image.Image] = {}
        self._lock = threading.Lock()

    def mask_for(self, diameter: int) -> Image.Image:
        size = int(diameter)
        if size <= 0:
            raise ValueError(f"Mask diameter must be positive, got {diameter!r}")
        mask = self._masks.get(size)
        if mask is not None:
            return mask
        built = build_circular_mask(size)
        with self._lock:
            return self._masks.setdefault(size, built)

    def __contains__(self, diameter: object) -> bool:
        return diameter in self._masks

    def __len__(self) -> int:
        return len(self._masks)

    def clear(self) -> None:
        with self._lock:
            self._masks.clear()


_default_cache: Optional[MaskCache] = None
_default_cache_lock = threading.Lock()


def default_mask_cache() -> MaskCache:
    global _default_cache
    if _default_cache is None:
        with _default_cache_lock:
            if _default_cache is None:
                _default_cache = MaskCache()
    return _default_cache


def crop_circle(image: Image.Image, diameter: int, cache: Optional[MaskCache] = None) -> Image.Image:
    cache = cache or default_mask_cache()
    try:
        size = int(diameter)
        mask = cache.mask_for(size)
        fitted = cover_fit(image, (size, size))
        fitted.putalpha(ImageChops.multiply(fitted.getchannel("A"), mask))
    except (OSError, ValueError) as exc:
        raise AvatarProcessingError(f"Circular crop failed: {exc}") from exc
    return fitted


def apply_circular_crop(data: bytes, diameter: int, cache: Optional[MaskCache] = None) -> bytes:
    try:
        with Image.open(BytesIO(data)) as source:
            source.load()
            cropped = crop_circle(source, diameter, cache)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise AvatarProcessingError(f"Avatar decode failed: {exc}") from exc
    output = BytesIO()
    cropped.save(output, format="PNG")
    return output.getvalue()
