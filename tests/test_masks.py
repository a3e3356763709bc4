from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from cwkgen.errors import AvatarProcessingError
from cwkgen.masks import MaskCache, apply_circular_crop, crop_circle


def test_mask_cache_returns_same_instance(masks: MaskCache):
    first = masks.mask_for(64)
    assert masks.mask_for(64) is first
    assert 64 in masks
    assert len(masks) == 1


def test_mask_cache_separates_diameters(masks: MaskCache):
    small = masks.mask_for(32)
    large = masks.mask_for(48)
    assert small is not large
    assert small.size == (32, 32)
    assert large.size == (48, 48)
    assert len(masks) == 2


@pytest.mark.parametrize("diameter", [0, -5])
def test_mask_rejects_non_positive_diameter(masks: MaskCache, diameter):
    with pytest.raises(ValueError):
        masks.mask_for(diameter)


@pytest.mark.parametrize("source_size", [(200, 80), (80, 200), (50, 50)])
@pytest.mark.parametrize("diameter", [8, 33, 100])
def test_crop_circle_corners_and_centre(masks: MaskCache, source_size, diameter):
    source = Image.new("RGB", source_size, (10, 200, 30))
    cropped = crop_circle(source, diameter, masks)
    assert cropped.size == (diameter, diameter)
    alpha = cropped.getchannel("A")
    last = diameter - 1
    for corner in ((0, 0), (last, 0), (0, last), (last, last)):
        assert alpha.getpixel(corner) == 0
    assert alpha.getpixel((diameter // 2, diameter // 2)) == 255


def test_apply_circular_crop_returns_png(masks: MaskCache):
    output = BytesIO()
    Image.new("RGB", (90, 60), (255, 255, 0)).save(output, format="JPEG")
    data = apply_circular_crop(output.getvalue(), 40, masks)
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    with Image.open(BytesIO(data)) as image:
        assert image.size == (40, 40)
        assert image.mode == "RGBA"


def test_apply_circular_crop_rejects_garbage(masks: MaskCache):
    with pytest.raises(AvatarProcessingError):
        apply_circular_crop(b"definitely not an image", 40, masks)


@pytest.mark.parametrize("diameter", [2, 3, 4, 5])
def test_small_masks_have_transparent_corners(masks: MaskCache, diameter):
    mask = masks.mask_for(diameter)
    last = diameter - 1
    for corner in ((0, 0), (last, 0), (0, last), (last, last)):
        assert mask.getpixel(corner) == 0
    if diameter >= 3:
        assert mask.getpixel((diameter // 2, diameter // 2)) == 255


def test_single_pixel_mask_is_opaque(masks: MaskCache):
    assert masks.mask_for(1).getpixel((0, 0)) == 255
