from __future__ import annotations

import asyncio

import numpy as np
import pytest

from conftest import StubLocator, gradient_image, make_data_url
from facecrop.core.cropper import (
    canvas_size,
    composite_face,
    crop_faces,
    crop_faces_async,
    crop_faces_callback,
    crop_region,
    padding_margin,
    relative_position,
)
from facecrop.models.types import BoundingBox, PaddingMargin
from facecrop.utils.image import CompositeEncodeError, ImageDecodeError, decode_data_url


@pytest.mark.parametrize(
    "pos, expected",
    [
        (0, 0),
        (5, 5),
        (5.7, 5),
        (19.99, 19),
        (20, 20),
        (20.5, 20),
        (150, 20),
        (-3, 0),
    ],
)
def test_relative_position(pos, expected):
    assert relative_position(pos) == expected


def test_relative_position_custom_max_margin():
    assert relative_position(7, max_margin=3) == 3
    assert relative_position(2, max_margin=3) == 2


def test_padding_margin_uses_box_origin():
    box = BoundingBox(x=12, y=45, width=10, height=10)
    assert padding_margin(box) == PaddingMargin(12, 20)


def test_geometry_truncates_scaled_dimensions():
    box = BoundingBox(x=40, y=50, width=101, height=81)
    margin = padding_margin(box)

    # (101 + 20) * 2.25 = 272.25, (81 + 20) * 2.25 = 227.25
    assert canvas_size(box, margin) == (272, 227)
    # (101 + 20) * 1.25 = 151.25, (81 + 20) * 1.25 = 126.25
    assert crop_region(box, margin) == (20, 30, 151, 126)


def test_composite_places_crop_at_quarter_offset():
    image = decode_data_url(make_data_url(gradient_image(300, 300)))
    box = BoundingBox(x=40, y=50, width=100, height=80)

    canvas = composite_face(image, box)

    assert canvas.shape == (225, 270, 3)
    # crop region (20, 30, 150, 125) pasted at (150 // 4, 125 // 4) = (37, 31)
    assert np.array_equal(canvas[31:31 + 125, 37:37 + 150], image.pixels[30:155, 20:170])
    assert not canvas[:31].any()
    assert not canvas[:, :37].any()
    assert not canvas[31 + 125:].any()
    assert not canvas[:, 37 + 150:].any()


def test_composite_clamps_crop_at_image_edge():
    image = decode_data_url(make_data_url(gradient_image(100, 100)))
    box = BoundingBox(x=60, y=60, width=40, height=40)

    canvas = composite_face(image, box)

    # margins (20, 20): crop (40, 40, 75, 75) clipped to 60 x 60, offset 18
    assert canvas.shape == (135, 135, 3)
    assert np.array_equal(canvas[18:78, 18:78], image.pixels[40:100, 40:100])
    assert not canvas[78:].any()
    assert not canvas[:, 78:].any()


def test_composite_rejects_degenerate_box():
    image = decode_data_url(make_data_url(gradient_image(10, 10)))
    with pytest.raises(CompositeEncodeError):
        composite_face(image, BoundingBox(x=0, y=0, width=0.5, height=0.5))


def test_crop_faces_returns_one_crop_per_box_in_order():
    boxes = [
        BoundingBox(x=40, y=50, width=100, height=80),
        BoundingBox(x=5, y=150, width=60, height=60),
        BoundingBox(x=200, y=10, width=30, height=50),
    ]
    locator = StubLocator(boxes)

    crops = crop_faces(locator, make_data_url(gradient_image(300, 300)))

    assert len(crops) == len(boxes)
    for crop, box in zip(crops, boxes):
        decoded = decode_data_url(crop)
        assert decoded.mimetype == "image/png"
        assert (decoded.width, decoded.height) == canvas_size(box, padding_margin(box))
    assert locator.calls == ["detect_all"]


def test_crop_faces_without_faces_returns_empty_list(gradient_url):
    assert crop_faces(StubLocator([]), gradient_url) == []


def test_crop_faces_keeps_input_mimetype():
    url = make_data_url(gradient_image(120, 120), "image/jpeg", ".jpg")
    crops = crop_faces(StubLocator([BoundingBox(x=30, y=30, width=40, height=40)]), url)

    assert crops[0].startswith("data:image/jpeg;base64,")
    assert (decode_data_url(crops[0]).width, decode_data_url(crops[0]).height) == (135, 135)


def test_crop_faces_single_face_end_to_end():
    box = BoundingBox(x=12, y=7, width=64, height=72)
    crops = crop_faces(StubLocator([box]), make_data_url(gradient_image(160, 160)))

    assert len(crops) == 1
    decoded = decode_data_url(crops[0])
    # margins (12, 7): (64 + 12) * 2.25 = 171, (72 + 7) * 2.25 = 177.75
    assert (decoded.width, decoded.height) == (171, 177)


def test_crop_faces_does_not_modify_source():
    pixels = gradient_image(100, 100)
    url = make_data_url(pixels)
    image = decode_data_url(url)
    before = image.pixels.copy()

    composite_face(image, BoundingBox(x=10, y=10, width=50, height=50))

    assert np.array_equal(image.pixels, before)


def test_crop_faces_encode_failure_aborts_whole_call():
    url = make_data_url(gradient_image(100, 100), "image/x-unknown")
    boxes = [BoundingBox(x=10, y=10, width=20, height=20), BoundingBox(x=50, y=50, width=20, height=20)]

    with pytest.raises(CompositeEncodeError):
        crop_faces(StubLocator(boxes), url)


def test_crop_faces_invalid_image():
    with pytest.raises(ImageDecodeError):
        crop_faces(StubLocator([]), "not a data url")


def test_crop_faces_async_matches_sync(gradient_url):
    boxes = [BoundingBox(x=40, y=50, width=100, height=80), BoundingBox(x=200, y=10, width=30, height=50)]

    expected = crop_faces(StubLocator(boxes), gradient_url)
    result = asyncio.run(crop_faces_async(StubLocator(boxes), gradient_url))

    assert result == expected


def test_crop_faces_async_propagates_first_failure():
    url = make_data_url(gradient_image(100, 100), "image/x-unknown")
    locator = StubLocator([BoundingBox(x=10, y=10, width=20, height=20)])

    with pytest.raises(CompositeEncodeError):
        asyncio.run(crop_faces_async(locator, url))


def test_crop_faces_callback_reports_result(gradient_url):
    results = []
    box = BoundingBox(x=40, y=50, width=100, height=80)

    crop_faces_callback(StubLocator([box]), gradient_url, lambda err, value: results.append((err, value)))

    assert len(results) == 1
    err, value = results[0]
    assert err is None
    assert len(value) == 1


def test_crop_faces_callback_reports_error():
    results = []

    crop_faces_callback(StubLocator([]), "garbage", lambda err, value: results.append((err, value)))

    assert len(results) == 1
    err, value = results[0]
    assert isinstance(err, ImageDecodeError)
    assert value is None
