from __future__ import annotations

import base64
from typing import List, Optional

import cv2
import numpy as np
import pytest

from facecrop.models.types import BoundingBox, DecodedImage, FaceDescription


def make_data_url(pixels: np.ndarray, mimetype: str = "image/png", extension: str = ".png") -> str:
    ok, buffer = cv2.imencode(extension, pixels)
    assert ok
    return f"data:{mimetype};base64," + base64.b64encode(buffer.tobytes()).decode("ascii")


def gradient_image(width: int, height: int) -> np.ndarray:
    """BGR image where every pixel is distinguishable from its neighbours."""
    ys, xs = np.mgrid[0:height, 0:width]
    return np.dstack([xs % 256, ys % 256, (xs + ys) % 256]).astype(np.uint8)


def solid_image(color, width: int = 64, height: int = 64) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:] = color
    return image


class StubLocator:
    """Deterministic locator.

    ``detect_all`` returns the configured boxes. ``detect_single`` treats an
    all-black image as faceless and derives the descriptor from the mean
    colour, so images of similar colour "show the same person".
    """

    def __init__(self, boxes: Optional[List[BoundingBox]] = None):
        self.boxes = list(boxes or [])
        self.calls: List[str] = []

    def detect_all(self, image: DecodedImage) -> List[BoundingBox]:
        self.calls.append("detect_all")
        return list(self.boxes)

    def detect_single(self, image: DecodedImage) -> Optional[FaceDescription]:
        self.calls.append("detect_single")
        mean = image.pixels.reshape(-1, 3).mean(axis=0) / 255.0
        if not mean.any():
            return None
        descriptor = np.resize(mean, 128)
        box = BoundingBox(x=0, y=0, width=image.width, height=image.height)
        return FaceDescription(box=box, landmarks=[], descriptor=descriptor)


@pytest.fixture
def gradient_url() -> str:
    return make_data_url(gradient_image(300, 300))


@pytest.fixture
def stub_locator() -> StubLocator:
    return StubLocator()
