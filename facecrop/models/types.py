"""Data models and type definitions"""
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np
from typing_extensions import TypedDict

class Box(TypedDict):
    x: int
    y: int
    width: int
    height: int

@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned face rectangle, top-left origin."""
    x: float
    y: float
    width: float
    height: float

    def as_dict(self) -> Box:
        return {
            'x': int(self.x),
            'y': int(self.y),
            'width': int(self.width),
            'height': int(self.height)
        }

class PaddingMargin(NamedTuple):
    margin_x: int
    margin_y: int

@dataclass(frozen=True)
class DecodedImage:
    """Decoded bitmap together with the mime type it arrived in.

    ``pixels`` is a BGR ``uint8`` array flagged read-only so that derived
    crops always work on copies.
    """
    mimetype: str
    pixels: np.ndarray = field(repr=False)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

@dataclass(frozen=True)
class FaceDescription:
    box: BoundingBox
    landmarks: List[Tuple[int, int]]
    descriptor: np.ndarray = field(repr=False)

class CropRequest(TypedDict):
    image: str

class CropResponse(TypedDict):
    faces: List[str]
    count: int

class CompareRequest(TypedDict):
    imageOne: str
    imageTwo: str

class CompareResponse(TypedDict):
    match: bool

class HealthResponse(TypedDict):
    status: str
    modelsLoaded: bool

class ErrorResponse(TypedDict):
    error: str
    traceback: Optional[str]
