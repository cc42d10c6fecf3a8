"""Face detection module.

This module defines the face locator capability consumed by the cropper and
the matcher, and its dlib implementation built on the loaded model handle.
Locators never mutate the model handle, so one instance can serve any number
of concurrent calls.
"""

import logging
from typing import List, Optional

import numpy as np
from typing_extensions import Protocol

from ..models.types import BoundingBox, DecodedImage, FaceDescription
from ..utils.image import to_rgb
from .model_loader import FaceModels

logger = logging.getLogger(__name__)

class FaceDetectionError(Exception):
    """Base exception for face detection errors."""
    pass

class NoFaceDetectedError(FaceDetectionError):
    """Exception raised when no face is detected in an image."""
    pass

class FaceLocator(Protocol):
    """Detection capability used by the cropper and the matcher."""

    def detect_all(self, image: DecodedImage) -> List[BoundingBox]:
        """Return the boxes of every face, in detection order."""
        ...

    def detect_single(self, image: DecodedImage) -> Optional[FaceDescription]:
        """Return the most confident face with landmarks and descriptor, or None."""
        ...

def trim_to_bounds(left: int, top: int, right: int, bottom: int, width: int, height: int) -> Optional[BoundingBox]:
    """Clip a rectangle to the image; None when nothing of it remains inside.

    ``right`` and ``bottom`` are exclusive.
    """
    left = max(left, 0)
    top = max(top, 0)
    right = min(right, width)
    bottom = min(bottom, height)
    if right <= left or bottom <= top:
        return None
    return BoundingBox(x=left, y=top, width=right - left, height=bottom - top)

class DlibFaceLocator:
    """Face locator backed by the dlib CNN detector, shape predictor and encoder."""

    def __init__(self, models: FaceModels, upsample: int = 1, num_jitters: int = 1):
        self.models = models
        self.upsample = upsample
        self.num_jitters = num_jitters

    def _detect(self, rgb_image: np.ndarray) -> list:
        """Run the detector; returns (box, rectangle, confidence) triples."""
        height, width = rgb_image.shape[:2]
        detections = []
        for detection in self.models.detector(rgb_image, self.upsample):
            rect = detection.rect
            # dlib right/bottom are inclusive
            box = trim_to_bounds(rect.left(), rect.top(), rect.right() + 1, rect.bottom() + 1, width, height)
            if box is None:
                logger.debug(f"Dropping detection outside the image: {rect}")
                continue
            detections.append((box, rect, float(detection.confidence)))
        return detections

    def detect_all(self, image: DecodedImage) -> List[BoundingBox]:
        detections = self._detect(to_rgb(image))
        logger.info(f"Found {len(detections)} faces in {image.width}x{image.height} image")
        return [box for box, _, _ in detections]

    def detect_single(self, image: DecodedImage) -> Optional[FaceDescription]:
        rgb_image = to_rgb(image)
        detections = self._detect(rgb_image)
        if not detections:
            logger.info("No face found")
            return None

        box, rect, confidence = max(detections, key=lambda d: d[2])
        logger.info(f"Using face at {box.as_dict()} (confidence {confidence:.3f})")

        shape = self.models.shape_predictor(rgb_image, rect)
        landmarks = [(point.x, point.y) for point in shape.parts()]
        descriptor = np.array(
            self.models.encoder.compute_face_descriptor(rgb_image, shape, self.num_jitters)
        )
        return FaceDescription(box=box, landmarks=landmarks, descriptor=descriptor)
