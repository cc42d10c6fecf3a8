"""Face matching module.

Nearest-label matching over face descriptors: a matcher is seeded with one or
more labelled reference faces and labels a query descriptor with the closest
reference, or ``unknown`` when even the closest one is too far away.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Union

import face_recognition
import numpy as np

from ..models.types import FaceDescription
from ..utils.image import decode_data_url
from .callbacks import Callback, run_async, run_with_callback
from .face_detection import FaceLocator, NoFaceDetectedError

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"
DEFAULT_DISTANCE_THRESHOLD = 0.6

@dataclass(frozen=True)
class LabeledDescriptors:
    label: str
    descriptors: List[np.ndarray]

class FaceMatch(NamedTuple):
    label: str
    distance: float

Reference = Union[FaceDescription, LabeledDescriptors, Sequence[Union[FaceDescription, LabeledDescriptors]]]

class FaceMatcher:
    """Labels query descriptors with the closest reference identity."""

    def __init__(self, reference: Reference, distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD):
        if isinstance(reference, (FaceDescription, LabeledDescriptors)):
            reference = [reference]
        if not reference:
            raise ValueError("FaceMatcher needs at least one reference face")

        self.distance_threshold = distance_threshold
        self.labeled_descriptors: List[LabeledDescriptors] = []
        for index, item in enumerate(reference):
            if isinstance(item, FaceDescription):
                item = LabeledDescriptors(label=f"person {index + 1}", descriptors=[item.descriptor])
            if not item.descriptors:
                raise ValueError(f"Reference {item.label!r} has no descriptors")
            self.labeled_descriptors.append(item)

    def mean_distance(self, labeled: LabeledDescriptors, descriptor: np.ndarray) -> float:
        distances = face_recognition.face_distance(np.asarray(labeled.descriptors), np.asarray(descriptor))
        return float(np.mean(distances))

    def match_descriptor(self, descriptor: np.ndarray) -> List[FaceMatch]:
        """Distance from the query to every reference label."""
        return [
            FaceMatch(labeled.label, self.mean_distance(labeled, descriptor))
            for labeled in self.labeled_descriptors
        ]

    def find_best_match(self, descriptor: np.ndarray) -> FaceMatch:
        best = min(self.match_descriptor(descriptor), key=lambda match: match.distance)
        if best.distance < self.distance_threshold:
            return best
        return FaceMatch(UNKNOWN_LABEL, best.distance)

def _is_same_person(first: FaceDescription, second: FaceDescription) -> bool:
    best = FaceMatcher(first).find_best_match(second.descriptor)
    logger.info(f"Best match: {best.label} (distance {best.distance:.3f})")
    return best.label != UNKNOWN_LABEL

def _require_faces(first, second) -> None:
    missing = [name for name, result in (("first", first), ("second", second)) if result is None]
    if missing:
        raise NoFaceDetectedError(f"No face detected in {' and '.join(missing)} image")

def compare_faces(locator: FaceLocator, one: str, two: str) -> bool:
    """Decide whether two data URL images show the same person.

    Args:
        locator: Face locator (usually a DlibFaceLocator).
        one: Base64 data URL of the first image.
        two: Base64 data URL of the second image.

    Returns:
        True if the most confident face of each image belongs to the same
        identity.

    Raises:
        ImageDecodeError: If either image cannot be decoded.
        NoFaceDetectedError: If either image has no face.
    """
    image_one = decode_data_url(one)
    image_two = decode_data_url(two)

    results_one = locator.detect_single(image_one)
    results_two = locator.detect_single(image_two)
    _require_faces(results_one, results_two)
    return _is_same_person(results_one, results_two)

async def compare_faces_async(locator: FaceLocator, one: str, two: str) -> bool:
    """Awaitable compare_faces; both images are decoded and searched concurrently."""
    image_one, image_two = await asyncio.gather(
        run_async(decode_data_url, one),
        run_async(decode_data_url, two)
    )
    results_one, results_two = await asyncio.gather(
        run_async(locator.detect_single, image_one),
        run_async(locator.detect_single, image_two)
    )
    _require_faces(results_one, results_two)
    return _is_same_person(results_one, results_two)

def compare_faces_callback(locator: FaceLocator, one: str, two: str, callback: Callback) -> None:
    run_with_callback(compare_faces, locator, one, two, callback=callback)
