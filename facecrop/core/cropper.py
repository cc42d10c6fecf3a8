"""Face cropping module.

Every detected face is cut out with a small padding margin and pasted onto a
black canvas larger than the crop, so callers get a framed portrait per face.

Geometry for a box ``(x, y, w, h)`` with margins ``(mx, my)``:

* canvas: ``int((w + mx) * 2.25)`` x ``int((h + my) * 2.25)``
* crop region: top-left ``(x - mx, y - my)``, size
  ``int((w + mx) * 1.25)`` x ``int((h + my) * 1.25)``
* the crop is pasted at a quarter of its size, ``(crop_w // 4, crop_h // 4)``

Fractional dimensions are truncated. Crop regions reaching past the image
edge are clipped to the image and the missing part stays black.
"""

import asyncio
import logging
import math
from typing import List, Tuple

import numpy as np

from ..models.types import BoundingBox, DecodedImage, PaddingMargin
from ..utils.image import CompositeEncodeError, decode_data_url, encode_data_url
from .callbacks import Callback, run_async, run_with_callback
from .face_detection import FaceLocator

logger = logging.getLogger(__name__)

MAX_MARGIN = 20
CANVAS_SCALE = 2.25
CROP_SCALE = 1.25
BACKGROUND_COLOR = (0, 0, 0)

def relative_position(pos: float, max_margin: int = MAX_MARGIN) -> int:
    """Largest integer in [0, max_margin] that can be subtracted from pos
    without going negative. Negative positions get no margin."""
    if pos < 0:
        return 0
    return min(max_margin, int(math.floor(pos)))

def padding_margin(box: BoundingBox, max_margin: int = MAX_MARGIN) -> PaddingMargin:
    return PaddingMargin(
        margin_x=relative_position(box.x, max_margin),
        margin_y=relative_position(box.y, max_margin)
    )

def canvas_size(box: BoundingBox, margin: PaddingMargin) -> Tuple[int, int]:
    """Canvas (width, height)."""
    return (
        int((box.width + margin.margin_x) * CANVAS_SCALE),
        int((box.height + margin.margin_y) * CANVAS_SCALE)
    )

def crop_region(box: BoundingBox, margin: PaddingMargin) -> Tuple[int, int, int, int]:
    """Requested crop (x, y, width, height) before clipping to the image."""
    return (
        int(box.x - margin.margin_x),
        int(box.y - margin.margin_y),
        int((box.width + margin.margin_x) * CROP_SCALE),
        int((box.height + margin.margin_y) * CROP_SCALE)
    )

def composite_face(image: DecodedImage, box: BoundingBox, max_margin: int = MAX_MARGIN) -> np.ndarray:
    """Build the canvas for one face.

    Raises:
        CompositeEncodeError: If the box yields an empty canvas or crop.
    """
    margin = padding_margin(box, max_margin)
    canvas_w, canvas_h = canvas_size(box, margin)
    x, y, crop_w, crop_h = crop_region(box, margin)
    if canvas_w <= 0 or canvas_h <= 0 or crop_w <= 0 or crop_h <= 0:
        raise CompositeEncodeError(f"Face box {box} produces an empty crop")

    canvas = np.empty((canvas_h, canvas_w, 3), dtype=np.uint8)
    canvas[:] = BACKGROUND_COLOR

    # Source rectangle clipped to the image
    src_x1 = max(x, 0)
    src_y1 = max(y, 0)
    src_x2 = min(x + crop_w, image.width)
    src_y2 = min(y + crop_h, image.height)

    offset_x = crop_w // 4
    offset_y = crop_h // 4
    if src_x2 > src_x1 and src_y2 > src_y1:
        dst_x = offset_x + (src_x1 - x)
        dst_y = offset_y + (src_y1 - y)
        region = image.pixels[src_y1:src_y2, src_x1:src_x2]
        canvas[dst_y:dst_y + region.shape[0], dst_x:dst_x + region.shape[1]] = region

    return canvas

def crop_face(image: DecodedImage, box: BoundingBox, max_margin: int = MAX_MARGIN) -> str:
    """Crop one face and encode it at the source mime type."""
    canvas = composite_face(image, box, max_margin)
    return encode_data_url(canvas, image.mimetype)

def crop_faces(locator: FaceLocator, image: str, max_margin: int = MAX_MARGIN) -> List[str]:
    """Get a framed crop of every face in a data URL image.

    Args:
        locator: Face locator (usually a DlibFaceLocator).
        image: Base64 data URL.
        max_margin: Largest padding added above and left of each face.

    Returns:
        One data URL per detected face, in detection order. Empty when no
        face is found.

    Raises:
        ImageDecodeError: If the input cannot be decoded.
        CompositeEncodeError: If any crop fails; no partial result is returned.
    """
    decoded = decode_data_url(image)
    boxes = locator.detect_all(decoded)
    logger.info(f"Cropping {len(boxes)} faces")
    return [crop_face(decoded, box, max_margin) for box in boxes]

async def crop_faces_async(locator: FaceLocator, image: str, max_margin: int = MAX_MARGIN) -> List[str]:
    """Awaitable crop_faces; the per-face crops run concurrently."""
    decoded = await run_async(decode_data_url, image)
    boxes = await run_async(locator.detect_all, decoded)
    logger.info(f"Cropping {len(boxes)} faces")
    return list(await asyncio.gather(
        *(run_async(crop_face, decoded, box, max_margin) for box in boxes)
    ))

def crop_faces_callback(locator: FaceLocator, image: str, callback: Callback, max_margin: int = MAX_MARGIN) -> None:
    run_with_callback(crop_faces, locator, image, max_margin, callback=callback)
