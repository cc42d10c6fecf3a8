"""Image processing utilities.

This module provides utility functions for converting between data URLs
and OpenCV images, the only image formats the pipeline exchanges with its
callers.
"""

import base64
import binascii
import re
from typing import Tuple

import cv2
import numpy as np

from ..models.types import DecodedImage

class ImageProcessingError(Exception):
    """Base exception for image processing errors."""
    pass

class ImageDecodeError(ImageProcessingError):
    """Exception raised when a data URL or its payload cannot be decoded."""
    pass

class CompositeEncodeError(ImageProcessingError):
    """Exception raised when a face crop cannot be built or encoded."""
    pass

# Matches the header part of "data:<type>/<subtype>[;params];base64"
DATA_URL_HEADER = re.compile(
    r'^data:(?P<mimetype>[\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[^;,]*)*;base64$',
    re.IGNORECASE
)

ENCODER_EXTENSIONS = {
    'image/png': '.png',
    'image/jpeg': '.jpg',
    'image/jpg': '.jpg',
    'image/pjpeg': '.jpg',
    'image/webp': '.webp',
    'image/bmp': '.bmp',
    'image/x-ms-bmp': '.bmp',
    'image/tiff': '.tiff'
}

def parse_data_url(url: str) -> Tuple[str, str]:
    """Split a data URL into its mime type and base64 payload.

    Args:
        url: Data URL, e.g. "data:image/png;base64,iVBORw0KGgo...".

    Returns:
        Tuple of (mimetype, base64 payload).

    Raises:
        ImageDecodeError: If the string is not a base64 data URL.
    """
    if not isinstance(url, str) or ',' not in url:
        raise ImageDecodeError("Expected a data URL of the form data:<mimetype>;base64,<payload>")

    header, payload = url.split(',', 1)
    match = DATA_URL_HEADER.match(header.strip())
    if match is None:
        raise ImageDecodeError(f"Invalid data URL header: {header[:64]!r}")

    return match.group('mimetype').lower(), payload.strip()

def decode_data_url(url: str) -> DecodedImage:
    """Decode a data URL to an OpenCV image.

    Args:
        url: Base64 data URL carrying an encoded image.

    Returns:
        Decoded image; pixels are BGR and read-only.

    Raises:
        ImageDecodeError: If the URL, the base64 payload or the image data
            cannot be decoded.
    """
    mimetype, payload = parse_data_url(url)

    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode base64 payload: {str(e)}") from e

    if not image_bytes:
        raise ImageDecodeError("Data URL payload is empty")

    nparr = np.frombuffer(image_bytes, np.uint8)
    try:
        pixels = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ImageDecodeError(f"Failed to decode image data: {str(e)}") from e
    if pixels is None:
        raise ImageDecodeError(f"Failed to decode {mimetype} image data")

    pixels.flags.writeable = False
    return DecodedImage(mimetype=mimetype, pixels=pixels)

def encode_data_url(pixels: np.ndarray, mimetype: str) -> str:
    """Encode an OpenCV image as a data URL.

    Args:
        pixels: BGR image.
        mimetype: Target mime type; must be one OpenCV can write.

    Returns:
        Data URL of the encoded image.

    Raises:
        CompositeEncodeError: If the mime type is unsupported or encoding fails.
    """
    extension = ENCODER_EXTENSIONS.get(mimetype.lower())
    if extension is None:
        raise CompositeEncodeError(f"Unsupported output mime type: {mimetype}")

    try:
        ok, buffer = cv2.imencode(extension, pixels)
    except cv2.error as e:
        raise CompositeEncodeError(f"Failed to encode {mimetype} image: {str(e)}") from e
    if not ok:
        raise CompositeEncodeError(f"Failed to encode {mimetype} image")

    encoded = base64.b64encode(buffer.tobytes()).decode('ascii')
    return f"data:{mimetype};base64,{encoded}"

def to_rgb(image: DecodedImage) -> np.ndarray:
    """Return an RGB copy of the image for dlib."""
    return cv2.cvtColor(image.pixels, cv2.COLOR_BGR2RGB)
