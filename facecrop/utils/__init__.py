"""Utility functions for image processing"""
from .image import (
    ImageProcessingError,
    ImageDecodeError,
    CompositeEncodeError,
    parse_data_url,
    decode_data_url,
    encode_data_url,
    to_rgb
)

__all__ = [
    'ImageProcessingError',
    'ImageDecodeError',
    'CompositeEncodeError',
    'parse_data_url',
    'decode_data_url',
    'encode_data_url',
    'to_rgb'
]
