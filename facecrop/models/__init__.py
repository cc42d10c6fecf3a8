"""Data models and type definitions"""
from .types import (
    Box,
    BoundingBox,
    PaddingMargin,
    DecodedImage,
    FaceDescription,
    CropRequest,
    CropResponse,
    CompareRequest,
    CompareResponse,
    HealthResponse,
    ErrorResponse
)

__all__ = [
    'Box',
    'BoundingBox',
    'PaddingMargin',
    'DecodedImage',
    'FaceDescription',
    'CropRequest',
    'CropResponse',
    'CompareRequest',
    'CompareResponse',
    'HealthResponse',
    'ErrorResponse'
]
