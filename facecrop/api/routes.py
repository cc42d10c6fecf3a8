"""Face cropping and matching API routes.

This module provides the API endpoints for cutting faces out of an image
and for deciding whether two images show the same person.
"""

import logging
import traceback
from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, NoReturn
from ..config import settings
from ..core.cropper import crop_faces_async
from ..core.face_detection import FaceLocator, NoFaceDetectedError
from ..core.matcher import compare_faces_async
from ..core.model_loader import ModelLoadError
from ..utils.image import ImageDecodeError
from ..models.types import (
    CropRequest,
    CropResponse,
    CompareRequest,
    CompareResponse,
    HealthResponse,
    ErrorResponse
)
from .dependencies import get_locator, models_loaded

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

def _raise_http_error(e: Exception) -> NoReturn:
    """Translate a pipeline error into an HTTPException."""
    if isinstance(e, (ImageDecodeError, NoFaceDetectedError)):
        logger.warning(f"Client error: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        ) from e
    if isinstance(e, ModelLoadError):
        logger.error(f"Models unavailable: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        ) from e

    error_details: ErrorResponse = {
        'error': str(e),
        'traceback': traceback.format_exc()
    }
    logger.error("Error details:", extra=error_details)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=error_details
    ) from e

async def _locator_or_error() -> FaceLocator:
    try:
        return await get_locator()
    except ModelLoadError as e:
        _raise_http_error(e)

@router.get("/health", response_model=HealthResponse)
async def health() -> Dict:
    return {'status': 'ok', 'modelsLoaded': models_loaded()}

@router.post("/crop-faces", response_model=CropResponse)
async def crop_faces(request_data: CropRequest, locator: FaceLocator = Depends(_locator_or_error)) -> Dict:
    """Cut every detected face out of an image.

    Args:
        request_data: Dictionary containing the data URL image.
            - image: data URL of the photo

    Returns:
        Dictionary containing:
            - faces: data URLs of the framed faces, in detection order
            - count: number of faces

    Raises:
        HTTPException: If decoding or cropping fails
    """
    try:
        logger.info("Cropping faces...")
        faces = await crop_faces_async(locator, request_data['image'], settings.MAX_MARGIN)
        logger.info(f"Returning {len(faces)} faces")
        return {'faces': faces, 'count': len(faces)}
    except Exception as e:
        _raise_http_error(e)

@router.post("/compare-faces", response_model=CompareResponse)
async def compare_faces(request_data: CompareRequest, locator: FaceLocator = Depends(_locator_or_error)) -> Dict:
    """Compare the faces of two images.

    Args:
        request_data: Dictionary containing the data URL images.
            - imageOne: data URL of the first photo
            - imageTwo: data URL of the second photo

    Returns:
        Dictionary with a single `match` boolean.

    Raises:
        HTTPException: If decoding fails or either image has no face
    """
    try:
        logger.info("Comparing faces...")
        match = await compare_faces_async(locator, request_data['imageOne'], request_data['imageTwo'])
        logger.info(f"Match: {match}")
        return {'match': match}
    except Exception as e:
        _raise_http_error(e)
