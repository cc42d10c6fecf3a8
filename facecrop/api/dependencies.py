"""Shared face locator for the API routes."""

import asyncio
import logging
from typing import Optional

from ..config import settings
from ..core.face_detection import DlibFaceLocator, FaceLocator
from ..core.model_loader import ModelPaths, load_models_async

logger = logging.getLogger(__name__)

_locator: Optional[FaceLocator] = None
# Created lazily so it belongs to the running event loop
_load_lock: Optional[asyncio.Lock] = None

def _get_load_lock() -> asyncio.Lock:
    global _load_lock
    if _load_lock is None:
        _load_lock = asyncio.Lock()
    return _load_lock

async def init_locator() -> FaceLocator:
    """Load the models once and build the locator used by every request.

    Concurrent callers wait for the load in progress instead of starting
    another one.
    """
    global _locator

    async with _get_load_lock():
        if _locator is not None:
            return _locator

        paths = ModelPaths.from_settings(settings)
        models = await load_models_async(paths)
        _locator = DlibFaceLocator(models, upsample=settings.UPSAMPLE, num_jitters=settings.NUM_JITTERS)
        logger.info("Face locator ready")
        return _locator

def reset_locator() -> None:
    global _locator, _load_lock
    _locator = None
    _load_lock = None

def models_loaded() -> bool:
    return _locator is not None

async def get_locator() -> FaceLocator:
    """Locator dependency; loads the models on first use if startup did not."""
    if _locator is None:
        return await init_locator()
    return _locator
