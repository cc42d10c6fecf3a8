"""Core face loading, detection, cropping and matching functionality"""
from .model_loader import (
    ModelLoadError,
    ModelPaths,
    FaceModels,
    load_models,
    load_models_async,
    load_models_callback
)
from .face_detection import (
    FaceDetectionError,
    NoFaceDetectedError,
    FaceLocator,
    DlibFaceLocator
)
from .cropper import (
    relative_position,
    padding_margin,
    crop_face,
    crop_faces,
    crop_faces_async,
    crop_faces_callback
)
from .matcher import (
    UNKNOWN_LABEL,
    FaceMatcher,
    compare_faces,
    compare_faces_async,
    compare_faces_callback
)

__all__ = [
    'ModelLoadError',
    'ModelPaths',
    'FaceModels',
    'load_models',
    'load_models_async',
    'load_models_callback',
    'FaceDetectionError',
    'NoFaceDetectedError',
    'FaceLocator',
    'DlibFaceLocator',
    'relative_position',
    'padding_margin',
    'crop_face',
    'crop_faces',
    'crop_faces_async',
    'crop_faces_callback',
    'UNKNOWN_LABEL',
    'FaceMatcher',
    'compare_faces',
    'compare_faces_async',
    'compare_faces_callback'
]
