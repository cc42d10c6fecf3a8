"""Model loading.

Loads the three dlib artifacts the pipeline needs (CNN face detector,
68-point landmark predictor and ResNet recognition model) into a single
handle that is shared, read-only, by every detection and comparison call.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import dlib
import face_recognition_models

from .callbacks import run_async, run_with_callback

logger = logging.getLogger(__name__)

# File names dlib.net publishes the models under
MODEL_FILENAMES = {
    'detector': 'mmod_human_face_detector.dat',
    'landmarks': 'shape_predictor_68_face_landmarks.dat',
    'recognition': 'dlib_face_recognition_resnet_model_v1.dat'
}

class ModelLoadError(Exception):
    """Exception raised when a model artifact is missing or cannot be loaded."""

    def __init__(self, artifact: str, path: str, reason: str):
        super().__init__(f"Failed to load {artifact} model from {path}: {reason}")
        self.artifact = artifact
        self.path = path

@dataclass(frozen=True)
class ModelPaths:
    """Locations of the three model files."""
    detector: str
    landmarks: str
    recognition: str

    @classmethod
    def default(cls) -> "ModelPaths":
        """Model files bundled with the face_recognition_models package."""
        return cls(
            detector=face_recognition_models.cnn_face_detector_model_location(),
            landmarks=face_recognition_models.pose_predictor_model_location(),
            recognition=face_recognition_models.face_recognition_model_location()
        )

    @classmethod
    def from_settings(cls, settings: Any) -> "ModelPaths":
        """Configured paths per artifact.

        An explicit FACECROP_*_MODEL path wins, then the file of that name in
        MODELS_DIR (where facecrop-download-models puts it), then the bundled
        file.
        """
        defaults = cls.default()
        models_dir = Path(settings.MODELS_DIR) if settings.MODELS_DIR else None

        def resolve(configured: Optional[str], field: str) -> str:
            if configured:
                return configured
            if models_dir is not None:
                candidate = models_dir / MODEL_FILENAMES[field]
                if candidate.is_file():
                    return str(candidate)
            return getattr(defaults, field)

        return cls(
            detector=resolve(settings.DETECTOR_MODEL, 'detector'),
            landmarks=resolve(settings.LANDMARK_MODEL, 'landmarks'),
            recognition=resolve(settings.RECOGNITION_MODEL, 'recognition')
        )

@dataclass(frozen=True)
class FaceModels:
    """Loaded model handle."""
    detector: Any
    shape_predictor: Any
    encoder: Any

def _load(artifact: str, path: str, loader: Callable[[str], Any]) -> Any:
    model_path = Path(path)
    if not model_path.is_file():
        raise ModelLoadError(artifact, path, "file not found")

    logger.info(f"Loading {artifact} model from {model_path}")
    try:
        return loader(str(model_path))
    except (RuntimeError, OSError, ValueError) as e:
        raise ModelLoadError(artifact, path, str(e)) from e

def load_models(paths: Optional[ModelPaths] = None) -> FaceModels:
    """Load detector, landmark predictor and recognition model, in that order.

    Args:
        paths: Model locations; defaults to the bundled model files.

    Returns:
        Handle holding all three models.

    Raises:
        ModelLoadError: On the first artifact that fails; the remaining
            artifacts are not attempted.
    """
    paths = paths or ModelPaths.default()

    detector = _load("detector", paths.detector, dlib.cnn_face_detection_model_v1)
    shape_predictor = _load("landmark", paths.landmarks, dlib.shape_predictor)
    encoder = _load("recognition", paths.recognition, dlib.face_recognition_model_v1)

    logger.info("All face models loaded")
    return FaceModels(detector=detector, shape_predictor=shape_predictor, encoder=encoder)

async def load_models_async(paths: Optional[ModelPaths] = None) -> FaceModels:
    return await run_async(load_models, paths)

def load_models_callback(paths: Optional[ModelPaths], callback: Callable[[Optional[Exception], Optional[FaceModels]], Any]) -> None:
    run_with_callback(load_models, paths, callback=callback)
