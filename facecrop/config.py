"""
Service and pipeline settings
"""
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from FACECROP_* environment variables or .env"""
    model_config = SettingsConfigDict(
        env_prefix="FACECROP_",
        env_file=".env",
        extra="ignore",
        protected_namespaces=(),
    )

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3002
    CORS_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    # Model artifacts (None falls back to the files shipped by face_recognition_models)
    MODELS_DIR: str = "models"
    DETECTOR_MODEL: Optional[str] = None
    LANDMARK_MODEL: Optional[str] = None
    RECOGNITION_MODEL: Optional[str] = None
    LOAD_MODELS_ON_STARTUP: bool = True

    # Pipeline
    MAX_MARGIN: int = 20
    UPSAMPLE: int = 1
    NUM_JITTERS: int = 1


settings = Settings()
