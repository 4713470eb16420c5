"""Configuration module for the VoiceDeck application."""
from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App settings
    APP_NAME: str = "VoiceDeck"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Voice catalog / synthesis settings
    VOICE_LOCALE: str = "en-US"
    MAX_VOICES: int = 30
    TTS_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_SPEAKING_RATE: float = 1.0
    DEFAULT_PITCH: float = 0.0

    # Local capture settings
    CAPTURE_TIMEOUT_SECONDS: float = 10.0
    CAPTURE_SAMPLE_RATE: int = 22050

    # Path settings
    BASE_DIR: Path = Path(__file__).parent.parent
    STORAGE_DIR: Path = BASE_DIR / "storage"
    HISTORY_DIR: Path = BASE_DIR / "history"

    # Storage settings
    STORAGE_BUCKET: str = "tts-files"
    PUBLIC_BASE_URL: str = "http://localhost:8000"
    SIGNED_URL_EXPIRES_SECONDS: int = 60 * 60 * 24 * 7
    STORAGE_SIGNING_SECRET: str = "change-me-storage-secret"
    MAX_AUDIO_SIZE_MB: int = 50
    HISTORY_PAGE_SIZE: int = 20

    # Auth settings
    JWT_SECRET_KEY: str = "change-me-jwt-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_HOURS: int = 24

    class Config:
        env_file = ".env"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Create directories if they don't exist
        self.STORAGE_DIR.mkdir(parents=True, exist_ok=True)
        self.HISTORY_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
