"""Services module."""

from .audio_service import AudioService
from .voice_service import VoiceService
from .capture_service import AudioCapture, Pyttsx3Engine
from .storage_service import StorageService
from .history_service import HistoryService

__all__ = [
    "AudioService",
    "VoiceService",
    "AudioCapture",
    "Pyttsx3Engine",
    "StorageService",
    "HistoryService",
]
