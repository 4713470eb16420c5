"""Models module."""
from .voice_model import Voice, LocalVoice, QualityTier, SsmlGender
from .synthesis_model import SynthesisRequest, SynthesisResult
from .history_model import (
    HistoryRecord,
    HistoryCreate,
    HistoryPage,
    UploadResult,
    RefreshRequest,
    SignedUrlResponse,
)

__all__ = [
    "Voice",
    "LocalVoice",
    "QualityTier",
    "SsmlGender",
    "SynthesisRequest",
    "SynthesisResult",
    "HistoryRecord",
    "HistoryCreate",
    "HistoryPage",
    "UploadResult",
    "RefreshRequest",
    "SignedUrlResponse",
]
