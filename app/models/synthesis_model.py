"""Synthesis request/result models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid

from pydantic import BaseModel, Field


class SynthesisRequest(BaseModel):
    """Body of a synthesis call.

    ``text`` and ``voice_id`` are optional at the schema level so that a
    missing value is reported as "Missing required parameters" by the
    service instead of a schema error.
    """
    text: Optional[str] = None
    voice_id: Optional[str] = Field(default=None, alias="voiceId")
    lang: Optional[str] = None
    speaking_rate: Optional[float] = Field(default=None, alias="speakingRate")
    pitch: Optional[float] = None

    class Config:
        populate_by_name = True


@dataclass
class SynthesisResult:
    """Audio produced by either synthesis strategy.

    ``reference`` is a transient handle for the in-memory payload, not a
    durable URL; it only becomes durable once uploaded to storage.
    """
    audio: bytes
    media_type: str = "audio/wav"
    filename: str = "speech.wav"
    duration: Optional[float] = None
    reference: str = field(default_factory=lambda: f"local:{uuid.uuid4().hex}")
    created_at: datetime = field(default_factory=datetime.now)
