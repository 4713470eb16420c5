"""History and storage models."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class HistoryRecord(BaseModel):
    """A saved conversion owned by one user."""
    id: str
    user_id: str
    text_content: str
    voice_id: str
    created_at: datetime
    audio_url: Optional[str] = None


class HistoryCreate(BaseModel):
    """Payload for saving a conversion."""
    text_content: str = Field(min_length=1)
    voice_id: str = Field(min_length=1)
    audio_url: Optional[str] = None


class HistoryPage(BaseModel):
    """One page of history records, newest first."""
    items: List[HistoryRecord]
    total: int
    limit: int
    offset: int


class UploadResult(BaseModel):
    """Stored blob location plus a freshly signed URL for it."""
    path: str
    signed_url: str = Field(alias="signedUrl")

    class Config:
        populate_by_name = True


class RefreshRequest(BaseModel):
    path: str = Field(min_length=1)


class SignedUrlResponse(BaseModel):
    path: str
    url: str
    expires_in: int
