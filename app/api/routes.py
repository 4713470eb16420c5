"""API routes for the application."""

import logging
from typing import List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response

from app.api.auth import get_current_user
from app.config import settings
from app.errors import BlobNotFoundError
from app.models import (
    HistoryCreate,
    HistoryPage,
    HistoryRecord,
    LocalVoice,
    RefreshRequest,
    SignedUrlResponse,
    SynthesisRequest,
    SynthesisResult,
    UploadResult,
    Voice,
)
from app.services import (
    AudioCapture,
    HistoryService,
    Pyttsx3Engine,
    StorageService,
    VoiceService,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api")
storage_router = APIRouter(prefix="/storage/v1/object")

voice_service = VoiceService()
audio_capture = AudioCapture(Pyttsx3Engine())
storage_service = StorageService()
history_service = HistoryService(storage_service)


def _audio_response(result: SynthesisResult) -> Response:
    headers = {"Content-Disposition": f'attachment; filename="{result.filename}"'}
    if result.duration is not None:
        headers["X-Audio-Duration"] = f"{result.duration:.3f}"
    return Response(content=result.audio, media_type=result.media_type, headers=headers)


# Voices and synthesis


@router.get("/tts/voices", response_model=List[Voice], response_model_by_alias=True)
async def get_voices():
    """Ranked hosted voices for the configured locale."""
    return await voice_service.list_voices()


@router.post("/tts/synthesize")
async def synthesize_speech(request: SynthesisRequest):
    result = await voice_service.synthesize(request)
    logger.info(f"Synthesized {len(result.audio)} bytes")
    return _audio_response(result)


@router.get("/tts/local-voices", response_model=List[LocalVoice], response_model_by_alias=True)
def get_local_voices():
    """Voices of the local speech engine. Runs in the threadpool: engine start-up blocks."""
    return audio_capture.list_voices()


@router.post("/tts/capture")
async def capture_speech(request: SynthesisRequest):
    """Synthesize with the local engine and return the captured WAV."""
    result = await audio_capture.generate(
        text=request.text,
        voice_id=request.voice_id,
        rate=request.speaking_rate or settings.DEFAULT_SPEAKING_RATE,
        pitch=request.pitch if request.pitch is not None else 1.0,
    )
    return _audio_response(result)


# Storage


@router.post("/storage/upload", response_model=UploadResult, response_model_by_alias=True)
async def upload_audio(
    file: UploadFile = File(...),
    name: str = Form("speech"),
    user_id: str = Depends(get_current_user),
):
    content = await file.read()
    logger.info(f"Uploading audio for {user_id}: {name} ({len(content)} bytes)")
    return history_service.upload(user_id, content, name)


@router.post("/storage/refresh", response_model=SignedUrlResponse)
async def refresh_audio_url(
    request: RefreshRequest,
    user_id: str = Depends(get_current_user),
):
    url = history_service.refresh_url(user_id, request.path)
    return SignedUrlResponse(path=request.path, url=url, expires_in=storage_service.expires_in)


@router.delete("/storage/{path:path}")
async def delete_audio(path: str, user_id: str = Depends(get_current_user)):
    history_service.delete_audio(user_id, path)
    return {"success": True}


# History


@router.get("/history", response_model=HistoryPage)
async def list_history(
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user),
):
    return history_service.list_records(user_id, limit=limit, offset=offset)


@router.post("/history", response_model=HistoryRecord, status_code=201)
async def add_history(item: HistoryCreate, user_id: str = Depends(get_current_user)):
    return history_service.add_record(user_id, item)


@router.get("/history/{record_id}", response_model=HistoryRecord)
async def get_history(record_id: str, user_id: str = Depends(get_current_user)):
    return history_service.get_record(user_id, record_id)


@router.delete("/history/{record_id}")
async def delete_history(
    record_id: str,
    audio_url: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user),
):
    success = history_service.delete_record(user_id, record_id, audio_url=audio_url)
    return {"success": success}


@router.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "locale": settings.VOICE_LOCALE,
    }


# Signed object access


@storage_router.get("/sign/{bucket}/{path:path}")
async def get_signed_object(bucket: str, path: str, token: str = Query(...)):
    if bucket != storage_service.bucket:
        raise BlobNotFoundError(detail=f"unknown bucket {bucket}")
    storage_service.verify_token(path, token)
    return Response(
        content=storage_service.download(path),
        media_type="audio/wav",
        headers={"Cache-Control": "max-age=3600"},
    )
