"""Shared pytest fixtures: fake vendor client, fake speech engine, temp storage."""

import pytest
from fastapi.testclient import TestClient

from app.api import routes
from app.api.auth import create_access_token
from app.main import app
from app.services import AudioCapture, HistoryService, StorageService, VoiceService
from tests.fakes import FakeEngine, FakeTTSClient, make_wav, vendor_voice


@pytest.fixture
def wav_bytes() -> bytes:
    return make_wav()


@pytest.fixture
def fake_tts() -> FakeTTSClient:
    return FakeTTSClient(
        voices=[
            vendor_voice("en-US-Neural2-A", "FEMALE"),
            vendor_voice("en-US-Standard-B", "MALE"),
            vendor_voice("en-US-Wavenet-C", "FEMALE"),
        ]
    )


@pytest.fixture
def voice_service(fake_tts) -> VoiceService:
    return VoiceService(client=fake_tts, timeout=1.0)


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def storage(tmp_path) -> StorageService:
    return StorageService(
        root=tmp_path / "storage",
        secret="test-secret",
        base_url="http://testserver",
    )


@pytest.fixture
def history(storage, tmp_path) -> HistoryService:
    return HistoryService(storage, root=tmp_path / "history")


@pytest.fixture
def client(monkeypatch, voice_service, storage, history, engine) -> TestClient:
    monkeypatch.setattr(routes, "voice_service", voice_service)
    monkeypatch.setattr(routes, "storage_service", storage)
    monkeypatch.setattr(routes, "history_service", history)
    monkeypatch.setattr(routes, "audio_capture", AudioCapture(engine, timeout=1.0))
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token('user-1')}"}


@pytest.fixture
def other_auth_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token('user-2')}"}
