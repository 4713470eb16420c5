"""HTTP surface: payload shapes, error bodies and the signed URL round trip."""

from fastapi.testclient import TestClient

from app.api import routes
from app.services import AudioCapture, VoiceService
from tests.fakes import FakeEngine, FakeTTSClient


def test_voices_endpoint_shape(client) -> None:
    response = client.get("/api/tts/voices")

    assert response.status_code == 200
    body = response.json()
    assert [v["id"] for v in body] == ["en-US-Neural2-A", "en-US-Wavenet-C", "en-US-Standard-B"]
    assert body[0] == {
        "id": "en-US-Neural2-A",
        "name": "A",
        "lang": "en-US",
        "ssmlGender": "FEMALE",
        "naturalSampleRateHertz": 24000,
        "type": "Neural2",
        "tier": 7,
    }


def test_voices_failure_returns_500(client, monkeypatch) -> None:
    failing = VoiceService(client=FakeTTSClient(error=RuntimeError("down")), timeout=1.0)
    monkeypatch.setattr(routes, "voice_service", failing)

    response = client.get("/api/tts/voices")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch voices"}


def test_synthesize_returns_wav_attachment(client, wav_bytes) -> None:
    response = client.post(
        "/api/tts/synthesize",
        json={"text": "Hello", "voiceId": "en-US-Neural2-A", "lang": "en-US"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.headers["content-disposition"] == 'attachment; filename="speech.wav"'
    assert float(response.headers["x-audio-duration"]) > 0
    assert response.content == wav_bytes


def test_synthesize_missing_parameters(client, fake_tts) -> None:
    response = client.post("/api/tts/synthesize", json={"text": "", "voiceId": "voice-1"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required parameters"}
    assert fake_tts.calls == []


def test_synthesize_vendor_failure(client, monkeypatch) -> None:
    failing = VoiceService(client=FakeTTSClient(error=RuntimeError("down")), timeout=1.0)
    monkeypatch.setattr(routes, "voice_service", failing)

    response = client.post("/api/tts/synthesize", json={"text": "Hi", "voiceId": "v"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to synthesize speech"}


def test_local_voices_and_capture(client) -> None:
    voices = client.get("/api/tts/local-voices").json()
    assert voices[0]["id"] == "Alex-en-US"
    assert voices[0]["localService"] is True

    response = client.post("/api/tts/capture", json={"text": "Hello", "voiceId": "Alex-en-US"})
    assert response.status_code == 200
    assert response.content[:4] == b"RIFF"

    missing = client.post("/api/tts/capture", json={"text": "Hello", "voiceId": "Ghost-en-US"})
    assert missing.status_code == 400
    assert missing.json() == {"error": "Selected voice not found"}


def test_history_requires_authentication(client) -> None:
    assert client.get("/api/history").status_code == 401
    bad = client.get("/api/history", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid or expired token"}


def test_upload_refresh_and_fetch_round_trip(client, auth_headers, wav_bytes) -> None:
    upload = client.post(
        "/api/storage/upload",
        files={"file": ("speech.wav", wav_bytes, "audio/wav")},
        data={"name": "Greeting"},
        headers=auth_headers,
    )
    assert upload.status_code == 200
    path = upload.json()["path"]
    assert path.startswith("user-1/")

    urls = []
    for _ in range(2):
        refreshed = client.post("/api/storage/refresh", json={"path": path}, headers=auth_headers)
        assert refreshed.status_code == 200
        urls.append(refreshed.json()["url"])

    for url in urls + [upload.json()["signedUrl"]]:
        fetched = client.get(url)
        assert fetched.status_code == 200
        assert fetched.content == wav_bytes


def test_tampered_signed_url_rejected(client, auth_headers, wav_bytes) -> None:
    upload = client.post(
        "/api/storage/upload",
        files={"file": ("speech.wav", wav_bytes, "audio/wav")},
        data={"name": "x"},
        headers=auth_headers,
    ).json()

    response = client.get(upload["signedUrl"] + "tampered")

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or expired signature"}


def test_other_user_cannot_refresh_or_delete(client, auth_headers, other_auth_headers, wav_bytes) -> None:
    path = client.post(
        "/api/storage/upload",
        files={"file": ("speech.wav", wav_bytes, "audio/wav")},
        data={"name": "mine"},
        headers=auth_headers,
    ).json()["path"]

    refresh = client.post("/api/storage/refresh", json={"path": path}, headers=other_auth_headers)
    delete = client.delete(f"/api/storage/{path}", headers=other_auth_headers)

    assert refresh.status_code == 403
    assert delete.status_code == 403


def test_history_lifecycle(client, auth_headers, wav_bytes) -> None:
    upload = client.post(
        "/api/storage/upload",
        files={"file": ("speech.wav", wav_bytes, "audio/wav")},
        data={"name": "clip"},
        headers=auth_headers,
    ).json()

    created = client.post(
        "/api/history",
        json={"text_content": "Hello", "voice_id": "en-US-Neural2-A", "audio_url": upload["signedUrl"]},
        headers=auth_headers,
    )
    assert created.status_code == 201
    record_id = created.json()["id"]

    page = client.get("/api/history", headers=auth_headers).json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == record_id

    assert client.get(f"/api/history/{record_id}", headers=auth_headers).status_code == 200

    deleted = client.delete(f"/api/history/{record_id}", headers=auth_headers)
    assert deleted.json() == {"success": True}
    assert client.get("/api/history", headers=auth_headers).json()["total"] == 0
    assert client.get(upload["signedUrl"]).status_code == 404


def test_health(client) -> None:
    body = client.get("/api/health").json()

    assert body["status"] == "healthy"


def test_local_engine_unavailable_returns_503(client, monkeypatch) -> None:
    engine = FakeEngine()

    def broken():
        raise OSError("no audio backend")

    engine.acquire = broken
    monkeypatch.setattr(routes, "audio_capture", AudioCapture(engine, timeout=1.0))

    voices = client.get("/api/tts/local-voices")
    capture = client.post("/api/tts/capture", json={"text": "Hello", "voiceId": "Alex-en-US"})

    for response in (voices, capture):
        assert response.status_code == 503
        assert response.json() == {"error": "Local speech engine is not available"}


def test_shutdown_releases_local_engine(monkeypatch, engine) -> None:
    from app.main import app

    monkeypatch.setattr(routes, "audio_capture", AudioCapture(engine, timeout=1.0))

    with TestClient(app) as client:
        assert client.get("/api/tts/local-voices").status_code == 200
        assert engine.released == 0

    assert engine.acquired == 1
    assert engine.released == 1
