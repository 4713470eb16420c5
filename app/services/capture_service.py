"""Local speech capture: turns a platform speech engine's output into a WAV blob.

The engine renders an utterance and reports back through a listener
(chunks, end, error). :class:`AudioCapture` drives one utterance at a time
through the states Idle -> Recording -> Finalizing (or Aborted) and
returns the same :class:`SynthesisResult` shape as the hosted synthesizer.
"""

import asyncio
import logging
import os
import tempfile
import threading
from enum import Enum
from typing import Optional, List, Protocol

import numpy as np
import soundfile as sf

from app.config import settings
from app.errors import (
    CaptureTimeoutError,
    EngineUnavailableError,
    LocalVoiceNotFoundError,
    MissingParametersError,
    SpeechEngineError,
)
from app.models import LocalVoice, SynthesisResult
from app.services.audio_service import AudioService

logger = logging.getLogger(__name__)


def local_voice_id(name: str, lang: str) -> str:
    return f"{name}-{lang}"


class CaptureState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZING = "finalizing"
    ABORTED = "aborted"


class UtteranceListener(Protocol):
    """Callbacks an engine uses to report an utterance. Thread-safe."""

    def on_chunk(self, chunk: np.ndarray) -> None: ...

    def on_end(self) -> None: ...

    def on_error(self, code: str) -> None: ...


class SpeechEngine(Protocol):
    """Owned handle on a local speech engine."""

    sample_rate: int

    def acquire(self) -> None: ...

    def release(self) -> None: ...

    def voices(self) -> List[LocalVoice]: ...

    def speak(
        self,
        text: str,
        voice: LocalVoice,
        rate: float,
        pitch: float,
        listener: UtteranceListener,
    ) -> None: ...

    def cancel(self) -> None: ...


class ChunkRecorder:
    """Buffers float32 chunks and resolves an awaitable when the utterance settles."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self._chunks: List[np.ndarray] = []
        self._lock = threading.Lock()
        self._stopped = False
        self.done: asyncio.Future = loop.create_future()

    def on_chunk(self, chunk: np.ndarray) -> None:
        with self._lock:
            if self._stopped:
                return
            data = np.asarray(chunk, dtype=np.float32)
            if data.ndim > 1:
                data = data.mean(axis=-1)
            if data.size:
                self._chunks.append(data)

    def on_end(self) -> None:
        self._loop.call_soon_threadsafe(self._settle, None)

    def on_error(self, code: str) -> None:
        self._loop.call_soon_threadsafe(self._settle, str(code))

    def _settle(self, error_code: Optional[str]) -> None:
        if self.done.done():
            return
        if error_code is None:
            self.done.set_result(None)
        else:
            self.done.set_exception(SpeechEngineError(error_code))

    def stop(self) -> None:
        with self._lock:
            self._stopped = True

    def discard(self) -> None:
        with self._lock:
            self._stopped = True
            self._chunks = []

    def to_wav(self, sample_rate: int) -> bytes:
        """Concatenate the buffered chunks into a 16-bit PCM WAV payload."""
        with self._lock:
            chunks = list(self._chunks)
        audio = np.concatenate(chunks) if chunks else np.zeros(0, dtype=np.float32)
        return AudioService.encode_wav(audio, sample_rate)


class AudioCapture:
    """Captures local engine output into playable WAV bytes, one capture at a time."""

    def __init__(self, engine: SpeechEngine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout if timeout is not None else settings.CAPTURE_TIMEOUT_SECONDS
        self.state = CaptureState.IDLE
        self._acquired = False
        self._lock = asyncio.Lock()

    def _ensure_engine(self) -> None:
        if self._acquired:
            return
        try:
            self.engine.acquire()
        except Exception as e:
            logger.error(f"Failed to acquire speech engine: {e}")
            raise EngineUnavailableError(detail=str(e)) from e
        self._acquired = True

    def close(self) -> None:
        """Release the engine handle."""
        if self._acquired:
            self.engine.release()
            self._acquired = False

    def list_voices(self) -> List[LocalVoice]:
        self._ensure_engine()
        return self.engine.voices()

    def resolve_voice(self, voice_id: str) -> LocalVoice:
        for voice in self.list_voices():
            if voice.id == voice_id:
                return voice
        raise LocalVoiceNotFoundError(detail=f"voice {voice_id!r} not enumerated")

    async def generate(
        self,
        text: str,
        voice_id: str,
        rate: float = 1.0,
        pitch: float = 1.0,
    ) -> SynthesisResult:
        """Speak ``text`` with a local voice and return the captured audio."""
        if not text or not voice_id:
            raise MissingParametersError()

        async with self._lock:
            # Engine start-up and voice enumeration block
            voice = await asyncio.to_thread(self.resolve_voice, voice_id)
            recorder = ChunkRecorder(asyncio.get_running_loop())

            self.state = CaptureState.RECORDING
            logger.info(f"Capturing {len(text)} chars with local voice {voice.name}")
            try:
                self.engine.speak(text, voice, rate, pitch, recorder)
                await asyncio.wait_for(asyncio.shield(recorder.done), timeout=self.timeout)
            except asyncio.TimeoutError:
                self.state = CaptureState.ABORTED
                logger.warning(f"Capture timed out after {self.timeout}s, cancelling engine")
                await asyncio.to_thread(self.engine.cancel)
                recorder.discard()
                raise CaptureTimeoutError()
            except SpeechEngineError as e:
                self.state = CaptureState.ABORTED
                logger.error(f"Speech engine reported error: {e.code}")
                await asyncio.to_thread(self.engine.cancel)
                recorder.discard()
                raise
            except BaseException:
                self.state = CaptureState.ABORTED
                self.engine.cancel()
                recorder.discard()
                raise
            finally:
                if not recorder.done.done():
                    recorder.done.cancel()

            self.state = CaptureState.FINALIZING
            recorder.stop()
            audio = recorder.to_wav(self.engine.sample_rate)
            self.state = CaptureState.IDLE
            return SynthesisResult(audio=audio, duration=AudioService.wav_duration(audio))


class Pyttsx3Engine:
    """Local engine backed by pyttsx3.

    pyttsx3 cannot hand back raw frames, so each utterance is rendered to a
    temporary WAV file on a worker thread and then replayed to the listener
    in fixed-size chunks. At most one worker drives the pyttsx3 run loop at
    any time.
    """

    BASE_RATE_WPM = 200
    CHUNK_FRAMES = 4096
    JOIN_TIMEOUT = 5.0

    def __init__(self, sample_rate: Optional[int] = None):
        self.sample_rate = sample_rate or settings.CAPTURE_SAMPLE_RATE
        self._engine = None
        self._worker: Optional[threading.Thread] = None
        self._cancel_token: Optional[threading.Event] = None

    def acquire(self) -> None:
        import pyttsx3

        self._engine = pyttsx3.init()

    def release(self) -> None:
        if self._engine is not None:
            self.cancel()
            self._engine = None

    def voices(self) -> List[LocalVoice]:
        if self._engine is None:
            raise EngineUnavailableError()
        current = self._engine.getProperty("voice")
        voices = []
        for v in self._engine.getProperty("voices"):
            lang = _first_language(v.languages) or settings.VOICE_LOCALE
            voices.append(
                LocalVoice(
                    id=local_voice_id(v.name, lang),
                    name=v.name,
                    lang=lang,
                    engine_id=v.id,
                    local_service=True,
                    default=v.id == current,
                )
            )
        return voices

    def is_busy(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def speak(self, text, voice, rate, pitch, listener) -> None:
        if self._engine is None:
            raise EngineUnavailableError()
        if self.is_busy():
            raise SpeechEngineError("engine-busy")
        # pyttsx3 exposes no portable pitch control
        if pitch not in (None, 1.0):
            logger.debug(f"Ignoring pitch={pitch}: not supported by pyttsx3")
        token = threading.Event()
        self._cancel_token = token
        self._worker = threading.Thread(
            target=self._render,
            args=(text, voice, rate, listener, token),
            daemon=True,
        )
        self._worker.start()

    def _render(self, text, voice, rate, listener, token: threading.Event) -> None:
        fd, tmp_path = tempfile.mkstemp(suffix=".wav")
        os.close(fd)
        try:
            self._engine.setProperty("voice", voice.engine_id)
            self._engine.setProperty("rate", int(self.BASE_RATE_WPM * rate))
            self._engine.save_to_file(text, tmp_path)
            self._engine.runAndWait()
            if token.is_set():
                return
            data, sr = sf.read(tmp_path, dtype="float32", always_2d=False)
            if sr != self.sample_rate:
                self.sample_rate = sr
            for start in range(0, len(data), self.CHUNK_FRAMES):
                if token.is_set():
                    return
                listener.on_chunk(data[start:start + self.CHUNK_FRAMES])
            listener.on_end()
        except Exception as e:
            logger.error(f"pyttsx3 render failed: {e}")
            listener.on_error(type(e).__name__)
        finally:
            try:
                os.remove(tmp_path)
            except OSError:
                logger.warning(f"Could not remove temporary file {tmp_path}")

    def cancel(self) -> None:
        """Stop the current utterance and wait for its worker to leave the run loop."""
        if self._cancel_token is not None:
            self._cancel_token.set()
        if self._engine is not None:
            self._engine.stop()
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(self.JOIN_TIMEOUT)
            if worker.is_alive():
                logger.error(f"pyttsx3 worker still running after {self.JOIN_TIMEOUT}s")


def _first_language(languages) -> Optional[str]:
    """Normalize pyttsx3 language entries (str or bytes like b'\\x05en-us')."""
    for entry in languages or []:
        if isinstance(entry, bytes):
            entry = entry.lstrip(b"\x00\x01\x02\x03\x04\x05\x06\x07\x08\t").decode(
                "utf-8", errors="ignore"
            )
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.replace("_", "-").split("-")
        if len(parts) > 1:
            return f"{parts[0].lower()}-{parts[1].upper()}"
        return parts[0].lower()
    return None
