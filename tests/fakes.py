"""In-process doubles for the speech vendor and the local speech engine."""

import asyncio
import threading
from typing import List, Optional

import numpy as np
from google.cloud import texttospeech

from app.models import LocalVoice
from app.services import AudioService

SAMPLE_RATE = 24000


def make_wav(seconds: float = 0.1, sample_rate: int = SAMPLE_RATE) -> bytes:
    t = np.linspace(0, seconds, int(sample_rate * seconds), endpoint=False)
    return AudioService.encode_wav(0.3 * np.sin(2 * np.pi * 440.0 * t), sample_rate)


def vendor_voice(name: str, gender: str, lang: str = "en-US", rate: int = 24000):
    return texttospeech.Voice(
        name=name,
        language_codes=[lang],
        ssml_gender=texttospeech.SsmlVoiceGender[gender],
        natural_sample_rate_hertz=rate,
    )


class FakeTTSClient:
    """Stands in for TextToSpeechAsyncClient and records every call."""

    def __init__(self, voices=None, audio: Optional[bytes] = None, error: Optional[Exception] = None):
        self.voices = voices or []
        self.audio = audio if audio is not None else make_wav()
        self.error = error
        self.delay = 0.0
        self.calls: List[tuple] = []

    async def list_voices(self, language_code=None):
        self.calls.append(("list_voices", language_code))
        if self.error:
            raise self.error
        return texttospeech.ListVoicesResponse(voices=self.voices)

    async def synthesize_speech(self, input, voice, audio_config):
        self.calls.append(("synthesize_speech", input, voice, audio_config))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return texttospeech.SynthesizeSpeechResponse(audio_content=self.audio)


class FakeEngine:
    """Local engine double.

    ``mode`` is "ok" (emit audio then end), "error" (emit an error event) or
    "silent" (never finish). ``delay`` postpones the outcome on the event loop.
    """

    sample_rate = 16000

    def __init__(self, mode: str = "ok", delay: float = 0.0, error_code: str = "synthesis-failed"):
        self.mode = mode
        self.delay = delay
        self.error_code = error_code
        self.acquired = 0
        self.released = 0
        self.cancelled = 0
        self.spoken: List[str] = []
        self.active = 0
        self.max_active = 0
        self.voice_threads: List[int] = []
        self._voices = [
            LocalVoice(id="Alex-en-US", name="Alex", lang="en-US", engine_id="alex", default=True),
            LocalVoice(id="Anna-de-DE", name="Anna", lang="de-DE", engine_id="anna"),
        ]

    def acquire(self):
        self.acquired += 1

    def release(self):
        self.released += 1

    def voices(self):
        self.voice_threads.append(threading.get_ident())
        return list(self._voices)

    def speak(self, text, voice, rate, pitch, listener):
        self.spoken.append(text)
        self.active += 1
        self.max_active = max(self.max_active, self.active)

        def finish():
            self.active -= 1
            if self.mode == "ok":
                listener.on_chunk(np.full(800, 0.25, dtype=np.float32))
                listener.on_chunk(np.full(800, -0.25, dtype=np.float32))
                listener.on_end()
            elif self.mode == "error":
                listener.on_error(self.error_code)

        if self.mode == "silent":
            return
        if self.delay:
            asyncio.get_running_loop().call_later(self.delay, finish)
        else:
            finish()

    def cancel(self):
        self.cancelled += 1
        if self.mode == "silent":
            self.active -= 1
