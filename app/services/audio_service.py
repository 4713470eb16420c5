"""Audio helpers: WAV encoding, probing and file-name hygiene."""

import io
import re
import logging
from typing import Optional

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)


def sanitize_filename(name: str) -> str:
    """Lower-case ``name`` and replace every non-alphanumeric character with '_'."""
    cleaned = re.sub(r"[^a-z0-9]", "_", name.lower())
    return cleaned or "speech"


class AudioService:
    """Service for audio processing operations."""

    @staticmethod
    def encode_wav(audio_data: np.ndarray, sample_rate: int) -> bytes:
        """Encode a mono float NumPy array as 16-bit PCM WAV bytes."""
        if audio_data.ndim > 1:
            audio_data = audio_data.squeeze()
        audio_data = np.clip(audio_data, -1.0, 1.0)
        if audio_data.dtype != np.float32:
            audio_data = audio_data.astype(np.float32)

        buffer = io.BytesIO()
        sf.write(buffer, audio_data, sample_rate, format="WAV", subtype="PCM_16")
        return buffer.getvalue()

    @staticmethod
    def wav_duration(audio: bytes) -> Optional[float]:
        """Duration in seconds of a WAV payload, or None if it cannot be probed."""
        try:
            info = sf.info(io.BytesIO(audio))
        except Exception as e:
            logger.warning(f"Could not read audio duration: {e}")
            return None
        if not info.samplerate:
            return None
        return info.frames / float(info.samplerate)

    @staticmethod
    def is_wav(audio: bytes) -> bool:
        """True if ``audio`` starts with a RIFF/WAVE header."""
        return len(audio) >= 12 and audio[:4] == b"RIFF" and audio[8:12] == b"WAVE"
