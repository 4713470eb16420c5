"""Hosted voice catalog and speech synthesis backed by Google Cloud TTS."""

import asyncio
import logging
from itertools import zip_longest
from typing import Optional, List, Dict, Tuple

from google.cloud import texttospeech

from app.config import settings
from app.errors import (
    CatalogUnavailableError,
    MissingParametersError,
    SynthesisFailedError,
)
from app.models import QualityTier, SsmlGender, SynthesisRequest, SynthesisResult, Voice
from app.services.audio_service import AudioService

logger = logging.getLogger(__name__)

# Evaluated top to bottom; the first marker contained in the vendor name wins.
TIER_TABLE: Tuple[Tuple[str, QualityTier], ...] = (
    ("Neural2", QualityTier.NEURAL2),
    ("Chirp3-HD", QualityTier.CHIRP3_HD),
    ("Chirp-HD", QualityTier.CHIRP_HD),
    ("Studio", QualityTier.STUDIO),
    ("Wavenet", QualityTier.WAVENET),
    ("News", QualityTier.NEWS),
    ("Casual", QualityTier.OTHER),
    ("Polyglot", QualityTier.OTHER),
    ("Standard", QualityTier.STANDARD),
)

GENDER_ORDER: Tuple[SsmlGender, ...] = (
    SsmlGender.FEMALE,
    SsmlGender.MALE,
    SsmlGender.NEUTRAL,
    SsmlGender.UNSPECIFIED,
)


def classify_voice(name: str) -> Tuple[str, QualityTier]:
    """Return the (family, tier) pair for a vendor voice name."""
    for pattern, tier in TIER_TABLE:
        if pattern in name:
            return pattern, tier
    return "Other", QualityTier.OTHER


def display_name(voice_name: str) -> str:
    """Short label: last '-'-delimited segment of the vendor identifier."""
    return voice_name.split("-")[-1]


def _gender_of(vendor_voice) -> SsmlGender:
    try:
        return SsmlGender(texttospeech.SsmlVoiceGender(vendor_voice.ssml_gender).name)
    except ValueError:
        return SsmlGender.UNSPECIFIED


def rank_voices(vendor_voices, locale: str, limit: int) -> List[Voice]:
    """Filter vendor voices to ``locale``, rank them and keep the top ``limit``.

    Ordering is by descending quality tier. Inside one tier voices are
    interleaved by gender (female, male, neutral, unspecified), and each
    gender bucket is ordered by vendor name.
    """
    tiers: Dict[QualityTier, Dict[SsmlGender, list]] = {}
    for vendor_voice in vendor_voices:
        if locale not in vendor_voice.language_codes:
            continue
        family, tier = classify_voice(vendor_voice.name)
        gender = _gender_of(vendor_voice)
        voice = Voice(
            id=vendor_voice.name,
            name=display_name(vendor_voice.name),
            lang=vendor_voice.language_codes[0],
            ssml_gender=gender,
            natural_sample_rate_hertz=vendor_voice.natural_sample_rate_hertz or None,
            type=family,
            tier=tier,
        )
        tiers.setdefault(tier, {}).setdefault(gender, []).append(voice)

    ranked: List[Voice] = []
    for tier in sorted(tiers, reverse=True):
        buckets = [
            sorted(tiers[tier].get(gender, []), key=lambda v: v.id)
            for gender in GENDER_ORDER
        ]
        for row in zip_longest(*buckets):
            ranked.extend(v for v in row if v is not None)

    return ranked[:limit]


class VoiceService:
    """Service for hosted voice listing and speech synthesis."""

    def __init__(self, client=None, timeout: Optional[float] = None):
        """Initialize the voice service.

        The vendor client is created lazily so the application can start
        without cloud credentials.
        """
        self.client = client
        self.timeout = timeout if timeout is not None else settings.TTS_TIMEOUT_SECONDS

    def _get_client(self):
        if self.client is None:
            self.client = texttospeech.TextToSpeechAsyncClient()
        return self.client

    async def list_voices(self) -> List[Voice]:
        """Return the ranked, bounded voice list for the configured locale."""
        try:
            client = self._get_client()
            response = await asyncio.wait_for(
                client.list_voices(language_code=settings.VOICE_LOCALE),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error(f"Error fetching voices: {e}", exc_info=True)
            raise CatalogUnavailableError(detail=str(e)) from e

        voices = rank_voices(response.voices, settings.VOICE_LOCALE, settings.MAX_VOICES)
        logger.info(f"Listed {len(voices)} voices for {settings.VOICE_LOCALE}")
        return voices

    async def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        """Synthesize ``request.text`` with the requested voice as LINEAR16 WAV."""
        if not request.text or not request.voice_id:
            raise MissingParametersError()

        synthesis_input = texttospeech.SynthesisInput(text=request.text)
        voice = texttospeech.VoiceSelectionParams(
            name=request.voice_id,
            language_code=request.lang or settings.VOICE_LOCALE,
        )
        audio_config = texttospeech.AudioConfig(
            audio_encoding=texttospeech.AudioEncoding.LINEAR16,
            speaking_rate=request.speaking_rate or settings.DEFAULT_SPEAKING_RATE,
            pitch=request.pitch or settings.DEFAULT_PITCH,
        )

        logger.info(
            f"Synthesizing {len(request.text)} chars with voice {request.voice_id}"
        )
        try:
            client = self._get_client()
            response = await asyncio.wait_for(
                client.synthesize_speech(
                    input=synthesis_input,
                    voice=voice,
                    audio_config=audio_config,
                ),
                timeout=self.timeout,
            )
        except Exception as e:
            logger.error(f"Error synthesizing speech: {e}", exc_info=True)
            raise SynthesisFailedError(detail=str(e)) from e

        audio = bytes(response.audio_content)
        return SynthesisResult(audio=audio, duration=AudioService.wav_duration(audio))

