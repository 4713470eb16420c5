"""Voice data models."""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum, IntEnum


class QualityTier(IntEnum):
    """Ordinal voice quality, derived from the vendor naming convention."""
    OTHER = 0
    STANDARD = 1
    NEWS = 2
    WAVENET = 3
    STUDIO = 4
    CHIRP_HD = 5
    CHIRP3_HD = 6
    NEURAL2 = 7


class SsmlGender(str, Enum):
    """Gender marker reported by the vendor."""
    FEMALE = "FEMALE"
    MALE = "MALE"
    NEUTRAL = "NEUTRAL"
    UNSPECIFIED = "SSML_VOICE_GENDER_UNSPECIFIED"


class Voice(BaseModel):
    """Hosted voice as exposed to the client."""
    id: str
    name: str
    lang: str
    ssml_gender: SsmlGender = Field(default=SsmlGender.UNSPECIFIED, alias="ssmlGender")
    natural_sample_rate_hertz: Optional[int] = Field(default=None, alias="naturalSampleRateHertz")
    type: str = "Other"
    tier: QualityTier = QualityTier.OTHER

    class Config:
        populate_by_name = True
        frozen = True


class LocalVoice(BaseModel):
    """Voice offered by the local platform speech engine."""
    id: str
    name: str
    lang: str
    engine_id: str = Field(alias="engineId")
    local_service: bool = Field(default=True, alias="localService")
    default: bool = False

    class Config:
        populate_by_name = True
        frozen = True
