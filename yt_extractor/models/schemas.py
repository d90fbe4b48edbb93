"""
Data models for the YouTube knowledge extractor.
"""
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from yt_extractor.config import config
from yt_extractor.core.validation import validate_youtube_url

T = TypeVar("T")


@dataclass(frozen=True)
class Available(Generic[T]):
    """A soft-failing fetch that produced a value."""
    value: T


@dataclass(frozen=True)
class Unavailable:
    """A soft-failing fetch that confirmed the value is absent."""
    reason: str
    error: Optional[Exception] = None


FetchResult = Union[Available[T], Unavailable]


class SummarizeRequest(BaseModel):
    """Body of a summarize request."""
    model_config = ConfigDict(populate_by_name=True)

    youtube_url: str = Field(alias="youtubeUrl")

    @field_validator("youtube_url")
    @classmethod
    def validate_youtube_url(cls, v):
        return validate_youtube_url(v)


class VideoMetadata(BaseModel):
    """Title and thumbnail of a video."""
    title: str
    thumbnail: Optional[str] = None


class VideoSummary(BaseModel):
    """Result of a successful summarize request."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    video_id: str = Field(alias="videoId", min_length=11, max_length=11)
    title: str
    thumbnail: Optional[str] = None
    summary: str


class TranscriptionConfig(BaseModel):
    """Configuration for speech-to-text requests."""
    model: str = config.DEFAULT_TRANSCRIPTION_MODEL
    language: str = "en"
    punctuate: bool = True
    diarize: bool = False

    def to_query_params(self) -> Dict[str, str]:
        return {
            "model": self.model,
            "language": self.language,
            "punctuate": str(self.punctuate).lower(),
            "diarize": str(self.diarize).lower(),
        }


class SummaryConfig(BaseModel):
    """Configuration for summarization requests."""
    model: Optional[str] = None
    max_tokens: int = config.SUMMARY_MAX_TOKENS
    temperature: float = config.SUMMARY_TEMPERATURE
    max_transcript_chars: int = config.TRANSCRIPT_MAX_CHARS


class RateLimitResult(BaseModel):
    """Outcome of a rate limit check. ``reset`` is a Unix timestamp in milliseconds."""
    success: bool
    limit: int
    remaining: int
    reset: int


class ApiSuccessResponse(BaseModel):
    success: bool = True
    data: VideoSummary


class ApiErrorResponse(BaseModel):
    success: bool = False
    error: str
    code: str
    details: Optional[Dict[str, List[str]]] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    services: Dict[str, bool]
