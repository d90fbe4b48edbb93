"""
Request orchestration: URL -> transcript -> summary.

Stages hand ``Available``/``Unavailable`` results to each other; hard
failures are raised as ``AppError`` subclasses and translated into the API
envelope by the caller.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional, Tuple

from yt_extractor.core.summarizer import TranscriptSummarizer
from yt_extractor.core.transcriber import DeepgramTranscriber
from yt_extractor.core.validation import validate_youtube_url
from yt_extractor.core.youtube import extract_video_id, fetch_transcript, fetch_video_metadata, watch_url
from yt_extractor.core.youtube_downloader import AudioDownloader, downloaded_audio
from yt_extractor.models.schemas import (
    Available,
    FetchResult,
    Unavailable,
    VideoMetadata,
    VideoSummary,
)
from yt_extractor.utils.error_handling import (
    AudioDownloadError,
    ExtractionError,
    MissingCredentialError,
    TranscriptionError,
    TranscriptionFailedError,
    TranscriptUnavailableError,
    VideoAccessError,
)
from yt_extractor.utils.helpers import estimate_tokens, generate_request_id
from yt_extractor.utils.logger import logging

DEFAULT_TITLE = "Unknown Video"

TranscriptFetcher = Callable[[str], Awaitable[FetchResult[str]]]
MetadataFetcher = Callable[[str], Awaitable[FetchResult[VideoMetadata]]]


class SummarizePipeline:
    """Turns a YouTube URL into a ``VideoSummary``."""

    def __init__(
        self,
        summarizer: Optional[TranscriptSummarizer] = None,
        transcriber: Optional[DeepgramTranscriber] = None,
        downloader: Optional[AudioDownloader] = None,
        transcript_fetcher: TranscriptFetcher = fetch_transcript,
        metadata_fetcher: MetadataFetcher = fetch_video_metadata,
    ):
        self.summarizer = summarizer or TranscriptSummarizer()
        self.transcriber = transcriber or DeepgramTranscriber()
        self.downloader = downloader or AudioDownloader()
        self.transcript_fetcher = transcript_fetcher
        self.metadata_fetcher = metadata_fetcher

    async def _safe_metadata(self, video_id: str) -> FetchResult[VideoMetadata]:
        try:
            return await self.metadata_fetcher(video_id)
        except Exception as e:
            return Unavailable(str(e), error=e)

    async def fetch_sources(self, video_id: str) -> Tuple[FetchResult[str], FetchResult[VideoMetadata]]:
        """Fetch captions and metadata concurrently; metadata errors never escape."""
        transcript, metadata = await asyncio.gather(
            self.transcript_fetcher(video_id),
            self._safe_metadata(video_id),
        )
        return transcript, metadata

    async def transcribe_audio(self, video_id: str, log_prefix: str = "") -> FetchResult[str]:
        """
        Download the audio of a video and transcribe it.

        The temp audio file is removed before this returns, on every path.

        Raises:
            MissingCredentialError: If no speech-to-text key is configured
            TranscriptionFailedError: If the download or transcription fails
        """
        if not self.transcriber.configured:
            raise MissingCredentialError("DEEPGRAM_API_KEY is missing")

        try:
            async with downloaded_audio(self.downloader, watch_url(video_id)) as audio_path:
                text = await self.transcriber.transcribe(audio_path)
        except (AudioDownloadError, TranscriptionError) as e:
            logging.error(f"{log_prefix}Transcription failed: {e.message}")
            raise TranscriptionFailedError(details={"transcription": [e.message]}) from e

        if not text or not text.strip():
            return Unavailable("speech-to-text returned an empty transcript")
        return Available(text)

    async def run(self, youtube_url: str, request_id: Optional[str] = None) -> VideoSummary:
        """
        Summarize a YouTube video.

        Args:
            youtube_url: URL submitted by the client
            request_id: Correlation ID for log lines

        Returns:
            VideoSummary for the video

        Raises:
            AppError: A typed error describing the failed stage
        """
        request_id = request_id or generate_request_id()
        log_prefix = f"[{request_id}] "
        start_time = time.monotonic()

        validate_youtube_url(youtube_url)

        video_id = extract_video_id(youtube_url)
        if not video_id:
            raise ExtractionError(f"No video ID found in {youtube_url!r}")

        logging.info(f"{log_prefix}Processing video: {video_id}")

        transcript, metadata = await self.fetch_sources(video_id)

        if isinstance(metadata, Unavailable):
            logging.warning(f"{log_prefix}Metadata unavailable: {metadata.reason}")

        if isinstance(transcript, Unavailable):
            logging.info(f"{log_prefix}No transcript available ({transcript.reason}), trying speech-to-text...")
            if isinstance(metadata, Unavailable) and isinstance(metadata.error, VideoAccessError):
                raise metadata.error
            transcript = await self.transcribe_audio(video_id, log_prefix)

        if isinstance(transcript, Unavailable):
            raise TranscriptUnavailableError(transcript.reason)

        logging.info(
            f"{log_prefix}Transcript length: {len(transcript.value)} chars "
            f"(~{estimate_tokens(transcript.value)} tokens)"
        )

        summary = await self.summarizer.summarize(transcript.value)

        details = metadata.value if isinstance(metadata, Available) else None
        result = VideoSummary(
            video_id=video_id,
            title=(details.title if details and details.title else DEFAULT_TITLE),
            thumbnail=(details.thumbnail if details else None),
            summary=summary,
        )

        logging.info(f"{log_prefix}Completed in {(time.monotonic() - start_time) * 1000:.0f}ms")
        return result
