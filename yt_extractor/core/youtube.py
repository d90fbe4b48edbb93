"""
YouTube video ID extraction, transcript and metadata fetching.

Both fetchers are soft dependencies: they report ``Unavailable`` instead of
raising, except for private and age-restricted videos, which the metadata
fetcher raises as ``VideoAccessError``.
"""

import asyncio
import re
from typing import List, Optional

from pytubefix import YouTube
from pytubefix.exceptions import AgeRestrictedError, VideoPrivate
from youtube_transcript_api import NoTranscriptFound, YouTubeTranscriptApi

from yt_extractor.config import config
from yt_extractor.core.validation import is_valid_video_id
from yt_extractor.models.schemas import Available, FetchResult, Unavailable, VideoMetadata
from yt_extractor.utils.error_handling import VideoAccessError
from yt_extractor.utils.helpers import retry_async, with_timeout
from yt_extractor.utils.logger import logging

# Order matters: the first structural match wins
VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"),
    re.compile(r"youtube\.com/shorts/([^\"&?/\s]{11})"),
    re.compile(r"youtube\.com/embed/([^\"&?/\s]{11})"),
]

PRIVATE_VIDEO_MARKER = "Private video"
AGE_RESTRICTED_MARKER = "Sign in to confirm your age"


def extract_video_id(url) -> Optional[str]:
    """
    Extract the video ID from any accepted YouTube URL shape.

    Args:
        url: YouTube URL

    Returns:
        The 11-character video ID, or None if no valid ID is found
    """
    if not isinstance(url, str):
        return None

    sanitized_url = url.strip()
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(sanitized_url)
        if match and is_valid_video_id(match.group(1)):
            return match.group(1)

    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def _fetch_caption_text(video_id: str, languages: List[str]) -> Optional[str]:
    api = YouTubeTranscriptApi()
    try:
        fetched = api.fetch(video_id, languages=languages)
    except NoTranscriptFound:
        # No track in the preferred languages; take whichever track the video has
        transcript = next(iter(api.list(video_id)), None)
        if transcript is None:
            return None
        logging.info(f"No {languages} captions for {video_id}, using the {transcript.language_code} track")
        fetched = transcript.fetch()

    fragments = [snippet.text for snippet in fetched]
    if not fragments:
        return None
    return " ".join(fragments)


async def fetch_transcript(video_id: str, languages: Optional[List[str]] = None) -> FetchResult[str]:
    """
    Fetch the caption text of a video.

    Args:
        video_id: Validated video ID
        languages: Caption languages in order of preference

    Returns:
        Available(transcript) or Unavailable(reason); never raises
    """
    if not is_valid_video_id(video_id):
        logging.error(f"Invalid video ID format: {video_id!r}")
        return Unavailable("invalid video id")

    languages = languages or config.TRANSCRIPT_LANGUAGES
    try:
        text = await with_timeout(
            asyncio.to_thread(_fetch_caption_text, video_id, languages),
            config.REQUEST_TIMEOUT_SECONDS,
            "Transcript fetch timed out",
        )
    except Exception as e:
        logging.warning(f"Error fetching transcript for {video_id}: {e}")
        return Unavailable(str(e) or type(e).__name__, error=e)

    if not text:
        return Unavailable("no captions")
    return Available(text)


def _load_metadata(video_id: str) -> VideoMetadata:
    yt = YouTube(watch_url(video_id))
    try:
        yt.check_availability()
        title = yt.title
        thumbnail = yt.thumbnail_url or None
    except VideoPrivate as e:
        raise VideoAccessError("This video is private") from e
    except AgeRestrictedError as e:
        raise VideoAccessError("This video is age-restricted") from e
    except Exception as e:
        message = str(e)
        if PRIVATE_VIDEO_MARKER in message:
            raise VideoAccessError("This video is private") from e
        if AGE_RESTRICTED_MARKER in message:
            raise VideoAccessError("This video is age-restricted") from e
        raise
    return VideoMetadata(title=title, thumbnail=thumbnail)


async def fetch_video_metadata(video_id: str) -> FetchResult[VideoMetadata]:
    """
    Fetch the title and thumbnail of a video, retrying once.

    Args:
        video_id: Validated video ID

    Returns:
        Available(metadata) or Unavailable(reason)

    Raises:
        VideoAccessError: If the video is private or age-restricted
    """
    if not is_valid_video_id(video_id):
        logging.error(f"Invalid video ID format: {video_id!r}")
        return Unavailable("invalid video id")

    async def load():
        return await asyncio.to_thread(_load_metadata, video_id)

    try:
        metadata = await with_timeout(
            retry_async(
                load,
                max_attempts=config.METADATA_MAX_ATTEMPTS,
                initial_delay=config.METADATA_RETRY_DELAY_SECONDS,
                no_retry=(VideoAccessError,),
            ),
            config.REQUEST_TIMEOUT_SECONDS,
            "Video metadata fetch timed out",
        )
    except VideoAccessError:
        raise
    except Exception as e:
        logging.warning(f"Error fetching video metadata for {video_id}: {e}")
        return Unavailable(str(e) or type(e).__name__, error=e)

    return Available(metadata)
