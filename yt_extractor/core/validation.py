"""
YouTube URL and video ID validation.
"""

import re
from urllib.parse import urlparse

from yt_extractor.utils.error_handling import ValidationError

VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

YOUTUBE_URL_PATTERNS = [
    re.compile(r"^https?://(www\.)?youtube\.com/watch\?v=[A-Za-z0-9_-]{11}"),
    re.compile(r"^https?://youtu\.be/[A-Za-z0-9_-]{11}"),
    re.compile(r"^https?://(www\.)?youtube\.com/embed/[A-Za-z0-9_-]{11}"),
    re.compile(r"^https?://(www\.)?youtube\.com/v/[A-Za-z0-9_-]{11}"),
    re.compile(r"^https?://(www\.)?youtube\.com/shorts/[A-Za-z0-9_-]{11}"),
]

# Only these shapes are ever passed to the external downloader
DOWNLOAD_URL_PATTERNS = [
    re.compile(r"^https?://(www\.)?youtube\.com/watch\?v=[A-Za-z0-9_-]{11}(&[A-Za-z0-9_=&%.-]*)?$"),
    re.compile(r"^https?://youtu\.be/[A-Za-z0-9_-]{11}(\?[A-Za-z0-9_=&%.-]*)?$"),
    re.compile(r"^https?://(www\.)?youtube\.com/shorts/[A-Za-z0-9_-]{11}(\?[A-Za-z0-9_=&%.-]*)?$"),
]


def is_valid_video_id(video_id) -> bool:
    """Check that a value is exactly 11 characters of ``[A-Za-z0-9_-]``."""
    return isinstance(video_id, str) and VIDEO_ID_PATTERN.fullmatch(video_id) is not None


def _is_well_formed_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc) and not any(c.isspace() for c in url)


def is_valid_youtube_url(url) -> bool:
    """Check that a string matches one of the accepted YouTube URL shapes."""
    if not isinstance(url, str):
        return False
    return any(pattern.match(url) for pattern in YOUTUBE_URL_PATTERNS)


def is_valid_download_url(url) -> bool:
    """
    Strict allow-list for URLs handed to the audio downloader.

    Only watch, youtu.be and shorts URLs qualify, and the whole string must
    consist of URL-safe characters so it cannot smuggle extra arguments.
    """
    if not isinstance(url, str):
        return False
    return any(pattern.match(url) for pattern in DOWNLOAD_URL_PATTERNS)


def validate_youtube_url(url) -> str:
    """
    Validate an untrusted YouTube URL.

    Args:
        url: The candidate URL

    Returns:
        The URL unchanged

    Raises:
        ValidationError: If the URL is empty, malformed or not a YouTube video URL
    """
    if not isinstance(url, str) or not url:
        raise ValidationError("YouTube URL is required")
    if not _is_well_formed_url(url):
        raise ValidationError("Please enter a valid URL")
    if not is_valid_youtube_url(url):
        raise ValidationError("Please enter a valid YouTube video URL")
    return url
