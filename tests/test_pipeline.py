"""
Tests for the summarize pipeline.
"""

import asyncio
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from yt_extractor.core.pipeline import DEFAULT_TITLE, SummarizePipeline
from yt_extractor.models.schemas import Available, Unavailable, VideoMetadata, VideoSummary
from yt_extractor.utils.error_handling import (
    AudioDownloadError,
    ErrorCode,
    ExtractionError,
    MissingCredentialError,
    TranscriptionError,
    TranscriptionFailedError,
    TranscriptUnavailableError,
    UpstreamError,
    ValidationError,
    VideoAccessError,
)

SUMMARY = "## Overview\nA classic."


class FakeDownloader:
    """Writes a small audio file per download and remembers the paths."""

    def __init__(self, directory, error=None):
        self.directory = directory
        self.error = error
        self.urls = []
        self.paths = []

    async def download(self, youtube_url):
        self.urls.append(youtube_url)
        if self.error:
            raise self.error
        path = self.directory / f"yt_audio_{len(self.paths)}.m4a"
        path.write_bytes(b"audio")
        self.paths.append(str(path))
        return str(path)


@pytest.fixture
def summarizer():
    mock_summarizer = MagicMock()
    mock_summarizer.summarize = AsyncMock(return_value=SUMMARY)
    return mock_summarizer


@pytest.fixture
def transcriber():
    mock_transcriber = MagicMock()
    mock_transcriber.configured = True
    mock_transcriber.transcribe = AsyncMock(return_value="transcribed from audio")
    return mock_transcriber


@pytest.fixture
def downloader(tmp_path):
    return FakeDownloader(tmp_path)


def make_pipeline(summarizer, transcriber, downloader, transcript_fetcher, metadata_fetcher):
    return SummarizePipeline(
        summarizer=summarizer,
        transcriber=transcriber,
        downloader=downloader,
        transcript_fetcher=transcript_fetcher,
        metadata_fetcher=metadata_fetcher,
    )


def test_captions_skip_speech_to_text(summarizer, transcriber, downloader, transcript_found, metadata_found,
                                      test_video_url, test_video_id):
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, metadata_found)

    result = asyncio.run(pipeline.run(test_video_url, request_id="req_test"))

    assert result == VideoSummary(
        video_id=test_video_id,
        title="Test Video",
        thumbnail="https://i.ytimg.com/vi/test/hq.jpg",
        summary=SUMMARY,
    )
    summarizer.summarize.assert_awaited_once_with("never gonna give you up never gonna let you down")
    assert downloader.urls == []
    transcriber.transcribe.assert_not_called()


def test_missing_metadata_uses_default_title(summarizer, transcriber, downloader, transcript_found,
                                             metadata_missing, test_video_url):
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, metadata_missing)

    result = asyncio.run(pipeline.run(test_video_url))

    assert result.title == DEFAULT_TITLE == "Unknown Video"
    assert result.thumbnail is None


def test_metadata_exception_does_not_fail_request(summarizer, transcriber, downloader, transcript_found,
                                                  test_video_url):
    async def exploding_metadata(video_id):
        raise RuntimeError("metadata blew up")

    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, exploding_metadata)

    result = asyncio.run(pipeline.run(test_video_url))

    assert result.title == DEFAULT_TITLE
    assert result.summary == SUMMARY


def test_empty_title_falls_back_to_default(summarizer, transcriber, downloader, transcript_found, test_video_url):
    async def untitled(video_id):
        return Available(VideoMetadata(title="", thumbnail="https://i.ytimg.com/vi/x/hq.jpg"))

    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, untitled)

    result = asyncio.run(pipeline.run(test_video_url))

    assert result.title == DEFAULT_TITLE
    assert result.thumbnail == "https://i.ytimg.com/vi/x/hq.jpg"


def test_sources_are_fetched_concurrently(summarizer, transcriber, downloader, test_video_url):
    started = []

    async def slow_transcript(video_id):
        started.append("transcript")
        await asyncio.sleep(0.05)
        assert "metadata" in started
        return Available("captions")

    async def slow_metadata(video_id):
        started.append("metadata")
        await asyncio.sleep(0.05)
        assert "transcript" in started
        return Unavailable("none")

    pipeline = make_pipeline(summarizer, transcriber, downloader, slow_transcript, slow_metadata)

    asyncio.run(pipeline.run(test_video_url))

    assert sorted(started) == ["metadata", "transcript"]


def test_audio_fallback(summarizer, transcriber, downloader, transcript_missing, metadata_found, test_video_id):
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, metadata_found)

    result = asyncio.run(pipeline.run(f"https://www.youtube.com/embed/{test_video_id}"))

    assert result.summary == SUMMARY
    summarizer.summarize.assert_awaited_once_with("transcribed from audio")
    # The fallback always downloads from the canonical watch URL
    assert downloader.urls == [f"https://www.youtube.com/watch?v={test_video_id}"]
    assert downloader.paths and not any(os.path.exists(p) for p in downloader.paths)


def test_fallback_without_speech_to_text_key(summarizer, transcriber, downloader, transcript_missing,
                                             metadata_found, test_video_url):
    transcriber.configured = False
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, metadata_found)

    with pytest.raises(MissingCredentialError) as exc_info:
        asyncio.run(pipeline.run(test_video_url))

    assert exc_info.value.status_code == 500
    assert exc_info.value.client_message() == "Server configuration error"
    assert downloader.urls == []
    summarizer.summarize.assert_not_called()


def test_transcription_failure_removes_audio(summarizer, transcriber, downloader, transcript_missing,
                                             metadata_found, test_video_url):
    transcriber.transcribe.side_effect = TranscriptionError("Deepgram API error: bad audio", status_code=400)
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, metadata_found)

    with pytest.raises(TranscriptionFailedError) as exc_info:
        asyncio.run(pipeline.run(test_video_url))

    assert exc_info.value.code == ErrorCode.TRANSCRIPTION_FAILED
    assert exc_info.value.details == {"transcription": ["Deepgram API error: bad audio"]}
    assert len(downloader.paths) == 1
    assert not os.path.exists(downloader.paths[0])


def test_download_failure(summarizer, transcriber, tmp_path, transcript_missing, metadata_found, test_video_url):
    downloader = FakeDownloader(tmp_path, error=AudioDownloadError("Failed to download audio from YouTube: 403"))
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, metadata_found)

    with pytest.raises(TranscriptionFailedError) as exc_info:
        asyncio.run(pipeline.run(test_video_url))

    assert exc_info.value.details == {"transcription": ["Failed to download audio from YouTube: 403"]}
    transcriber.transcribe.assert_not_called()


@pytest.mark.parametrize("text", ["", "   \n"])
def test_empty_speech_to_text_result(summarizer, transcriber, downloader, transcript_missing, metadata_found,
                                     test_video_url, text):
    transcriber.transcribe.return_value = text
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, metadata_found)

    with pytest.raises(TranscriptUnavailableError):
        asyncio.run(pipeline.run(test_video_url))

    summarizer.summarize.assert_not_called()


def test_private_video_without_captions(summarizer, transcriber, downloader, transcript_missing, test_video_url):
    async def private_metadata(video_id):
        raise VideoAccessError("This video is private")

    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_missing, private_metadata)

    with pytest.raises(VideoAccessError) as exc_info:
        asyncio.run(pipeline.run(test_video_url))

    assert exc_info.value.status_code == 400
    assert exc_info.value.client_message() == "This video is private"
    assert downloader.urls == []


def test_private_video_with_captions_still_summarizes(summarizer, transcriber, downloader, transcript_found,
                                                      test_video_url):
    async def private_metadata(video_id):
        raise VideoAccessError("This video is private")

    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, private_metadata)

    result = asyncio.run(pipeline.run(test_video_url))

    assert result.title == DEFAULT_TITLE


def test_llm_errors_propagate(summarizer, transcriber, downloader, transcript_found, metadata_found,
                              test_video_url):
    summarizer.summarize.side_effect = UpstreamError("OpenRouter API failed: 502", status_code=502)
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_found, metadata_found)

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(pipeline.run(test_video_url))

    assert exc_info.value.status_code == 503


@pytest.mark.parametrize("url", ["", "not a url", "https://vimeo.com/123456789"])
def test_invalid_url_fetches_nothing(summarizer, transcriber, downloader, url):
    transcript_fetcher = AsyncMock()
    metadata_fetcher = AsyncMock()
    pipeline = make_pipeline(summarizer, transcriber, downloader, transcript_fetcher, metadata_fetcher)

    with pytest.raises(ValidationError):
        asyncio.run(pipeline.run(url))

    transcript_fetcher.assert_not_called()
    metadata_fetcher.assert_not_called()
    summarizer.summarize.assert_not_called()


def test_extraction_error_is_invalid_url_code():
    error = ExtractionError()

    assert error.code == ErrorCode.INVALID_URL
    assert error.status_code == 400
