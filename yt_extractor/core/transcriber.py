"""
Module for transcribing audio files with Deepgram's speech-to-text API.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from yt_extractor.config import config
from yt_extractor.models.schemas import TranscriptionConfig
from yt_extractor.utils.error_handling import (
    EmptyTranscriptError,
    MissingCredentialError,
    TranscriptionError,
)
from yt_extractor.utils.helpers import truncate_text, with_timeout
from yt_extractor.utils.logger import logging

MAX_FILE_SIZE_BYTES = config.MAX_AUDIO_FILE_SIZE_MB * 1024 * 1024


class DeepgramTranscriber:
    """Class to handle audio transcription operations."""

    def __init__(
        self,
        transcribe_config: Optional[TranscriptionConfig] = None,
        api_key: Optional[str] = None,
        timeout: float = config.LLM_TIMEOUT_SECONDS,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the transcriber.

        Args:
            transcribe_config: Model, language, punctuation and diarization options
            api_key: Deepgram API key (if None, will try to get from environment)
            timeout: Maximum duration of the upload, in seconds
            max_file_size: Largest accepted audio file, in bytes
            transport: Optional httpx transport, used by tests
        """
        self.transcribe_config = transcribe_config or TranscriptionConfig()
        self.api_key = api_key or os.getenv("DEEPGRAM_API_KEY")
        self.timeout = timeout
        self.max_file_size = max_file_size
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _check_file(self, file_path: str) -> Path:
        path = Path(file_path)
        if not path.is_file():
            raise TranscriptionError(f"Audio file not found: {file_path}")

        size = path.stat().st_size
        if size == 0:
            raise TranscriptionError("Audio file is empty")
        if size > self.max_file_size:
            raise TranscriptionError(
                f"File too large: {size / 1024 / 1024:.2f}MB "
                f"(max {self.max_file_size / 1024 / 1024:.0f}MB)"
            )
        return path

    @staticmethod
    def _extract_transcript(payload: Dict[str, Any]) -> Optional[str]:
        try:
            return payload["results"]["channels"][0]["alternatives"][0]["transcript"]
        except (KeyError, IndexError, TypeError):
            return None

    async def _post(self, audio: bytes) -> str:
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.post(
                config.DEEPGRAM_BASE_URL,
                params=self.transcribe_config.to_query_params(),
                headers={
                    "Authorization": f"Token {self.api_key}",
                    "Content-Type": "audio/m4a",
                },
                content=audio,
            )

        if not response.is_success:
            logging.error(f"Deepgram API error {response.status_code}: {truncate_text(response.text, 500)}")
            # The response body stays in the log
            raise TranscriptionError(
                f"Deepgram API error: HTTP {response.status_code}", status_code=response.status_code
            )

        try:
            payload = response.json()
        except ValueError:
            raise TranscriptionError("Deepgram returned a non-JSON response", status_code=response.status_code)

        transcript = self._extract_transcript(payload)
        if transcript is None:
            raise EmptyTranscriptError("No transcript returned from Deepgram")
        return transcript

    async def transcribe(self, file_path: str) -> str:
        """
        Transcribe an audio file.

        Args:
            file_path: Path to a non-empty audio file

        Returns:
            Plain transcript text

        Raises:
            MissingCredentialError: If no API key is configured
            TranscriptionError: If the file is unusable or the API call fails
        """
        if not self.api_key:
            raise MissingCredentialError("DEEPGRAM_API_KEY is missing in environment variables")

        path = self._check_file(file_path)
        audio = await asyncio.to_thread(path.read_bytes)

        logging.info(f"Transcribing audio file: {file_path} ({len(audio)} bytes)")
        try:
            transcript = await with_timeout(self._post(audio), self.timeout, "Deepgram transcription timed out")
        except TimeoutError as e:
            raise TranscriptionError(str(e)) from e
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Deepgram request failed: {e}") from e

        logging.info("Transcription complete.")
        return transcript
