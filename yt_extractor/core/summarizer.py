"""
Module for summarizing transcripts with an LLM through OpenRouter's
chat-completions API.
"""

import os
from typing import Any, Dict, List, Optional

import httpx

from yt_extractor.config import config
from yt_extractor.core.prompts import SYSTEM_PROMPT
from yt_extractor.models.schemas import SummaryConfig
from yt_extractor.utils.error_handling import (
    EmptyResponseError,
    MissingCredentialError,
    UpstreamError,
)
from yt_extractor.utils.helpers import safe_json_parse, truncate_text, with_timeout
from yt_extractor.utils.logger import logging

ELLIPSIS = "..."


def truncate_transcript(transcript: str, max_chars: int = config.TRANSCRIPT_MAX_CHARS) -> str:
    """
    Keep the first ``max_chars`` characters of a transcript.

    Longer transcripts are cut to exactly ``max_chars`` characters followed by
    an ellipsis; shorter ones are returned unchanged.
    """
    if len(transcript) <= max_chars:
        return transcript
    return transcript[:max_chars] + ELLIPSIS


class TranscriptSummarizer:
    """Class to handle transcript summarization operations."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = config.LLM_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the summarizer.

        Args:
            api_key: OpenRouter API key (if None, will try to get from environment)
            model: Model name (if None, OPENROUTER_MODEL or the default model)
            timeout: Maximum duration of a completion request, in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or os.getenv("OPENROUTER_API_KEY")
        self.model = model or os.getenv("OPENROUTER_MODEL") or config.DEFAULT_SUMMARY_MODEL
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": config.APP_URL,
            "X-Title": config.APP_NAME,
        }

    @staticmethod
    def build_messages(transcript: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": transcript},
        ]

    async def _complete(self, payload: Dict[str, Any]) -> str:
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.post(config.OPENROUTER_BASE_URL, headers=self._headers(), json=payload)

        if not response.is_success:
            logging.error(f"OpenRouter API error {response.status_code}: {truncate_text(response.text, 500)}")
            raise UpstreamError(f"OpenRouter API failed: {response.status_code}", status_code=response.status_code)

        data = safe_json_parse(response.text)
        if not isinstance(data, dict):
            raise UpstreamError("OpenRouter returned a non-JSON response", status_code=response.status_code)

        error = data.get("error")
        if error:
            message = error.get("message", "Unknown error") if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            status = code if isinstance(code, int) else None
            raise UpstreamError(message, status_code=status, upstream_code=None if code is None else str(code))

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not isinstance(content, str) or not content.strip():
            raise EmptyResponseError("No content received from LLM")

        return content.strip()

    async def summarize(self, transcript: str, summary_config: Optional[SummaryConfig] = None) -> str:
        """
        Summarize a transcript as Markdown.

        Args:
            transcript: Full transcript text
            summary_config: Token, temperature and length options

        Returns:
            The model's Markdown output, stripped of surrounding whitespace

        Raises:
            MissingCredentialError: If no API key is configured
            UpstreamError: If the provider fails or times out
            EmptyResponseError: If the provider returns no text
        """
        if not self.api_key:
            raise MissingCredentialError("OPENROUTER_API_KEY is missing")

        summary_config = summary_config or SummaryConfig()
        payload = {
            "model": summary_config.model or self.model,
            "messages": self.build_messages(truncate_transcript(transcript, summary_config.max_transcript_chars)),
            "max_tokens": summary_config.max_tokens,
            "temperature": summary_config.temperature,
        }

        try:
            return await with_timeout(self._complete(payload), self.timeout, "LLM summarization timed out")
        except TimeoutError as e:
            raise UpstreamError(str(e)) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"OpenRouter request failed: {e}") from e

    async def check_health(self) -> bool:
        """Check that the provider is reachable with the configured key."""
        if not self.api_key:
            return False

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=10) as client:
                response = await client.get(
                    config.OPENROUTER_MODELS_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            return response.is_success
        except httpx.HTTPError as e:
            logging.warning(f"OpenRouter health check failed: {e}")
            return False
