"""
Centralized error handling for the application.

Every failure that reaches the HTTP layer is an ``AppError`` subclass (or is
wrapped into ``InternalError``); ``error_response`` turns it into the JSON
error envelope returned to clients.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from yt_extractor.config import config


class ErrorCode(str, Enum):
    """Stable error codes exposed to API clients."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_URL = "INVALID_URL"
    METADATA_FAILED = "METADATA_FAILED"
    TRANSCRIPT_UNAVAILABLE = "TRANSCRIPT_UNAVAILABLE"
    TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
    LLM_ERROR = "LLM_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """Base class for errors that map onto the API error envelope."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500
    public_message = config.ERROR_MESSAGES["INTERNAL_ERROR"]

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, List[str]]] = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.details = details

    def client_message(self) -> str:
        return self.public_message


class ValidationError(AppError, ValueError):
    """Malformed user input. Also a ValueError so pydantic validators report it."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    public_message = config.ERROR_MESSAGES["INVALID_URL"]

    def client_message(self) -> str:
        return self.message


class ExtractionError(AppError):
    code = ErrorCode.INVALID_URL
    status_code = 400
    public_message = config.ERROR_MESSAGES["INVALID_URL"]


class VideoAccessError(AppError):
    """The video exists but cannot be processed (private or age-restricted)."""

    code = ErrorCode.METADATA_FAILED
    status_code = 400

    def client_message(self) -> str:
        return self.message


class TranscriptUnavailableError(AppError):
    code = ErrorCode.TRANSCRIPT_UNAVAILABLE
    status_code = 400
    public_message = config.ERROR_MESSAGES["TRANSCRIPT_UNAVAILABLE"]


class TranscriptionFailedError(AppError):
    """The audio fallback chain failed; the cause travels in ``details``."""

    code = ErrorCode.TRANSCRIPTION_FAILED
    status_code = 400
    public_message = config.ERROR_MESSAGES["TRANSCRIPTION_FAILED"]


class AudioDownloadError(AppError):
    code = ErrorCode.TRANSCRIPTION_FAILED
    status_code = 400
    public_message = config.ERROR_MESSAGES["TRANSCRIPTION_FAILED"]


class TranscriptionError(AppError):
    code = ErrorCode.TRANSCRIPTION_FAILED
    status_code = 400
    public_message = config.ERROR_MESSAGES["TRANSCRIPTION_FAILED"]

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = status_code


class EmptyTranscriptError(TranscriptionError):
    pass


class MissingCredentialError(AppError):
    """A required API key is not configured. The variable name is only logged."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500
    public_message = config.ERROR_MESSAGES["API_KEY_MISSING"]


class UpstreamError(AppError):
    """A third-party API answered with an error."""

    code = ErrorCode.LLM_ERROR
    public_message = config.ERROR_MESSAGES["LLM_ERROR"]

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 upstream_code: Optional[str] = None):
        super().__init__(message)
        self.upstream_status = status_code
        self.upstream_code = upstream_code

    @property
    def status_code(self) -> int:
        if self.upstream_status is not None and (self.upstream_status == 429 or self.upstream_status >= 500):
            return 503
        return 500


class EmptyResponseError(UpstreamError):
    pass


class RateLimitError(AppError):
    code = ErrorCode.RATE_LIMITED
    status_code = 429
    public_message = config.ERROR_MESSAGES["RATE_LIMITED"]


class InternalError(AppError):
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500
    public_message = config.ERROR_MESSAGES["INTERNAL_ERROR"]


def format_validation_errors(error: PydanticValidationError) -> Dict[str, List[str]]:
    """
    Group pydantic validation errors by field.

    Args:
        error: The pydantic validation error

    Returns:
        Mapping of dotted field path to the list of messages for that field
    """
    formatted: Dict[str, List[str]] = {}
    for issue in error.errors():
        path = ".".join(str(part) for part in issue.get("loc", ())) or "general"
        message = issue.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        formatted.setdefault(path, []).append(message)
    return formatted


def error_body(code: ErrorCode, message: str, details: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message, "code": code.value}
    if details:
        body["details"] = details
    return body


def error_response(error: AppError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """
    Build the JSON error envelope for an application error.

    Args:
        error: The error to report
        headers: Extra response headers

    Returns:
        JSONResponse with the error envelope and the error's status code
    """
    return JSONResponse(
        status_code=error.status_code,
        content=error_body(error.code, error.client_message(), error.details),
        headers=headers,
    )
