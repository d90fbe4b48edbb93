"""
Helper utility functions for the YouTube knowledge extractor.
"""

import asyncio
import json
import math
import secrets
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, Type, TypeVar

from yt_extractor.utils.logger import logging

T = TypeVar("T")


def generate_request_id() -> str:
    """
    Generate a short identifier used to correlate log lines of one request.

    Returns:
        Identifier of the form ``req_<12 hex chars>``
    """
    return f"req_{secrets.token_hex(6)}"


def truncate_text(text: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate text to a maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""
    return math.ceil(len(text) / 4)


def safe_json_parse(raw: str, default: Any = None) -> Any:
    """
    Parse JSON, returning a default instead of raising.

    Args:
        raw: JSON text
        default: Value returned when parsing fails

    Returns:
        Parsed value or default
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return default


def save_json(data: Dict[str, Any], filepath: str, pretty: bool = True) -> None:
    """
    Save data to a JSON file.

    Args:
        data: Data to save
        filepath: Path to save the file
        pretty: Whether to format the JSON for readability
    """
    with open(filepath, 'w', encoding='utf-8') as f:
        if pretty:
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            json.dump(data, f, ensure_ascii=False)


async def with_timeout(awaitable: Awaitable[T], seconds: float, message: str) -> T:
    """
    Await with a time ceiling, cancelling the awaited work when it expires.

    Args:
        awaitable: Coroutine or future to await
        seconds: Time ceiling in seconds
        message: Message of the TimeoutError raised on expiry

    Returns:
        Result of the awaitable

    Raises:
        TimeoutError: If the ceiling is reached
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise TimeoutError(message) from None


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    no_retry: Tuple[Type[BaseException], ...] = (),
) -> T:
    """
    Call an async function until it succeeds, doubling the delay between attempts.

    Args:
        func: Zero-argument coroutine function
        max_attempts: Total number of attempts
        initial_delay: Delay before the second attempt, in seconds
        no_retry: Exception types that are re-raised immediately

    Returns:
        Result of the first successful call
    """
    last_error: Optional[Exception] = None
    for attempt in range(max_attempts):
        try:
            return await func()
        except no_retry:
            raise
        except Exception as exc:
            last_error = exc
            if attempt < max_attempts - 1:
                delay = initial_delay * (2 ** attempt)
                logging.debug(f"Attempt {attempt + 1}/{max_attempts} failed ({exc}); retrying in {delay}s")
                await asyncio.sleep(delay)
    if last_error:
        raise last_error
    raise RuntimeError("Retry failed without exception")
