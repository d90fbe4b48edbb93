"""
Request-boundary middleware: request IDs, timing, security headers and rate limiting.
"""

import time
import traceback

from fastapi import Request

from yt_extractor.utils.error_handling import InternalError, RateLimitError, error_response
from yt_extractor.utils.helpers import generate_request_id
from yt_extractor.utils.logger import logging
from yt_extractor.utils.rate_limiter import retry_after_seconds

SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "X-XSS-Protection": "1; mode=block",
}

CONTENT_SECURITY_POLICY = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' 'unsafe-eval'",
    "style-src 'self' 'unsafe-inline'",
    "img-src 'self' data: https: blob:",
    "font-src 'self' data:",
    "connect-src 'self' https://api.deepgram.com https://openrouter.ai",
    "frame-ancestors 'self'",
    "base-uri 'self'",
    "form-action 'self'",
])

RATE_LIMITED_PATH_PREFIX = "/api/"


def client_address(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "anonymous"


async def request_context_middleware(request: Request, call_next):
    """Tag the request with an ID, time it, and add the security headers."""
    request_id = generate_request_id()
    request.state.request_id = request_id
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as e:
        # Unhandled errors still get the headers below
        logging.error(f"[{request_id}] Unhandled exception: {e}")
        logging.error(traceback.format_exc())
        response = error_response(InternalError())

    process_time = time.time() - start_time
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(process_time)

    logging.info(f"[{request_id}] {request.method} {request.url.path} - {process_time * 1000:.0f}ms")
    return response


async def rate_limit_middleware(request: Request, call_next):
    """Apply the sliding window limit to API routes. Limiter errors let the request through."""
    rate_limiter = getattr(request.app.state, "rate_limiter", None)
    path = request.url.path
    if rate_limiter is None or not path.startswith(RATE_LIMITED_PATH_PREFIX):
        return await call_next(request)

    request_id = getattr(request.state, "request_id", "-")
    ip = client_address(request)

    try:
        result = await rate_limiter.limit_request(f"{ip}:{path}")
    except Exception as e:
        logging.error(f"[{request_id}] Rate limiting error: {e}")
        return await call_next(request)

    rate_headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset),
    }

    if not result.success:
        logging.warning(f"[{request_id}] Rate limit exceeded for {ip} on {path}")
        return error_response(
            RateLimitError(),
            headers={**rate_headers, "Retry-After": str(retry_after_seconds(result.reset))},
        )

    response = await call_next(request)
    response.headers.update(rate_headers)
    return response
