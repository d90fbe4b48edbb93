"""
API routes for the YouTube knowledge extractor.
"""

import traceback

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from yt_extractor.config import config
from yt_extractor.core.pipeline import SummarizePipeline
from yt_extractor.models.schemas import (
    ApiErrorResponse,
    ApiSuccessResponse,
    HealthResponse,
    SummarizeRequest,
)
from yt_extractor.utils.error_handling import (
    AppError,
    ErrorCode,
    InternalError,
    ValidationError,
    error_body,
    error_response,
    format_validation_errors,
)
from yt_extractor.utils.helpers import generate_request_id
from yt_extractor.utils.logger import logging

router = APIRouter(prefix="/api", tags=["youtube"])

ERROR_RESPONSES = {
    400: {"model": ApiErrorResponse},
    429: {"model": ApiErrorResponse},
    500: {"model": ApiErrorResponse},
    503: {"model": ApiErrorResponse},
}


def get_pipeline(request: Request) -> SummarizePipeline:
    return request.app.state.pipeline


@router.post("/summarize", response_model=ApiSuccessResponse, responses=ERROR_RESPONSES)
async def summarize_video(request: Request, pipeline: SummarizePipeline = Depends(get_pipeline)):
    """
    Summarize a YouTube video by URL.

    - Uses the video's captions when available
    - Otherwise downloads the audio and transcribes it
    - Returns the LLM's Markdown summary with the video title and thumbnail
    """
    request_id = getattr(request.state, "request_id", None) or generate_request_id()
    logging.info(f"[{request_id}] Starting summarize request")

    # Parse the body ourselves so malformed JSON gets its own message
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(
            status_code=400,
            content=error_body(ErrorCode.VALIDATION_ERROR, config.ERROR_MESSAGES["INVALID_JSON"]),
        )

    try:
        payload = SummarizeRequest.model_validate(body)
    except PydanticValidationError as e:
        return error_response(
            ValidationError(config.ERROR_MESSAGES["INVALID_URL"], details=format_validation_errors(e))
        )

    try:
        result = await pipeline.run(payload.youtube_url, request_id=request_id)
    except AppError as e:
        logging.error(f"[{request_id}] {type(e).__name__} ({e.code.value}): {e.message}")
        return error_response(e)
    except Exception as e:
        # Internal details stay in the log
        logging.error(f"[{request_id}] Unhandled error: {str(e)}")
        logging.error(traceback.format_exc())
        return error_response(InternalError())

    return JSONResponse(content=ApiSuccessResponse(data=result).model_dump(by_alias=True))


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, pipeline: SummarizePipeline = Depends(get_pipeline)):
    """Report which upstream services are configured and reachable."""
    llm_ok = await pipeline.summarizer.check_health()
    services = {
        "llm": llm_ok,
        "speech_to_text": pipeline.transcriber.configured,
        "yt_dlp": pipeline.downloader.binary_available(),
        "rate_limit": getattr(request.app.state, "rate_limiter", None) is not None,
    }
    return HealthResponse(
        status="ok" if llm_ok else "degraded",
        version=config.APP_VERSION,
        services=services,
    )
