"""
FastAPI application for the YouTube knowledge extractor.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from yt_extractor.config import config
from yt_extractor.api.middleware import rate_limit_middleware, request_context_middleware
from yt_extractor.api.routes import router
from yt_extractor.core.pipeline import SummarizePipeline
from yt_extractor.utils.error_handling import InternalError, error_response
from yt_extractor.utils.logger import logging
from yt_extractor.utils.rate_limiter import SlidingWindowRateLimiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the rate limiter at startup and release it at shutdown."""
    owned_limiter = None
    if app.state.rate_limiter is None and app.state.configure_rate_limiter:
        owned_limiter = SlidingWindowRateLimiter.from_config(config)
        app.state.rate_limiter = owned_limiter

    logging.info(f"{config.APP_NAME} v{config.APP_VERSION} started")
    yield

    if owned_limiter is not None:
        await owned_limiter.close()
        app.state.rate_limiter = None


def create_app(
    pipeline: Optional[SummarizePipeline] = None,
    rate_limiter: Optional[SlidingWindowRateLimiter] = None,
    configure_rate_limiter: bool = True,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        pipeline: Orchestrator used by the summarize route
        rate_limiter: Limiter for ``/api`` routes; None builds one from
            configuration at startup when ``configure_rate_limiter`` is set
        configure_rate_limiter: Whether to build a limiter from configuration

    Returns:
        The configured application
    """
    app = FastAPI(
        title=config.APP_NAME,
        version=config.APP_VERSION,
        description="An API for turning YouTube videos into Markdown summaries",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline or SummarizePipeline()
    app.state.rate_limiter = rate_limiter
    app.state.configure_rate_limiter = configure_rate_limiter

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Registered last so it wraps the rate limiter and tags 429s too
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_context_middleware)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled exceptions."""
        request_id = getattr(request.state, "request_id", "-")
        logging.exception(f"[{request_id}] Unhandled exception: {exc}")
        return error_response(InternalError())

    # Include API router
    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint returning basic API information."""
        return {
            "name": config.APP_NAME,
            "version": config.APP_VERSION,
            "description": config.APP_DESCRIPTION,
        }

    return app


app = create_app()
