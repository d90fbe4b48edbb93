"""
Configuration settings for the YouTube knowledge extractor.
"""

import os
import tempfile
from typing import List
from pathlib import Path
from dotenv import load_dotenv

from yt_extractor.utils.logger import logging


# Ensure environment variables are loaded
load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "YouTube Knowledge Extractor"
    APP_DESCRIPTION = "Convert YouTube videos into clear learning notes"
    APP_VERSION = "0.2.0"
    APP_URL = os.getenv("APP_URL", "http://localhost:8000")

    # Directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    AUDIO_TEMP_DIR = Path(os.getenv("AUDIO_TEMP_DIR", tempfile.gettempdir()))
    YT_DLP_PATH = Path(os.getenv("YT_DLP_PATH", str(BASE_DIR / ("yt-dlp.exe" if os.name == "nt" else "yt-dlp"))))

    # API keys
    OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
    DEEPGRAM_API_KEY = os.getenv("DEEPGRAM_API_KEY")

    # Upstream endpoints
    OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODELS_URL = "https://openrouter.ai/api/v1/models"
    DEEPGRAM_BASE_URL = "https://api.deepgram.com/v1/listen"

    # Default models
    DEFAULT_SUMMARY_MODEL = "meta-llama/llama-3.3-70b-instruct:free"
    SUMMARY_MODEL = os.getenv("OPENROUTER_MODEL") or DEFAULT_SUMMARY_MODEL
    DEFAULT_TRANSCRIPTION_MODEL = "nova-2"

    # Timeouts (seconds)
    REQUEST_TIMEOUT_SECONDS = 60
    LLM_TIMEOUT_SECONDS = 120

    # Metadata retries
    METADATA_MAX_ATTEMPTS = 2
    METADATA_RETRY_DELAY_SECONDS = 0.5

    # Rate limiting
    RATE_LIMIT_REDIS_URL = os.getenv("RATE_LIMIT_REDIS_URL")
    RATE_LIMIT_REDIS_TOKEN = os.getenv("RATE_LIMIT_REDIS_TOKEN")
    RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "10"))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_PREFIX = "yt-extractor"

    # Transcript
    TRANSCRIPT_MAX_CHARS = 12000  # ~3000 tokens
    TRANSCRIPT_LANGUAGES = _split_csv(os.getenv("TRANSCRIPT_LANGUAGES", "en"))

    # Summarization
    SUMMARY_MAX_TOKENS = 1024
    SUMMARY_TEMPERATURE = 0.7

    # Audio
    MAX_AUDIO_FILE_SIZE_MB = 100
    YT_DLP_FORMAT = "bestaudio[ext=m4a]"

    # User-facing error messages
    ERROR_MESSAGES = {
        "INVALID_URL": "Please enter a valid YouTube video URL",
        "INVALID_JSON": "Invalid JSON in request body",
        "TRANSCRIPT_UNAVAILABLE": "Could not retrieve transcript for this video",
        "TRANSCRIPTION_FAILED": "Failed to generate transcript from video audio",
        "RATE_LIMITED": "Too many requests. Please try again in a minute.",
        "LLM_ERROR": "AI summarization failed. Please try again later.",
        "INTERNAL_ERROR": "An unexpected error occurred. Please try again.",
        "API_KEY_MISSING": "Server configuration error",
    }

    DEBUG = False
    LOG_LEVEL = "INFO"

    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        cls.AUDIO_TEMP_DIR.mkdir(parents=True, exist_ok=True)
        logging.setLevel(os.getenv("LOG_LEVEL", cls.LOG_LEVEL).upper())

        # Missing keys only disable the features that need them
        if not cls.OPENROUTER_API_KEY:
            logging.warning("OPENROUTER_API_KEY environment variable not set; summarization will fail.")
        if not cls.DEEPGRAM_API_KEY:
            logging.warning("DEEPGRAM_API_KEY environment variable not set; audio transcription fallback disabled.")
        if not cls.rate_limit_enabled():
            logging.info("RATE_LIMIT_REDIS_URL not set; rate limiting disabled.")

    @classmethod
    def rate_limit_enabled(cls) -> bool:
        return bool(cls.RATE_LIMIT_REDIS_URL)


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


class TestingConfig(Config):
    """Testing configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"
    RATE_LIMIT_REDIS_URL = None


# Determine which configuration to use based on environment
def get_config():
    """Get the appropriate configuration based on environment."""
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env == "production":
        return ProductionConfig
    if env in ("test", "testing"):
        return TestingConfig
    return DevelopmentConfig


# Create a config instance
config = get_config()
config.initialize()
