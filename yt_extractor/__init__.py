"""
YouTube Knowledge Extractor.

Turns a YouTube video URL into a Markdown summary: the video's captions (or a
speech-to-text transcription of its audio) are summarized by an LLM.
"""

from yt_extractor.config import config

__version__ = config.APP_VERSION
