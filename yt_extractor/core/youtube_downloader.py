"""
YouTube audio downloader module.

Audio is fetched with the ``yt-dlp`` command-line tool into a uniquely named
temp file. The URL is checked against a strict allow-list before the process
is started, and the process is always given an argument vector (no shell).
"""

import asyncio
import os
import secrets
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Union

from yt_extractor.config import config
from yt_extractor.core.validation import is_valid_download_url
from yt_extractor.utils.error_handling import AudioDownloadError
from yt_extractor.utils.logger import logging


class AudioDownloader:
    """Class to handle downloading the audio track of YouTube videos."""

    def __init__(
        self,
        binary_path: Optional[Union[str, Path]] = None,
        output_directory: Optional[Union[str, Path]] = None,
        timeout: float = config.REQUEST_TIMEOUT_SECONDS,
        audio_format: str = config.YT_DLP_FORMAT,
    ):
        """
        Initialize the downloader.

        Args:
            binary_path: Path of the yt-dlp executable
            output_directory: Directory for temp audio files
            timeout: Maximum run time of yt-dlp, in seconds
            audio_format: yt-dlp format selector
        """
        self.binary_path = Path(binary_path or config.YT_DLP_PATH)
        self.output_directory = Path(output_directory or config.AUDIO_TEMP_DIR)
        self.timeout = timeout
        self.audio_format = audio_format

    def binary_available(self) -> bool:
        return self.binary_path.is_file() and os.access(self.binary_path, os.X_OK)

    def _get_filename(self) -> Path:
        """Generate a per-request temp file path from a timestamp and a random suffix."""
        self.output_directory.mkdir(parents=True, exist_ok=True)
        timestamp = int(time.time() * 1000)
        return self.output_directory / f"yt_audio_{timestamp}_{secrets.token_hex(3)}.m4a"

    def _build_args(self, youtube_url: str, output_path: Path) -> List[str]:
        return [
            "-f", self.audio_format,
            "-o", str(output_path),
            "--no-playlist",
            "--no-warnings",
            "--extractor-args", "youtube:player_client=default",
            youtube_url,
        ]

    async def download(self, youtube_url: str) -> str:
        """
        Download the best audio track and return the file path.

        Args:
            youtube_url: Watch, youtu.be or shorts URL

        Returns:
            Path to the non-empty downloaded audio file

        Raises:
            AudioDownloadError: If the URL is not allowed, yt-dlp is missing,
                or the download fails
        """
        if not is_valid_download_url(youtube_url):
            raise AudioDownloadError("Invalid YouTube URL format for audio download")

        if not self.binary_available():
            raise AudioDownloadError(f"yt-dlp binary not found at {self.binary_path}")

        output_path = self._get_filename()
        args = self._build_args(youtube_url, output_path)
        logging.info(f"Executing yt-dlp: {self.binary_path} {' '.join(args)}")

        process = None
        try:
            process = await asyncio.create_subprocess_exec(
                str(self.binary_path),
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise AudioDownloadError(f"Failed to download audio from YouTube: timed out after {self.timeout}s")

            if process.returncode != 0:
                diagnostic = stderr.decode("utf-8", errors="replace").strip()
                raise AudioDownloadError(
                    f"Failed to download audio from YouTube: {diagnostic or f'exit code {process.returncode}'}"
                )

            if not output_path.is_file():
                raise AudioDownloadError("Failed to download audio from YouTube: output file missing")
            if output_path.stat().st_size == 0:
                raise AudioDownloadError("Failed to download audio from YouTube: downloaded file is empty")

        except BaseException as e:
            # Covers cancellation too: stop the process and drop partial output
            if process is not None and process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            cleanup_audio_file(output_path)
            logging.error(f"yt-dlp error: {e!r}")
            if isinstance(e, AudioDownloadError) or not isinstance(e, Exception):
                raise
            raise AudioDownloadError(f"Failed to download audio from YouTube: {e}") from e

        logging.info(f"Audio saved to: {output_path}")
        return str(output_path)


def cleanup_audio_file(file_path: Union[str, Path, None]) -> None:
    """
    Delete a temp audio file, ignoring a file that is already gone.

    Args:
        file_path: Path of the file to delete
    """
    if not file_path:
        return
    try:
        os.remove(file_path)
        logging.debug(f"Removed temp audio file: {file_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove temp audio file {file_path}: {e}")


@asynccontextmanager
async def downloaded_audio(downloader: AudioDownloader, youtube_url: str) -> AsyncIterator[str]:
    """
    Download audio for the duration of a ``async with`` block.

    The file is deleted when the block exits, whether it completes, raises
    or is cancelled.
    """
    audio_path = await downloader.download(youtube_url)
    try:
        yield audio_path
    finally:
        cleanup_audio_file(audio_path)
