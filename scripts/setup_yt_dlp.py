"""
Download the yt-dlp release binary for this platform to YT_DLP_PATH.

Usage: python scripts/setup_yt_dlp.py [--dest PATH]
"""

import argparse
import os
import stat
import subprocess
import sys
import time
from pathlib import Path

import httpx

from yt_extractor.config import config
from yt_extractor.utils.logger import logging

RELEASE_BASE_URL = "https://github.com/yt-dlp/yt-dlp/releases/latest/download"


def get_download_url(platform: str = sys.platform) -> str:
    if platform == "win32":
        return f"{RELEASE_BASE_URL}/yt-dlp.exe"
    if platform == "darwin":
        return f"{RELEASE_BASE_URL}/yt-dlp_macos"
    # Standalone Linux build bundles its own Python
    return f"{RELEASE_BASE_URL}/yt-dlp_linux"


def download_binary(url: str, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    partial = dest.with_suffix(dest.suffix + ".part")
    try:
        with httpx.stream("GET", url, follow_redirects=True, timeout=120) as response:
            response.raise_for_status()
            with open(partial, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
        os.replace(partial, dest)
    finally:
        if partial.exists():
            partial.unlink()


def verify_binary(dest: Path, attempts: int = 3) -> bool:
    for attempt in range(1, attempts + 1):
        try:
            version = subprocess.run(
                [str(dest), "--version"], capture_output=True, text=True, check=True, timeout=30
            ).stdout.strip()
            logging.info(f"yt-dlp version: {version}")
            return True
        except (subprocess.SubprocessError, OSError) as e:
            logging.warning(f"Verification attempt {attempt} failed: {e}")
            if attempt < attempts:
                time.sleep(2)
    return False


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Install the yt-dlp binary")
    parser.add_argument("--dest", default=str(config.YT_DLP_PATH), help="Where to write the binary")
    args = parser.parse_args(argv)

    dest = Path(args.dest)
    url = get_download_url()
    logging.info(f"Setting up yt-dlp for {sys.platform} from {url}")

    try:
        download_binary(url, dest)
    except (httpx.HTTPError, OSError) as e:
        logging.error(f"Setup failed: {e}")
        return 1

    if sys.platform != "win32":
        dest.chmod(dest.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    logging.info(f"yt-dlp setup successful at {dest}")
    if not verify_binary(dest):
        logging.warning("Could not verify yt-dlp version (it might still work)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
