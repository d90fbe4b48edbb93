"""
Command-line entry point for the YouTube knowledge extractor.
"""

import argparse
import asyncio
import sys
from typing import Optional

from dotenv import load_dotenv

from yt_extractor.core.pipeline import SummarizePipeline
from yt_extractor.models.schemas import ApiSuccessResponse, VideoSummary
from yt_extractor.utils.error_handling import AppError
from yt_extractor.utils.helpers import save_json
from yt_extractor.utils.logger import logging


def save_summary(summary: VideoSummary, output_file: str) -> str:
    """Save the summary envelope to a JSON file."""
    save_json(ApiSuccessResponse(data=summary).model_dump(by_alias=True), output_file)
    logging.info(f"Summary saved to: {output_file}")
    return output_file


def summarize_youtube_video(url: str, output_file: Optional[str] = None,
                            pipeline: Optional[SummarizePipeline] = None) -> VideoSummary:
    """
    Summarize a YouTube video: captions (or transcribed audio) -> LLM summary.

    Args:
        url: YouTube video URL
        output_file: Optional file path to save the summary
        pipeline: Orchestrator to use (a default one if None)

    Returns:
        VideoSummary object
    """
    pipeline = pipeline or SummarizePipeline()
    summary = asyncio.run(pipeline.run(url))

    if output_file:
        save_summary(summary, output_file)

    return summary


def main(argv=None) -> int:
    """Main function to run the application from command line."""
    parser = argparse.ArgumentParser(description="YouTube Knowledge Extractor")
    parser.add_argument("url", help="YouTube video URL")
    parser.add_argument("--output", help="Output file path for the summary (JSON)")

    args = parser.parse_args(argv)

    # Load environment variables
    load_dotenv()

    try:
        summary = summarize_youtube_video(args.url, args.output)
    except AppError as e:
        logging.error(f"{type(e).__name__}: {e.message}")
        print(f"Error: {e.client_message()}", file=sys.stderr)
        return 1

    print("\n" + "=" * 80)
    print(summary.title)
    print("=" * 80)
    print(summary.summary)
    print("=" * 80)
    return 0


if __name__ == "__main__":
    sys.exit(main())
