"""
Core functionality for the YouTube knowledge extractor.

This package contains modules for validating YouTube URLs, fetching
captions and metadata, downloading and transcribing audio, summarizing
transcripts, and the pipeline that ties them together.
"""
