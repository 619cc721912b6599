"""Silence removal, transcription and social content generation for video."""

__version__ = "0.1.0"
