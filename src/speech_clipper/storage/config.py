"""Configuration constants for video storage."""

import os

# Storage Configuration
DEFAULT_DATABASE_PATH = os.path.expanduser(
    os.environ.get("SPEECH_CLIPPER_DB", "~/.speech-clipper/videos.db")
)
DEFAULT_WAL_MODE = True
DEFAULT_LANGUAGE = "english"

# Database Schema Version
SCHEMA_VERSION = 1
