"""Persistence of processed videos, transcripts and post threads."""

from .database import VideoDatabase
from .exceptions import StorageError, ThreadNotFoundError, VideoNotFoundError
from .models import PostDraft, Video, XPost, XThread

__all__ = [
    "VideoDatabase",
    "Video",
    "XThread",
    "XPost",
    "PostDraft",
    "StorageError",
    "VideoNotFoundError",
    "ThreadNotFoundError",
]
