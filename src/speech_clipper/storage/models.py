"""Data models for stored videos and post threads."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from ..transcription.models import TranscriptSegment


@dataclass
class XPost:
    """One post of a thread, tied to a range of transcript segments."""

    id: UUID
    title: str
    post_content: str
    start_segment: int
    end_segment: int
    order_index: int
    created_at: datetime
    key_points: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "post_content": self.post_content,
            "start_segment": self.start_segment,
            "end_segment": self.end_segment,
            "key_points": list(self.key_points),
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class XThread:
    """An ordered thread of posts written about a video."""

    id: UUID
    video_id: UUID
    title: str
    created_at: datetime
    updated_at: datetime
    posts: list[XPost] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "video_id": str(self.video_id),
            "title": self.title,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "posts": [post.to_dict() for post in self.posts],
        }


@dataclass
class Video:
    """A processed video with its transcript and threads."""

    id: UUID
    file_name: str
    file_path: str
    file_size: int
    language: str
    created_at: datetime
    updated_at: datetime
    duration: float | None = None
    segments: list[TranscriptSegment] = field(default_factory=list)
    threads: list[XThread] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "file_name": self.file_name,
            "file_path": self.file_path,
            "file_size": self.file_size,
            "duration": self.duration,
            "language": self.language,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "segments": [segment.to_dict() for segment in self.segments],
            "threads": [thread.to_dict() for thread in self.threads],
        }


@dataclass
class PostDraft:
    """A post to be saved as part of a new thread.

    Times are in seconds; they are stored as whole-second segment bounds.
    """

    post_content: str
    start_time: float
    end_time: float
    title: str | None = None
    key_points: list[str] = field(default_factory=list)
