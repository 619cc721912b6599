"""Database layer for processed videos using SQLite."""

import json
import math
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from uuid import UUID, uuid4

import aiosqlite

from ..logging_utils import get_logger
from ..transcription.models import TranscriptSegment
from .config import DEFAULT_DATABASE_PATH, DEFAULT_LANGUAGE, DEFAULT_WAL_MODE, SCHEMA_VERSION
from .exceptions import StorageError, ThreadNotFoundError, VideoNotFoundError
from .models import PostDraft, Video, XPost, XThread

logger = get_logger(__name__)


class VideoDatabase:
    """SQLite database for videos, transcripts and post threads."""

    def __init__(
        self, db_path: str = DEFAULT_DATABASE_PATH, wal_mode: bool = DEFAULT_WAL_MODE
    ) -> None:
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file (use ":memory:" for in-memory)
            wal_mode: Enable WAL mode for concurrent access
        """
        self.db_path = db_path
        self.wal_mode = wal_mode
        self._connection: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Initialize database schema and connection."""
        if self._connection is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row

            # WAL is not supported in :memory:
            if self.wal_mode and self.db_path != ":memory:":
                await self._connection.execute("PRAGMA journal_mode=WAL")

            # Required for cascading deletes
            await self._connection.execute("PRAGMA foreign_keys=ON")

        await self._create_schema()

    async def _create_schema(self) -> None:
        """Create database schema with tables and indexes."""
        async with self._get_connection() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            cursor = await conn.execute("SELECT version FROM schema_version")
            result = await cursor.fetchone()
            current_version = result[0] if result else 0

            if current_version < SCHEMA_VERSION:
                await self._apply_migrations(conn, current_version)

            await conn.commit()

    async def _apply_migrations(
        self, conn: aiosqlite.Connection, from_version: int
    ) -> None:
        """
        Apply database migrations.

        Args:
            conn: Database connection
            from_version: Current schema version
        """
        if from_version < 1:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS videos (
                    id TEXT PRIMARY KEY,
                    file_name TEXT NOT NULL,
                    file_path TEXT NOT NULL,
                    file_size INTEGER NOT NULL,
                    duration REAL,
                    language TEXT NOT NULL DEFAULT 'english',
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_videos_created_at ON videos(created_at)"
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS transcription_segments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    video_id TEXT NOT NULL
                        REFERENCES videos(id) ON DELETE CASCADE ON UPDATE CASCADE,
                    start_time REAL NOT NULL,
                    end_time REAL NOT NULL,
                    text TEXT NOT NULL,
                    confidence REAL,
                    error TEXT,
                    skipped INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_segments_video_id "
                "ON transcription_segments(video_id)"
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS x_threads (
                    id TEXT PRIMARY KEY,
                    video_id TEXT NOT NULL
                        REFERENCES videos(id) ON DELETE CASCADE ON UPDATE CASCADE,
                    title TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_threads_video_id ON x_threads(video_id)"
            )

            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS x_posts (
                    id TEXT PRIMARY KEY,
                    thread_id TEXT NOT NULL
                        REFERENCES x_threads(id) ON DELETE CASCADE ON UPDATE CASCADE,
                    title TEXT NOT NULL,
                    post_content TEXT NOT NULL,
                    start_segment INTEGER NOT NULL,
                    end_segment INTEGER NOT NULL,
                    key_points TEXT,
                    order_index INTEGER NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_posts_thread_id ON x_posts(thread_id)"
            )

            await conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Get database connection context manager.

        Yields:
            Database connection

        Raises:
            StorageError: If connection is not initialized
        """
        if self._connection is None:
            raise StorageError("Database not initialized")
        yield self._connection

    async def get_schema_version(self) -> int:
        """Get current schema version."""
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT version FROM schema_version")
            result = await cursor.fetchone()
            return result[0] if result else 0

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _insert_segments(
        self,
        conn: aiosqlite.Connection,
        video_id: UUID,
        segments: Sequence[TranscriptSegment],
    ) -> None:
        await conn.executemany(
            """
            INSERT INTO transcription_segments (
                video_id, start_time, end_time, text, confidence, error, skipped
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(video_id),
                    segment.start,
                    segment.end,
                    segment.text or "",
                    segment.confidence,
                    segment.error,
                    int(segment.skipped),
                )
                for segment in segments
            ],
        )

    async def save_video_with_transcription(
        self,
        file_name: str,
        file_path: str,
        file_size: int,
        segments: Sequence[TranscriptSegment],
        duration: float | None = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> Video:
        """
        Store a video together with its transcript segments.

        Args:
            file_name: Display name of the video
            file_path: Where the video file lives
            file_size: Size of the video file in bytes
            segments: Transcript segments to store with the video
            duration: Video duration in seconds, if known
            language: Transcript language

        Returns:
            The stored video

        Raises:
            StorageError: If insertion fails
        """
        video_id = uuid4()
        now = datetime.now().isoformat()

        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO videos (
                        id, file_name, file_path, file_size, duration, language,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        str(video_id),
                        file_name,
                        file_path,
                        file_size,
                        duration,
                        language,
                        now,
                        now,
                    ),
                )
                await self._insert_segments(conn, video_id, segments)
                await conn.commit()
        except aiosqlite.Error as e:
            await self._rollback()
            raise StorageError(f"Failed to save video: {e}") from e

        logger.info(f"💾 Saved video {file_name} with {len(segments)} segments")
        return await self.get_video(video_id)

    async def get_video(self, video_id: UUID) -> Video:
        """
        Get a video by ID with its segments and threads.

        Args:
            video_id: Video ID

        Returns:
            Video object, segments ordered by start time and threads newest first

        Raises:
            VideoNotFoundError: If video not found
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM videos WHERE id = ?", (str(video_id),)
            )
            row = await cursor.fetchone()

        if row is None:
            raise VideoNotFoundError(f"Video with ID {video_id} not found")

        return await self._load_video(row)

    async def list_videos(self) -> list[Video]:
        """List all videos, newest first."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM videos ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()

        return [await self._load_video(row) for row in rows]

    async def update_video_name(self, video_id: UUID, new_name: str) -> Video:
        """
        Rename a video.

        Raises:
            VideoNotFoundError: If video not found
            ValueError: If the new name is blank
        """
        if not new_name.strip():
            raise ValueError("Video name cannot be empty")

        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "UPDATE videos SET file_name = ?, updated_at = ? WHERE id = ?",
                (new_name.strip(), datetime.now().isoformat(), str(video_id)),
            )
            await conn.commit()

        if cursor.rowcount == 0:
            raise VideoNotFoundError(f"Video with ID {video_id} not found")

        return await self.get_video(video_id)

    async def update_video_transcription(
        self, video_id: UUID, segments: Sequence[TranscriptSegment]
    ) -> Video:
        """
        Replace the transcript segments of a video.

        Args:
            video_id: Video ID
            segments: New transcript segments

        Returns:
            The updated video

        Raises:
            VideoNotFoundError: If video not found
            StorageError: If the update fails
        """
        await self.get_video(video_id)

        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    "DELETE FROM transcription_segments WHERE video_id = ?",
                    (str(video_id),),
                )
                await self._insert_segments(conn, video_id, segments)
                await conn.execute(
                    "UPDATE videos SET updated_at = ? WHERE id = ?",
                    (datetime.now().isoformat(), str(video_id)),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            await self._rollback()
            raise StorageError(f"Failed to update transcription: {e}") from e

        logger.debug(f"Replaced transcription of video {video_id} with {len(segments)} segments")
        return await self.get_video(video_id)

    async def delete_video(self, video_id: UUID) -> None:
        """
        Delete a video along with its segments, threads and posts.

        Raises:
            VideoNotFoundError: If video not found
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM videos WHERE id = ?", (str(video_id),)
            )
            await conn.commit()

        if cursor.rowcount == 0:
            raise VideoNotFoundError(f"Video with ID {video_id} not found")

        logger.info(f"🗑️ Deleted video {video_id}")

    async def save_thread(
        self, video_id: UUID, title: str, posts: Sequence[PostDraft]
    ) -> XThread:
        """
        Store a thread of posts about a video.

        Post times are floored to whole seconds to give segment bounds.
        Posts without a title are named "Thread 1", "Thread 2" and so on.

        Args:
            video_id: Video the thread belongs to
            title: Thread title
            posts: Posts in thread order

        Returns:
            The stored thread

        Raises:
            VideoNotFoundError: If video not found
            StorageError: If insertion fails
        """
        await self._ensure_video_exists(video_id)

        thread_id = uuid4()
        now = datetime.now().isoformat()

        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO x_threads (id, video_id, title, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (str(thread_id), str(video_id), title, now, now),
                )
                await conn.executemany(
                    """
                    INSERT INTO x_posts (
                        id, thread_id, title, post_content, start_segment,
                        end_segment, key_points, order_index, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            str(uuid4()),
                            str(thread_id),
                            post.title or f"Thread {index + 1}",
                            post.post_content,
                            math.floor(post.start_time),
                            math.floor(post.end_time),
                            json.dumps(post.key_points),
                            index,
                            now,
                        )
                        for index, post in enumerate(posts)
                    ],
                )
                await conn.commit()
        except aiosqlite.Error as e:
            await self._rollback()
            raise StorageError(f"Failed to save thread: {e}") from e

        logger.info(f"💾 Saved thread '{title}' with {len(posts)} posts")
        return await self.get_thread(thread_id)

    async def get_thread(self, thread_id: UUID) -> XThread:
        """
        Get a thread by ID with its posts in order.

        Raises:
            ThreadNotFoundError: If thread not found
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM x_threads WHERE id = ?", (str(thread_id),)
            )
            row = await cursor.fetchone()

        if row is None:
            raise ThreadNotFoundError(f"Thread with ID {thread_id} not found")

        return await self._load_thread(row)

    async def list_threads_for_video(self, video_id: UUID) -> list[XThread]:
        """List the threads of a video, newest first."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM x_threads
                WHERE video_id = ?
                ORDER BY created_at DESC, rowid DESC
                """,
                (str(video_id),),
            )
            rows = await cursor.fetchall()

        return [await self._load_thread(row) for row in rows]

    async def _ensure_video_exists(self, video_id: UUID) -> None:
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT 1 FROM videos WHERE id = ?", (str(video_id),)
            )
            if await cursor.fetchone() is None:
                raise VideoNotFoundError(f"Video with ID {video_id} not found")

    async def _rollback(self) -> None:
        if self._connection is not None:
            await self._connection.rollback()

    async def _load_video(self, row: aiosqlite.Row) -> Video:
        """
        Convert a videos row to a Video with its segments and threads.

        Args:
            row: Database row

        Returns:
            Video object
        """
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM transcription_segments
                WHERE video_id = ?
                ORDER BY start_time ASC, id ASC
                """,
                (row["id"],),
            )
            segment_rows = await cursor.fetchall()

        return Video(
            id=UUID(row["id"]),
            file_name=row["file_name"],
            file_path=row["file_path"],
            file_size=row["file_size"],
            duration=row["duration"],
            language=row["language"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            segments=[self._row_to_segment(segment) for segment in segment_rows],
            threads=await self.list_threads_for_video(UUID(row["id"])),
        )

    async def _load_thread(self, row: aiosqlite.Row) -> XThread:
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM x_posts WHERE thread_id = ? ORDER BY order_index ASC",
                (row["id"],),
            )
            post_rows = await cursor.fetchall()

        return XThread(
            id=UUID(row["id"]),
            video_id=UUID(row["video_id"]),
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            posts=[self._row_to_post(post) for post in post_rows],
        )

    def _row_to_segment(self, row: aiosqlite.Row) -> TranscriptSegment:
        return TranscriptSegment(
            start=row["start_time"],
            end=row["end_time"],
            text=row["text"],
            confidence=row["confidence"] if row["confidence"] is not None else 0.0,
            error=row["error"],
            skipped=bool(row["skipped"]),
        )

    def _row_to_post(self, row: aiosqlite.Row) -> XPost:
        return XPost(
            id=UUID(row["id"]),
            title=row["title"],
            post_content=row["post_content"],
            start_segment=row["start_segment"],
            end_segment=row["end_segment"],
            order_index=row["order_index"],
            created_at=datetime.fromisoformat(row["created_at"]),
            key_points=json.loads(row["key_points"]) if row["key_points"] else [],
        )
