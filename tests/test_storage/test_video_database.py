"""Tests for the video database layer."""

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
import pytest_asyncio

from speech_clipper.storage.database import VideoDatabase
from speech_clipper.storage.exceptions import (
    StorageError,
    ThreadNotFoundError,
    VideoNotFoundError,
)
from speech_clipper.storage.models import PostDraft
from speech_clipper.transcription.models import TranscriptSegment


@pytest_asyncio.fixture
async def db() -> AsyncIterator[VideoDatabase]:
    database = VideoDatabase(":memory:")
    await database.initialize()
    yield database
    await database.close()


def sample_segments() -> list[TranscriptSegment]:
    return [
        TranscriptSegment(start=3.0, end=6.0, text="Second part", confidence=0.8),
        TranscriptSegment(start=0.5, end=2.0, text="First part", confidence=0.9),
        TranscriptSegment(start=8.0, end=8.05, text="", skipped=True),
        TranscriptSegment(start=9.0, end=10.0, error="Transcription failed"),
    ]


@pytest.mark.unit
class TestVideoDatabaseSchema:
    """Test cases for schema creation and connection management."""

    @pytest.mark.asyncio
    async def test_tables_created(self, db: VideoDatabase) -> None:
        async with db._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            tables = {row[0] for row in await cursor.fetchall()}

        assert {"videos", "transcription_segments", "x_threads", "x_posts"} <= tables

    @pytest.mark.asyncio
    async def test_schema_version_tracking(self, db: VideoDatabase) -> None:
        assert await db.get_schema_version() == 1

        await db.initialize()

        assert await db.get_schema_version() == 1

    @pytest.mark.asyncio
    async def test_uninitialized_database_raises(self) -> None:
        database = VideoDatabase(":memory:")

        with pytest.raises(StorageError, match="not initialized"):
            await database.list_videos()

    @pytest.mark.asyncio
    async def test_file_database_creates_parent_directory(self, tmp_path) -> None:
        path = tmp_path / "nested" / "videos.db"
        database = VideoDatabase(str(path))
        await database.initialize()
        await database.close()

        assert path.exists()


@pytest.mark.unit
class TestVideoOperations:
    """Test cases for storing and editing videos."""

    @pytest.mark.asyncio
    async def test_save_video_with_transcription(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription(
            "talk.mp4", "/videos/talk.mp4", 2048, sample_segments(), duration=10.5
        )

        assert video.file_name == "talk.mp4"
        assert video.duration == 10.5
        assert video.language == "english"
        assert [s.start for s in video.segments] == [0.5, 3.0, 8.0, 9.0]
        assert video.segments[2].skipped is True
        assert video.segments[3].error == "Transcription failed"
        assert video.segments[3].text == ""
        assert video.threads == []

    @pytest.mark.asyncio
    async def test_get_missing_video(self, db: VideoDatabase) -> None:
        with pytest.raises(VideoNotFoundError):
            await db.get_video(uuid4())

    @pytest.mark.asyncio
    async def test_list_videos_newest_first(self, db: VideoDatabase) -> None:
        first = await db.save_video_with_transcription("a.mp4", "/a.mp4", 1, [])
        second = await db.save_video_with_transcription("b.mp4", "/b.mp4", 2, [])

        videos = await db.list_videos()

        assert [video.id for video in videos] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_video_name(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription("a.mp4", "/a.mp4", 1, [])

        renamed = await db.update_video_name(video.id, "  Keynote  ")

        assert renamed.file_name == "Keynote"
        assert renamed.file_path == "/a.mp4"

    @pytest.mark.asyncio
    async def test_update_video_name_rejects_blank(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription("a.mp4", "/a.mp4", 1, [])

        with pytest.raises(ValueError):
            await db.update_video_name(video.id, "   ")

    @pytest.mark.asyncio
    async def test_update_missing_video_name(self, db: VideoDatabase) -> None:
        with pytest.raises(VideoNotFoundError):
            await db.update_video_name(uuid4(), "name")

    @pytest.mark.asyncio
    async def test_update_video_transcription_replaces_segments(
        self, db: VideoDatabase
    ) -> None:
        video = await db.save_video_with_transcription(
            "a.mp4", "/a.mp4", 1, sample_segments()
        )

        updated = await db.update_video_transcription(
            video.id, [TranscriptSegment(start=1.0, end=2.0, text="Only this")]
        )

        assert len(updated.segments) == 1
        assert updated.segments[0].text == "Only this"

    @pytest.mark.asyncio
    async def test_update_missing_video_transcription(self, db: VideoDatabase) -> None:
        with pytest.raises(VideoNotFoundError):
            await db.update_video_transcription(uuid4(), [])

    @pytest.mark.asyncio
    async def test_delete_video_cascades(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription(
            "a.mp4", "/a.mp4", 1, sample_segments()
        )
        thread = await db.save_thread(
            video.id, "Thread", [PostDraft(post_content="Hello", start_time=0.5, end_time=2.0)]
        )

        await db.delete_video(video.id)

        with pytest.raises(VideoNotFoundError):
            await db.get_video(video.id)
        with pytest.raises(ThreadNotFoundError):
            await db.get_thread(thread.id)
        async with db._get_connection() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM transcription_segments")
            assert (await cursor.fetchone())[0] == 0
            cursor = await conn.execute("SELECT COUNT(*) FROM x_posts")
            assert (await cursor.fetchone())[0] == 0

    @pytest.mark.asyncio
    async def test_delete_missing_video(self, db: VideoDatabase) -> None:
        with pytest.raises(VideoNotFoundError):
            await db.delete_video(uuid4())


@pytest.mark.unit
class TestThreadOperations:
    """Test cases for post threads."""

    @pytest.mark.asyncio
    async def test_save_thread_orders_posts(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription("a.mp4", "/a.mp4", 1, [])
        posts = [
            PostDraft(post_content="Opening", start_time=0.9, end_time=12.7),
            PostDraft(
                post_content="Follow-up",
                start_time=12.7,
                end_time=30.2,
                title="Deep dive",
                key_points=["latency"],
            ),
        ]

        thread = await db.save_thread(video.id, "Caching thread", posts)

        assert thread.video_id == video.id
        assert thread.title == "Caching thread"
        assert [post.post_content for post in thread.posts] == ["Opening", "Follow-up"]
        assert [post.order_index for post in thread.posts] == [0, 1]
        assert thread.posts[0].title == "Thread 1"
        assert (thread.posts[0].start_segment, thread.posts[0].end_segment) == (0, 12)
        assert thread.posts[1].title == "Deep dive"
        assert thread.posts[1].key_points == ["latency"]

    @pytest.mark.asyncio
    async def test_save_thread_for_missing_video(self, db: VideoDatabase) -> None:
        with pytest.raises(VideoNotFoundError):
            await db.save_thread(uuid4(), "Thread", [])

    @pytest.mark.asyncio
    async def test_get_missing_thread(self, db: VideoDatabase) -> None:
        with pytest.raises(ThreadNotFoundError):
            await db.get_thread(uuid4())

    @pytest.mark.asyncio
    async def test_threads_listed_newest_first(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription("a.mp4", "/a.mp4", 1, [])
        older = await db.save_thread(video.id, "Older", [])
        newer = await db.save_thread(video.id, "Newer", [])

        threads = await db.list_threads_for_video(video.id)
        reloaded = await db.get_video(video.id)

        assert [thread.id for thread in threads] == [newer.id, older.id]
        assert [thread.title for thread in reloaded.threads] == ["Newer", "Older"]

    @pytest.mark.asyncio
    async def test_video_to_dict_nests_threads(self, db: VideoDatabase) -> None:
        video = await db.save_video_with_transcription(
            "a.mp4", "/a.mp4", 1, [TranscriptSegment(start=0.0, end=1.0, text="Hi")]
        )
        await db.save_thread(
            video.id, "T", [PostDraft(post_content="P", start_time=0.0, end_time=1.0)]
        )

        data = (await db.get_video(video.id)).to_dict()

        assert data["id"] == str(video.id)
        assert data["segments"][0]["text"] == "Hi"
        assert data["threads"][0]["posts"][0]["post_content"] == "P"
