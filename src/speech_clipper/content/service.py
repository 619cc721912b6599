"""Transcript deduplication, topic extraction and social post generation."""

from collections.abc import Sequence
from typing import Any

from ..logging_utils import get_logger
from ..transcription.models import TranscriptSegment
from .completion_client import CompletionClient
from .config import (
    FILTER_SEGMENTS_PROMPT,
    FILTER_SEGMENTS_SCHEMA,
    MAX_POST_LENGTH,
    SOCIAL_POST_PROMPT,
    SOCIAL_POST_SCHEMA,
    TOPIC_IDENTIFICATION_PROMPT,
    TOPIC_SUGGESTIONS_SCHEMA,
    TRUNCATED_POST_LENGTH,
    TRUNCATION_SUFFIX,
)
from .exceptions import CompletionError, ResponseParseError
from .models import (
    ContentResult,
    Failed,
    FallbackExtracted,
    Parsed,
    SocialPost,
    TopicSuggestion,
)
from .response_parsing import parse_structured

logger = get_logger(__name__)


def truncate_post(text: str) -> str:
    """Shorten a post over the character limit, marking the cut with '...'."""
    if len(text) > MAX_POST_LENGTH:
        logger.debug("Main post too long, truncating")
        return text[:TRUNCATED_POST_LENGTH] + TRUNCATION_SUFFIX
    return text


def _segment_payload(segments: Sequence[TranscriptSegment]) -> list[dict[str, Any]]:
    return [
        {"start": segment.start, "end": segment.end, "text": segment.text}
        for segment in segments
    ]


def _segments_from_items(items: Sequence[Any]) -> list[TranscriptSegment]:
    """Build segments from model output, skipping malformed items."""
    segments = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            segments.append(
                TranscriptSegment(
                    start=float(item["start"]),
                    end=float(item["end"]),
                    text=str(item.get("text", "")),
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping malformed segment from model: {item!r}")
    return segments


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _valid_suggestion(item: Any, segment_count: int) -> bool:
    return (
        isinstance(item, dict)
        and bool(item.get("title"))
        and bool(item.get("description"))
        and _is_index(item.get("start_segment"))
        and _is_index(item.get("end_segment"))
        and 0 <= item["start_segment"] <= item["end_segment"] < segment_count
        and isinstance(item.get("key_points"), list)
        and bool(item.get("social_media_appeal"))
    )


def _post_from_dict(data: Any) -> SocialPost:
    """
    Build a SocialPost from the model's ``twitter_post`` object.

    Raises:
        ResponseParseError: If the post structure is invalid
    """
    if (
        not isinstance(data, dict)
        or not data.get("main_post")
        or not isinstance(data.get("alternative_posts"), list)
        or not isinstance(data.get("hashtags"), list)
    ):
        raise ResponseParseError("Invalid social post structure")

    return SocialPost(
        main_post=truncate_post(str(data["main_post"])),
        alternative_posts=[str(post) for post in data["alternative_posts"]],
        hashtags=[str(tag) for tag in data["hashtags"]],
        hook_style=str(data.get("hook_style") or "direct"),
    )


class ContentService:
    """Language-model operations over transcript segments, with fallbacks."""

    def __init__(self, client: CompletionClient | None = None) -> None:
        self.client = client or CompletionClient()

    async def filter_segments(
        self, segments: Sequence[TranscriptSegment]
    ) -> ContentResult:
        """
        Remove redundant, duplicated or mistaken transcript segments.

        Args:
            segments: Transcript segments in chronological order

        Returns:
            ContentResult whose value is the kept segments. Falls back to the
            original segments if the model fails, or to the segments with
            text if the answer has no recognisable structure.

        Raises:
            ValueError: If no segments are given
        """
        if not segments:
            raise ValueError("Invalid or empty segments data")

        try:
            response = await self.client.complete(
                FILTER_SEGMENTS_PROMPT, _segment_payload(segments), FILTER_SEGMENTS_SCHEMA
            )
        except CompletionError as e:
            logger.error(f"Segment filtering failed: {e}")
            return ContentResult(
                value=list(segments), error="Failed to process with any available model"
            )

        outcome = parse_structured(
            response.content, "filtered_transcription", FILTER_SEGMENTS_SCHEMA
        )

        if isinstance(outcome, Parsed):
            kept = _segments_from_items(outcome.value["filtered_transcription"])
            logger.info(f"Filtered {len(segments)} segments down to {len(kept)}")
            return ContentResult(value=kept, model=response.model)

        if isinstance(outcome, FallbackExtracted):
            return ContentResult(
                value=_segments_from_items(outcome.value),
                model=response.model,
                warning="Extracted segments from an unexpected response format",
            )

        if outcome.decoded:
            minimal = [segment for segment in segments if segment.text.strip()]
            logger.warning(
                f"Using minimal filtering as fallback with {len(minimal)} segments"
            )
            return ContentResult(
                value=minimal,
                model=response.model,
                warning="Used fallback filtering due to unexpected API response format",
            )

        logger.warning(f"Failed to parse filtered segments: {outcome.reason}")
        return ContentResult(
            value=list(segments),
            model=response.model,
            error="Failed to parse filtered segments, returning original segments",
        )

    async def identify_topics(
        self, segments: Sequence[TranscriptSegment]
    ) -> ContentResult:
        """
        Suggest sections of a transcript that work as standalone clips.

        Args:
            segments: Transcript segments in chronological order

        Returns:
            ContentResult whose value is a list of TopicSuggestion. Invalid
            suggestions are dropped; an answer without suggestions yields a
            single suggestion covering every segment.

        Raises:
            ValueError: If no segments are given
        """
        if not segments:
            raise ValueError("Invalid or empty segments data")

        try:
            response = await self.client.complete(
                TOPIC_IDENTIFICATION_PROMPT,
                _segment_payload(segments),
                TOPIC_SUGGESTIONS_SCHEMA,
            )
        except CompletionError as e:
            logger.error(f"Topic identification failed: {e}")
            return ContentResult(
                value=[], error="Failed to identify topics with any available model"
            )

        last_index = len(segments) - 1
        outcome = parse_structured(
            response.content, "topic_suggestions", TOPIC_SUGGESTIONS_SCHEMA
        )

        if isinstance(outcome, Parsed):
            suggestions = outcome.value["topic_suggestions"]
            if isinstance(suggestions, list):
                validated = [
                    TopicSuggestion(
                        title=item["title"],
                        description=item["description"],
                        start_segment=item["start_segment"],
                        end_segment=item["end_segment"],
                        key_points=[str(point) for point in item["key_points"]],
                        social_media_appeal=item["social_media_appeal"],
                    )
                    for item in suggestions
                    if _valid_suggestion(item, len(segments))
                ]
                if len(validated) < len(suggestions):
                    logger.debug(
                        f"Dropped {len(suggestions) - len(validated)} invalid topic suggestions"
                    )
                return ContentResult(value=validated, model=response.model)

        if isinstance(outcome, Failed) and not outcome.decoded:
            logger.warning(f"Failed to parse topic suggestions: {outcome.reason}")
            return ContentResult(
                value=[
                    TopicSuggestion(
                        title="Video Content",
                        description="Video transcription content",
                        start_segment=0,
                        end_segment=max(0, last_index),
                        key_points=["Video content"],
                        social_media_appeal="Interesting video content for social sharing",
                    )
                ],
                model=response.model,
                error="Failed to parse topic suggestions, returning fallback",
            )

        return ContentResult(
            value=[
                TopicSuggestion(
                    title="Full Video Content",
                    description="Complete video transcription",
                    start_segment=0,
                    end_segment=last_index,
                    key_points=["Complete video content"],
                    social_media_appeal="Full video content for social media sharing",
                )
            ],
            model=response.model,
            warning="Used fallback topic identification",
        )

    async def generate_post(
        self, segments: Sequence[TranscriptSegment], topic: TopicSuggestion
    ) -> ContentResult:
        """
        Write a social media post about a topic of the transcript.

        Args:
            segments: Transcript segments the topic covers
            topic: Topic to write about

        Returns:
            ContentResult whose value is a SocialPost. The main post is cut to
            280 characters; a template post is used when the model fails.

        Raises:
            ValueError: If no segments are given or the topic has no title
        """
        if not segments:
            raise ValueError("Invalid or empty segments data")
        if not topic.title:
            raise ValueError("Invalid topic information")

        payload = {"segments": _segment_payload(segments), "topicInfo": topic.to_dict()}

        try:
            response = await self.client.complete(
                SOCIAL_POST_PROMPT, payload, SOCIAL_POST_SCHEMA
            )
        except CompletionError as e:
            logger.error(f"Social post generation failed: {e}")
            return ContentResult(
                value=SocialPost(
                    main_post=f"{topic.title}\n\nWatch the full explanation in this video clip 👇",
                    alternative_posts=[
                        f"Interesting insight about {topic.title.lower()}",
                        f"Here's what you need to know about {topic.title.lower()}",
                    ],
                    hashtags=["#Video", "#Content", "#Learn"],
                ),
                error="Failed to generate social post with any available model",
            )

        outcome = parse_structured(response.content, "twitter_post")

        if isinstance(outcome, Parsed):
            try:
                post = _post_from_dict(outcome.value["twitter_post"])
            except ResponseParseError as e:
                logger.warning(f"Failed to parse social post: {e}")
            else:
                return ContentResult(value=post, model=response.model)
        elif isinstance(outcome, Failed) and not outcome.decoded:
            logger.warning(f"Failed to parse social post: {outcome.reason}")
        else:
            return ContentResult(
                value=SocialPost(
                    main_post=truncate_post(
                        f"{topic.title}\n\n{topic.description}\n\nWatch the full explanation 👇"
                    ),
                    alternative_posts=[
                        f"Key insight: {topic.description}",
                        f"{topic.title} - explained in this video clip",
                    ],
                    hashtags=["#Video", "#Learn", "#Insights"],
                ),
                model=response.model,
                warning="Used fallback social post generation",
            )

        return ContentResult(
            value=SocialPost(
                main_post=f"{topic.title}\n\nInteresting insights in this video clip 👇",
                alternative_posts=[
                    f"Check out this insight about {topic.title.lower()}",
                    topic.description,
                ],
                hashtags=["#Video", "#Content", "#Insights"],
            ),
            model=response.model,
            error="Failed to parse social post, returning fallback",
        )
