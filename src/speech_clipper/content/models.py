"""Data models for language-model content generation."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class TopicSuggestion:
    """A run of consecutive transcript segments suited to a standalone clip."""

    title: str
    description: str
    start_segment: int
    end_segment: int
    key_points: list[str] = field(default_factory=list)
    social_media_appeal: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SocialPost:
    """A generated social media post with alternatives."""

    main_post: str
    alternative_posts: list[str] = field(default_factory=list)
    hashtags: list[str] = field(default_factory=list)
    hook_style: str = "direct"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CompletionResponse:
    """Raw content returned by the model that answered a request."""

    content: Any
    model: str


@dataclass
class ContentResult:
    """Outcome of a content operation.

    ``value`` is always usable: when the model fails or answers with an
    unexpected structure it holds a fallback, and ``error`` or ``warning``
    says why.
    """

    value: Any
    model: str | None = None
    warning: str | None = None
    error: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.warning is not None or self.error is not None


# Response parsing outcomes


@dataclass(frozen=True)
class Parsed:
    """The response decoded and carries the expected top-level key."""

    value: dict[str, Any]
    strategy: str


@dataclass(frozen=True)
class FallbackExtracted:
    """The expected key was missing but an array was found elsewhere."""

    value: list[Any]
    strategy: str
    source_key: str | None = None


@dataclass(frozen=True)
class Failed:
    """No usable structure could be recovered from the response."""

    reason: str
    decoded: bool = False


ParseOutcome = Parsed | FallbackExtracted | Failed
