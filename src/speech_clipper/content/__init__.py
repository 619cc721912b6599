"""Language-model content generation from transcripts."""

from .completion_client import CompletionClient
from .exceptions import CompletionError, ContentGenerationError, ResponseParseError
from .models import (
    CompletionResponse,
    ContentResult,
    Failed,
    FallbackExtracted,
    Parsed,
    SocialPost,
    TopicSuggestion,
)
from .response_parsing import parse_structured
from .service import ContentService

__all__ = [
    "CompletionClient",
    "CompletionResponse",
    "ContentService",
    "ContentResult",
    "TopicSuggestion",
    "SocialPost",
    "Parsed",
    "FallbackExtracted",
    "Failed",
    "parse_structured",
    "ContentGenerationError",
    "CompletionError",
    "ResponseParseError",
]
