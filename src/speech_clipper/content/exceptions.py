"""Custom exceptions for language-model content generation."""


class ContentGenerationError(Exception):
    """Base exception for content generation errors."""

    pass


class CompletionError(ContentGenerationError):
    """Exception raised when no model could complete a request."""

    pass


class ResponseParseError(ContentGenerationError):
    """Exception raised when a model response has no usable structure."""

    pass
