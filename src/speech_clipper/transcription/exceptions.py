"""Custom exceptions for interval transcription."""


class TranscriptionError(Exception):
    """Exception raised when audio cannot be transcribed."""

    pass
