"""Custom exceptions for media transcoding."""


class TranscoderError(Exception):
    """Base exception for ffmpeg failures."""

    pass


class TranscoderNotFoundError(TranscoderError):
    """Exception raised when the ffmpeg binary is not installed."""

    pass
