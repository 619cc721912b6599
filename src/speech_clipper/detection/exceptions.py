"""Custom exceptions for speech segment detection."""


class SegmentDetectionError(Exception):
    """Base exception for speech segment detection errors."""

    pass


class UnsupportedAudioFormat(SegmentDetectionError):
    """Exception raised when audio is not mono 16-bit PCM at a supported rate."""

    pass


class MalformedInput(SegmentDetectionError):
    """Exception raised when the audio buffer or WAV header cannot be read."""

    pass


class FrameClassifierFailure(SegmentDetectionError):
    """Exception raised when the voiced/unvoiced classifier fails on a frame."""

    pass
