"""Custom exceptions for video storage."""


class StorageError(Exception):
    """Exception raised for database related errors."""

    pass


class VideoNotFoundError(StorageError):
    """Exception raised when a video is not found."""

    pass


class ThreadNotFoundError(StorageError):
    """Exception raised when a post thread is not found."""

    pass
