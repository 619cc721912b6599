"""Cache directories for downloaded models."""

from pathlib import Path


def get_cache_root(cache_name: str | None = None) -> Path:
    """
    Get the root cache directory for speech-clipper.

    Args:
        cache_name: Optional subdirectory name within the cache root

    Returns:
        Path to the cache directory
    """
    cache_root = Path.home() / ".cache" / "speech_clipper"

    if cache_name:
        cache_root = cache_root / cache_name

    # Ensure the directory exists
    cache_root.mkdir(parents=True, exist_ok=True)

    return cache_root


def get_whisper_cache_dir() -> Path:
    """Get the Whisper models cache directory."""
    return get_cache_root("models") / "whisper"
