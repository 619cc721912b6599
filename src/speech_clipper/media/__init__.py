"""Audio extraction and clip cutting through ffmpeg."""

from .exceptions import TranscoderError, TranscoderNotFoundError
from .transcoder import check_ffmpeg_available, cut_clip, extract_audio

__all__ = [
    "TranscoderError",
    "TranscoderNotFoundError",
    "check_ffmpeg_available",
    "extract_audio",
    "cut_clip",
]
