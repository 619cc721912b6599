"""Configuration constants for ffmpeg transcoding."""

FFMPEG_BINARY = "ffmpeg"

# Audio extraction, matches what the detector accepts
EXTRACT_SAMPLE_RATE = 16000  # Hz
EXTRACT_CHANNELS = 1
EXTRACT_AUDIO_CODEC = "pcm_s16le"

# Clip cutting
CLIP_VIDEO_CODEC = "libx264"
CLIP_AUDIO_CODEC = "aac"
CLIP_PRESET = "fast"
CLIP_CRF = 23  # lower is better quality

TRANSCODE_TIMEOUT = 120.0  # seconds
