"""Configuration constants for interval transcription."""

# Whisper model
DEFAULT_MODEL_SIZE = "small"
DEFAULT_DEVICE = "cpu"
DEFAULT_COMPUTE_TYPE = "int8"
WHISPER_SAMPLE_RATE = 16000  # Hz, the rate faster-whisper expects
MAX_16BIT_VALUE = 32768.0

# Confidence scoring
CONFIDENCE_LOGPROB_MIN = -2.0  # Minimum expected avg_logprob value
CONFIDENCE_LOGPROB_MAX = -0.1  # Maximum expected avg_logprob value

# Interval processing
MIN_SEGMENT_DURATION = 0.1  # seconds, shorter intervals are skipped
BATCH_SIZE = 3  # intervals transcribed concurrently
