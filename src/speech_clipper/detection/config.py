"""Configuration constants for speech segment detection."""

# Audio format
SUPPORTED_SAMPLE_RATES = (8000, 16000, 32000, 48000)  # Hz, WebRTC VAD rates
REQUIRED_CHANNELS = 1
REQUIRED_BITS_PER_SAMPLE = 16
MAX_16BIT_VALUE = 32768

# Framing
DEFAULT_FRAME_DURATION_MS = 30  # milliseconds
VAD_SUPPORTED_FRAME_DURATIONS = (10, 20, 30)  # milliseconds

# Loudness analysis
SILENCE_FLOOR_DB = -100.0  # dBFS sentinel for frames with rms <= 1
SILENCE_FLOOR_RMS = 1.0

# Detection options
DEFAULT_VOLUME_THRESHOLD = 40.0  # percent of the clip's dynamic range
DEFAULT_SPEECH_PADDING_MS = 50  # pad around each raw speech interval
DEFAULT_SILENCE_PADDING_MS = 450  # silence merge threshold
DEFAULT_AGGRESSIVENESS = 3  # 0-3, WebRTC VAD sensitivity tier

# Smoothing
SMOOTHING_WINDOW_MS = 200  # look-back and look-ahead span
SMOOTHING_MAX_THRESHOLD = 70.0  # strict thresholds are never smoothed

# Output
INTERVAL_PRECISION = 2  # decimal places
