"""Configuration for the transcription client."""

import os

TRANSCRIPTION_URL = os.getenv("TRANSCRIPTION_URL", "http://localhost:8000")
TRANSCRIPTION_API_KEY = os.getenv("TRANSCRIPTION_API_KEY", "")
TRANSCRIPTION_TIMEOUT = float(os.getenv("TRANSCRIPTION_TIMEOUT", "30.0"))

# Audio format of recorded segments (must match the capture side)
SAMPLE_RATE = 16000
SAMPLE_WIDTH = 2  # 16-bit = 2 bytes
CHANNELS = 1
