"""
Segment transcription for the VAD and push-to-talk capture strategies.

Usage:
    from shared.transcription import TranscriptionClient

    client = TranscriptionClient()
    text = await client.transcribe(pcm_bytes, "en")   # "" on failure
"""

from .client import TranscriptionClient, TranscriptionUnavailable, pcm_to_wav
from .config import (
    CHANNELS,
    SAMPLE_RATE,
    SAMPLE_WIDTH,
    TRANSCRIPTION_API_KEY,
    TRANSCRIPTION_TIMEOUT,
    TRANSCRIPTION_URL,
)

__all__ = [
    "CHANNELS",
    "SAMPLE_RATE",
    "SAMPLE_WIDTH",
    "TRANSCRIPTION_API_KEY",
    "TRANSCRIPTION_TIMEOUT",
    "TRANSCRIPTION_URL",
    "TranscriptionClient",
    "TranscriptionUnavailable",
    "pcm_to_wav",
]
