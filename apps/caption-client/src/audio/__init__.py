"""Microphone capture and audio analysis."""

from .capture import AudioCapture, MicrophoneCapture
from .devices import list_devices
from .utils import (
    CHUNK_DURATION_MS,
    SPEECH_BAND_HZ,
    TARGET_SAMPLE_RATE,
    LevelAnalyser,
    band_level,
    calculate_chunk_size,
    pcm_to_float,
    resample_audio,
    stereo_to_mono,
)

__all__ = [
    "CHUNK_DURATION_MS",
    "SPEECH_BAND_HZ",
    "TARGET_SAMPLE_RATE",
    "AudioCapture",
    "LevelAnalyser",
    "MicrophoneCapture",
    "band_level",
    "calculate_chunk_size",
    "list_devices",
    "pcm_to_float",
    "resample_audio",
    "stereo_to_mono",
]
