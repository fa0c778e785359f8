"""Audio utility functions for format conversion and speech-band analysis."""

import logging
from math import gcd

import numpy as np
from scipy import signal

logger = logging.getLogger(__name__)

# Audio settings
TARGET_SAMPLE_RATE = 16000
CHUNK_DURATION_MS = 20  # roughly one display frame
BYTES_PER_SAMPLE = 2

# Human speech band used for voice-activity detection
SPEECH_BAND_HZ = (80.0, 3000.0)
FFT_SIZE = 2048


def resample_audio(audio_data: bytes, from_rate: int, to_rate: int) -> bytes:
    """
    Resample 16-bit PCM with polyphase filtering.

    Args:
        audio_data: Raw 16-bit PCM audio bytes
        from_rate: Source sample rate in Hz
        to_rate: Target sample rate in Hz

    Returns:
        Resampled audio as bytes
    """
    if from_rate == to_rate:
        return audio_data

    audio_np = np.frombuffer(audio_data, dtype=np.int16).astype(np.float32)
    g = gcd(from_rate, to_rate)
    resampled = signal.resample_poly(audio_np, to_rate // g, from_rate // g)
    return np.clip(resampled, -32768, 32767).astype(np.int16).tobytes()


def stereo_to_mono(audio_data: bytes) -> bytes:
    """Convert interleaved stereo 16-bit PCM to mono by averaging channels."""
    stereo = np.frombuffer(audio_data, dtype=np.int16)
    left = stereo[0::2]
    right = stereo[1::2]
    mono = ((left.astype(np.int32) + right.astype(np.int32)) // 2).astype(np.int16)
    return mono.tobytes()


def calculate_chunk_size(sample_rate: int, duration_ms: int = CHUNK_DURATION_MS) -> int:
    """Calculate chunk size in samples for given duration."""
    return int(sample_rate * duration_ms / 1000)


def pcm_to_float(audio_data: bytes) -> np.ndarray:
    """16-bit PCM bytes -> float32 samples in [-1, 1)."""
    return np.frombuffer(audio_data, dtype=np.int16).astype(np.float32) / 32768.0


def band_level(
    samples: np.ndarray,
    sample_rate: int = TARGET_SAMPLE_RATE,
    band: tuple[float, float] = SPEECH_BAND_HZ,
) -> float:
    """
    RMS level of the part of ``samples`` that falls inside ``band``.

    Hann-windowed FFT; the in-band bins are summed and scaled back to the
    amplitude of the unwindowed signal, so a full-scale sine in band reads
    about 0.707 and an out-of-band sine reads close to 0.
    """
    n = len(samples)
    if n < 2:
        return 0.0

    window = np.hanning(n)
    spectrum = np.fft.rfft(samples * window)
    freqs = np.fft.rfftfreq(n, d=1.0 / sample_rate)
    in_band = (freqs >= band[0]) & (freqs <= band[1])
    if not in_band.any():
        return 0.0

    band_power = 2.0 * np.sum(np.abs(spectrum[in_band]) ** 2) / (n * n)
    window_power = np.mean(window**2)
    return float(np.sqrt(band_power / window_power))


class LevelAnalyser:
    """
    Rolling window over the latest samples, analysed on demand.

    Mirrors a browser AnalyserNode: feed() keeps the newest ``fft_size``
    samples, level() reports the speech-band level of that window.
    """

    def __init__(self, fft_size: int = FFT_SIZE, sample_rate: int = TARGET_SAMPLE_RATE):
        self.fft_size = fft_size
        self.sample_rate = sample_rate
        self._window = np.zeros(fft_size, dtype=np.float32)

    def feed(self, audio_data: bytes) -> None:
        samples = pcm_to_float(audio_data)
        if len(samples) >= self.fft_size:
            self._window = samples[-self.fft_size :].copy()
        elif len(samples):
            self._window = np.concatenate([self._window[len(samples) :], samples])

    def level(self) -> float:
        return band_level(self._window, self.sample_rate)

    def reset(self) -> None:
        self._window = np.zeros(self.fft_size, dtype=np.float32)
