"""Unit tests for audio utility functions."""

import numpy as np
import pytest

from .utils import (
    CHUNK_DURATION_MS,
    FFT_SIZE,
    TARGET_SAMPLE_RATE,
    LevelAnalyser,
    band_level,
    calculate_chunk_size,
    pcm_to_float,
    resample_audio,
    stereo_to_mono,
)


def tone(freq: float, amplitude: float, n: int = FFT_SIZE, rate: int = TARGET_SAMPLE_RATE) -> np.ndarray:
    t = np.arange(n) / rate
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)


def pcm(samples: np.ndarray) -> bytes:
    return (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16).tobytes()


class TestResampleAudio:
    """Tests for resample_audio function."""

    def test_same_rate_returns_unchanged(self):
        """Test that same sample rate returns unchanged data."""
        audio_bytes = np.array([0, 1000, -1000, 500, -500], dtype=np.int16).tobytes()

        assert resample_audio(audio_bytes, 16000, 16000) == audio_bytes

    def test_downsample_48k_to_16k(self):
        """Test downsampling from 48kHz to 16kHz."""
        samples = np.sin(np.linspace(0, 2 * np.pi, 480)) * 16000
        result = resample_audio(samples.astype(np.int16).tobytes(), 48000, 16000)

        assert len(np.frombuffer(result, dtype=np.int16)) == 160

    def test_upsample_8k_to_16k(self):
        """Test upsampling from 8kHz to 16kHz."""
        samples = np.linspace(-10000, 10000, 80).astype(np.int16)
        result = resample_audio(samples.tobytes(), 8000, 16000)

        assert len(np.frombuffer(result, dtype=np.int16)) == 160

    def test_44100_to_16k_length(self):
        """Test a non-integer ratio keeps the duration."""
        samples = np.zeros(4410, dtype=np.int16)
        result = resample_audio(samples.tobytes(), 44100, 16000)

        assert len(np.frombuffer(result, dtype=np.int16)) == 1600


class TestStereoToMono:
    """Tests for stereo_to_mono function."""

    def test_converts_stereo_to_mono(self):
        """Test basic stereo to mono conversion."""
        left = np.array([1000, 2000, 3000], dtype=np.int16)
        right = np.array([2000, 4000, 6000], dtype=np.int16)
        stereo = np.column_stack((left, right)).flatten().tobytes()

        result = np.frombuffer(stereo_to_mono(stereo), dtype=np.int16)

        np.testing.assert_array_equal(result, [1500, 3000, 4500])

    def test_no_overflow_at_full_scale(self):
        """Test averaging full-scale channels does not wrap around."""
        stereo = np.array([32767, 32767, -32768, -32768], dtype=np.int16).tobytes()

        result = np.frombuffer(stereo_to_mono(stereo), dtype=np.int16)

        np.testing.assert_array_equal(result, [32767, -32768])


class TestChunkSize:
    """Tests for calculate_chunk_size function."""

    def test_default_duration(self):
        """Test chunk size at the default duration."""
        assert calculate_chunk_size(16000) == 16000 * CHUNK_DURATION_MS // 1000

    def test_custom_duration(self):
        """Test chunk size for 100 ms at 48kHz."""
        assert calculate_chunk_size(48000, 100) == 4800


class TestBandLevel:
    """Tests for speech-band level analysis."""

    def test_silence_is_zero(self):
        """Test silence has no energy."""
        assert band_level(np.zeros(FFT_SIZE, dtype=np.float32)) == 0.0

    def test_in_band_tone_reads_rms(self):
        """Test a 440 Hz tone reads close to its RMS amplitude."""
        level = band_level(tone(440, 0.5))

        assert level == pytest.approx(0.5 / np.sqrt(2), rel=0.05)

    def test_out_of_band_tone_is_ignored(self):
        """Test a 6 kHz tone barely registers."""
        assert band_level(tone(6000, 0.5)) < 0.01

    def test_low_rumble_is_ignored(self):
        """Test a 20 Hz rumble barely registers."""
        assert band_level(tone(20, 0.5)) < 0.05

    def test_too_short_input(self):
        """Test input with fewer than two samples."""
        assert band_level(np.array([0.3], dtype=np.float32)) == 0.0


class TestLevelAnalyser:
    """Tests for the rolling level analyser."""

    def test_starts_silent(self):
        """Test a fresh analyser reads zero."""
        assert LevelAnalyser().level() == 0.0

    def test_loud_tone_crosses_threshold(self):
        """Test a fed tone shows up in the level."""
        analyser = LevelAnalyser()
        analyser.feed(pcm(tone(1000, 0.3)))

        assert analyser.level() > 0.1

    def test_small_chunks_fill_window(self):
        """Test 20 ms chunks accumulate into the analysis window."""
        analyser = LevelAnalyser()
        samples = tone(1000, 0.3, n=FFT_SIZE)
        for start in range(0, FFT_SIZE, 320):
            analyser.feed(pcm(samples[start : start + 320]))

        assert analyser.level() == pytest.approx(0.3 / np.sqrt(2), rel=0.1)

    def test_silence_pushes_speech_out(self):
        """Test the window forgets speech once enough silence arrives."""
        analyser = LevelAnalyser()
        analyser.feed(pcm(tone(1000, 0.3)))
        analyser.feed(np.zeros(FFT_SIZE, dtype=np.int16).tobytes())

        assert analyser.level() == 0.0

    def test_reset(self):
        """Test reset clears the window."""
        analyser = LevelAnalyser()
        analyser.feed(pcm(tone(1000, 0.3)))
        analyser.reset()

        assert analyser.level() == 0.0

    def test_pcm_to_float_range(self):
        """Test PCM conversion scale."""
        samples = pcm_to_float(np.array([0, 16384, -32768], dtype=np.int16).tobytes())

        np.testing.assert_allclose(samples, [0.0, 0.5, -1.0])
