"""Microphone capture for the speech pipeline."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .utils import TARGET_SAMPLE_RATE, calculate_chunk_size, resample_audio, stereo_to_mono

logger = logging.getLogger(__name__)


class AudioCapture(ABC):
    """Abstract base class for audio capture."""

    def __init__(self, callback: Callable[[bytes], None]):
        """
        Initialize audio capture.

        Args:
            callback: Function to call with captured audio data (16-bit PCM, mono, 16kHz)
        """
        self.callback = callback
        self.running = False

    @abstractmethod
    def start(self) -> bool:
        """Start capturing audio. Returns True on success."""

    @abstractmethod
    def stop(self):
        """Stop capturing audio."""

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return human-readable source name."""


class MicrophoneCapture(AudioCapture):
    """Capture audio from microphone using PyAudio."""

    def __init__(
        self,
        callback: Callable[[bytes], None],
        device_index: Optional[int] = None,
        channels: int = 1,
    ):
        """
        Initialize microphone capture.

        Args:
            callback: Called from the PyAudio thread with each converted chunk
            device_index: Specific input device index, or None for default
            channels: 2 for stereo-only devices (downmixed before the callback)
        """
        super().__init__(callback)
        self.device_index = device_index
        self.pyaudio_instance = None
        self.stream = None
        self.capture_rate = TARGET_SAMPLE_RATE
        self.capture_channels = channels
        self._device_name = "Microphone"

    @property
    def source_name(self) -> str:
        return f"🎤 {self._device_name}"

    def start(self) -> bool:
        try:
            import pyaudio

            self.pyaudio_instance = pyaudio.PyAudio()

            if self.device_index is not None:
                device_info = self.pyaudio_instance.get_device_info_by_index(self.device_index)
            else:
                device_info = self.pyaudio_instance.get_default_input_device_info()

            self._device_name = device_info["name"]
            native_rate = int(device_info["defaultSampleRate"])
            max_channels = int(device_info["maxInputChannels"])

            self.capture_channels = min(self.capture_channels, max(max_channels, 1))
            self.capture_rate = native_rate

            chunk_size = calculate_chunk_size(native_rate)

            logger.info(f"Microphone: {self._device_name}")
            logger.info(f"Rate: {native_rate}Hz → {TARGET_SAMPLE_RATE}Hz, Channels: {self.capture_channels}")

            self.stream = self.pyaudio_instance.open(
                format=pyaudio.paInt16,
                channels=self.capture_channels,
                rate=native_rate,
                input=True,
                input_device_index=self.device_index,
                frames_per_buffer=chunk_size,
                stream_callback=self._audio_callback,
            )

            self.stream.start_stream()
            self.running = True
            logger.info("Microphone capture started")
            return True

        except Exception as e:
            logger.error(f"Microphone start failed: {e}")
            self.stop()
            return False

    def _audio_callback(self, in_data, frame_count, time_info, status):
        import pyaudio

        if not self.running:
            return (None, pyaudio.paComplete)

        try:
            audio_data = in_data
            if self.capture_channels == 2:
                audio_data = stereo_to_mono(audio_data)
            audio_data = resample_audio(audio_data, self.capture_rate, TARGET_SAMPLE_RATE)
            self.callback(audio_data)
        except Exception as e:
            logger.error(f"Mic callback error: {e}")

        return (None, pyaudio.paContinue)

    def stop(self):
        was_running = self.running
        self.running = False

        if self.stream:
            try:
                self.stream.stop_stream()
                self.stream.close()
            except Exception as e:
                logger.debug(f"Stream close failed: {e}")
            self.stream = None

        if self.pyaudio_instance:
            try:
                self.pyaudio_instance.terminate()
            except Exception as e:
                logger.debug(f"PyAudio terminate failed: {e}")
            self.pyaudio_instance = None

        if was_running:
            logger.info("Microphone capture stopped")
