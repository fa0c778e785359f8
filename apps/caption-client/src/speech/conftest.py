"""Fixtures for capture strategy tests: fake microphones and transcribers."""

from unittest.mock import AsyncMock, MagicMock

import numpy as np
import pytest

from ..audio import AudioCapture


class FakeCapture(AudioCapture):
    def __init__(self, callback, available: bool = True):
        super().__init__(callback)
        self.available = available
        self.stopped = False

    @property
    def source_name(self) -> str:
        return "Fake Mic"

    def start(self) -> bool:
        self.running = self.available
        return self.available

    def stop(self):
        self.running = False
        self.stopped = True

    def push(self, chunk: bytes):
        """Deliver a chunk the way the PyAudio thread would."""
        self.callback(chunk)


class FakeCaptureFactory:
    def __init__(self, available: bool = True):
        self.available = available
        self.captures: list[FakeCapture] = []

    def __call__(self, callback) -> FakeCapture:
        capture = FakeCapture(callback, self.available)
        self.captures.append(capture)
        return capture

    @property
    def last(self) -> FakeCapture:
        return self.captures[-1]


@pytest.fixture
def capture_factory():
    return FakeCaptureFactory()


@pytest.fixture
def broken_capture_factory():
    return FakeCaptureFactory(available=False)


@pytest.fixture
def transcriber():
    mock = MagicMock()
    mock.transcribe = AsyncMock(return_value="hello there")
    return mock


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def tone_chunk():
    """20 ms of a loud 1 kHz tone as 16kHz PCM."""
    t = np.arange(320) / 16000
    return (0.3 * np.sin(2 * np.pi * 1000 * t) * 32767).astype(np.int16).tobytes()


@pytest.fixture
def silent_chunk():
    return np.zeros(320, dtype=np.int16).tobytes()
