"""Bridge from the PyAudio callback thread into the event loop."""

import asyncio
import logging
from typing import Callable, Optional

from ..audio import AudioCapture, MicrophoneCapture

logger = logging.getLogger(__name__)

CaptureFactory = Callable[[Callable[[bytes], None]], AudioCapture]


class MicrophoneUnavailable(Exception):
    """The microphone could not be opened."""


def default_capture_factory(device_index: Optional[int] = None) -> CaptureFactory:
    return lambda callback: MicrophoneCapture(callback, device_index=device_index)


class MicrophoneFeed:
    """
    Opens a capture and delivers its chunks to ``on_chunk`` on the loop thread.

    Chunks that arrive after close() are dropped, so a stopped strategy never
    sees audio again.
    """

    def __init__(self, on_chunk: Callable[[bytes], None], capture_factory: Optional[CaptureFactory] = None):
        self.on_chunk = on_chunk
        self.capture_factory = capture_factory or default_capture_factory()
        self._capture: Optional[AudioCapture] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self):
        if self._capture is not None:
            return
        self._loop = asyncio.get_running_loop()
        capture = self.capture_factory(self._from_capture_thread)
        if not capture.start():
            raise MicrophoneUnavailable(capture.source_name)
        self._capture = capture
        logger.debug(f"Microphone open: {capture.source_name}")

    def close(self):
        capture, self._capture = self._capture, None
        if capture is not None:
            capture.stop()

    def _from_capture_thread(self, chunk: bytes):
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._deliver, chunk)

    def _deliver(self, chunk: bytes):
        if self._capture is not None:
            self.on_chunk(chunk)
