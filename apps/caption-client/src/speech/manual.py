"""Push-to-talk capture: one segment per press/release cycle."""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from .microphone import CaptureFactory, MicrophoneFeed
from .segments import SegmentRecorder, Transcriber, transcribe_segment
from .strategy import CaptureStrategy
from .types import CaptureMode, CaptureState, Emit

logger = logging.getLogger(__name__)


class ManualStrategy(CaptureStrategy):
    """
    Records while the talk button is held.

    Every press/release produces exactly one segment regardless of level.
    leave() behaves like release() so a lost pointer never leaves the
    microphone recording.
    """

    mode = CaptureMode.MANUAL

    def __init__(
        self,
        emit: Emit,
        language: str,
        transcriber: Transcriber,
        capture_factory: Optional[CaptureFactory] = None,
        on_state: Optional[Callable[[CaptureState], None]] = None,
    ):
        super().__init__(emit, language, on_state)
        self.transcriber = transcriber
        self.recorder = SegmentRecorder()
        self.microphone = MicrophoneFeed(self.recorder.append, capture_factory)
        self._transcription: Optional[asyncio.Task] = None

    @property
    def recording(self) -> bool:
        return self.recorder.recording

    async def start(self):
        if self.active:
            return
        self.microphone.open()
        self.set_state(CaptureState.LISTENING)
        logger.info(f"Push-to-talk ready ({self.language})")

    def press(self) -> bool:
        """Begin a segment. Ignored while idle, already recording or transcribing."""
        if self.state is not CaptureState.LISTENING:
            logger.debug(f"Press ignored while {self.state.value}")
            return False
        self.recorder.begin()
        self.set_state(CaptureState.SPEAKING)
        return True

    def release(self) -> Optional[asyncio.Task]:
        """End the segment and start its transcription."""
        if not self.recorder.recording:
            return None
        audio = self.recorder.finish()
        self.set_state(CaptureState.TRANSCRIBING)
        self._transcription = asyncio.get_running_loop().create_task(self._transcribe(audio))
        return self._transcription

    def leave(self) -> Optional[asyncio.Task]:
        return self.release()

    async def _transcribe(self, audio: bytes):
        try:
            await transcribe_segment(self.transcriber, audio, self.language, self.emit)
        finally:
            if self.state is CaptureState.TRANSCRIBING:
                self.set_state(CaptureState.LISTENING)

    async def stop(self):
        self.microphone.close()
        self.recorder.discard()
        task, self._transcription = self._transcription, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self.set_state(CaptureState.IDLE)
