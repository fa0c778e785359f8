"""
Energy-gated voice activity segmentation.

VadSegmenter is the state machine: each tick it gets the speech-band level,
starts a recording when the level crosses the threshold and keeps a silence
timer armed while speech continues. A segment ends when the silence timer or
the max-duration cap fires; short segments are dropped as noise, the rest go
to the transcription service. No recording starts while a segment is being
transcribed.

VadStrategy wires the segmenter to the microphone and a fixed-cadence tick
task.
"""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from ..audio import CHUNK_DURATION_MS, LevelAnalyser
from .microphone import CaptureFactory, MicrophoneFeed
from .segments import SegmentRecorder, Transcriber, transcribe_segment
from .strategy import CaptureStrategy
from .types import CaptureMode, CaptureState, Emit

logger = logging.getLogger(__name__)

LEVEL_THRESHOLD = 0.01
SILENCE_TIMEOUT = 1.2
MAX_SEGMENT_DURATION = 12.0
TICK_INTERVAL = CHUNK_DURATION_MS / 1000
MIN_SEGMENT_BYTES = 8000  # 250 ms of 16 kHz mono PCM


class VadSegmenter:
    """
    Args:
        transcriber: Object with ``async transcribe(audio, language) -> str``
        emit: Receives final utterances
        language: Language hint for the transcription service
        threshold: Band level that counts as speech
        silence_timeout: Seconds without speech before a segment is finalized
        max_duration: Hard cap on a single segment, in seconds
        min_segment_bytes: Segments smaller than this are discarded
        on_state: Called on every state change
        on_finalize: Called with "silence" or "max-duration" when a segment ends
    """

    def __init__(
        self,
        transcriber: Transcriber,
        emit: Emit,
        language: str,
        threshold: float = LEVEL_THRESHOLD,
        silence_timeout: float = SILENCE_TIMEOUT,
        max_duration: float = MAX_SEGMENT_DURATION,
        min_segment_bytes: int = MIN_SEGMENT_BYTES,
        on_state: Optional[Callable[[CaptureState], None]] = None,
        on_finalize: Optional[Callable[[str], None]] = None,
    ):
        self.transcriber = transcriber
        self.emit = emit
        self.language = language
        self.threshold = threshold
        self.silence_timeout = silence_timeout
        self.max_duration = max_duration
        self.min_segment_bytes = min_segment_bytes
        self.on_state = on_state
        self.on_finalize = on_finalize

        self.state = CaptureState.IDLE
        self.recorder = SegmentRecorder()
        self._silence_timer: Optional[asyncio.TimerHandle] = None
        self._cap_timer: Optional[asyncio.TimerHandle] = None
        self._transcription: Optional[asyncio.Task] = None

    def _set_state(self, state: CaptureState):
        if state is self.state:
            return
        self.state = state
        if self.on_state:
            self.on_state(state)

    def start(self):
        if self.state is CaptureState.IDLE:
            self._set_state(CaptureState.LISTENING)

    def feed_audio(self, chunk: bytes):
        self.recorder.append(chunk)

    def tick(self, level: float):
        """Advance the state machine by one analysis frame."""
        if level < self.threshold:
            return
        if self.state in (CaptureState.IDLE, CaptureState.TRANSCRIBING):
            return

        if not self.recorder.recording:
            self._begin_segment()
        self._arm_silence_timer()

    def _begin_segment(self):
        loop = asyncio.get_running_loop()
        self.recorder.begin()
        self._cap_timer = loop.call_later(self.max_duration, self.finalize, "max-duration")
        self._set_state(CaptureState.SPEAKING)
        logger.debug("Speech started")

    def _arm_silence_timer(self):
        if self._silence_timer is not None:
            self._silence_timer.cancel()
        loop = asyncio.get_running_loop()
        self._silence_timer = loop.call_later(self.silence_timeout, self.finalize, "silence")

    def _cancel_timers(self):
        for timer in (self._silence_timer, self._cap_timer):
            if timer is not None:
                timer.cancel()
        self._silence_timer = None
        self._cap_timer = None

    def finalize(self, reason: str = "silence"):
        """End the current segment and hand it to transcription."""
        self._cancel_timers()
        if not self.recorder.recording:
            return

        audio = self.recorder.finish()
        if self.on_finalize:
            self.on_finalize(reason)

        if len(audio) < self.min_segment_bytes:
            logger.debug(f"Segment too short ({len(audio)} bytes), discarded")
            self._set_state(CaptureState.LISTENING)
            return

        logger.debug(f"Segment finalized ({reason}, {len(audio)} bytes)")
        self._set_state(CaptureState.TRANSCRIBING)
        self._transcription = asyncio.get_running_loop().create_task(self._transcribe(audio))

    async def _transcribe(self, audio: bytes):
        try:
            await transcribe_segment(self.transcriber, audio, self.language, self.emit)
        finally:
            if self.state is CaptureState.TRANSCRIBING:
                self._set_state(CaptureState.LISTENING)

    async def stop(self):
        self._cancel_timers()
        self.recorder.discard()
        task, self._transcription = self._transcription, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._set_state(CaptureState.IDLE)


class VadStrategy(CaptureStrategy):
    """Hands-free capture: microphone -> level analyser -> VadSegmenter."""

    mode = CaptureMode.VAD

    def __init__(
        self,
        emit: Emit,
        language: str,
        transcriber: Transcriber,
        capture_factory: Optional[CaptureFactory] = None,
        tick_interval: float = TICK_INTERVAL,
        on_state: Optional[Callable[[CaptureState], None]] = None,
        **segmenter_options,
    ):
        super().__init__(emit, language, on_state)
        self.tick_interval = tick_interval
        self.analyser = LevelAnalyser()
        self.segmenter = VadSegmenter(
            transcriber, emit, language, on_state=self.set_state, **segmenter_options
        )
        self.microphone = MicrophoneFeed(self._on_audio, capture_factory)
        self._ticker: Optional[asyncio.Task] = None

    def _on_audio(self, chunk: bytes):
        self.analyser.feed(chunk)
        self.segmenter.feed_audio(chunk)

    async def start(self):
        if self.active:
            return
        self.microphone.open()
        self.analyser.reset()
        self.segmenter.language = self.language
        self.segmenter.start()
        self._ticker = asyncio.get_running_loop().create_task(self._tick_loop())
        logger.info(f"VAD listening ({self.language})")

    async def _tick_loop(self):
        while self.segmenter.state is not CaptureState.IDLE:
            self.segmenter.tick(self.analyser.level())
            await asyncio.sleep(self.tick_interval)

    async def stop(self):
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
        self.microphone.close()
        await self.segmenter.stop()
        self.set_state(CaptureState.IDLE)
