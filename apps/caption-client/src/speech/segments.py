"""Recorded segments and their transcription."""

import logging
from typing import Protocol

from .types import Emit, Utterance

logger = logging.getLogger(__name__)


class Transcriber(Protocol):
    async def transcribe(self, audio: bytes, language: str) -> str: ...


class SegmentRecorder:
    """Accumulates PCM between begin() and finish()."""

    def __init__(self):
        self._buffer = bytearray()
        self.recording = False

    def __len__(self) -> int:
        return len(self._buffer)

    def begin(self):
        self._buffer.clear()
        self.recording = True

    def append(self, chunk: bytes):
        if self.recording:
            self._buffer.extend(chunk)

    def finish(self) -> bytes:
        audio = bytes(self._buffer)
        self.discard()
        return audio

    def discard(self):
        self._buffer.clear()
        self.recording = False


async def transcribe_segment(transcriber: Transcriber, audio: bytes, language: str, emit: Emit) -> str:
    """Transcribe one segment and emit it as a final utterance if any text came back."""
    text = (await transcriber.transcribe(audio, language)).strip()
    if text:
        emit(Utterance(text, is_final=True))
    else:
        logger.debug(f"Segment of {len(audio)} bytes produced no text, dropped")
    return text
