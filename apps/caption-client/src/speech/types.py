"""Shared types for the speech capture pipeline."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable


class CaptureState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    SPEAKING = "speaking"
    TRANSCRIBING = "transcribing"


class CaptureMode(str, Enum):
    NATIVE = "native"
    VAD = "vad"
    MANUAL = "manual"


@dataclass(frozen=True)
class Utterance:
    """One piece of recognized speech. Only final utterances leave the device."""

    text: str
    is_final: bool = True


Emit = Callable[[Utterance], None]
