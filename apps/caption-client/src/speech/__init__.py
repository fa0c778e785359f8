"""Speech capture pipeline and its strategies."""

from .manual import ManualStrategy
from .microphone import MicrophoneFeed, MicrophoneUnavailable
from .native import NativeStrategy, RecognitionResult, RecognizerError, StreamingRecognizer
from .pipeline import CapturePipeline
from .segments import SegmentRecorder, transcribe_segment
from .strategy import CaptureStrategy
from .types import CaptureMode, CaptureState, Utterance
from .vad import VadSegmenter, VadStrategy

__all__ = [
    "CaptureMode",
    "CapturePipeline",
    "CaptureState",
    "CaptureStrategy",
    "ManualStrategy",
    "MicrophoneFeed",
    "MicrophoneUnavailable",
    "NativeStrategy",
    "RecognitionResult",
    "RecognizerError",
    "SegmentRecorder",
    "StreamingRecognizer",
    "Utterance",
    "VadSegmenter",
    "VadStrategy",
    "transcribe_segment",
]
