"""
Continuous recognition against the streaming ASR service.

StreamingRecognizer runs one recognition session over ``ws://host:port/stream``
(microphone PCM out, ``{id, text, is_final}`` results in). NativeStrategy keeps
a recognizer running for as long as it is listening: a session that ends is
restarted after a short delay, benign errors are ignored and fatal ones hand
control back to the pipeline for fallback.
"""

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from shared.languages import speech_locale

from .microphone import CaptureFactory, MicrophoneFeed, MicrophoneUnavailable
from .strategy import CaptureStrategy
from .types import CaptureMode, CaptureState, Emit, Utterance

logger = logging.getLogger(__name__)

RESTART_DELAY = 0.15
BENIGN_ERRORS = frozenset({"no-speech", "aborted"})
CRASH_ERROR = "recognizer-crashed"


class RecognizerError(Exception):
    """Recognizer error identified by a short code such as "no-speech" or "network"."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(code)

    @property
    def fatal(self) -> bool:
        return self.code not in BENIGN_ERRORS


@dataclass(frozen=True)
class RecognitionResult:
    text: str
    is_final: bool


def parse_results(message: str | bytes) -> list[RecognitionResult]:
    """
    Decode one service message into a batch of results.

    Accepts a single ``{id, text, is_final}`` object or ``{"results": [...]}``.
    Raises RecognizerError for ``{error}`` messages.
    """
    try:
        data = json.loads(message)
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = message.decode(errors="ignore") if isinstance(message, bytes) else message
        text = text.strip()
        return [RecognitionResult(text, False)] if text else []

    if not isinstance(data, dict):
        return []
    if data.get("error"):
        raise RecognizerError(str(data["error"]))

    items = data.get("results") if isinstance(data.get("results"), list) else [data]
    batch = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = item.get("text")
        if isinstance(text, str) and text.strip():
            batch.append(RecognitionResult(text.strip(), bool(item.get("is_final", False))))
    return batch


class StreamingRecognizer:
    """One recognition session against the ASR service."""

    def __init__(
        self,
        language: str,
        host: str = "localhost",
        port: int = 8000,
        chunk_ms: int = 200,
        capture_factory: Optional[CaptureFactory] = None,
    ):
        """
        Args:
            language: Relay language code, sent to the service as a speech locale
            host: ASR service host
            port: ASR service port
            chunk_ms: Chunk duration in milliseconds for config
            capture_factory: Microphone factory
        """
        self.language = language
        self.host = host
        self.port = port
        self.chunk_ms = chunk_ms
        self.capture_factory = capture_factory

    @property
    def uri(self) -> str:
        """WebSocket URI for the ASR service."""
        return f"ws://{self.host}:{self.port}/stream"

    async def run(self, on_results: Callable[[list[RecognitionResult]], None]):
        """
        Stream the microphone until the service ends the session.

        Raises:
            RecognizerError: "service-unavailable" when the service cannot be
                reached, "audio-capture" when the microphone cannot be opened,
                "network" when the connection drops, or the code the service sent.
                A clean close from the service ends the session normally.
        """
        import websockets

        try:
            ws = await websockets.connect(self.uri)
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise RecognizerError("service-unavailable") from e

        queue: asyncio.Queue = asyncio.Queue(maxsize=100)

        def queue_audio(chunk: bytes):
            try:
                queue.put_nowait(chunk)
            except asyncio.QueueFull:
                logger.warning("Audio queue full, dropping audio chunk")

        microphone = MicrophoneFeed(queue_audio, self.capture_factory)
        try:
            try:
                microphone.open()
            except MicrophoneUnavailable as e:
                raise RecognizerError("audio-capture") from e

            await ws.send(json.dumps({"chunk_ms": self.chunk_ms, "language": speech_locale(self.language)}))

            send_task = asyncio.create_task(self._send_audio(ws, queue))
            recv_task = asyncio.create_task(self._receive(ws, on_results))
            try:
                done, _pending = await asyncio.wait(
                    [send_task, recv_task], return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for task in (send_task, recv_task):
                    if not task.done():
                        task.cancel()
                        with contextlib.suppress(asyncio.CancelledError):
                            await task

            for task in done:
                task.result()
        except websockets.exceptions.ConnectionClosedOK:
            logger.debug("Recognition session closed by the service")
        except websockets.exceptions.ConnectionClosedError as e:
            raise RecognizerError("network") from e
        finally:
            microphone.close()
            await ws.close()

    async def _send_audio(self, ws, queue: asyncio.Queue):
        while True:
            await ws.send(await queue.get())

    async def _receive(self, ws, on_results):
        async for message in ws:
            batch = parse_results(message)
            if batch:
                on_results(batch)


RecognizerFactory = Callable[[str], StreamingRecognizer]


class NativeStrategy(CaptureStrategy):
    """
    Continuous recognition with interim preview.

    Args:
        emit: Receives one final utterance per result batch
        language: Relay language code
        recognizer_factory: Builds a recognizer for a language
        on_interim: Receives interim preview text
        on_fatal: Called once with the fatal RecognizerError; native is
            already idle by then
        restart_delay: Pause before restarting an ended session
    """

    mode = CaptureMode.NATIVE

    def __init__(
        self,
        emit: Emit,
        language: str,
        recognizer_factory: RecognizerFactory,
        on_interim: Optional[Callable[[str], None]] = None,
        on_fatal: Optional[Callable[[RecognizerError], None]] = None,
        restart_delay: float = RESTART_DELAY,
        on_state: Optional[Callable[[CaptureState], None]] = None,
    ):
        super().__init__(emit, language, on_state)
        self.recognizer_factory = recognizer_factory
        self.on_interim = on_interim
        self.on_fatal = on_fatal
        self.restart_delay = restart_delay
        self.restarts = 0
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        if self.active:
            return
        self.restarts = 0
        self.set_state(CaptureState.LISTENING)
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Native recognition listening ({speech_locale(self.language)})")

    async def _run(self):
        while self.active:
            recognizer = self.recognizer_factory(self.language)
            error = None
            try:
                await recognizer.run(self.handle_results)
            except RecognizerError as e:
                error = e
            except Exception as e:
                logger.error(f"Recognizer session crashed: {e!r}")
                error = RecognizerError(CRASH_ERROR)

            if error is not None:
                if error.fatal:
                    logger.warning(f"Recognizer failed ({error.code}), giving up on native recognition")
                    self.set_state(CaptureState.IDLE)
                    if self.on_fatal:
                        self.on_fatal(error)
                    return
                logger.debug(f"Recognizer ended: {error.code}")

            if not self.active:
                return
            self.set_state(CaptureState.LISTENING)
            await asyncio.sleep(self.restart_delay)
            self.restarts += 1

    def handle_results(self, batch: list[RecognitionResult]):
        """Split a batch into interim preview and one final utterance."""
        interim = " ".join(r.text.strip() for r in batch if not r.is_final).strip()
        final = " ".join(r.text.strip() for r in batch if r.is_final).strip()

        if interim:
            self.set_state(CaptureState.SPEAKING)
            if self.on_interim:
                self.on_interim(interim)

        if final:
            self.set_state(CaptureState.LISTENING)
            self.emit(Utterance(final, is_final=True))

    async def stop(self):
        self.set_state(CaptureState.IDLE)
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
