"""Capture pipeline: exactly one active strategy, one output contract."""

import asyncio
import contextlib
import logging
from typing import Callable, Optional

from .strategy import CaptureStrategy
from .types import CaptureMode, CaptureState, Utterance

logger = logging.getLogger(__name__)

StrategyFactory = Callable[["CapturePipeline"], CaptureStrategy]


class CapturePipeline:
    """
    Owns the active capture strategy.

    Strategies are built on demand from ``factories`` (keyed by CaptureMode);
    each factory gets the pipeline so it can wire ``emit``, ``preview`` and
    ``report_fatal``. Switching strategies always stops the old one before the
    new one touches the microphone.

    Args:
        factories: CaptureMode -> factory
        language: Source language code
        on_utterance: Receives final, non-empty utterances
        on_interim: Receives local preview text
        fallback_mode: Strategy activated after a fatal recognizer error
    """

    def __init__(
        self,
        factories: dict[CaptureMode, StrategyFactory],
        language: str,
        on_utterance: Callable[[Utterance], None],
        on_interim: Optional[Callable[[str], None]] = None,
        fallback_mode: CaptureMode = CaptureMode.VAD,
    ):
        self.factories = factories
        self.language = language
        self.on_utterance = on_utterance
        self.on_interim = on_interim
        self.fallback_mode = fallback_mode

        self._strategy: Optional[CaptureStrategy] = None
        self._mode: Optional[CaptureMode] = None
        self._lock = asyncio.Lock()
        self._fallback_task: Optional[asyncio.Task] = None

    @property
    def mode(self) -> Optional[CaptureMode]:
        return self._mode

    @property
    def strategy(self) -> Optional[CaptureStrategy]:
        return self._strategy

    @property
    def state(self) -> CaptureState:
        return self._strategy.state if self._strategy else CaptureState.IDLE

    async def activate(self, mode: CaptureMode | str):
        """Stop the current strategy, then build and start ``mode``."""
        mode = CaptureMode(mode)
        if mode not in self.factories:
            raise ValueError(f"No capture strategy registered for {mode.value}")

        async with self._lock:
            await self._release()
            strategy = self.factories[mode](self)
            strategy.language = self.language
            self._strategy = strategy
            self._mode = mode
            await strategy.start()
            logger.info(f"Capture strategy: {mode.value}")

    async def _release(self):
        strategy, self._strategy = self._strategy, None
        if strategy is not None:
            await strategy.stop()

    def emit(self, utterance: Utterance):
        """Forward final utterances; interim text only reaches the preview."""
        text = utterance.text.strip()
        if not text:
            return
        if not utterance.is_final:
            self.preview(text)
            return
        self.on_utterance(Utterance(text, is_final=True))

    def preview(self, text: str):
        if self.on_interim and text:
            self.on_interim(text)

    def report_fatal(self, error: Exception):
        """Schedule the switch to the fallback strategy."""
        if self._fallback_task is not None and not self._fallback_task.done():
            return
        self._fallback_task = asyncio.get_running_loop().create_task(self.fallback(error))

    async def fallback(self, reason: Exception | str):
        logger.warning(f"{self._mode.value if self._mode else 'capture'} failed ({reason}), switching to {self.fallback_mode.value}")
        try:
            await self.activate(self.fallback_mode)
        except Exception as e:
            logger.error(f"Fallback to {self.fallback_mode.value} failed: {e}")

    async def set_language(self, language: str):
        """Change the source language, restarting the active strategy."""
        if language == self.language:
            return
        self.language = language
        if self._mode is not None and self._strategy is not None and self._strategy.active:
            logger.info(f"Language -> {language}, restarting {self._mode.value}")
            await self.activate(self._mode)

    async def stop(self):
        task, self._fallback_task = self._fallback_task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        async with self._lock:
            await self._release()
            self._mode = None
