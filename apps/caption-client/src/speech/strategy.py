"""Base class for capture strategies."""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import CaptureMode, CaptureState, Emit

logger = logging.getLogger(__name__)


class CaptureStrategy(ABC):
    """
    One way of turning the microphone into utterances.

    Strategies report results through ``emit`` and walk the shared
    idle -> listening -> speaking -> transcribing state machine. start() and
    stop() are coroutines; stop() must release the microphone, cancel timers
    and drop any in-flight recording before it returns.
    """

    mode: CaptureMode

    def __init__(
        self,
        emit: Emit,
        language: str,
        on_state: Optional[Callable[[CaptureState], None]] = None,
    ):
        self.emit = emit
        self.language = language
        self.on_state = on_state
        self.state = CaptureState.IDLE

    @property
    def active(self) -> bool:
        return self.state is not CaptureState.IDLE

    def set_state(self, state: CaptureState):
        if state is self.state:
            return
        logger.debug(f"{self.mode.value}: {self.state.value} -> {state.value}")
        self.state = state
        if self.on_state:
            self.on_state(state)

    @abstractmethod
    async def start(self):
        """Acquire resources and begin listening."""

    @abstractmethod
    async def stop(self):
        """Release every resource and return to idle."""
