"""Transport-neutral view of one relay WebSocket."""

import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from shared.protocol import Message, Role

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class Connection:
    """
    One duplex endpoint as the relay sees it.

    ``role`` and ``room_code`` are unset until the connection creates or joins
    a room. ``is_alive`` is cleared by each heartbeat sweep and set again by
    any inbound frame.
    """

    def __init__(
        self,
        send: Callable[[dict[str, Any]], Awaitable[None]],
        close: Callable[..., Awaitable[None]] | None = None,
        name: str | None = None,
    ):
        self._send = send
        self._close = close
        self.name = name or f"conn-{next(_ids)}"
        self.role: Role | None = None
        self.room_code: str | None = None
        self.is_alive = True
        self.open = True
        self._terminated = False

    @property
    def is_bound(self) -> bool:
        return self.room_code is not None

    def bind(self, code: str, role: Role) -> None:
        self.room_code = code
        self.role = role

    def unbind(self) -> None:
        self.room_code = None
        self.role = None

    def mark_alive(self) -> None:
        self.is_alive = True

    async def send(self, message: Message | dict[str, Any]) -> bool:
        """Send a frame if the socket is still open. Returns False if dropped."""
        if not self.open:
            return False
        payload = message.to_wire() if isinstance(message, Message) else message
        try:
            await self._send(payload)
            return True
        except Exception as e:
            logger.debug(f"{self.name}: send failed, marking closed: {e}")
            self.open = False
            return False

    async def terminate(self, code: int = 1001) -> None:
        """Close the socket from the server side. Safe to call more than once."""
        self.open = False
        if self._close is None or self._terminated:
            return
        self._terminated = True
        try:
            await self._close(code=code)
        except Exception as e:
            logger.debug(f"{self.name}: close failed: {e}")

    def __repr__(self) -> str:
        role = self.role.value if self.role else "unbound"
        return f"Connection({self.name}, {role}, room={self.room_code})"
