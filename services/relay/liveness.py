"""Heartbeat that reaps connections whose transport has died."""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from connection import Connection

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 30.0


def transport_keepalive(interval: float = HEARTBEAT_INTERVAL) -> dict[str, float]:
    """
    uvicorn settings for protocol-level ping/pong.

    The server pings every ``interval`` and closes a socket whose pong has not
    arrived within another ``interval``. Any compliant WebSocket client answers
    these pings on its own, so an idle but healthy client is never evicted.
    """
    return {"ws_ping_interval": interval, "ws_ping_timeout": interval}


class LivenessMonitor:
    """
    Sweeps every registered connection once per interval.

    Dead sockets are detected at the transport level (see
    ``transport_keepalive``). The sweep terminates and tears down connections
    already known to be closed, such as one whose last send failed while its
    handler is still blocked on a half-open read. Open connections are never
    evicted for being quiet; ``is_alive`` only records whether any frame
    arrived since the previous sweep, and ``idle`` counts those that sent none.
    """

    def __init__(
        self,
        on_dead: Callable[[Connection], Awaitable[None]],
        interval: float = HEARTBEAT_INTERVAL,
    ):
        self.on_dead = on_dead
        self.interval = interval
        self.idle = 0
        self._connections: set[Connection] = set()
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._connections)

    def register(self, connection: Connection) -> None:
        connection.mark_alive()
        self._connections.add(connection)

    def unregister(self, connection: Connection) -> None:
        self._connections.discard(connection)

    async def sweep(self) -> list[Connection]:
        """Run one heartbeat round. Returns the evicted connections."""
        evicted = []
        idle = 0
        for connection in list(self._connections):
            if not connection.open:
                evicted.append(connection)
                continue
            if not connection.is_alive:
                idle += 1
            connection.is_alive = False
        self.idle = idle

        for connection in evicted:
            logger.info(f"Evicting dead {connection!r}")
            self.unregister(connection)
            await connection.terminate()
            try:
                await self.on_dead(connection)
            except Exception as e:
                logger.error(f"Teardown after eviction failed: {e}")
        return evicted

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.sweep()

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info(f"Heartbeat started ({self.interval:.0f}s interval)")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
