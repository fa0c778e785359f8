"""Relay connection for the caption client."""

from .client import KEEPALIVE_INTERVAL, RECONNECT_DELAY, RelayClient
from .join import build_join_url, parse_join_code, websocket_url

__all__ = [
    "KEEPALIVE_INTERVAL",
    "RECONNECT_DELAY",
    "RelayClient",
    "build_join_url",
    "parse_join_code",
    "websocket_url",
]
