"""Room join codes and URLs."""

from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

JOIN_QUERY_KEYS = ("room", "code")


def parse_join_code(value: str | None) -> str | None:
    """
    Extract a room code from a bare code or a join URL.

    ``k7m2x``, ``https://host/join?room=K7M2X`` and ``.../join?code=K7M2X``
    all give ``K7M2X``.
    """
    if not value or not value.strip():
        return None
    value = value.strip()

    if "?" in value or "://" in value:
        query = parse_qs(urlsplit(value).query)
        for key in JOIN_QUERY_KEYS:
            if query.get(key):
                value = query[key][0]
                break
        else:
            return None

    code = value.strip().upper()
    return code or None


def build_join_url(base_url: str, code: str) -> str:
    """``<base>/join?room=<code>``"""
    return f"{base_url.rstrip('/')}/join?{urlencode({'room': code})}"


def websocket_url(server: str) -> str:
    """Relay WebSocket endpoint for a server address (http(s), ws(s) or host:port)."""
    if "://" not in server:
        server = f"ws://{server}"
    parts = urlsplit(server)
    scheme = {"http": "ws", "https": "wss"}.get(parts.scheme, parts.scheme)
    path = parts.path if parts.path not in ("", "/") else "/ws"
    return urlunsplit((scheme, parts.netloc, path, parts.query, ""))
