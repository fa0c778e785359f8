"""Pytest configuration for relay service tests."""

import sys
from pathlib import Path

import pytest

# Add the service directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from connection import Connection  # noqa: E402


class FakeSocket:
    """Records frames a Connection sends."""

    def __init__(self):
        self.sent: list[dict] = []
        self.closed_with: int | None = None

    async def send_json(self, payload: dict) -> None:
        self.sent.append(payload)

    async def close(self, code: int = 1000) -> None:
        self.closed_with = code

    def types(self) -> list[str]:
        return [frame["type"] for frame in self.sent]

    def last(self) -> dict:
        return self.sent[-1]


def make_connection(name: str) -> tuple[Connection, FakeSocket]:
    sock = FakeSocket()
    return Connection(send=sock.send_json, close=sock.close, name=name), sock


@pytest.fixture
def headset():
    return make_connection("headset")


@pytest.fixture
def phone():
    return make_connection("phone")


@pytest.fixture
def fake_translate():
    """Translator stub that records calls and tags the text with the target language."""
    calls = []

    async def translate(text, from_lang, to_lang):
        calls.append((text, from_lang, to_lang))
        if from_lang == to_lang:
            return text
        return f"[{to_lang}] {text}"

    translate.calls = calls
    return translate


@pytest.fixture
def connection_factory():
    """Build extra (Connection, FakeSocket) pairs inside a test."""
    return make_connection
