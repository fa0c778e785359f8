"""Tests for the relay WebSocket client."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from shared.protocol import Role

from .client import RelayClient


class FakeSocket:
    """Relay connection that replays scripted frames and records sends."""

    def __init__(self, frames=()):
        self.frames = [json.dumps(f) if isinstance(f, dict) else f for f in frames]
        self.sent: list[dict] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def send(self, data: str):
        self.sent.append(json.loads(data))

    async def __aiter__(self):
        for frame in self.frames:
            await asyncio.sleep(0.01)
            yield frame
        await asyncio.sleep(0.01)


class FakeConnect:
    def __init__(self, *sockets, on_connect=None):
        self.sockets = list(sockets)
        self.uris: list[str] = []
        self.on_connect = on_connect

    def __call__(self, uri: str):
        self.uris.append(uri)
        if self.on_connect:
            self.on_connect(len(self.uris))
        if not self.sockets:
            raise OSError("connection refused")
        return self.sockets.pop(0)


def make_client(role="headset", **kwargs) -> RelayClient:
    kwargs.setdefault("connect", FakeConnect())
    kwargs.setdefault("reconnect_delay", 0.01)
    lang = kwargs.pop("lang", "en" if role == "headset" else "fr")
    return RelayClient("localhost:3000", role, lang, **kwargs)


class TestRelayClientInit:
    """Tests for client configuration."""

    def test_uri_and_role(self):
        """Test server address and role normalization."""
        client = make_client("phone")

        assert client.uri == "ws://localhost:3000/ws"
        assert client.role is Role.PHONE
        assert client.connected is False


class TestHello:
    """Tests for the first message after connecting."""

    def test_headset_creates_room(self):
        """Test a headset always asks for a new room."""
        client = make_client("headset", partner_lang="fr")

        assert client.hello().to_wire() == {"type": "create_room", "headsetLang": "en", "phoneLang": "fr"}

    def test_phone_joins_code(self):
        """Test a phone joins its code with language and profile."""
        profile = {"name": "Marie", "relationship": "sister", "phoneLang": "fr"}
        client = make_client("phone", room_code="K7M2X", profile=profile)

        assert client.hello().to_wire() == {
            "type": "join_room",
            "code": "K7M2X",
            "phoneLang": "fr",
            "profile": profile,
        }

    def test_phone_without_code_waits(self):
        """Test a phone with no code sends nothing."""
        assert make_client("phone").hello() is None


class TestSend:
    """Tests for outbound messages."""

    def test_dropped_while_disconnected(self):
        """Test sends before connecting are dropped."""
        client = make_client()

        assert client.send_speech("hello") is False

    def test_speech_is_final(self):
        """Test speech frames are sent as final."""
        client = make_client()
        client.connected = True

        assert client.send_speech("  hello ") is True
        assert client._outbox.get_nowait() == {"type": "speech", "text": "hello", "isFinal": True}

    def test_blank_speech_not_sent(self):
        """Test whitespace-only speech is not sent."""
        client = make_client()
        client.connected = True

        assert client.send_speech("   ") is False
        assert client._outbox.empty()

    def test_update_lang(self):
        """Test update_lang remembers and sends the language."""
        client = make_client()
        client.connected = True

        client.update_lang("zh")

        assert client.lang == "zh"
        assert client._outbox.get_nowait() == {"type": "update_lang", "lang": "zh"}

    def test_update_profile_merges_locally(self):
        """Test profile updates merge into the local profile."""
        client = make_client("phone", profile={"name": "Marie", "relationship": ""})
        client.connected = True

        client.update_profile({"relationship": "sister"})

        assert client.profile == {"name": "Marie", "relationship": "sister"}
        assert client._outbox.get_nowait() == {"type": "update_profile", "profile": {"relationship": "sister"}}


class TestHandle:
    """Tests for inbound server messages."""

    @pytest.mark.asyncio
    async def test_ping_answered_with_pong(self):
        """Test an app-level ping from the relay gets a pong."""
        client = make_client()
        client.connected = True

        await client.handle('{"type": "ping"}')

        assert client._outbox.get_nowait() == {"type": "pong"}

    @pytest.mark.asyncio
    async def test_room_created(self):
        """Test the room code is remembered and the event forwarded."""
        events = []
        client = make_client(on_event=events.append)

        await client.handle('{"type": "room_created", "code": "K7M2X"}')

        assert client.room_code == "K7M2X"
        assert events == [{"type": "room_created", "code": "K7M2X"}]

    @pytest.mark.asyncio
    async def test_phone_connected_and_disconnected(self):
        """Test the headset tracks its partner."""
        client = make_client()

        await client.handle('{"type": "phone_connected", "profile": {}, "phoneLang": "pt"}')
        assert client.partner_connected
        assert client.partner_lang == "pt"

        await client.handle('{"type": "phone_disconnected"}')
        assert not client.partner_connected

    @pytest.mark.asyncio
    async def test_lang_updated_restarts_capture(self):
        """Test a change to our own language reaches the capture callback."""
        on_lang_change = AsyncMock()
        client = make_client("headset", on_lang_change=on_lang_change)

        await client.handle('{"type": "lang_updated", "headsetLang": "es", "phoneLang": "fr"}')

        on_lang_change.assert_awaited_once_with("es")
        assert client.lang == "es"
        assert client.partner_lang == "fr"

    @pytest.mark.asyncio
    async def test_partner_lang_change_only(self):
        """Test a change to the other side's language does not restart capture."""
        on_lang_change = AsyncMock()
        client = make_client("phone", on_lang_change=on_lang_change)

        await client.handle('{"type": "lang_updated", "headsetLang": "zh", "phoneLang": "fr"}')

        on_lang_change.assert_not_awaited()
        assert client.partner_lang == "zh"

    @pytest.mark.asyncio
    async def test_headset_disconnected(self):
        """Test the phone forgets the room and stops capture."""
        on_partner_left = AsyncMock()
        client = make_client("phone", room_code="K7M2X", on_partner_left=on_partner_left)
        client.partner_connected = True

        await client.handle('{"type": "headset_disconnected"}')

        on_partner_left.assert_awaited_once()
        assert client.room_code is None
        assert client.hello() is None

    @pytest.mark.asyncio
    async def test_join_error_forgets_code(self):
        """Test a rejected code is not retried on reconnect."""
        client = make_client("phone", room_code="ZZZZZ")

        await client.handle('{"type": "error", "message": "Room not found. Check the code."}')

        assert client.room_code is None

    @pytest.mark.asyncio
    async def test_occupied_room_keeps_code(self):
        """Test a room still held by a stale phone is retried on the next reconnect."""
        client = make_client("phone", room_code="K7M2X")

        await client.handle('{"type": "error", "message": "Room is already occupied."}')

        assert client.room_code == "K7M2X"

    @pytest.mark.asyncio
    async def test_occupied_room_rejoined_after_reconnect(self):
        """Test the phone sends join_room for the same code on its next connection."""
        client = make_client("phone", room_code="K7M2X")
        await client.handle('{"type": "error", "message": "Room is already occupied."}')

        frame = client.hello().to_wire()

        assert frame["type"] == "join_room"
        assert frame["code"] == "K7M2X"

    @pytest.mark.asyncio
    async def test_garbage_ignored(self):
        """Test non-JSON and non-object frames are ignored."""
        on_event = MagicMock()
        client = make_client(on_event=on_event)

        await client.handle("not json")
        await client.handle("[1, 2]")

        on_event.assert_not_called()


class TestRun:
    """Tests for the connection loop."""

    @pytest.mark.asyncio
    async def test_headset_reconnect_creates_new_room(self):
        """Test every reconnect sends a fresh create_room."""
        first = FakeSocket([{"type": "room_created", "code": "AAAAA"}])
        second = FakeSocket([{"type": "room_created", "code": "BBBBB"}])
        client = None

        def stop_on_second(count):
            if count == 2:
                client.stop()

        client = make_client("headset", connect=FakeConnect(first, second, on_connect=stop_on_second))

        await asyncio.wait_for(client.run(), timeout=2)

        assert first.sent[0]["type"] == "create_room"
        assert second.sent[0]["type"] == "create_room"
        assert client.room_code == "BBBBB"
        assert client.connected is False

    @pytest.mark.asyncio
    async def test_phone_rejoins_last_code(self):
        """Test a phone re-joins the same room after a drop."""
        first = FakeSocket([{"type": "room_joined", "code": "K7M2X", "headsetLang": "en", "phoneLang": "fr", "profile": {}}])
        second = FakeSocket()
        client = None

        def stop_on_second(count):
            if count == 2:
                client.stop()

        client = make_client("phone", room_code="K7M2X", connect=FakeConnect(first, second, on_connect=stop_on_second))

        await asyncio.wait_for(client.run(), timeout=2)

        assert first.sent[0] == {"type": "join_room", "code": "K7M2X", "phoneLang": "fr", "profile": None}
        assert second.sent[0]["type"] == "join_room"
        assert second.sent[0]["code"] == "K7M2X"

    @pytest.mark.asyncio
    async def test_refused_connection_retries(self):
        """Test a refused connection is retried after the backoff."""
        client = None

        def stop_on_third(count):
            if count == 3:
                client.stop()

        connect = FakeConnect(on_connect=stop_on_third)
        client = make_client(connect=connect)

        await asyncio.wait_for(client.run(), timeout=2)

        assert len(connect.uris) == 3

    @pytest.mark.asyncio
    async def test_keepalive_ping(self):
        """Test the client pings the relay on its keep-alive interval."""
        socket = FakeSocket([{"type": "room_created", "code": "AAAAA"}] + ["{}"] * 5)
        client = make_client(connect=FakeConnect(socket), keepalive_interval=0.01)
        task = asyncio.create_task(client.run())

        await asyncio.sleep(0.05)
        client.stop()
        await asyncio.wait_for(task, timeout=2)

        assert {"type": "ping"} in socket.sent
