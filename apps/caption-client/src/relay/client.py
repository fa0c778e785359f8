"""WebSocket client for the caption relay."""

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from shared.protocol import ROOM_NOT_FOUND, Role
from shared.protocol.messages import (
    CreateRoom,
    JoinRoom,
    Message,
    Ping,
    Pong,
    Speech,
    UpdateLang,
    UpdateProfile,
)

from .join import websocket_url

logger = logging.getLogger(__name__)

RECONNECT_DELAY = 2.0
KEEPALIVE_INTERVAL = 25.0


class RelayClient:
    """
    One device's connection to the relay.

    Reconnects RECONNECT_DELAY seconds after any close. On every (re)connect a
    headset creates a fresh room and a phone re-joins the last code it was
    given. Outbound messages are queued and written in order; anything sent
    while disconnected is dropped.
    """

    def __init__(
        self,
        server: str,
        role: Role | str,
        lang: str,
        partner_lang: Optional[str] = None,
        room_code: Optional[str] = None,
        profile: Optional[dict[str, Any]] = None,
        on_event: Optional[Callable[[dict[str, Any]], None]] = None,
        on_lang_change: Optional[Callable[[str], Awaitable[None]]] = None,
        on_partner_left: Optional[Callable[[], Awaitable[None]]] = None,
        reconnect_delay: float = RECONNECT_DELAY,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        connect: Optional[Callable[[str], Any]] = None,
    ):
        """
        Initialize relay client.

        Args:
            server: Relay address (http(s)://, ws(s):// or host:port)
            role: "headset" or "phone"
            lang: This device's language
            partner_lang: Headset only, the phone language requested for the room
            room_code: Phone only, the code to join
            profile: Phone only, profile sent with join_room
            on_event: Called with every server message
            on_lang_change: Awaited with the new own language after lang_updated
            on_partner_left: Phone only, awaited when the headset leaves
        """
        self.uri = websocket_url(server)
        self.role = Role(role)
        self.lang = lang
        self.partner_lang = partner_lang
        self.room_code = room_code
        self.profile = profile
        self.on_event = on_event
        self.on_lang_change = on_lang_change
        self.on_partner_left = on_partner_left
        self.reconnect_delay = reconnect_delay
        self.keepalive_interval = keepalive_interval

        if connect is None:
            import websockets

            connect = websockets.connect
        self._connect = connect

        self.running = False
        self.connected = False
        self.partner_connected = False
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []

    # ==========================================================================
    # Outbound
    # ==========================================================================

    def send(self, message: Message) -> bool:
        if not self.connected:
            logger.debug(f"Not connected, dropping {message.to_wire().get('type')}")
            return False
        self._outbox.put_nowait(message.to_wire())
        return True

    def hello(self) -> Optional[Message]:
        """First message after connecting."""
        if self.role is Role.HEADSET:
            return CreateRoom(headset_lang=self.lang, phone_lang=self.partner_lang)
        if self.room_code:
            return JoinRoom(code=self.room_code, phone_lang=self.lang, profile=self.profile)
        return None

    def send_speech(self, text: str) -> bool:
        text = text.strip()
        if not text:
            return False
        return self.send(Speech(text=text, is_final=True))

    def join(self, code: str) -> bool:
        """Phone only: join (or switch to) another room."""
        self.room_code = code
        return self.send(JoinRoom(code=code, phone_lang=self.lang, profile=self.profile))

    def update_lang(self, lang: str) -> bool:
        self.lang = lang
        return self.send(UpdateLang(lang=lang))

    def update_profile(self, profile: dict[str, Any]) -> bool:
        self.profile = {**(self.profile or {}), **profile}
        return self.send(UpdateProfile(profile=profile))

    # ==========================================================================
    # Inbound
    # ==========================================================================

    async def handle(self, raw: str | bytes):
        try:
            message = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Ignoring non-JSON frame from relay")
            return
        if not isinstance(message, dict):
            return

        kind = message.get("type")
        if kind == "ping":
            self.send(Pong())
        elif kind == "room_created":
            self.room_code = message.get("code")
            self.partner_connected = False
            logger.info(f"Room created: {self.room_code}")
        elif kind == "room_joined":
            self.room_code = message.get("code")
            self.partner_connected = True
            logger.info(f"Joined room {self.room_code}")
        elif kind == "phone_connected":
            self.partner_connected = True
            self.partner_lang = message.get("phoneLang", self.partner_lang)
            logger.info("Phone connected")
        elif kind == "phone_disconnected":
            self.partner_connected = False
            logger.info("Phone disconnected")
        elif kind == "headset_disconnected":
            await self._partner_left()
        elif kind == "lang_updated":
            await self._lang_updated(message)
        elif kind == "error":
            logger.warning(f"Relay error: {message.get('message')}")
            if (
                self.role is Role.PHONE
                and not self.partner_connected
                and message.get("message") == ROOM_NOT_FOUND
            ):
                # Unknown code is dropped; an occupied room is retried on reconnect
                self.room_code = None

        if self.on_event:
            self.on_event(message)

    async def _partner_left(self):
        logger.info("Headset left the room")
        self.partner_connected = False
        self.room_code = None
        if self.on_partner_left:
            await self.on_partner_left()

    async def _lang_updated(self, message: dict[str, Any]):
        own_key, partner_key = ("headsetLang", "phoneLang")
        if self.role is Role.PHONE:
            own_key, partner_key = partner_key, own_key
        self.partner_lang = message.get(partner_key, self.partner_lang)

        lang = message.get(own_key)
        if lang and lang != self.lang:
            self.lang = lang
            if self.on_lang_change:
                await self.on_lang_change(lang)

    # ==========================================================================
    # Connection loop
    # ==========================================================================

    async def run(self):
        """Run the relay connection loop until stop()."""
        self.running = True

        while self.running:
            try:
                logger.info(f"Connecting to relay: {self.uri}")
                async with self._connect(self.uri) as ws:
                    await self._session(ws)
            except (ConnectionRefusedError, OSError) as e:
                logger.warning(f"Connection failed: {e}")
            except Exception as e:
                logger.error(f"Relay error: {e}")
            finally:
                self.connected = False
                self.partner_connected = False

            if self.running:
                await asyncio.sleep(self.reconnect_delay)

    async def _session(self, ws):
        self._outbox = asyncio.Queue()
        self.connected = True

        hello = self.hello()
        if hello is not None:
            self.send(hello)

        tasks = self._tasks = [
            asyncio.create_task(self._write(ws)),
            asyncio.create_task(self._read(ws)),
            asyncio.create_task(self._keepalive()),
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        for task in tasks:
            if not task.cancelled() and task.exception():
                raise task.exception()

    async def _write(self, ws):
        while True:
            payload = await self._outbox.get()
            await ws.send(json.dumps(payload))

    async def _read(self, ws):
        async for raw in ws:
            await self.handle(raw)
            if not self.running:
                return

    async def _keepalive(self):
        while True:
            await asyncio.sleep(self.keepalive_interval)
            self.send(Ping())

    def stop(self):
        """Stop the relay client and close the current connection."""
        self.running = False
        for task in self._tasks:
            task.cancel()
