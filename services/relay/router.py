"""Dispatch of inbound relay frames to the registry and room sessions."""

import logging

from shared.protocol import (
    CreateRoom,
    Error,
    JoinRoom,
    PhoneConnected,
    Ping,
    Pong,
    RoomCreated,
    RoomJoined,
    Speech,
    SpeechInterim,
    UpdateLang,
    UpdateProfile,
    parse_client_message,
)

from connection import Connection
from relay_session import Translator
from room_registry import RelayError, RoomRegistry

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes one connection's frames.

    | Frame          | Needs room | Effect                                        |
    |----------------|------------|-----------------------------------------------|
    | create_room    | no         | new room, room_created to sender              |
    | join_room      | no         | room_joined to phone, phone_connected to head |
    | update_profile | yes        | profile_updated to both                       |
    | update_lang    | yes        | lang_updated to both                          |
    | speech interim | yes        | speech_interim to sender only                 |
    | speech final   | yes        | translated_speech to other, speech_echo back  |
    | ping           | no         | pong to sender                                |

    Frames that fail validation, or need a room the sender does not have, are
    dropped without a reply.
    """

    def __init__(self, registry: RoomRegistry, translate: Translator):
        self.registry = registry
        self.translate = translate

    async def handle(self, connection: Connection, raw: str | bytes) -> None:
        connection.mark_alive()

        message = parse_client_message(raw)
        if message is None:
            return

        if isinstance(message, Ping):
            await connection.send(Pong())
        elif isinstance(message, Pong):
            pass
        elif isinstance(message, CreateRoom):
            await self._create_room(connection, message)
        elif isinstance(message, JoinRoom):
            await self._join_room(connection, message)
        else:
            await self._room_event(connection, message)

    async def _create_room(self, connection: Connection, message: CreateRoom) -> None:
        try:
            session = await self.registry.create_room(
                connection, message.headset_lang, message.phone_lang
            )
        except RelayError as e:
            await connection.send(Error(message=e.message))
            return
        await connection.send(RoomCreated(code=session.code))

    async def _join_room(self, connection: Connection, message: JoinRoom) -> None:
        try:
            snapshot = await self.registry.join_room(
                connection, message.code, message.phone_lang, message.profile
            )
        except RelayError as e:
            logger.info(f"{connection.name}: join {message.code!r} refused: {e.message}")
            await connection.send(Error(message=e.message))
            return

        await connection.send(
            RoomJoined(
                code=snapshot.code,
                headset_lang=snapshot.headset_lang,
                phone_lang=snapshot.phone_lang,
                profile=snapshot.profile,
            )
        )
        session = self.registry.get(snapshot.code)
        if session is not None:
            await session.headset.send(
                PhoneConnected(profile=snapshot.profile, phone_lang=snapshot.phone_lang)
            )

    async def _room_event(self, connection: Connection, message) -> None:
        session = self.registry.lookup(connection)
        if session is None or connection.role is None:
            logger.debug(f"{connection.name}: {message.type} before joining a room, dropped")
            return

        if isinstance(message, UpdateProfile):
            await session.update_profile(message.profile)
        elif isinstance(message, UpdateLang):
            await session.update_lang(connection.role, message.lang)
        elif isinstance(message, Speech):
            if not message.is_final or not message.text.strip():
                await connection.send(SpeechInterim(text=message.text))
                return
            await session.relay_speech(connection.role, message.text, self.translate)
