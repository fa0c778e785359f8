"""
Room Registry - table of active relay sessions keyed by join code.

The registry is an explicit object (no module-level table) so each test and
each app instance gets its own rooms.
"""

import logging
import secrets
from collections.abc import Callable, MutableMapping
from typing import Any

from shared.languages import DEFAULT_HEADSET_LANG, DEFAULT_PHONE_LANG
from shared.protocol import (
    ROOM_NOT_FOUND,
    ROOM_OCCUPIED,
    HeadsetDisconnected,
    PhoneDisconnected,
    Role,
)

from connection import Connection
from relay_session import RelaySession, RoomSnapshot, merge_profile

logger = logging.getLogger(__name__)

# No I/O/0/1: codes are read off a headset display and typed on a phone
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5
MAX_CODE_ATTEMPTS = 100


# ==============================================================================
# Errors
# ==============================================================================


class RelayError(Exception):
    """Control-plane error reported to the requesting client as error{message}."""

    message = "Relay error."

    def __init__(self, message: str | None = None):
        if message:
            self.message = message
        super().__init__(self.message)


class RoomNotFound(RelayError):
    message = ROOM_NOT_FOUND


class RoomOccupied(RelayError):
    message = ROOM_OCCUPIED


class AlreadyInRoom(RelayError):
    message = "You are already in this room."


class RegistryExhausted(RelayError):
    message = "No free room codes right now. Try again."


def generate_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_code(code: str) -> str:
    return code.strip().upper()


# ==============================================================================
# Registry
# ==============================================================================


class RoomRegistry:
    """
    Owns room lifecycle: create, pair, teardown.

    Args:
        rooms: Backing map of code -> session (a plain dict by default)
        code_factory: Produces candidate codes
        max_attempts: Candidate codes tried before RegistryExhausted
    """

    def __init__(
        self,
        rooms: MutableMapping[str, RelaySession] | None = None,
        code_factory: Callable[[], str] = generate_code,
        max_attempts: int = MAX_CODE_ATTEMPTS,
    ):
        self._rooms = rooms if rooms is not None else {}
        self._code_factory = code_factory
        self._max_attempts = max_attempts

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code: str) -> bool:
        return code in self._rooms

    def get(self, code: str) -> RelaySession | None:
        return self._rooms.get(normalize_code(code))

    def lookup(self, connection: Connection) -> RelaySession | None:
        """Session the connection is bound to, if it is still a member."""
        if connection.room_code is None:
            return None
        session = self._rooms.get(connection.room_code)
        if session is None:
            return None
        if connection is not session.headset and connection is not session.phone:
            return None
        return session

    def _new_code(self) -> str:
        for _ in range(self._max_attempts):
            code = self._code_factory()
            if code not in self._rooms:
                return code
        logger.error(f"No unique room code after {self._max_attempts} attempts ({len(self)} rooms)")
        raise RegistryExhausted()

    async def create_room(
        self,
        connection: Connection,
        headset_lang: str | None = None,
        phone_lang: str | None = None,
    ) -> RelaySession:
        """Create a room with the connection as its headset."""
        # A connection owns at most one room
        await self.teardown(connection)

        code = self._new_code()
        headset_lang = headset_lang or DEFAULT_HEADSET_LANG
        phone_lang = phone_lang or DEFAULT_PHONE_LANG
        session = RelaySession(
            code=code,
            headset=connection,
            headset_lang=headset_lang,
            phone_lang=phone_lang,
            profile={"name": "", "relationship": "", "phoneLang": phone_lang},
        )
        self._rooms[code] = session
        connection.bind(code, Role.HEADSET)
        logger.info(f"Room {code} created ({headset_lang} <-> {phone_lang}), {len(self)} active")
        return session

    async def join_room(
        self,
        connection: Connection,
        code: str,
        phone_lang: str | None = None,
        profile: dict[str, Any] | None = None,
    ) -> RoomSnapshot:
        """Attach the connection as the room's phone."""
        code = normalize_code(code)
        self._check_joinable(code)
        if connection.room_code == code:
            raise AlreadyInRoom()

        if connection.is_bound:
            await self.teardown(connection)

        session = self._check_joinable(code)
        async with session.lock:
            # Re-check: the slot may have been taken while we held no lock
            if session.phone is not None:
                raise RoomOccupied()
            if self._rooms.get(code) is not session:
                raise RoomNotFound()

            session.phone = connection
            connection.bind(code, Role.PHONE)
            if profile:
                session.profile = merge_profile(session.profile, profile)
            if phone_lang:
                session.phone_lang = phone_lang
                if not (profile and profile.get("phoneLang")):
                    session.profile["phoneLang"] = phone_lang

            logger.info(f"Room {code}: phone joined ({session.phone_lang})")
            return session.snapshot()

    def _check_joinable(self, code: str) -> RelaySession:
        session = self._rooms.get(code)
        if session is None:
            raise RoomNotFound()
        if session.phone is not None:
            raise RoomOccupied()
        return session

    async def teardown(self, connection: Connection) -> None:
        """
        Detach a connection from its room.

        Headset leaving destroys the room and tells the phone. Phone leaving
        empties the phone slot and tells the headset; the room waits for a new
        phone.
        """
        session = self.lookup(connection)
        role = connection.role
        connection.unbind()
        if session is None:
            return

        async with session.lock:
            if role is Role.HEADSET:
                if self._rooms.get(session.code) is session:
                    del self._rooms[session.code]
                phone = session.phone
                session.phone = None
                logger.info(f"Room {session.code} closed (headset left), {len(self)} active")
                if phone is not None:
                    phone.unbind()
                    await phone.send(HeadsetDisconnected())
            else:
                if session.phone is connection:
                    session.phone = None
                logger.info(f"Room {session.code}: phone left")
                await session.headset.send(PhoneDisconnected())
