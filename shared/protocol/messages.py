"""
Relay wire protocol.

Every frame is a JSON object with a ``type`` field. Field names are camelCase
on the wire and snake_case in Python.

Client -> Server:
    create_room{headsetLang, phoneLang}
    join_room{code, phoneLang, profile}
    update_profile{profile}
    update_lang{lang}
    speech{text, isFinal}
    ping{} / pong{}

Server -> Client:
    room_created{code}
    room_joined{code, headsetLang, phoneLang, profile}
    phone_connected{profile, phoneLang}
    phone_disconnected{} / headset_disconnected{}
    profile_updated{profile}
    lang_updated{headsetLang, phoneLang}
    translated_speech{original, translated, from}
    speech_interim{text}
    speech_echo{text, role}
    error{message}
    pong{} / ping{}
"""

import json
import logging
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Which device a connection speaks for."""

    HEADSET = "headset"
    PHONE = "phone"

    @property
    def counterpart(self) -> "Role":
        return Role.PHONE if self is Role.HEADSET else Role.HEADSET


class Message(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to the camelCase dict sent over the socket."""
        return self.model_dump(mode="json", by_alias=True)


# ==============================================================================
# Client -> Server
# ==============================================================================


class CreateRoom(Message):
    type: Literal["create_room"] = "create_room"
    headset_lang: str | None = None
    phone_lang: str | None = None


class JoinRoom(Message):
    type: Literal["join_room"] = "join_room"
    code: str
    phone_lang: str | None = None
    profile: dict[str, Any] | None = None


class UpdateProfile(Message):
    type: Literal["update_profile"] = "update_profile"
    profile: dict[str, Any]


class UpdateLang(Message):
    type: Literal["update_lang"] = "update_lang"
    lang: str = Field(min_length=1)


class Speech(Message):
    type: Literal["speech"] = "speech"
    text: str
    is_final: bool = False


class Ping(Message):
    type: Literal["ping"] = "ping"


class Pong(Message):
    type: Literal["pong"] = "pong"


ClientMessage = Annotated[
    Union[CreateRoom, JoinRoom, UpdateProfile, UpdateLang, Speech, Ping, Pong],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes | dict[str, Any]) -> Message | None:
    """
    Parse an inbound frame.

    Returns None for anything that is not valid JSON, has an unknown type, or
    is missing required fields. Callers drop those frames without replying.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("Dropping non-JSON frame")
            return None

    if not isinstance(raw, dict):
        return None

    try:
        return _client_message_adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug(f"Dropping malformed {raw.get('type')!r} frame: {e.error_count()} error(s)")
        return None


# ==============================================================================
# Server -> Client
# ==============================================================================


class RoomCreated(Message):
    type: Literal["room_created"] = "room_created"
    code: str


class RoomJoined(Message):
    type: Literal["room_joined"] = "room_joined"
    code: str
    headset_lang: str
    phone_lang: str
    profile: dict[str, Any]


class PhoneConnected(Message):
    type: Literal["phone_connected"] = "phone_connected"
    profile: dict[str, Any]
    phone_lang: str


class PhoneDisconnected(Message):
    type: Literal["phone_disconnected"] = "phone_disconnected"


class HeadsetDisconnected(Message):
    type: Literal["headset_disconnected"] = "headset_disconnected"


class ProfileUpdated(Message):
    type: Literal["profile_updated"] = "profile_updated"
    profile: dict[str, Any]


class LangUpdated(Message):
    type: Literal["lang_updated"] = "lang_updated"
    headset_lang: str
    phone_lang: str


class TranslatedSpeech(Message):
    type: Literal["translated_speech"] = "translated_speech"
    original: str
    translated: str
    from_: Role = Field(alias="from")


class SpeechInterim(Message):
    type: Literal["speech_interim"] = "speech_interim"
    text: str


class SpeechEcho(Message):
    type: Literal["speech_echo"] = "speech_echo"
    text: str
    role: Role


class Error(Message):
    type: Literal["error"] = "error"
    message: str


# error{message} texts a client acts on
ROOM_NOT_FOUND = "Room not found. Check the code."
ROOM_OCCUPIED = "Room is already occupied."
