"""
Relay wire protocol shared by the relay service and the caption client.

Usage:
    from shared.protocol import Role, parse_client_message, RoomCreated

    msg = parse_client_message(raw_text)      # None if malformed
    await ws.send_json(RoomCreated(code="K7M2X").to_wire())
"""

from .messages import (
    CreateRoom,
    Error,
    HeadsetDisconnected,
    JoinRoom,
    LangUpdated,
    Message,
    PhoneConnected,
    PhoneDisconnected,
    Ping,
    Pong,
    ProfileUpdated,
    ROOM_NOT_FOUND,
    ROOM_OCCUPIED,
    Role,
    RoomCreated,
    RoomJoined,
    Speech,
    SpeechEcho,
    SpeechInterim,
    TranslatedSpeech,
    UpdateLang,
    UpdateProfile,
    parse_client_message,
)

__all__ = [
    "CreateRoom",
    "Error",
    "HeadsetDisconnected",
    "JoinRoom",
    "LangUpdated",
    "Message",
    "PhoneConnected",
    "PhoneDisconnected",
    "Ping",
    "Pong",
    "ProfileUpdated",
    "ROOM_NOT_FOUND",
    "ROOM_OCCUPIED",
    "Role",
    "RoomCreated",
    "RoomJoined",
    "Speech",
    "SpeechEcho",
    "SpeechInterim",
    "TranslatedSpeech",
    "UpdateLang",
    "UpdateProfile",
    "parse_client_message",
]
