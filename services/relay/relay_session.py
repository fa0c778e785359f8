"""
Relay Session - the per-room two-endpoint state machine.

A session always has its headset. The phone slot is empty until a phone
joins and is emptied again when that phone leaves.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from shared.protocol import (
    LangUpdated,
    Message,
    ProfileUpdated,
    Role,
    SpeechEcho,
    TranslatedSpeech,
)

from connection import Connection

logger = logging.getLogger(__name__)

# (text, from_lang, to_lang) -> translated text; must never raise
Translator = Callable[[str, str, str], Awaitable[str]]


def merge_profile(profile: dict[str, Any], update: dict[str, Any] | None) -> dict[str, Any]:
    """Field-wise last-write-wins merge. None values do not overwrite."""
    merged = dict(profile)
    for key, value in (update or {}).items():
        if value is not None:
            merged[key] = value
    return merged


@dataclass
class RoomSnapshot:
    code: str
    headset_lang: str
    phone_lang: str
    profile: dict[str, Any]


@dataclass(eq=False)
class RelaySession:
    code: str
    headset: Connection
    headset_lang: str
    phone_lang: str
    profile: dict[str, Any]
    phone: Connection | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def endpoint(self, role: Role) -> Connection | None:
        return self.headset if role is Role.HEADSET else self.phone

    def lang_for(self, role: Role) -> str:
        return self.headset_lang if role is Role.HEADSET else self.phone_lang

    def snapshot(self) -> RoomSnapshot:
        return RoomSnapshot(
            code=self.code,
            headset_lang=self.headset_lang,
            phone_lang=self.phone_lang,
            profile=dict(self.profile),
        )

    async def broadcast(self, message: Message) -> None:
        """Send to both endpoints (the phone only if attached)."""
        for conn in (self.headset, self.phone):
            if conn is not None:
                await conn.send(message)

    async def update_profile(self, update: dict[str, Any]) -> None:
        async with self.lock:
            self.profile = merge_profile(self.profile, update)
            await self.broadcast(ProfileUpdated(profile=self.profile))

    async def update_lang(self, role: Role, lang: str) -> None:
        async with self.lock:
            if role is Role.HEADSET:
                self.headset_lang = lang
            else:
                self.phone_lang = lang
            logger.info(f"Room {self.code}: {role.value} language -> {lang}")
            await self.broadcast(
                LangUpdated(headset_lang=self.headset_lang, phone_lang=self.phone_lang)
            )

    async def relay_speech(self, speaker: Role, text: str, translate: Translator) -> None:
        """
        Translate a final utterance for the counterpart and echo it to the speaker.

        The caller awaits this before reading the speaker's next frame, which
        keeps one speaker's utterances in order.
        """
        sender = self.endpoint(speaker)
        counterpart = self.endpoint(speaker.counterpart)
        from_lang = self.lang_for(speaker)
        to_lang = self.lang_for(speaker.counterpart)

        if counterpart is not None:
            translated = await translate(text, from_lang, to_lang)
            await counterpart.send(
                TranslatedSpeech(original=text, translated=translated, from_=speaker)
            )
            logger.debug(f"Room {self.code}: relayed {speaker.value} utterance {from_lang}->{to_lang}")

        if sender is not None:
            await sender.send(SpeechEcho(text=text, role=speaker))
