#!/usr/bin/env python3
"""
Caption Client - one side of a two-party caption relay session.

Captures this device's speech, turns it into utterances and sends them to the
relay, which translates them for the other party. Captions from the other
party are printed as they arrive.

Usage:
  python caption_client.py --role headset --lang en --partner-lang fr
  python caption_client.py --role phone --room K7M2X --lang fr --name Marie
  python caption_client.py --role phone --room "https://relay:3000/join?room=K7M2X"
  python caption_client.py --mode manual        # push-to-talk with Enter
  python caption_client.py --mode text          # type instead of speaking
  python caption_client.py --list-devices       # show microphones
"""

import os
import sys

# Add project root to path for shared module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import argparse
import asyncio
import contextlib
import logging
from typing import Any, Optional

from shared.languages import DEFAULT_HEADSET_LANG, DEFAULT_PHONE_LANG, LANGUAGES, display_name
from shared.protocol import Role
from shared.transcription import TranscriptionClient
from shared.utils.logging import setup_logging
from src.audio import list_devices
from src.relay import RelayClient, build_join_url, parse_join_code
from src.speech import (
    CaptureMode,
    CapturePipeline,
    ManualStrategy,
    NativeStrategy,
    StreamingRecognizer,
    Utterance,
    VadStrategy,
)
from src.speech.microphone import default_capture_factory

logger = setup_logging(__name__)

TEXT_MODE = "text"


def build_pipeline(
    language: str,
    on_utterance,
    on_interim=None,
    transcriber: Optional[TranscriptionClient] = None,
    asr_host: str = "localhost",
    asr_port: int = 8000,
    device_index: Optional[int] = None,
) -> CapturePipeline:
    """Capture pipeline with all three strategies registered."""
    transcriber = transcriber or TranscriptionClient()
    capture_factory = default_capture_factory(device_index)

    def recognizer(lang: str) -> StreamingRecognizer:
        return StreamingRecognizer(lang, host=asr_host, port=asr_port, capture_factory=capture_factory)

    factories = {
        CaptureMode.NATIVE: lambda p: NativeStrategy(
            p.emit, p.language, recognizer, on_interim=p.preview, on_fatal=p.report_fatal
        ),
        CaptureMode.VAD: lambda p: VadStrategy(
            p.emit, p.language, transcriber, capture_factory=capture_factory
        ),
        CaptureMode.MANUAL: lambda p: ManualStrategy(
            p.emit, p.language, transcriber, capture_factory=capture_factory
        ),
    }
    return CapturePipeline(factories, language, on_utterance, on_interim=on_interim)


class CaptionClient:
    """Relay connection + capture pipeline + console display."""

    def __init__(
        self,
        server: str,
        role: Role,
        lang: str,
        partner_lang: Optional[str] = None,
        room_code: Optional[str] = None,
        profile: Optional[dict[str, Any]] = None,
        mode: str = CaptureMode.NATIVE.value,
        asr_host: str = "localhost",
        asr_port: int = 8000,
        device_index: Optional[int] = None,
        pipeline: Optional[CapturePipeline] = None,
        relay: Optional[RelayClient] = None,
    ):
        self.role = role
        self.mode = mode
        self.relay = relay or RelayClient(
            server,
            role,
            lang,
            partner_lang=partner_lang,
            room_code=room_code,
            profile=profile,
            on_event=self.on_event,
            on_lang_change=self.on_lang_change,
            on_partner_left=self.on_partner_left,
        )
        self.pipeline = pipeline
        if self.pipeline is None and mode != TEXT_MODE:
            self.pipeline = build_pipeline(
                lang,
                self.on_utterance,
                on_interim=self.on_interim,
                asr_host=asr_host,
                asr_port=asr_port,
                device_index=device_index,
            )
        self.join_base = server if "://" in server else f"http://{server}"
        self.running = False

    # ==========================================================================
    # Capture -> relay
    # ==========================================================================

    def on_utterance(self, utterance: Utterance):
        print(f"  you: {utterance.text}")
        self.relay.send_speech(utterance.text)

    def on_interim(self, text: str):
        print(f"  ...  {text}", end="\r", flush=True)

    async def start_capture(self):
        if self.pipeline is None:
            return
        try:
            await self.pipeline.activate(self.mode)
        except Exception as e:
            logger.error(f"Capture failed to start ({self.mode}): {e}")
            print(f"Microphone unavailable ({e}), type your lines instead.")

    async def on_lang_change(self, lang: str):
        print(f"Language changed: now speaking {display_name(lang)}")
        if self.pipeline is not None:
            await self.pipeline.set_language(lang)

    async def on_partner_left(self):
        print("Headset left the session. Type /join CODE to join another room.")
        if self.pipeline is not None:
            await self.pipeline.stop()

    # ==========================================================================
    # Relay -> display
    # ==========================================================================

    def on_event(self, message: dict[str, Any]):
        kind = message.get("type")
        if kind == "room_created":
            code = message.get("code")
            print(f"Room code: {code}")
            print(f"Join URL:  {build_join_url(self.join_base, code)}")
        elif kind == "room_joined":
            print(f"Joined {message.get('code')}: they speak {display_name(message.get('headsetLang', ''))}")
        elif kind == "phone_connected":
            name = (message.get("profile") or {}).get("name") or "Companion"
            print(f"{name} connected ({display_name(message.get('phoneLang', ''))})")
        elif kind == "phone_disconnected":
            print("Companion disconnected")
        elif kind == "profile_updated":
            profile = message.get("profile") or {}
            print(f"Profile: {profile.get('name') or '-'} ({profile.get('relationship') or '-'})")
        elif kind == "translated_speech":
            original, translated = message.get("original", ""), message.get("translated", "")
            suffix = f"  ({original})" if original != translated else ""
            print(f" them: {translated}{suffix}")
        elif kind == "error":
            print(f"Error: {message.get('message')}")

    # ==========================================================================
    # Console input
    # ==========================================================================

    async def handle_line(self, line: str) -> bool:
        """Handle one console line. Returns False to quit."""
        line = line.strip()
        if line in ("/quit", "/exit"):
            return False

        if line.startswith("/join"):
            code = parse_join_code(line[len("/join"):])
            if code and self.role is Role.PHONE:
                self.relay.join(code)
                await self.start_capture()
            return True

        if line.startswith("/lang"):
            lang = line[len("/lang"):].strip()
            if lang:
                self.relay.update_lang(lang)
                if self.pipeline is not None:
                    await self.pipeline.set_language(lang)
            return True

        strategy = self.pipeline.strategy if self.pipeline else None
        if isinstance(strategy, ManualStrategy) and not line:
            if strategy.recording:
                strategy.release()
                print("  (sent for transcription)")
            elif strategy.press():
                print("  (recording, press Enter to stop)")
            return True

        if line:
            self.relay.send_speech(line)
        return True

    async def _read_console(self):
        loop = asyncio.get_running_loop()
        while self.running:
            line = await loop.run_in_executor(None, sys.stdin.readline)
            if not line:
                break
            if not await self.handle_line(line):
                break

    async def run(self):
        self.running = True
        relay_task = asyncio.create_task(self.relay.run())
        await self.start_capture()
        try:
            await self._read_console()
        finally:
            self.running = False
            if self.pipeline is not None:
                await self.pipeline.stop()
            self.relay.stop()
            relay_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await relay_task


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Caption Client v1.0")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.HEADSET.value)
    parser.add_argument("--server", default="localhost:3000", help="Relay address (default: localhost:3000)")
    parser.add_argument("--lang", help="Language you speak (default: en for headset, es for phone)")
    parser.add_argument("--partner-lang", help="Headset only: language of the other party")
    parser.add_argument("--room", help="Phone only: room code or join URL")
    parser.add_argument("--name", default="", help="Phone only: your name, shown on the headset")
    parser.add_argument("--relationship", default="", help="Phone only: relationship to the headset wearer")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in CaptureMode] + [TEXT_MODE],
        default=CaptureMode.NATIVE.value,
        help="Capture strategy (default: native, falls back to vad)",
    )
    parser.add_argument("--asr-host", default="localhost", help="Streaming ASR host for native mode")
    parser.add_argument("--asr-port", type=int, default=8000, help="Streaming ASR port for native mode")
    parser.add_argument("--device", type=int, help="Microphone device index")
    parser.add_argument("--list-devices", action="store_true", help="List available microphones")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_devices:
        list_devices()
        return

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)

    role = Role(args.role)
    default_lang = DEFAULT_HEADSET_LANG if role is Role.HEADSET else DEFAULT_PHONE_LANG
    lang = args.lang or default_lang
    room_code = parse_join_code(args.room) if role is Role.PHONE else None
    if args.room and role is Role.PHONE and not room_code:
        parser.error(f"could not read a room code from {args.room!r}")

    profile = None
    if role is Role.PHONE:
        profile = {"name": args.name, "relationship": args.relationship, "phoneLang": lang}

    # Print startup banner (ASCII only for Windows console compatibility)
    print("+======================================+")
    print("|        Caption Client v1.0           |")
    print("+======================================+")
    print(f"Role: {role.value}")
    print(f"Language: {display_name(lang)}")
    if role is Role.HEADSET and args.partner_lang:
        print(f"Partner: {display_name(args.partner_lang)}")
    if room_code:
        print(f"Room: {room_code}")
    print(f"Relay: {args.server}")
    print(f"Mode: {args.mode}")
    if args.mode == CaptureMode.NATIVE.value:
        print(f"ASR: ws://{args.asr_host}:{args.asr_port}/stream")
    print()
    print(f"Languages: {', '.join(LANGUAGES)}")
    print("Commands: /lang CODE, /join CODE, /quit")
    if args.mode == CaptureMode.MANUAL.value:
        print("Push-to-talk: press Enter to start, Enter again to stop")
    print()

    client = CaptionClient(
        server=args.server,
        role=role,
        lang=lang,
        partner_lang=args.partner_lang,
        room_code=room_code,
        profile=profile,
        mode=args.mode,
        asr_host=args.asr_host,
        asr_port=args.asr_port,
        device_index=args.device,
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(client.run())


if __name__ == "__main__":
    main()
