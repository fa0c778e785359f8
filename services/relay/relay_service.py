"""
Caption Relay Service - Headset/Phone Pairing and Translated Speech Relay

Pairs one AR headset with one phone per room and relays each side's final
utterances to the other, translated into the listener's language.

Endpoints:
- GET  /health          - Health check
- POST /api/translate   - One-off translation
- WS   /ws              - Relay protocol

Protocol:
1. Headset connects to /ws and sends {"type": "create_room", ...}
2. Server replies {"type": "room_created", "code": "K7M2X"}
3. Phone connects and sends {"type": "join_room", "code": "K7M2X", ...}
4. Either side sends {"type": "speech", "text": "...", "isFinal": true}
5. Other side receives {"type": "translated_speech", "original", "translated", "from"}
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared.translation import TranslationClient, get_client
from shared.utils import setup_logging

from connection import Connection
from liveness import LivenessMonitor, transport_keepalive
from room_registry import RoomRegistry
from router import MessageRouter

# Configure logging
logger = setup_logging(__name__)

# ==============================================================================
# Configuration
# ==============================================================================

RELAY_HOST = os.getenv("RELAY_HOST", "0.0.0.0")
RELAY_PORT = int(os.getenv("RELAY_PORT", "3000"))
HEARTBEAT_INTERVAL = float(os.getenv("HEARTBEAT_INTERVAL", "30"))
__version__ = "1.0"


# ==============================================================================
# Request/Response Models
# ==============================================================================


class TranslateRequest(BaseModel):
    text: str | None = None
    from_lang: str | None = Field(default=None, alias="from")
    to_lang: str | None = Field(default=None, alias="to")


class TranslateResponse(BaseModel):
    translation: str
    original: str


# ==============================================================================
# FastAPI Application
# ==============================================================================


def create_app(
    registry: RoomRegistry | None = None,
    translator: TranslationClient | None = None,
    heartbeat_interval: float = HEARTBEAT_INTERVAL,
) -> FastAPI:
    """Build the relay app around its own registry and translator."""
    registry = registry if registry is not None else RoomRegistry()
    translator = translator if translator is not None else get_client()
    router = MessageRouter(registry, translator.translate)
    monitor = LivenessMonitor(on_dead=registry.teardown, interval=heartbeat_interval)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown."""
        monitor.start()
        logger.info(f"Relay ready (translation: {translator.url}, enabled={translator.enabled})")
        yield
        await monitor.stop()
        await translator.close()

    app = FastAPI(
        title="Caption Relay Service",
        description="Pairs a headset and a phone and relays translated captions",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.registry = registry
    app.state.router = router
    app.state.monitor = monitor
    app.state.translator = translator

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "rooms": len(registry),
            "connections": len(monitor),
            "idle_connections": monitor.idle,
            "heartbeat_interval": monitor.interval,
            "version": __version__,
            "translation": {
                "enabled": translator.enabled,
                "url": translator.url,
                "cached": len(translator.cache),
            },
        }

    @app.post("/api/translate", response_model=TranslateResponse)
    async def translate(request: TranslateRequest):
        """Translate text outside a room. Falls back to the original text."""
        if not request.text or not request.from_lang or not request.to_lang:
            return JSONResponse(
                status_code=400, content={"error": "text, from, and to are required"}
            )
        translation = await translator.translate(request.text, request.from_lang, request.to_lang)
        return TranslateResponse(translation=translation, original=request.text)

    @app.websocket("/ws")
    async def relay_socket(websocket: WebSocket):
        """
        Relay endpoint.

        Frames from one socket are handled strictly one after another, so a
        speaker's utterances are translated and delivered in order.
        """
        await websocket.accept()
        connection = Connection(send=websocket.send_json, close=websocket.close)
        monitor.register(connection)
        logger.info(f"{connection.name} connected ({len(monitor)} open)")

        try:
            while True:
                data = await websocket.receive()
                if data["type"] == "websocket.disconnect":
                    break

                raw = data.get("text")
                if raw is None:
                    raw = data.get("bytes")
                if raw is None:
                    continue

                await router.handle(connection, raw)

        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"{connection.name} error: {e}")
        finally:
            connection.open = False
            monitor.unregister(connection)
            await registry.teardown(connection)
            logger.info(f"{connection.name} disconnected ({len(monitor)} open)")

    return app


app = create_app()


# ==============================================================================
# Main Entry Point
# ==============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=RELAY_HOST,
        port=RELAY_PORT,
        **transport_keepalive(HEARTBEAT_INTERVAL),
    )
