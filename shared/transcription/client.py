"""Async HTTP client for segment transcription."""

import io
import logging
import wave
from typing import Optional

import httpx

from .config import (
    CHANNELS,
    SAMPLE_RATE,
    SAMPLE_WIDTH,
    TRANSCRIPTION_API_KEY,
    TRANSCRIPTION_TIMEOUT,
    TRANSCRIPTION_URL,
)

logger = logging.getLogger(__name__)


class TranscriptionUnavailable(Exception):
    """Transcription failed; the segment is dropped."""


def pcm_to_wav(audio_data: bytes, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Wrap raw 16-bit mono PCM in a WAV container."""
    wav_buffer = io.BytesIO()
    with wave.open(wav_buffer, "wb") as wav:
        wav.setnchannels(CHANNELS)
        wav.setsampwidth(SAMPLE_WIDTH)
        wav.setframerate(sample_rate)
        wav.writeframes(audio_data)
    return wav_buffer.getvalue()


class TranscriptionClient:
    """
    Posts recorded segments to a transcription service.

    Protocol:
        POST {url}/transcribe  multipart: file=<segment.wav>, language=<code>
        200 -> {"text": "..."}
        401/403 -> credentials missing or rejected

    transcribe() returns "" on any failure so the capture pipeline can drop the
    segment silently.
    """

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.url = (url or TRANSCRIPTION_URL).rstrip("/")
        self.api_key = TRANSCRIPTION_API_KEY if api_key is None else api_key
        self.timeout = timeout if timeout is not None else TRANSCRIPTION_TIMEOUT
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client with connection pooling."""
        if self._http is None:
            headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
            self._http = httpx.AsyncClient(timeout=self.timeout, headers=headers)
        return self._http

    async def transcribe(self, audio_data: bytes, language: str) -> str:
        """Transcribe one PCM segment; "" when the service cannot help."""
        if not audio_data:
            return ""

        try:
            return await self._request(audio_data, language)
        except TranscriptionUnavailable as e:
            logger.warning(f"Transcription unavailable: {e}")
            return ""

    async def _request(self, audio_data: bytes, language: str) -> str:
        files = {"file": ("segment.wav", pcm_to_wav(audio_data), "audio/wav")}
        try:
            http = await self._get_http()
            response = await http.post(
                f"{self.url}/transcribe", files=files, data={"language": language}
            )
        except httpx.TimeoutException as e:
            raise TranscriptionUnavailable("timeout") from e
        except Exception as e:
            raise TranscriptionUnavailable(str(e) or type(e).__name__) from e

        if response.status_code in (401, 403):
            raise TranscriptionUnavailable("missing or rejected credentials (set TRANSCRIPTION_API_KEY)")
        if response.status_code != 200:
            raise TranscriptionUnavailable(f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise TranscriptionUnavailable("malformed response") from e

        text = data.get("text", "") if isinstance(data, dict) else ""
        if not isinstance(text, str):
            raise TranscriptionUnavailable("malformed response")
        return text.strip()

    async def close(self):
        """Close HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None
