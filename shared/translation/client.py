"""Async HTTP client for the translation provider."""

import logging
from typing import Optional

import httpx

from shared.languages import provider_code

from .cache import TranslationCache
from .config import ENABLE_TRANSLATION, TRANSLATION_TIMEOUT, TRANSLATION_URL

logger = logging.getLogger(__name__)


class TranslationUnavailable(Exception):
    """Provider call failed. Raised internally only, never out of translate()."""


class TranslationClient:
    """
    MyMemory-compatible translation client with a shared TTL cache.

    translate() always succeeds from the caller's point of view: on any provider
    failure it returns the original text, so captions keep flowing when the
    provider is down.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        enabled: bool | None = None,
        cache: TranslationCache | None = None,
    ):
        self.url = url or TRANSLATION_URL
        self.timeout = timeout if timeout is not None else TRANSLATION_TIMEOUT
        self.enabled = ENABLE_TRANSLATION if enabled is None else enabled
        self.cache = cache if cache is not None else TranslationCache()
        self._http: Optional[httpx.AsyncClient] = None

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-init HTTP client with connection pooling."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        return self._http

    async def translate(self, text: str, from_lang: str, to_lang: str) -> str:
        """Translate text, returning the input unchanged on any failure."""
        if not text or not text.strip():
            return text
        if from_lang == to_lang:
            return text

        key = (provider_code(from_lang), provider_code(to_lang), text)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if not self.enabled:
            return text

        try:
            translated = await self._request(*key)
        except TranslationUnavailable as e:
            logger.warning(f"Translation {key[0]}->{key[1]} unavailable: {e}")
            return text

        self.cache.set(key, translated)
        return translated

    async def _request(self, from_code: str, to_code: str, text: str) -> str:
        try:
            http = await self._get_http()
            response = await http.get(
                self.url, params={"q": text, "langpair": f"{from_code}|{to_code}"}
            )
            if response.status_code != 200:
                raise TranslationUnavailable(f"HTTP {response.status_code}")
            data = response.json()
        except TranslationUnavailable:
            raise
        except httpx.TimeoutException as e:
            raise TranslationUnavailable("timeout") from e
        except Exception as e:
            raise TranslationUnavailable(str(e) or type(e).__name__) from e

        if not isinstance(data, dict):
            raise TranslationUnavailable("malformed response")

        status = data.get("responseStatus")
        if status != 200 and str(status) != "200":
            raise TranslationUnavailable(f"provider status {status}")

        translated = (data.get("responseData") or {}).get("translatedText")
        if not isinstance(translated, str) or not translated:
            raise TranslationUnavailable("missing translatedText")
        return translated

    async def close(self):
        """Close HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None
