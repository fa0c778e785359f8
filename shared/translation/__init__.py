"""
Translation Gateway

Translates relayed utterances through an external provider with caching and
soft fallback to the original text.

Usage:
    from shared.translation import get_client

    translated = await get_client().translate("hello there", "en", "fr")
"""

from .cache import CacheEntry, TranslationCache
from .client import TranslationClient, TranslationUnavailable
from .config import ENABLE_TRANSLATION, TRANSLATION_CACHE_TTL, TRANSLATION_TIMEOUT, TRANSLATION_URL

# Singleton instance
_client: TranslationClient | None = None


def get_client() -> TranslationClient:
    """Get singleton TranslationClient instance."""
    global _client
    if _client is None:
        _client = TranslationClient()
    return _client


__all__ = [
    "ENABLE_TRANSLATION",
    "TRANSLATION_CACHE_TTL",
    "TRANSLATION_TIMEOUT",
    "TRANSLATION_URL",
    "CacheEntry",
    "TranslationCache",
    "TranslationClient",
    "TranslationUnavailable",
    "get_client",
]
