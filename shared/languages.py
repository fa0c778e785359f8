"""
Supported conversation languages.

Each entry maps the short code used on the wire to a display name, the
recognizer locale, and the code the translation provider expects.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Language:
    code: str
    name: str
    speech_locale: str
    provider_code: str


LANGUAGES: dict[str, Language] = {
    "en": Language("en", "English", "en-US", "en"),
    "es": Language("es", "Spanish", "es-ES", "es"),
    "fr": Language("fr", "French", "fr-FR", "fr"),
    "zh": Language("zh", "Mandarin Chinese", "zh-CN", "zh-CN"),
    "pt": Language("pt", "Portuguese", "pt-BR", "pt"),
}

DEFAULT_HEADSET_LANG = "en"
DEFAULT_PHONE_LANG = "es"


def provider_code(lang: str) -> str:
    """Translation provider code for a wire code (unknown codes pass through)."""
    entry = LANGUAGES.get(lang)
    return entry.provider_code if entry else lang


def speech_locale(lang: str) -> str:
    """Recognizer locale for a wire code, defaulting to en-US."""
    entry = LANGUAGES.get(lang)
    return entry.speech_locale if entry else "en-US"


def display_name(lang: str) -> str:
    entry = LANGUAGES.get(lang)
    return entry.name if entry else lang
