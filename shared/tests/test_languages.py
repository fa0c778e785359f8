"""Tests for the supported language table."""

import pytest

from shared.languages import (
    DEFAULT_HEADSET_LANG,
    DEFAULT_PHONE_LANG,
    LANGUAGES,
    display_name,
    provider_code,
    speech_locale,
)


class TestLanguageTable:
    """Tests for language lookups."""

    def test_supported_codes(self):
        """Test the five conversation languages are present."""
        assert set(LANGUAGES) == {"en", "es", "fr", "zh", "pt"}

    def test_defaults(self):
        """Test headset and phone defaults."""
        assert DEFAULT_HEADSET_LANG == "en"
        assert DEFAULT_PHONE_LANG == "es"

    @pytest.mark.parametrize(
        ("code", "expected"),
        [("en", "en"), ("zh", "zh-CN"), ("pt", "pt"), ("de", "de")],
    )
    def test_provider_code(self, code, expected):
        """Test provider codes, passing unknown codes through."""
        assert provider_code(code) == expected

    @pytest.mark.parametrize(
        ("code", "expected"),
        [("en", "en-US"), ("es", "es-ES"), ("fr", "fr-FR"), ("zh", "zh-CN"), ("pt", "pt-BR"), ("xx", "en-US")],
    )
    def test_speech_locale(self, code, expected):
        """Test recognizer locales, defaulting to en-US."""
        assert speech_locale(code) == expected

    def test_display_name(self):
        """Test display names fall back to the code."""
        assert display_name("fr") == "French"
        assert display_name("de") == "de"
