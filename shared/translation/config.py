"""Configuration for the translation client."""

import os

TRANSLATION_URL = os.getenv("TRANSLATION_URL", "https://api.mymemory.translated.net/get")
ENABLE_TRANSLATION = os.getenv("ENABLE_TRANSLATION", "true").lower() == "true"
TRANSLATION_TIMEOUT = float(os.getenv("TRANSLATION_TIMEOUT", "5.0"))
TRANSLATION_CACHE_TTL = float(os.getenv("TRANSLATION_CACHE_TTL", "600"))  # 10 minutes
