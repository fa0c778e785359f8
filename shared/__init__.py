"""
Shared Modules for the Caption Relay

Provides common functionality for the relay service and the caption client:
- protocol: Wire messages and the headset/phone Role
- translation: Cached, fail-soft translation client
- transcription: Segment transcription client
- languages: Supported language table
- utils: Logging setup

Usage:
    from shared.protocol import Role, parse_client_message
    from shared.utils import setup_logging

    logger = setup_logging(__name__)
"""

from .languages import LANGUAGES, provider_code, speech_locale
from .protocol import Role, parse_client_message
from .utils import get_logger, setup_logging

__all__ = [
    "LANGUAGES",
    "Role",
    "get_logger",
    "parse_client_message",
    "provider_code",
    "setup_logging",
    "speech_locale",
]

__version__ = "1.0.0"
