"""Caption Client - one device's side of a caption relay session.

Modular structure:
- src.audio: Microphone capture and speech-band level analysis
- src.speech: Capture pipeline (native, vad, manual strategies)
- src.relay: Relay WebSocket client and join codes
"""

__version__ = "1.0"
