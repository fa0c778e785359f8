"""Microphone enumeration for --list-devices."""

import logging

logger = logging.getLogger(__name__)


def list_devices():
    """Print available microphone input devices."""
    print("\n" + "=" * 65)
    print("MICROPHONE DEVICES (for --device N)")
    print("=" * 65)

    try:
        import pyaudio
    except ImportError:
        print("  (pyaudio not installed)")
        print("\n💡 Install microphone support:")
        print("   pip install 'caption-relay[audio]'")
        return

    try:
        p = pyaudio.PyAudio()
        default_index = None
        try:
            default_index = p.get_default_input_device_info()["index"]
        except Exception as e:
            logger.debug(f"No default input device: {e}")

        for i in range(p.get_device_count()):
            info = p.get_device_info_by_index(i)
            if info["maxInputChannels"] > 0:
                name = info["name"]
                rate = int(info["defaultSampleRate"])
                marker = " ★ DEFAULT" if i == default_index else ""
                print(f"  [{i:2d}] {name} ({rate}Hz){marker}")

        p.terminate()
    except Exception as e:
        print(f"  Error listing microphones: {e}")
