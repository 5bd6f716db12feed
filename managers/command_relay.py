import logging
import sys

logger = logging.getLogger(__name__)

PLAY_PAUSE = "PlayPause"
NEXT = "Next"
PREVIOUS = "Previous"

# Windows virtual-key codes for the media keys.
MEDIA_KEYS = {
    PLAY_PAUSE: 0xB3,  # VK_MEDIA_PLAY_PAUSE
    NEXT: 0xB0,  # VK_MEDIA_NEXT_TRACK
    PREVIOUS: 0xB1,  # VK_MEDIA_PREV_TRACK
}

KEYEVENTF_KEYUP = 0x0002


def is_supported_platform(platform: str = None) -> bool:
    return (platform or sys.platform).startswith("win")


def _press_windows_key(vk_code: int) -> None:
    import ctypes

    user32 = ctypes.windll.user32
    user32.keybd_event(vk_code, 0, 0, 0)
    user32.keybd_event(vk_code, 0, KEYEVENTF_KEYUP, 0)


def send_command(kind: str, *, press_key=None, platform: str = None) -> bool:
    """Press the media key for ``kind`` so the desktop player reacts.

    Fire and forget: there is no way to tell whether the player handled it.
    Returns False when the key could not be injected; failures are logged and
    never affect polling or authentication.
    """
    if kind not in MEDIA_KEYS:
        raise ValueError(f"Unknown playback command: {kind!r} (expected one of {sorted(MEDIA_KEYS)})")

    if press_key is None:
        if not is_supported_platform(platform):
            logger.warning(
                "Media key injection is only implemented on Windows; '%s' was not sent on %s",
                kind,
                platform or sys.platform,
            )
            return False
        press_key = _press_windows_key

    try:
        press_key(MEDIA_KEYS[kind])
    except Exception as e:
        logger.error("Error sending %s command: %s", kind, e)
        return False

    logger.debug("Sent %s media key", kind)
    return True
