# Managers module exports
from managers.state_store import StateStore, MemoryStateStore
from managers.command_relay import send_command, MEDIA_KEYS, PLAY_PAUSE, NEXT, PREVIOUS
from managers.callback_server import RedirectReceiver

__all__ = [
    # State store
    "StateStore",
    "MemoryStateStore",
    # Command relay
    "send_command",
    "MEDIA_KEYS",
    "PLAY_PAUSE",
    "NEXT",
    "PREVIOUS",
    # Redirect receiver
    "RedirectReceiver",
]
