"""Spotify Web API integration for the now-playing widget (OAuth PKCE + polling).

Consumers:
- menus/ (interactive auth + widget display)
- managers/callback_server.py (redirect channel feeds SpotifyPKCEAuth.handle_callback)
"""

from .auth import AuthenticationError, AuthSessionExpired, ConfigurationError, SpotifyPKCEAuth
from .client import SpotifyAPIError, SpotifyClient
from .now_playing import NowPlayingPoller, TrackSnapshot
from .session import WidgetSession
from .token_manager import Credential, TokenManager

__all__ = [
    "AuthenticationError",
    "AuthSessionExpired",
    "ConfigurationError",
    "Credential",
    "NowPlayingPoller",
    "SpotifyAPIError",
    "SpotifyClient",
    "SpotifyPKCEAuth",
    "TokenManager",
    "TrackSnapshot",
    "WidgetSession",
]
