"""Currently-playing polling.

The poller turns whatever the world looks like (no token, expired token,
nothing playing, network trouble) into a ``TrackSnapshot`` the display can
always render. It never raises past ``fetch_snapshot``/``poll_once``.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from .client import SpotifyAPIError, SpotifyClient
from .session import WidgetSession

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL_MS = 1000
MIN_RECOMMENDED_INTERVAL_MS = 500

TOKEN_EXPIRED = ("Token expired", "Please re-authenticate with Spotify")
NOT_AUTHENTICATED = ("Not authenticated", 'Run "Authenticate with Spotify"')
NO_TRACK = ("No track playing", "Start playing music on Spotify")
AUTH_EXPIRED = ("Authentication expired", "Please re-authenticate")
CONNECTING = ("Connecting...", "Loading track info")


@dataclass(frozen=True)
class TrackSnapshot:
    is_playing: bool
    track: Optional[str]
    artist: Optional[str]
    album: Optional[str]
    album_art_url: str = ""
    progress_ms: int = 0
    duration_ms: int = 0
    error: Optional[Tuple[str, str]] = None
    track_id: Optional[str] = None


def empty_snapshot(status: Tuple[str, str]) -> TrackSnapshot:
    """Degraded snapshot: headline/detail go in the artist/album slots."""
    headline, detail = status
    return TrackSnapshot(
        is_playing=False,
        track=None,
        artist=headline,
        album=detail,
        error=(headline, detail),
    )


def snapshot_from_payload(data: Optional[Dict[str, Any]]) -> TrackSnapshot:
    """Map a currently-playing response into a TrackSnapshot."""

    if not data or not data.get("item"):
        return empty_snapshot(NO_TRACK)

    item = data["item"]
    album = item.get("album") or {}
    images = album.get("images") or []
    artists = item.get("artists") or []

    return TrackSnapshot(
        is_playing=bool(data.get("is_playing")),
        track=item.get("name"),
        artist=", ".join(a.get("name", "") for a in artists if isinstance(a, dict)),
        album=album.get("name"),
        album_art_url=(images[0].get("url") or "") if images and isinstance(images[0], dict) else "",
        progress_ms=int(data.get("progress_ms") or 0),
        duration_ms=int(item.get("duration_ms") or 0),
        track_id=item.get("id"),
    )


class NowPlayingPoller:
    """Fetches currently-playing state on a fixed interval and hands it to a display."""

    def __init__(
        self,
        session: WidgetSession,
        client: Optional[SpotifyClient] = None,
        *,
        interval_ms: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session = session
        self.client = client or SpotifyClient(session.config)
        if interval_ms is None:
            interval_ms = session.config.get("refresh_interval_ms", DEFAULT_REFRESH_INTERVAL_MS)
        self.interval_ms = int(interval_ms)
        self.clock = clock

        self._display: Optional[Callable[[TrackSnapshot], None]] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        if self.interval_ms < MIN_RECOMMENDED_INTERVAL_MS:
            logger.warning(
                "refresh interval %sms is below the recommended %sms", self.interval_ms, MIN_RECOMMENDED_INTERVAL_MS
            )

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stop_event.is_set()

    def fetch_snapshot(self) -> TrackSnapshot:
        expires_at = self.session.expires_at
        if expires_at is None or self.clock() >= expires_at:
            return empty_snapshot(TOKEN_EXPIRED)

        access_token = self.session.access_token
        if not access_token:
            return empty_snapshot(NOT_AUTHENTICATED)

        try:
            data = self.client.currently_playing(access_token)
        except SpotifyAPIError as e:
            logger.warning("Spotify API error: %s", e)
            if e.unauthorized:
                return empty_snapshot(AUTH_EXPIRED)
            return empty_snapshot(CONNECTING)
        except Exception as e:
            logger.warning("Unexpected error while polling Spotify: %s", e)
            return empty_snapshot(CONNECTING)

        try:
            snapshot = snapshot_from_payload(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning("Malformed currently-playing payload: %s", e)
            return empty_snapshot(CONNECTING)

        if snapshot.track_id and self.session.note_track(snapshot.track_id):
            logger.info("Now playing: %s - %s", snapshot.artist, snapshot.track)
        return snapshot

    def poll_once(self, display: Optional[Callable[[TrackSnapshot], None]] = None) -> TrackSnapshot:
        """Fetch one snapshot and deliver it (used for the timer tick and on-demand refresh)."""

        snapshot = self.fetch_snapshot()
        target = display or self._display
        if target is not None:
            self._deliver(target, snapshot)
        return snapshot

    def _deliver(self, display: Callable[[TrackSnapshot], None], snapshot: TrackSnapshot) -> None:
        try:
            display(snapshot)
        except Exception as e:
            logger.warning("Display update failed: %s", e)

    def start(self, display: Callable[[TrackSnapshot], None]) -> None:
        """Start the timer thread delivering snapshots to ``display``.

        The first scheduled poll fires one full interval after ``start``;
        call ``poll_once(display)`` first to render something immediately.
        """

        if self.running:
            self._display = display
            return

        self._display = display
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="now-playing-poller", daemon=True
        )
        self.session.poller = self
        self._thread.start()
        logger.info("Polling Spotify every %sms", self.interval_ms)

    def _run(self, stop_event: threading.Event) -> None:
        interval = self.interval_ms / 1000.0
        while not stop_event.wait(interval):
            snapshot = self.fetch_snapshot()
            # Surface may have gone away while the request was in flight.
            display = self._display
            if stop_event.is_set() or display is None:
                break
            self._deliver(display, snapshot)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        self._display = None
        thread = self._thread
        self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout if timeout is not None else getattr(self.client, "timeout", 5.0) + 1.0)
        if self.session.poller is self:
            self.session.poller = None
        logger.info("Stopped polling Spotify")
