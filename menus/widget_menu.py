import threading

from tqdm import tqdm

from managers.command_relay import NEXT, PLAY_PAUSE, PREVIOUS, send_command
from spotify_api.client import SpotifyClient
from spotify_api.now_playing import NowPlayingPoller, TrackSnapshot
from utils.formatting import describe_snapshot, format_ms
from utils.logger import log_info, log_warning

WIDGET_KEYS = {
    "p": PLAY_PAUSE,
    "n": NEXT,
    "b": PREVIOUS,
}

CONTROLS_HINT = "[p] play/pause  [n] next  [b] previous  [r] refresh  [q] hide"


class TerminalDisplay:
    """Renders TrackSnapshots as a single tqdm status line.

    The bar tracks playback position in milliseconds; degraded snapshots show
    their headline and detail with an empty bar.
    """

    BAR_FORMAT = "{desc} |{bar:24}| {postfix}"

    def __init__(self, file=None):
        self._lock = threading.Lock()
        self.last_snapshot = None
        self.bar = tqdm(
            total=1,
            bar_format=self.BAR_FORMAT,
            file=file,
            dynamic_ncols=file is None,
            leave=False,
        )

    def __call__(self, snapshot: TrackSnapshot) -> None:
        title, subtitle = describe_snapshot(snapshot)
        with self._lock:
            self.last_snapshot = snapshot
            if snapshot.error or snapshot.duration_ms <= 0:
                self.bar.total = 1
                self.bar.n = 0
                self.bar.set_description_str(title, refresh=False)
                self.bar.set_postfix_str(subtitle, refresh=False)
            else:
                self.bar.total = snapshot.duration_ms
                self.bar.n = min(snapshot.progress_ms, snapshot.duration_ms)
                self.bar.set_description_str(title, refresh=False)
                self.bar.set_postfix_str(
                    f"{format_ms(snapshot.progress_ms)} / {format_ms(snapshot.duration_ms)}  {subtitle}",
                    refresh=False,
                )
            self.bar.refresh()

    def close(self) -> None:
        with self._lock:
            self.bar.close()


def show_widget(session, *, client: SpotifyClient = None, read_key=input, display=None) -> None:
    """Show the now-playing widget until the user hides it.

    Polling starts when the widget is shown and stops when it is hidden.
    """

    display = display or TerminalDisplay()
    poller = NowPlayingPoller(session, client)

    log_info(CONTROLS_HINT)
    poller.poll_once(display)
    poller.start(display)
    try:
        while True:
            try:
                key = (read_key() or "").strip().lower()
            except (EOFError, KeyboardInterrupt):
                break

            if key in ("q", "quit", "hide"):
                break
            if key in WIDGET_KEYS:
                send_command(WIDGET_KEYS[key])
            elif key == "r":
                poller.poll_once(display)
            elif key:
                log_warning(f"Unknown key '{key}'. {CONTROLS_HINT}")
    finally:
        poller.stop()
        if isinstance(display, TerminalDisplay):
            display.close()
        if client is None:
            poller.client.close()
