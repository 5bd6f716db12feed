import logging
import socket
import threading
import time
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")

SUCCESS_PAGE = (
    b"<html><body><h2>Spotify authorization complete.</h2>"
    b"You can close this window and return to the widget.</body></html>"
)
FAILURE_PAGE = (
    b"<html><body><h2>Spotify authorization failed.</h2>"
    b"Check the widget for details and try again.</body></html>"
)


class _RedirectHandler(BaseHTTPRequestHandler):
    # Per-connection socket timeout; idle preconnects get dropped.
    timeout = 5

    def do_GET(self):
        receiver: "RedirectReceiver" = self.server.receiver
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path != receiver.callback_path:
            self.send_response(404)
            self.end_headers()
            return

        ok = receiver.deliver(f"{receiver.base_url}{self.path}")

        self.send_response(200 if ok else 400)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.end_headers()
        self.wfile.write(SUCCESS_PAGE if ok else FAILURE_PAGE)

    def log_message(self, format, *args):
        logger.debug("redirect receiver: " + format, *args)


class _ReceiverServer(ThreadingHTTPServer):
    daemon_threads = True


class _ReceiverServerV6(_ReceiverServer):
    address_family = socket.AF_INET6


class RedirectReceiver:
    """Loopback HTTP listener for the OAuth redirect URI.

    Hands the full callback URL to ``on_redirect`` once and then stops
    listening. ``on_redirect`` returns truthy on success; exceptions it raises
    are logged and shown to the browser as a failure page.
    """

    def __init__(self, redirect_uri: str, on_redirect: Callable[[str], object], *, timeout: float = 120.0):
        parsed = urllib.parse.urlparse(redirect_uri)
        if parsed.scheme != "http" or (parsed.hostname or "") not in LOOPBACK_HOSTS:
            raise ValueError(f"Redirect URI is not a loopback http address: {redirect_uri}")

        self.host = parsed.hostname
        self.port = parsed.port or 80
        self.callback_path = parsed.path or "/"
        self.on_redirect = on_redirect
        self.timeout = float(timeout)

        self.received_url: Optional[str] = None
        self.succeeded = False
        self._done = threading.Event()
        self._deliver_lock = threading.Lock()
        self._server: Optional[_ReceiverServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    def start(self) -> None:
        server_cls = _ReceiverServerV6 if ":" in self.host else _ReceiverServer
        self._server = server_cls((self.host, self.port), _RedirectHandler)
        self._server.receiver = self
        self._server.timeout = 0.5
        # Port 0 binds an ephemeral port.
        self.port = self._server.server_address[1]

        self._thread = threading.Thread(target=self._serve, name="redirect-receiver", daemon=True)
        self._thread.start()
        logger.info("Listening for Spotify redirect on %s%s", self.base_url, self.callback_path)

    def _serve(self) -> None:
        deadline = time.monotonic() + self.timeout
        try:
            while not self._done.is_set() and time.monotonic() < deadline:
                self._server.handle_request()
        finally:
            self._server.server_close()
            self._done.set()

    def deliver(self, url: str) -> bool:
        with self._deliver_lock:
            if self.received_url is not None:
                return False
            self.received_url = url
        try:
            self.succeeded = bool(self.on_redirect(url))
            return self.succeeded
        except Exception as e:
            logger.error("Handling the Spotify redirect failed: %s", e)
            return False
        finally:
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> Optional[str]:
        self._done.wait(timeout)
        return self.received_url

    def stop(self) -> None:
        self._done.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(2.0)
        self._thread = None
