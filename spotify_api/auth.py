import base64
import hashlib
import logging
import secrets
import time
import urllib.parse
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional

import httpx

from .session import WidgetSession
from .token_manager import Credential

logger = logging.getLogger(__name__)

SPOTIFY_ACCOUNTS_BASE_URL = "https://accounts.spotify.com"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
]

VERIFIER_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
VERIFIER_LENGTH = 128
TOKEN_REQUEST_TIMEOUT = 30.0


class ConfigurationError(ValueError):
    """The app is not configured well enough to start authenticating."""


class AuthenticationError(RuntimeError):
    """Authorization code could not be turned into a token."""


class AuthSessionExpired(AuthenticationError):
    """No pending PKCE verifier: the attempt was never started or already used."""


def _base64url_no_pad(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def generate_code_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Random PKCE code_verifier drawn from [A-Za-z0-9]."""
    return "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))


def code_challenge_from_verifier(verifier: str) -> str:
    """Compute PKCE S256 code_challenge from code_verifier."""

    digest = hashlib.sha256((verifier or "").encode("utf-8")).digest()
    return _base64url_no_pad(digest)


def get_spotify_client_id(config: dict) -> str:
    """Return the configured Spotify Client ID or raise ConfigurationError."""

    client_id = str((config or {}).get("spotify_client_id", "") or "").strip()
    if not client_id:
        raise ConfigurationError(
            "spotify_client_id is not set. Create a Spotify app and put its Client ID in config.json."
        )
    return client_id


def get_redirect_uri(config: dict) -> str:
    return str((config or {}).get("spotify_redirect_uri", "") or "").strip() or DEFAULT_REDIRECT_URI


def check_spotify_credentials(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate Spotify OAuth config fields and return a structured status dict."""

    config = config or {}
    redirect_uri = str(config.get("spotify_redirect_uri", "")).strip()
    scopes = list(config.get("spotify_scopes", []) or [])
    client_id = str(config.get("spotify_client_id", "") or "").strip()

    status = {
        "ok": True,
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scopes": scopes,
        "message": "Spotify credentials look OK.",
    }

    if not client_id:
        status["ok"] = False
        status["message"] = (
            "Missing spotify_client_id in config.json.\n"
            "Create your own Spotify app and copy its Client ID (see spotify_app_setup_instructions())."
        )
    elif not redirect_uri:
        status["ok"] = False
        status["message"] = (
            "Missing spotify_redirect_uri in config.json.\n"
            f"Recommended default: {DEFAULT_REDIRECT_URI}"
        )

    return status


def spotify_app_setup_instructions(*, redirect_uri: str = DEFAULT_REDIRECT_URI) -> str:
    """Return user-facing setup instructions for creating a Spotify Developer app."""

    redirect_uri = str(redirect_uri or "").strip() or DEFAULT_REDIRECT_URI
    return (
        "Spotify app setup:\n"
        "1) Go to https://developer.spotify.com/dashboard\n"
        "2) Create an app (or select an existing app)\n"
        f"3) Add this Redirect URI in the app settings: {redirect_uri}\n"
        "4) Copy the Client ID into config.json as spotify_client_id\n\n"
        "Notes:\n"
        "- The widget uses Authorization Code + PKCE (no client secret required).\n"
        "- Redirect URI must match *exactly* what you configure in the Spotify dashboard.\n"
        "- Playback controls press your OS media keys; they do not need extra scopes.\n"
    )


def extract_code_from_redirect_url(redirect_url: str) -> Dict[str, str]:
    """Parse a redirect URL and return {"code": ..., "state": ..., "error": ...} (missing keys omitted)."""

    parsed = urllib.parse.urlparse(str(redirect_url or "").strip())
    qs = urllib.parse.parse_qs(parsed.query)
    out: Dict[str, str] = {}
    if qs.get("code"):
        out["code"] = str(qs["code"][0])
    if qs.get("state"):
        out["state"] = str(qs["state"][0])
    if qs.get("error"):
        out["error"] = str(qs["error"][0])
    return out


def code_from_user_input(pasted: str) -> str:
    """Accept either a raw authorization code or the full redirect URL."""

    pasted = (pasted or "").strip()
    if not pasted:
        raise AuthenticationError("No authorization code provided.")

    if "://" not in pasted:
        return pasted

    parsed = extract_code_from_redirect_url(pasted)
    if parsed.get("error"):
        raise AuthenticationError(f"Spotify returned an error: {parsed['error']}")
    if not parsed.get("code"):
        raise AuthenticationError("No authorization code found in the redirect URL.")
    return parsed["code"]


def _valid_expires_in(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value > 0 and value != float("inf")


@dataclass(frozen=True)
class PKCEPair:
    code_verifier: str
    code_challenge: str


class SpotifyPKCEAuth:
    """Spotify OAuth (Authorization Code + PKCE) against a WidgetSession."""

    def __init__(
        self,
        session: WidgetSession,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session = session
        self.transport = transport
        self.clock = clock
        self._client_id: Optional[str] = None

    @property
    def config(self) -> Dict[str, Any]:
        return self.session.config

    @staticmethod
    def generate_pkce_pair() -> PKCEPair:
        verifier = generate_code_verifier()
        return PKCEPair(code_verifier=verifier, code_challenge=code_challenge_from_verifier(verifier))

    def get_authorize_url(
        self,
        *,
        client_id: str,
        code_challenge: str,
        scopes: Optional[Iterable[str]] = None,
        show_dialog: bool = True,
    ) -> str:
        scope_list = list(scopes if scopes is not None else (self.config.get("spotify_scopes") or DEFAULT_SCOPES))
        scope_str = " ".join([str(s).strip() for s in scope_list if str(s).strip()])

        params: Dict[str, str] = {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": get_redirect_uri(self.config),
            "code_challenge_method": "S256",
            "code_challenge": str(code_challenge),
            "show_dialog": "true" if show_dialog else "false",
        }
        if scope_str:
            params["scope"] = scope_str

        return f"{SPOTIFY_ACCOUNTS_BASE_URL}/authorize?{urllib.parse.urlencode(params)}"

    def begin_auth(self, client_id: Optional[str] = None) -> str:
        """Start a PKCE attempt and return the authorization URL to open."""

        if client_id is None:
            client_id = get_spotify_client_id(self.config)
        client_id = str(client_id or "").strip()
        if not client_id:
            raise ConfigurationError("spotify_client_id is not set.")

        pkce = self.generate_pkce_pair()
        self.session.set_pending_verifier(pkce.code_verifier)
        self._client_id = client_id

        logger.info("Started Spotify PKCE authentication attempt")
        return self.get_authorize_url(client_id=client_id, code_challenge=pkce.code_challenge)

    def complete_auth(self, code: str) -> Credential:
        """Exchange an authorization code for a token using the pending verifier.

        The verifier is consumed before the network call, so a second channel
        delivering the same code gets AuthSessionExpired instead of re-spending it.
        The previous credential is kept when the exchange fails.
        """

        code = (code or "").strip()
        if not code:
            raise AuthenticationError("No authorization code provided.")

        client_id = self._client_id or get_spotify_client_id(self.config)

        verifier = self.session.take_pending_verifier()
        if not verifier:
            raise AuthSessionExpired("Authentication session expired. Please try again.")

        payload = self._post_form(
            f"{SPOTIFY_ACCOUNTS_BASE_URL}/api/token",
            {
                "client_id": client_id,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": get_redirect_uri(self.config),
                "code_verifier": verifier,
            },
        )

        if not payload.get("access_token"):
            raise AuthenticationError(f"Spotify token exchange failed: {payload}")
        if not _valid_expires_in(payload.get("expires_in")):
            raise AuthenticationError(f"Spotify token response has no usable expires_in: {payload.get('expires_in')!r}")

        credential = Credential.from_spotify_token_response(payload, now=self.clock())

        self.session.set_credential(credential)
        self._client_id = None
        logger.info("Spotify authentication succeeded; token valid for %ss", payload.get("expires_in"))
        return credential

    def handle_callback(self, redirect_url: str) -> Credential:
        """Redirect channel: pull the code out of the callback URL and complete."""

        parsed = extract_code_from_redirect_url(redirect_url)
        if parsed.get("error"):
            raise AuthenticationError(f"Spotify returned an error: {parsed['error']}")
        if not parsed.get("code"):
            raise AuthenticationError("No authorization code found in callback.")
        return self.complete_auth(parsed["code"])

    def sign_out(self) -> None:
        self.session.clear_credential()
        logger.info("Cleared stored Spotify credential")

    def _post_form(self, url: str, form: Dict[str, Any]) -> Dict[str, Any]:
        data = {k: str(v) for k, v in (form or {}).items() if v is not None}

        try:
            with httpx.Client(
                timeout=TOKEN_REQUEST_TIMEOUT, follow_redirects=False, transport=self.transport
            ) as client:
                resp = client.post(
                    url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Spotify token request failed: {e}") from e

        if resp.status_code != 200:
            raise AuthenticationError(f"Token exchange failed (HTTP {resp.status_code}): {resp.text}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise AuthenticationError(f"Spotify token response was not JSON: {resp.text}") from e

        if not isinstance(payload, dict):
            raise AuthenticationError(f"Spotify token response was not an object: {payload}")

        return payload
