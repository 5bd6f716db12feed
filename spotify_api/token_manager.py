import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from managers.state_store import StateStore

ACCESS_TOKEN_KEY = "spotify_access_token"
EXPIRES_AT_KEY = "spotify_token_expires_at"
PENDING_VERIFIER_KEY = "pending_code_verifier"


def encode_expiry(expires_at: float) -> int:
    """Encode an absolute instant (epoch seconds) as integer epoch milliseconds."""
    return int(round(float(expires_at) * 1000))


def decode_expiry(raw: Any) -> Optional[float]:
    """Decode a stored expiry back to epoch seconds (None if absent/invalid)."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw) / 1000.0
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Credential:
    """Bearer token plus the instant it stops being valid."""

    access_token: str
    expires_at: float

    @staticmethod
    def from_spotify_token_response(payload: Dict[str, Any], *, now: Optional[float] = None) -> "Credential":
        """Convert Spotify token response JSON into a Credential.

        Spotify returns access_token, token_type, expires_in (seconds), scope and
        usually a refresh_token; only the first and the expiry are kept.
        """

        now_ts = float(time.time() if now is None else now)
        expires_in = float(payload.get("expires_in", 0))
        # Round-trip through the stored millisecond encoding so in-memory and
        # persisted credentials compare equal.
        expires_at = encode_expiry(now_ts + expires_in) / 1000.0
        return Credential(access_token=str(payload.get("access_token", "")), expires_at=expires_at)

    def is_expired(self, *, now: Optional[float] = None) -> bool:
        now_ts = float(time.time() if now is None else now)
        return now_ts >= float(self.expires_at)


class TokenManager:
    """Reads and writes the credential entries in the durable store."""

    def __init__(self, store: StateStore):
        self.store = store

    def load(self) -> Dict[str, Any]:
        """Return the raw entries: {"access_token": str|None, "expires_at": float|None}.

        The two entries are independent on purpose: the poller distinguishes a
        missing expiry from a missing token.
        """
        token = self.store.get(ACCESS_TOKEN_KEY)
        return {
            "access_token": str(token) if token else None,
            "expires_at": decode_expiry(self.store.get(EXPIRES_AT_KEY)),
        }

    def load_credential(self) -> Optional[Credential]:
        raw = self.load()
        if not raw["access_token"] or raw["expires_at"] is None:
            return None
        return Credential(access_token=raw["access_token"], expires_at=raw["expires_at"])

    def save(self, credential: Credential) -> None:
        self.store.update(ACCESS_TOKEN_KEY, credential.access_token)
        self.store.update(EXPIRES_AT_KEY, encode_expiry(credential.expires_at))

    def clear(self) -> None:
        self.store.update(ACCESS_TOKEN_KEY, None)
        self.store.update(EXPIRES_AT_KEY, None)

    def load_pending_verifier(self) -> Optional[str]:
        value = self.store.get(PENDING_VERIFIER_KEY)
        return str(value) if value else None

    def save_pending_verifier(self, verifier: Optional[str]) -> None:
        self.store.update(PENDING_VERIFIER_KEY, verifier)
