import logging
import os
import threading
from typing import Any, Dict, Optional

from managers.state_store import DEFAULT_STATE_FILE, StateStore
from .token_manager import Credential, TokenManager

logger = logging.getLogger(__name__)


class WidgetSession:
    """All mutable widget state, owned by one explicitly constructed object.

    The authenticator is the only writer of the credential fields; the poller
    only reads them. The pending verifier is consumed under a lock so two
    delivery channels cannot both spend the same authorization code.
    """

    def __init__(self, config: Dict[str, Any], store: StateStore):
        self.config = config or {}
        self.store = store
        self.tokens = TokenManager(store)

        self.access_token: Optional[str] = None
        self.expires_at: Optional[float] = None
        self.pending_verifier: Optional[str] = None
        self.last_track_id: Optional[str] = None
        self.poller = None

        self._pending_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "WidgetSession":
        path = str((config or {}).get("state_file") or DEFAULT_STATE_FILE)
        session = cls(config, StateStore(os.path.expanduser(path)))
        session.restore()
        return session

    def restore(self) -> None:
        """Load the persisted credential entries into memory."""
        raw = self.tokens.load()
        self.access_token = raw["access_token"]
        self.expires_at = raw["expires_at"]

    # -----------------
    # Credential
    # -----------------

    @property
    def credential(self) -> Optional[Credential]:
        if not self.access_token or self.expires_at is None:
            return None
        return Credential(access_token=self.access_token, expires_at=self.expires_at)

    def set_credential(self, credential: Credential) -> None:
        self.tokens.save(credential)
        self.access_token = credential.access_token
        self.expires_at = credential.expires_at

    def clear_credential(self) -> None:
        self.tokens.clear()
        self.access_token = None
        self.expires_at = None

    # -----------------
    # Pending auth attempt
    # -----------------

    def set_pending_verifier(self, verifier: str) -> None:
        with self._pending_lock:
            self.pending_verifier = verifier
            self.tokens.save_pending_verifier(verifier)

    def has_pending_verifier(self) -> bool:
        with self._pending_lock:
            return bool(self.pending_verifier or self.tokens.load_pending_verifier())

    def take_pending_verifier(self) -> Optional[str]:
        """Return the pending verifier (memory first, then durable copy) and clear both."""
        with self._pending_lock:
            verifier = self.pending_verifier or self.tokens.load_pending_verifier()
            self.pending_verifier = None
            if verifier:
                self.tokens.save_pending_verifier(None)
            return verifier

    # -----------------
    # Track bookkeeping
    # -----------------

    def note_track(self, track_id: Optional[str]) -> bool:
        """Record the latest track id; returns True when it changed."""
        if track_id == self.last_track_id:
            return False
        self.last_track_id = track_id
        logger.debug("Track changed: %s", track_id)
        return True
