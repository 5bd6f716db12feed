import os
import tempfile
import unittest

# Ensure local imports work when running this file directly.
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
if THIS_DIR not in os.sys.path:
    os.sys.path.insert(0, THIS_DIR)

from managers.state_store import MemoryStateStore, StateStore
from spotify_api.session import WidgetSession
from spotify_api.token_manager import Credential, TokenManager, decode_expiry, encode_expiry


class TestStateStore(unittest.TestCase):
    def test_values_survive_reopen(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "nested", "widget_state.json")
            StateStore(path).update("spotify_access_token", "at")

            reopened = StateStore(path)
            self.assertEqual(reopened.get("spotify_access_token"), "at")

    def test_update_none_removes_key(self):
        with tempfile.TemporaryDirectory() as td:
            store = StateStore(os.path.join(td, "state.json"))
            store.update("pending_code_verifier", "v")
            store.update("pending_code_verifier", None)
            self.assertIsNone(store.get("pending_code_verifier"))
            self.assertNotIn("pending_code_verifier", StateStore(store.path).keys())

    def test_corrupt_file_starts_empty(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "state.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{not json")
            store = StateStore(path)
            self.assertIsNone(store.get("spotify_access_token"))
            store.update("spotify_access_token", "at")
            self.assertEqual(StateStore(path).get("spotify_access_token"), "at")


class TestExpiryEncoding(unittest.TestCase):
    def test_expiry_round_trips_through_persisted_storage(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "state.json")
            credential = Credential.from_spotify_token_response(
                {"access_token": "at", "expires_in": 3600}, now=1_700_000_000.123
            )
            TokenManager(StateStore(path)).save(credential)

            loaded = TokenManager(StateStore(path)).load_credential()
            self.assertEqual(loaded, credential)
            self.assertEqual(loaded.expires_at, credential.expires_at)

    def test_encode_decode_helpers(self):
        self.assertEqual(encode_expiry(1.5), 1500)
        self.assertEqual(decode_expiry(1500), 1.5)
        self.assertIsNone(decode_expiry(None))
        self.assertIsNone(decode_expiry("garbage"))
        self.assertIsNone(decode_expiry(True))

    def test_is_expired(self):
        credential = Credential(access_token="at", expires_at=100.0)
        self.assertFalse(credential.is_expired(now=99.9))
        self.assertTrue(credential.is_expired(now=100.0))


class TestSessionRestore(unittest.TestCase):
    def test_from_config_restores_persisted_credential(self):
        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "state.json")
            first = WidgetSession.from_config({"state_file": path})
            first.set_credential(Credential(access_token="at", expires_at=2000.0))
            first.set_pending_verifier("verifier")

            second = WidgetSession.from_config({"state_file": path})
            self.assertEqual(second.access_token, "at")
            self.assertEqual(second.expires_at, 2000.0)
            self.assertEqual(second.credential, Credential(access_token="at", expires_at=2000.0))
            self.assertIsNone(second.pending_verifier)
            self.assertEqual(second.take_pending_verifier(), "verifier")
            self.assertIsNone(second.take_pending_verifier())

    def test_token_without_expiry_is_kept_separately(self):
        store = MemoryStateStore({"spotify_access_token": "at"})
        session = WidgetSession({}, store)
        session.restore()
        self.assertEqual(session.access_token, "at")
        self.assertIsNone(session.expires_at)
        self.assertIsNone(session.credential)

    def test_note_track_reports_changes_only(self):
        session = WidgetSession({}, MemoryStateStore())
        self.assertTrue(session.note_track("a"))
        self.assertFalse(session.note_track("a"))
        self.assertTrue(session.note_track("b"))


if __name__ == "__main__":
    unittest.main(verbosity=2)
