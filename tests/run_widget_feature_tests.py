#!/usr/bin/env python3
"""Spotify widget menu feature test runner.

Runs lightweight, local tests for:
- Interactive authentication (manual paste channel, config failures)
- Widget view wiring (poller start/stop, media-key controls, refresh)
- Config updates and refresh profiles

This runner intentionally avoids network calls and does NOT press real media keys.

Usage:
  cd spotify-now-playing-widget
  python3 -m tests.run_widget_feature_tests

"""

from __future__ import annotations

import os
import tempfile
import time
import types
import unittest
from dataclasses import dataclass
from typing import Any

# Ensure imports like `utils.*` and `menus.*` work even when executed from repo root.
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import httpx


# -------------------------
# Simple questionary mocks
# -------------------------

@dataclass
class _Askable:
    """Mimic questionary prompt objects that return a value from .ask()."""

    value: Any

    def ask(self):
        return self.value


class _QuestionaryMock:
    """A minimal questionary stub that returns queued answers and captures args."""

    def __init__(self):
        self._queue: list[Any] = []
        self.last_select_choices = None
        self.last_select_message = None
        self.last_confirm_message = None
        self.last_text_message = None

    def queue(self, *answers: Any) -> None:
        self._queue.extend(list(answers))

    def _pop(self) -> Any:
        if not self._queue:
            raise AssertionError("QuestionaryMock queue exhausted")
        return self._queue.pop(0)

    def select(self, message: str, choices: list[Any]):
        self.last_select_message = message
        self.last_select_choices = choices
        return _Askable(self._pop())

    def confirm(self, message: str, default: bool = True):
        self.last_confirm_message = message
        return _Askable(self._pop())

    def text(self, message: str, default: str = ""):
        self.last_text_message = message
        return _Askable(self._pop())


class _PatchModuleAttr:
    """Context manager to temporarily patch module attributes."""

    def __init__(self, module: types.ModuleType, attr: str, value: Any):
        self.module = module
        self.attr = attr
        self.value = value
        self._old = None

    def __enter__(self):
        self._old = getattr(self.module, self.attr)
        setattr(self.module, self.attr, self.value)

    def __exit__(self, exc_type, exc, tb):
        setattr(self.module, self.attr, self._old)


# -------------------------
# Helpers
# -------------------------


def _token_endpoint(calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"access_token": "menu-token", "token_type": "Bearer", "expires_in": 3600})

    return handler


def _make_session(config: dict | None = None):
    from managers.state_store import MemoryStateStore
    from spotify_api.session import WidgetSession

    base = {
        "spotify_client_id": "cid",
        "spotify_redirect_uri": "http://127.0.0.1:8888/callback",
        "callback_listener_enabled": False,
    }
    base.update(config or {})
    return WidgetSession(base, MemoryStateStore())


# -------------------------
# Tests
# -------------------------


class TestMainMenu(unittest.TestCase):
    def test_main_menu_lists_widget_controls(self):
        import menus.main_menu as mm

        q = _QuestionaryMock()
        q.queue("Play / Pause")
        with _PatchModuleAttr(mm, "questionary", q):
            self.assertEqual(mm.main_menu(), "Play / Pause")

        for entry in ("Show widget", "Authenticate with Spotify", "Next track", "Previous track", "Exit"):
            self.assertIn(entry, q.last_select_choices)

    def test_cancelled_prompt_exits(self):
        import menus.main_menu as mm

        q = _QuestionaryMock()
        q.queue(None)
        with _PatchModuleAttr(mm, "questionary", q):
            self.assertEqual(mm.main_menu(), "Exit")


class TestAuthenticateMenu(unittest.TestCase):
    def test_manual_paste_completes_authentication(self):
        import menus.auth_menu as am
        from spotify_api.auth import SpotifyPKCEAuth

        calls: list = []
        session = _make_session()
        auth = SpotifyPKCEAuth(session, transport=httpx.MockTransport(_token_endpoint(calls)))

        q = _QuestionaryMock()
        # Don't open a browser; paste the full redirect URL.
        q.queue(False, "http://127.0.0.1:8888/callback?code=AQDpasted")

        with _PatchModuleAttr(am, "questionary", q):
            ok = am.authenticate_menu(auth)

        self.assertTrue(ok)
        self.assertEqual(session.access_token, "menu-token")
        self.assertEqual(len(calls), 1)
        self.assertFalse(session.has_pending_verifier())
        self.assertIn("Expired: NO", am.token_status(session))

    def test_missing_client_id_blocks_before_any_prompt(self):
        import menus.auth_menu as am
        from spotify_api.auth import SpotifyPKCEAuth

        session = _make_session({"spotify_client_id": ""})
        auth = SpotifyPKCEAuth(session, transport=httpx.MockTransport(_token_endpoint([])))

        q = _QuestionaryMock()
        with _PatchModuleAttr(am, "questionary", q):
            ok = am.authenticate_menu(auth)

        self.assertFalse(ok)
        self.assertIsNone(q.last_confirm_message)
        self.assertFalse(session.has_pending_verifier())

    def test_empty_paste_without_listener_cancels(self):
        import menus.auth_menu as am
        from spotify_api.auth import SpotifyPKCEAuth

        calls: list = []
        session = _make_session()
        auth = SpotifyPKCEAuth(session, transport=httpx.MockTransport(_token_endpoint(calls)))

        q = _QuestionaryMock()
        q.queue(False, "")
        with _PatchModuleAttr(am, "questionary", q):
            self.assertFalse(am.authenticate_menu(auth))
        self.assertEqual(calls, [])
        self.assertIsNone(session.access_token)

    def test_sign_out_menu_clears_token(self):
        import menus.auth_menu as am
        from spotify_api.auth import SpotifyPKCEAuth
        from spotify_api.token_manager import Credential

        session = _make_session()
        session.set_credential(Credential(access_token="tok", expires_at=time.time() + 60))
        auth = SpotifyPKCEAuth(session)

        q = _QuestionaryMock()
        q.queue(True)
        with _PatchModuleAttr(am, "questionary", q):
            am.sign_out_menu(auth)

        self.assertIsNone(session.access_token)
        self.assertEqual(am.token_status(session), "No stored Spotify token found.")


class TestWidgetView(unittest.TestCase):
    def test_widget_polls_relays_controls_and_stops(self):
        import menus.widget_menu as wm
        from spotify_api.client import SpotifyClient
        from spotify_api.token_manager import Credential

        session = _make_session()
        session.set_credential(Credential(access_token="tok", expires_at=time.time() + 3600))

        api_calls: list = []

        def currently_playing(request: httpx.Request) -> httpx.Response:
            api_calls.append(request)
            return httpx.Response(204)

        client = SpotifyClient(transport=httpx.MockTransport(currently_playing))
        keys = iter(["p", "n", "b", "r", "x", "q"])
        sent: list = []
        shown: list = []

        def fake_send(kind):
            sent.append(kind)
            return True

        with _PatchModuleAttr(wm, "send_command", fake_send):
            wm.show_widget(session, client=client, read_key=lambda: next(keys), display=shown.append)

        self.assertEqual(sent, ["PlayPause", "Next", "Previous"])
        # Initial poll + the manual refresh at least.
        self.assertGreaterEqual(len(shown), 2)
        self.assertTrue(all(s.error == ("No track playing", "Start playing music on Spotify") for s in shown))
        self.assertGreaterEqual(len(api_calls), 2)
        self.assertIsNone(session.poller)

    def test_widget_hides_on_end_of_input(self):
        import menus.widget_menu as wm
        from spotify_api.client import SpotifyClient

        session = _make_session()
        client = SpotifyClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
        shown: list = []

        def eof():
            raise EOFError

        wm.show_widget(session, client=client, read_key=eof, display=shown.append)

        self.assertEqual(len(shown), 1)
        self.assertEqual(shown[0].artist, "Token expired")
        self.assertIsNone(session.poller)


class TestConfig(unittest.TestCase):
    def test_update_and_profile_round_trip(self):
        import config as cfg

        with tempfile.TemporaryDirectory() as td:
            path = os.path.join(td, "config.json")
            loaded = cfg.load_or_create_config(path)
            self.assertEqual(loaded["refresh_interval_ms"], 1000)
            self.assertEqual(loaded["spotify_client_id"], "")

            ok, _ = cfg.update_config("spotify_client_id", "cid", path)
            self.assertTrue(ok)
            ok, message = cfg.update_config("refresh_interval_ms", "fast", path)
            self.assertFalse(ok)
            self.assertIn("refresh_interval_ms", message)

            ok, _ = cfg.apply_config_profile("responsive", path)
            self.assertTrue(ok)
            loaded = cfg.load_config(path)
            self.assertEqual(loaded["refresh_interval_ms"], 500)
            self.assertEqual(loaded["profile"], "responsive")

            ok, _ = cfg.reset_to_defaults(path)
            self.assertTrue(ok)
            loaded = cfg.load_config(path)
            self.assertEqual(loaded["refresh_interval_ms"], 1000)
            self.assertEqual(loaded["spotify_client_id"], "cid")

    def test_validation_rejects_bool_as_number(self):
        import config as cfg

        conf = dict(cfg.DEFAULT_CONFIG)
        conf["refresh_interval_ms"] = True
        is_valid, errors = cfg.validate_config(conf)
        self.assertFalse(is_valid)
        self.assertTrue(any("refresh_interval_ms" in e for e in errors))


if __name__ == "__main__":
    unittest.main(verbosity=2)
