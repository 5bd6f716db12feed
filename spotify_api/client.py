import json
from typing import Any, Dict, Optional

import httpx

SPOTIFY_API_BASE_URL = "https://api.spotify.com/v1"
DEFAULT_REQUEST_TIMEOUT = 5.0


class SpotifyAPIError(RuntimeError):
    """Web API call failed. status_code is None for transport-level failures."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def unauthorized(self) -> bool:
        return self.status_code == 401


class SpotifyClient:
    """Thin Spotify Web API client for the read-only endpoints the widget needs.

    No retries or backoff: the poll interval is the retry policy.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or {}
        self.timeout = float(self.config.get("request_timeout", DEFAULT_REQUEST_TIMEOUT))
        self._http = httpx.Client(
            base_url=SPOTIFY_API_BASE_URL,
            timeout=self.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def request_json(self, method: str, path: str, *, access_token: str) -> Optional[Dict[str, Any]]:
        """Make a Spotify Web API request; 204 / empty body map to None."""

        try:
            resp = self._http.request(
                method.upper(),
                path,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.TimeoutException as e:
            raise SpotifyAPIError("Request timeout") from e
        except httpx.HTTPError as e:
            raise SpotifyAPIError(f"Spotify API request failed: {e}") from e

        if resp.status_code == 204:
            return None

        if resp.status_code != 200:
            raise SpotifyAPIError(f"{resp.status_code}: {resp.text}", status_code=resp.status_code)

        if not resp.content:
            return None

        try:
            payload = resp.json()
        except json.JSONDecodeError as e:
            raise SpotifyAPIError("Failed to parse response", status_code=resp.status_code) from e

        if not isinstance(payload, dict):
            raise SpotifyAPIError("Failed to parse response", status_code=resp.status_code)
        return payload

    def currently_playing(self, access_token: str) -> Optional[Dict[str, Any]]:
        return self.request_json("GET", "/me/player/currently-playing", access_token=access_token)
