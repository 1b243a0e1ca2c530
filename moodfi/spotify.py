# moodfi/spotify.py
# ----------------------------------------------------------------------------
# Thin async wrapper over the Spotify Web API calls the pipeline needs.
# Every method raises SpotifyAPIError (SpotifyRateLimited for 429) on failure;
# deciding what a failure means is left to the caller.
# ----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from moodfi.config import Settings
from moodfi.errors import SpotifyAPIError, SpotifyRateLimited
from moodfi.schemas import RecommendationParams, Track

log = logging.getLogger("spotify")

API_BASE = "https://api.spotify.com/v1"


def make_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=API_BASE, timeout=settings.http_timeout, transport=transport)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict):
        return str(err.get("message", ""))
    return str(err or "")


class SpotifyClient:
    def __init__(self, access_token: str, http: httpx.AsyncClient):
        self.access_token = access_token
        self.http = http

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            r = await self.http.request(method, path, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise SpotifyAPIError(None, f"{method} {path}: {e}") from e

        if r.status_code == 429:
            raise SpotifyRateLimited(f"{method} {path}")
        if r.status_code >= 400:
            raise SpotifyAPIError(r.status_code, f"{method} {path}: {_error_message(r)}")
        if not r.content:
            return {}
        try:
            data = r.json()
        except ValueError as e:
            raise SpotifyAPIError(r.status_code, f"{method} {path}: invalid JSON") from e
        return data if isinstance(data, dict) else {}

    # ----------------------------
    # Reads
    # ----------------------------
    async def current_user_id(self) -> str:
        data = await self._request("GET", "/me")
        uid = data.get("id")
        if not uid:
            raise SpotifyAPIError(None, "GET /me: response has no id")
        return str(uid)

    async def top_ids(self, kind: str, limit: int = 5) -> List[str]:
        """kind is 'artists' or 'tracks'."""
        data = await self._request("GET", f"/me/top/{kind}", params={"limit": limit})
        return [str(it["id"]) for it in (data.get("items") or []) if isinstance(it, dict) and it.get("id")][:limit]

    async def recommendations(self, params: RecommendationParams) -> List[Track]:
        data = await self._request("GET", "/recommendations", params=dict(params))
        tracks: List[Track] = []
        for tr in data.get("tracks") or []:
            if not tr or not isinstance(tr, dict) or not tr.get("id") or not tr.get("uri"):
                continue
            tracks.append(Track(id=str(tr["id"]), uri=str(tr["uri"])))
        return tracks

    # ----------------------------
    # Writes
    # ----------------------------
    async def create_playlist(self, user_id: str, name: str, description: str, public: bool = True) -> str:
        data = await self._request(
            "POST",
            f"/users/{user_id}/playlists",
            json={"name": name, "public": public, "description": description},
        )
        pid = data.get("id")
        if not pid:
            raise SpotifyAPIError(None, "playlist create: response has no id")
        return str(pid)

    async def add_tracks(self, playlist_id: str, uris: List[str]) -> None:
        await self._request("POST", f"/playlists/{playlist_id}/tracks", json={"uris": list(uris)})
