"""Shared fixtures: test settings and an in-process fake of the Spotify Web API."""

import json
from typing import Dict, List, Optional, Sequence

import httpx
import pytest

from moodfi.config import Settings


def make_tracks(n: int, start: int = 0) -> List[dict]:
    return [{"id": f"t{i}", "uri": f"spotify:track:t{i}", "name": f"Song {i}"} for i in range(start, start + n)]


class FakeSpotify:
    """
    Routes httpx requests to canned responses and records every call.

    rec_batches: successive /recommendations replies (list of track dicts, or
    an int status code to fail that call); empty once exhausted.
    create_statuses / add_statuses: status codes returned in order by the
    playlist create / add-tracks calls; success once exhausted.
    """

    def __init__(
        self,
        top_artists: Sequence[str] = (),
        top_tracks: Sequence[str] = (),
        top_status: int = 200,
        rec_batches: Optional[list] = None,
        create_statuses: Sequence[int] = (),
        add_statuses: Sequence[int] = (),
        me_status: int = 200,
    ):
        self.top_artists = list(top_artists)
        self.top_tracks = list(top_tracks)
        self.top_status = top_status
        self.rec_batches = list(rec_batches or [])
        self.create_statuses = list(create_statuses)
        self.add_statuses = list(add_statuses)
        self.me_status = me_status
        self.calls: List[Dict] = []
        self.playlists_created = 0

    def _log(self, request: httpx.Request, path: str) -> None:
        body = json.loads(request.content) if request.content else None
        self.calls.append({
            "method": request.method,
            "path": path,
            "params": dict(request.url.params),
            "json": body,
            "auth": request.headers.get("Authorization"),
        })

    def calls_to(self, method: str, prefix: str) -> List[Dict]:
        return [c for c in self.calls if c["method"] == method and c["path"].startswith(prefix)]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/v1"):
            path = path[3:]
        self._log(request, path)

        if request.method == "GET" and path == "/me":
            if self.me_status != 200:
                return httpx.Response(self.me_status, json={"error": {"status": self.me_status, "message": "nope"}})
            return httpx.Response(200, json={"id": "user-1"})

        if request.method == "GET" and path.startswith("/me/top/"):
            if self.top_status != 200:
                return httpx.Response(self.top_status, json={"error": {"status": self.top_status, "message": "nope"}})
            ids = self.top_artists if path.endswith("artists") else self.top_tracks
            limit = int(request.url.params.get("limit", 20))
            return httpx.Response(200, json={"items": [{"id": i} for i in ids[:limit]]})

        if request.method == "GET" and path == "/recommendations":
            batch = self.rec_batches.pop(0) if self.rec_batches else []
            if isinstance(batch, int):
                return httpx.Response(batch, json={"error": {"status": batch, "message": "nope"}})
            limit = int(request.url.params.get("limit", 20))
            return httpx.Response(200, json={"tracks": batch[:limit]})

        if request.method == "POST" and path.startswith("/users/") and path.endswith("/playlists"):
            status = self.create_statuses.pop(0) if self.create_statuses else 201
            if status >= 400:
                return httpx.Response(status, json={"error": {"status": status, "message": "nope"}})
            self.playlists_created += 1
            return httpx.Response(status, json={"id": f"pl{self.playlists_created}"})

        if request.method == "POST" and path.startswith("/playlists/") and path.endswith("/tracks"):
            status = self.add_statuses.pop(0) if self.add_statuses else 201
            if status >= 400:
                return httpx.Response(status, json={"error": {"status": status, "message": "nope"}})
            return httpx.Response(status, json={"snapshot_id": "snap"})

        return httpx.Response(404, json={"error": {"status": 404, "message": "not found"}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        spotify_client_id="client-id",
        spotify_client_secret="client-secret",
        spotify_redirect_uri="http://testserver/callback",
        frontend_url="http://frontend.test",
        agents_api_key="test-key",
        retry_delay=0.0,
        session_file=tmp_path / "sessions.json",
    )
