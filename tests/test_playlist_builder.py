import asyncio

import httpx
import pytest

from conftest import FakeSpotify
from moodfi.errors import SpotifyAPIError, SpotifyRateLimited
from moodfi.playlist_builder import PLAYLIST_DESCRIPTION, PlaylistBuilder, call_with_rate_limit_retry
from moodfi.spotify import SpotifyClient


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def build(fake, name="Moodfi - Happy Playlist", uris=("spotify:track:a", "spotify:track:b"), attempts=3):
    sleep = SleepRecorder()

    async def _go():
        async with httpx.AsyncClient(base_url="https://api.spotify.com/v1", transport=fake.transport) as http:
            builder = PlaylistBuilder(SpotifyClient("tok", http), attempts=attempts, delay=5.0, sleep=sleep)
            return await builder.build(name, list(uris))

    return asyncio.run(_go()), sleep


# ----------------------------
# Retry helper
# ----------------------------
def test_retry_succeeds_on_third_attempt():
    calls = []
    sleep = SleepRecorder()

    async def op():
        calls.append(1)
        if len(calls) < 3:
            raise SpotifyRateLimited("busy")
        return "ok"

    assert asyncio.run(call_with_rate_limit_retry(op, "op", attempts=3, delay=5.0, sleep=sleep)) == "ok"
    assert len(calls) == 3
    assert sleep.delays == [5.0, 5.0]


def test_retry_gives_up_after_bound():
    calls = []
    sleep = SleepRecorder()

    async def op():
        calls.append(1)
        raise SpotifyRateLimited("busy")

    with pytest.raises(SpotifyRateLimited):
        asyncio.run(call_with_rate_limit_retry(op, "op", attempts=3, delay=1.0, sleep=sleep))
    assert len(calls) == 3
    assert len(sleep.delays) == 2


def test_other_errors_are_not_retried():
    calls = []
    sleep = SleepRecorder()

    async def op():
        calls.append(1)
        raise SpotifyAPIError(403, "forbidden")

    with pytest.raises(SpotifyAPIError) as exc:
        asyncio.run(call_with_rate_limit_retry(op, "op", attempts=3, sleep=sleep))
    assert exc.value.status == 403
    assert len(calls) == 1
    assert sleep.delays == []


# ----------------------------
# PlaylistBuilder
# ----------------------------
def test_build_creates_public_playlist_with_one_batch_insert():
    fake = FakeSpotify()
    playlist_id, sleep = build(fake)
    assert playlist_id == "pl1"
    creates = fake.calls_to("POST", "/users/")
    assert len(creates) == 1
    assert creates[0]["path"] == "/users/user-1/playlists"
    assert creates[0]["json"] == {
        "name": "Moodfi - Happy Playlist",
        "public": True,
        "description": PLAYLIST_DESCRIPTION,
    }
    adds = fake.calls_to("POST", "/playlists/")
    assert len(adds) == 1
    assert adds[0]["path"] == "/playlists/pl1/tracks"
    assert adds[0]["json"] == {"uris": ["spotify:track:a", "spotify:track:b"]}
    assert sleep.delays == []


def test_create_rate_limited_twice_then_succeeds():
    fake = FakeSpotify(create_statuses=[429, 429, 201])
    playlist_id, sleep = build(fake)
    assert playlist_id == "pl1"
    assert len(fake.calls_to("POST", "/users/")) == 3
    assert sleep.delays == [5.0, 5.0]


def test_create_rate_limited_past_bound_returns_none():
    fake = FakeSpotify(create_statuses=[429, 429, 429, 201])
    playlist_id, _ = build(fake)
    assert playlist_id is None
    assert len(fake.calls_to("POST", "/users/")) == 3
    assert fake.calls_to("POST", "/playlists/") == []


def test_add_tracks_rate_limited_past_bound_returns_none():
    fake = FakeSpotify(add_statuses=[429, 429, 429])
    playlist_id, _ = build(fake)
    assert playlist_id is None
    assert len(fake.calls_to("POST", "/playlists/")) == 3


def test_add_tracks_retry_then_success():
    fake = FakeSpotify(add_statuses=[429])
    playlist_id, sleep = build(fake)
    assert playlist_id == "pl1"
    assert len(fake.calls_to("POST", "/playlists/")) == 2
    assert sleep.delays == [5.0]


def test_non_rate_limit_failure_fails_fast():
    fake = FakeSpotify(create_statuses=[500])
    playlist_id, sleep = build(fake)
    assert playlist_id is None
    assert len(fake.calls_to("POST", "/users/")) == 1
    assert sleep.delays == []


def test_unknown_user_stops_before_create():
    fake = FakeSpotify(me_status=401)
    playlist_id, _ = build(fake)
    assert playlist_id is None
    assert fake.calls_to("POST", "/users/") == []


def test_two_builds_create_two_playlists():
    fake = FakeSpotify()

    async def _go():
        async with httpx.AsyncClient(base_url="https://api.spotify.com/v1", transport=fake.transport) as http:
            builder = PlaylistBuilder(SpotifyClient("tok", http), sleep=SleepRecorder())
            first = await builder.build("Moodfi - Sad Playlist", ["spotify:track:x"])
            second = await builder.build("Moodfi - Sad Playlist", ["spotify:track:x"])
            return first, second

    assert asyncio.run(_go()) == ("pl1", "pl2")
    assert len(fake.calls_to("POST", "/users/")) == 2


def test_single_attempt_raises_without_sleeping():
    sleep = SleepRecorder()

    async def op():
        raise SpotifyRateLimited("busy")

    with pytest.raises(SpotifyRateLimited):
        asyncio.run(call_with_rate_limit_retry(op, "op", attempts=1, sleep=sleep))
    assert sleep.delays == []


def test_rate_limited_response_is_retryable_error():
    fake = FakeSpotify(create_statuses=[429])

    async def _go():
        async with httpx.AsyncClient(base_url="https://api.spotify.com/v1", transport=fake.transport) as http:
            await SpotifyClient("tok", http).create_playlist("user-1", "n", PLAYLIST_DESCRIPTION)

    with pytest.raises(SpotifyRateLimited) as exc:
        asyncio.run(_go())
    assert exc.value.status == 429
