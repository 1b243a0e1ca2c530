# moodfi/playlist_builder.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from moodfi.errors import SpotifyAPIError, SpotifyRateLimited
from moodfi.spotify import SpotifyClient

log = logging.getLogger("playlist")

PLAYLIST_DESCRIPTION = "Mood-based playlist generated by Moodfi"

T = TypeVar("T")


async def call_with_rate_limit_retry(
    op: Callable[[], Awaitable[T]],
    label: str,
    attempts: int = 3,
    delay: float = 5.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run `op` up to `attempts` times, waiting `delay` seconds after each 429.
    Any other SpotifyAPIError is raised straight away; the last 429 is
    re-raised once attempts run out.
    """
    attempts = max(1, attempts)
    for attempt in range(1, attempts):
        try:
            return await op()
        except SpotifyRateLimited:
            log.warning("[playlist] %s rate limited (attempt %d/%d), retrying in %.1fs", label, attempt, attempts, delay)
            await sleep(delay)
    try:
        return await op()
    except SpotifyRateLimited:
        log.error("[playlist] %s still rate limited after %d attempts", label, attempts)
        raise


class PlaylistBuilder:
    def __init__(
        self,
        client: SpotifyClient,
        attempts: int = 3,
        delay: float = 5.0,
        description: str = PLAYLIST_DESCRIPTION,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.attempts = attempts
        self.delay = delay
        self.description = description
        self._sleep = sleep

    async def create(self, user_id: str, name: str) -> Optional[str]:
        try:
            return await call_with_rate_limit_retry(
                lambda: self.client.create_playlist(user_id, name, self.description, public=True),
                "create playlist", self.attempts, self.delay, self._sleep,
            )
        except SpotifyAPIError as e:
            log.error("[playlist] could not create '%s': %s", name, e)
            return None

    async def add_tracks(self, playlist_id: str, track_uris: List[str]) -> bool:
        try:
            await call_with_rate_limit_retry(
                lambda: self.client.add_tracks(playlist_id, track_uris),
                "add tracks", self.attempts, self.delay, self._sleep,
            )
            return True
        except SpotifyAPIError as e:
            log.error("[playlist] could not add %d tracks to %s: %s", len(track_uris), playlist_id, e)
            return False

    async def build(self, name: str, track_uris: List[str]) -> Optional[str]:
        """
        Resolve the user, create the playlist, insert every URI in one batch.
        Returns the playlist id, or None if any step failed.
        """
        try:
            user_id = await self.client.current_user_id()
        except SpotifyAPIError as e:
            log.error("[playlist] could not resolve current user: %s", e)
            return None

        playlist_id = await self.create(user_id, name)
        if not playlist_id:
            return None
        if not await self.add_tracks(playlist_id, track_uris):
            return None
        log.info("[playlist] created %s with %d tracks", playlist_id, len(track_uris))
        return playlist_id
