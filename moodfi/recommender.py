# moodfi/recommender.py
from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from moodfi.errors import SpotifyAPIError
from moodfi.nlp_helper import canonical_genre
from moodfi.schemas import MoodLabel, RecommendationParams, Track, UserSeeds
from moodfi.scoring import mood_genres, mood_targets
from moodfi.spotify import SpotifyClient

log = logging.getLogger("recommend")

TARGET_COUNT = 10
SEED_LIMIT = 5


# ----------------------------
# Listening-history seeds
# ----------------------------
class SeedResolver:
    def __init__(self, client: SpotifyClient, limit: int = SEED_LIMIT):
        self.client = client
        self.limit = limit

    async def resolve(self) -> UserSeeds:
        """
        Top artists and top tracks, fetched together. If either call fails
        both come back empty: empty seeds mean "no history", never an error.
        """
        artists, tracks = await asyncio.gather(
            self.client.top_ids("artists", self.limit),
            self.client.top_ids("tracks", self.limit),
            return_exceptions=True,
        )
        for res in (artists, tracks):
            if isinstance(res, SpotifyAPIError):
                log.warning("[seeds] top artists/tracks unavailable, treating as new user: %s", res)
                return UserSeeds()
            if isinstance(res, BaseException):
                raise res
        seeds = UserSeeds(top_artists=artists[:self.limit], top_tracks=tracks[:self.limit])
        log.info("[seeds] %d artists, %d tracks", len(seeds.top_artists), len(seeds.top_tracks))
        return seeds


# ----------------------------
# Query construction
# ----------------------------
class RecommendationRequestBuilder:
    """
    Existing users are seeded by their own artists/tracks; new users by an
    explicit genre if one was recognized, else by the mood's genre list.
    Mood audio-feature bounds are merged in every branch.
    """

    def __init__(self, target_count: int = TARGET_COUNT, genre_count: int = 3, apply_mood_targets: bool = True):
        self.target_count = target_count
        self.genre_count = genre_count
        self.apply_mood_targets = apply_mood_targets

    def build(self, mood: MoodLabel, explicit_genre: Optional[str], seeds: UserSeeds) -> RecommendationParams:
        params: RecommendationParams = {"limit": self.target_count}

        if not seeds.is_empty:
            if seeds.top_artists:
                params["seed_artists"] = ",".join(seeds.top_artists[:2])
            if seeds.top_tracks:
                params["seed_tracks"] = ",".join(seeds.top_tracks[:2])
        else:
            genre = canonical_genre(explicit_genre)
            if genre:
                params["seed_genres"] = genre
            else:
                log.info("[recommend] no history, seeding from %s genres", getattr(mood, "value", mood))
                params["seed_genres"] = ",".join(mood_genres(mood, self.genre_count))

        if self.apply_mood_targets:
            params.update(mood_targets(mood))
        return params


# ----------------------------
# Fetch with top-up
# ----------------------------
def _dedupe(tracks: Sequence[Track]) -> List[Track]:
    seen, out = set(), []
    for t in tracks:
        if t.uri in seen:
            continue
        seen.add(t.uri)
        out.append(t)
    return out


class RecommendationFetcher:
    def __init__(
        self,
        client: SpotifyClient,
        target_count: int = TARGET_COUNT,
        max_attempts: int = 3,
        page_size: int = 5,
    ):
        self.client = client
        self.target_count = target_count
        self.max_attempts = max_attempts
        self.page_size = page_size

    async def _safe_recommendations(self, params: RecommendationParams) -> List[Track]:
        try:
            return await self.client.recommendations(params)
        except SpotifyAPIError as e:
            log.warning("[recommend] request failed: %s", e)
            return []

    async def fetch(self, params: RecommendationParams, fallback_genres: Sequence[str] = ()) -> List[Track]:
        """
        Primary request, then up to `max_attempts` genre-seeded top-ups sized
        to the deficit (never more than `page_size` per call). Returns at most
        `target_count` tracks and never raises.
        """
        tracks = _dedupe(await self._safe_recommendations(params))
        if len(tracks) >= self.target_count:
            return tracks[:self.target_count]

        genres = [g for g in fallback_genres if g][:3]
        if not genres:
            return tracks

        log.warning("[recommend] only %d tracks found, fetching more", len(tracks))
        for attempt in range(1, self.max_attempts + 1):
            deficit = self.target_count - len(tracks)
            if deficit <= 0:
                break
            extra = await self._safe_recommendations({
                "limit": min(deficit, self.page_size),
                "seed_genres": ",".join(genres),
            })
            if not extra:
                log.warning("[recommend] top-up %d returned no tracks, stopping", attempt)
                break
            tracks = _dedupe(tracks + extra)

        return tracks[:self.target_count]
