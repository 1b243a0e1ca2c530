# moodfi/playlist_service.py
# ---------------------------------------------------------------------------
# One /generate request: text -> mood -> seeds -> query -> tracks -> playlist.
# Stage failures are absorbed inside the stages; only "no usable playlist"
# escapes, as PlaylistGenerationError.
# ---------------------------------------------------------------------------

from __future__ import annotations

import datetime as dt
import logging
from typing import List, Optional

import httpx

from moodfi.config import Settings
from moodfi.errors import PlaylistGenerationError
from moodfi.mood_detector import MoodClassifier
from moodfi.nlp_helper import canonical_genre, detect_genre
from moodfi.playlist_builder import PlaylistBuilder
from moodfi.recommender import RecommendationFetcher, RecommendationRequestBuilder, SeedResolver
from moodfi.schemas import MoodAnalysis, MoodLabel, Track
from moodfi.scoring import mood_genres
from moodfi.spotify import SpotifyClient, make_http_client

log = logging.getLogger("playlist")


def playlist_name(mood: MoodLabel, user_text: str = "", today: Optional[dt.date] = None) -> str:
    """
    "Moodfi - Happy Playlist (Oct 19, 2026)" when the user typed something,
    "Moodfi - Sunday Mix" otherwise.
    """
    today = today or dt.date.today()
    if not (user_text or "").strip():
        return f"Moodfi - {today:%A} Mix"
    return f"Moodfi - {mood.value.capitalize()} Playlist ({today:%b} {today.day}, {today.year})"


def explicit_genre(analysis: MoodAnalysis, user_text: str) -> Optional[str]:
    """Genre from the analysis if recognized, else the first genre named in the text."""
    return canonical_genre(analysis.genre) or detect_genre(user_text)


async def generate_playlist(
    user_text: str,
    access_token: str,
    settings: Settings,
    classifier: MoodClassifier,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """Returns the new playlist id or raises PlaylistGenerationError."""
    analysis = await classifier.analyze(user_text)
    mood = analysis.mood
    genre = explicit_genre(analysis, user_text)
    log.info("[generate] mood=%s genre=%s artist=%s", mood.value, genre, analysis.artist)

    async with make_http_client(settings, transport) as http:
        client = SpotifyClient(access_token, http)

        seeds = await SeedResolver(client).resolve()
        params = RecommendationRequestBuilder(target_count=settings.target_track_count).build(mood, genre, seeds)

        fetcher = RecommendationFetcher(
            client,
            target_count=settings.target_track_count,
            max_attempts=settings.supplementary_attempts,
            page_size=settings.supplementary_page_size,
        )
        fallback = [genre] if genre and seeds.is_empty else []
        fallback += [g for g in mood_genres(mood, 3) if g not in fallback]
        tracks: List[Track] = await fetcher.fetch(params, fallback_genres=fallback[:3])

        if not tracks:
            log.warning("[generate] no tracks for mood=%s, trying default genre %s", mood.value, settings.default_genre)
            tracks = await fetcher.fetch({"limit": settings.target_track_count, "seed_genres": settings.default_genre})
        if not tracks:
            raise PlaylistGenerationError("no tracks obtainable")

        builder = PlaylistBuilder(client, attempts=settings.retry_attempts, delay=settings.retry_delay)
        playlist_id = await builder.build(playlist_name(mood, user_text), [t.uri for t in tracks])

    if not playlist_id:
        raise PlaylistGenerationError("playlist could not be created")
    return playlist_id
