# moodfi/errors.py
from __future__ import annotations

from typing import Optional


class SpotifyAPIError(Exception):
    """Non-success response (or transport failure) from the Spotify Web API."""

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"Spotify API error {status}: {message}" if status else f"Spotify API error: {message}")


class SpotifyRateLimited(SpotifyAPIError):
    """HTTP 429 from Spotify."""

    def __init__(self, message: str = "rate limited"):
        super().__init__(429, message)


class MoodStrategyError(Exception):
    """A mood strategy could not produce a result (provider error, bad JSON, not configured)."""


class PlaylistGenerationError(Exception):
    """Nothing usable came out of the pipeline; the caller should redirect to a safe page."""
