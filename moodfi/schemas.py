from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class MoodLabel(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    CHILL = "chill"
    ENERGETIC = "energetic"

    @classmethod
    def parse(cls, value: Optional[str]) -> "MoodLabel":
        """Unknown or empty labels collapse to chill."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.CHILL


class MoodAnalysis(BaseModel):
    mood: MoodLabel = MoodLabel.CHILL
    genre: Optional[str] = None
    artist: Optional[str] = None

    model_config = {"frozen": True}

    @field_validator("mood", mode="before")
    @classmethod
    def _coerce_mood(cls, v):
        if isinstance(v, MoodLabel):
            return v
        return MoodLabel.parse(v if isinstance(v, str) else None)

    @field_validator("genre", "artist", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        if not v or v.lower() in {"none", "null", "n/a", "unknown"}:
            return None
        return v


class UserSeeds(BaseModel):
    top_artists: List[str] = Field(default_factory=list)
    top_tracks: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.top_artists and not self.top_tracks


class Track(BaseModel):
    id: str
    uri: str


# query-parameter name -> value, sent as-is to /recommendations
RecommendationParams = Dict[str, Union[str, int, float]]


class SpotifyTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: int = 0
    scope: str = ""
    token_type: str = "Bearer"


# ----------------------------
# API models
# ----------------------------
class TextInput(BaseModel):
    text: str


class AnalyzeResponse(BaseModel):
    mood: MoodLabel
    genre: Optional[str] = None
    artist: Optional[str] = None
