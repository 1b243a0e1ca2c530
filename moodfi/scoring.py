from __future__ import annotations

from typing import Dict, List, Optional, Union

from moodfi.schemas import MoodLabel

# -------------------------------------------------------------------
# Mood → seed genres (ordered; the first entries are the strongest fit)
# -------------------------------------------------------------------
MOOD_GENRES: Dict[MoodLabel, List[str]] = {
    MoodLabel.HAPPY:     ["pop", "indie-pop", "funk", "soul", "disco", "electropop"],
    MoodLabel.SAD:       ["shoegaze", "folk", "acoustic", "melancholia", "blues", "piano"],
    MoodLabel.ANGRY:     ["metal", "punk", "hardcore", "rock", "grunge", "industrial"],
    MoodLabel.CHILL:     ["lo-fi", "chill", "ambient", "jazz", "soul", "downtempo"],
    MoodLabel.ENERGETIC: ["edm", "dance", "hip-hop", "house", "trap", "drill"],
}

NEUTRAL_GENRES: List[str] = ["pop"]

# -------------------------------------------------------------------
# Mood → audio-feature bounds (flexible ranges, not targets)
# -------------------------------------------------------------------
MOOD_ATTRIBUTES: Dict[MoodLabel, Dict[str, Union[int, float]]] = {
    MoodLabel.HAPPY:     {"min_valence": 0.6, "min_energy": 0.5, "min_tempo": 120, "max_tempo": 160},
    MoodLabel.SAD:       {"max_valence": 0.4, "max_energy": 0.6, "min_acousticness": 0.3, "max_tempo": 100},
    MoodLabel.CHILL:     {"max_energy": 0.5, "min_acousticness": 0.3, "max_tempo": 110},
    MoodLabel.ENERGETIC: {"min_energy": 0.7, "min_tempo": 130},
    MoodLabel.ANGRY:     {"min_energy": 0.8, "min_loudness": -5, "min_tempo": 140},
}


def _as_label(mood: Union[MoodLabel, str, None]) -> Optional[MoodLabel]:
    if isinstance(mood, MoodLabel):
        return mood
    try:
        return MoodLabel((mood or "").strip().lower())
    except ValueError:
        return None


def mood_genres(mood: Union[MoodLabel, str, None], count: int = 3) -> List[str]:
    """
    First `count` seed genres for a mood; moods outside the enumeration get
    the neutral list.
    """
    label = _as_label(mood)
    genres = MOOD_GENRES.get(label, NEUTRAL_GENRES) if label else NEUTRAL_GENRES
    return list(genres[:count])


def mood_targets(mood: Union[MoodLabel, str, None]) -> Dict[str, Union[int, float]]:
    """
    Returns the audio-feature bounds for a mood, e.g.
    {"min_energy": 0.8, "min_loudness": -5, "min_tempo": 140}.
    Unknown moods get no bounds.
    """
    label = _as_label(mood)
    if label is None:
        return {}
    return dict(MOOD_ATTRIBUTES.get(label, {}))
