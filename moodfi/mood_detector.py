# moodfi/mood_detector.py
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from moodfi.config import Settings
from moodfi.errors import MoodStrategyError
from moodfi.llm_helper import (
    GeminiMoodStrategy,
    GroqMoodStrategy,
    MoodStrategy,
    OpenAIMoodStrategy,
)
from moodfi.nlp_helper import detect_genre, tokenize
from moodfi.schemas import MoodAnalysis, MoodLabel

log = logging.getLogger("mood")
if not log.handlers:
    logging.basicConfig(level=logging.INFO)

# -------------------------------------------------
# Keyword fallback vocabulary (exact words only)
# -------------------------------------------------
MOOD_VOCABULARY = {m.value for m in MoodLabel}


class KeywordMoodStrategy(MoodStrategy):
    """
    Deterministic last resort: the first token that is itself a mood word
    wins, otherwise chill. Never raises.
    """

    name = "keyword"

    def detect(self, text: str) -> MoodAnalysis:
        mood = MoodLabel.CHILL
        for tok in tokenize(text):
            if tok in MOOD_VOCABULARY:
                mood = MoodLabel(tok)
                break
        return MoodAnalysis(mood=mood, genre=detect_genre(text))

    async def analyze(self, text: str) -> MoodAnalysis:
        return self.detect(text)


class MoodClassifier:
    """
    Runs the strategies in priority order; the first one that returns wins.
    A failing strategy is logged and skipped. The keyword strategy always
    closes the chain.
    """

    def __init__(self, strategies: Sequence[MoodStrategy] = ()):
        self.strategies: List[MoodStrategy] = [s for s in strategies if not isinstance(s, KeywordMoodStrategy)]
        self.fallback = KeywordMoodStrategy()

    async def analyze(self, user_input: Optional[str]) -> MoodAnalysis:
        text = (user_input or "").strip()
        if not text:
            return MoodAnalysis(mood=MoodLabel.CHILL)

        for strategy in self.strategies:
            try:
                result = await strategy.analyze(text)
                log.info("[mood] %s -> %s (genre=%s, artist=%s)", strategy.name, result.mood.value, result.genre, result.artist)
                return result
            except MoodStrategyError as e:
                log.warning("[mood] %s failed: %s", strategy.name, e)
            except Exception as e:
                log.warning("[mood] %s failed unexpectedly: %s", strategy.name, e)

        result = self.fallback.detect(text)
        log.info("[mood] keyword fallback -> %s", result.mood.value)
        return result


def build_mood_classifier(settings: Settings) -> MoodClassifier:
    """Primary OpenAI, secondary Gemini, tertiary Groq, then keywords."""
    return MoodClassifier([
        OpenAIMoodStrategy(settings.openai_api_key, settings.openai_model, settings.http_timeout),
        GeminiMoodStrategy(settings.gemini_api_key, settings.gemini_model, settings.http_timeout),
        GroqMoodStrategy(settings.groq_api_key, settings.groq_model, settings.http_timeout),
    ])


__all__ = ["MOOD_VOCABULARY", "KeywordMoodStrategy", "MoodClassifier", "build_mood_classifier"]
