# moodfi/llm_helper.py
# ---------------------------------------------------------------------------
# Language-model mood extraction. Each provider is a MoodStrategy that sends
# the same prompt and must answer with a JSON object; anything else (provider
# error, missing key, unparseable reply) raises MoodStrategyError so the
# classifier can move on to the next strategy.
# ---------------------------------------------------------------------------

from __future__ import annotations

import json
import re
from typing import Any

import google.generativeai as genai
from groq import AsyncGroq
from openai import AsyncOpenAI

from moodfi.errors import MoodStrategyError
from moodfi.schemas import MoodAnalysis, MoodLabel

MOODS = ", ".join(m.value for m in MoodLabel)

SYSTEM_PROMPT = "You extract music preferences from short messages and answer with JSON only."

PROMPT_TEMPLATE = (
    "Read the user's message and extract:\n"
    f"- mood: exactly one of [{MOODS}]\n"
    "- genre: a music genre if the user names one, otherwise null\n"
    "- artist: an artist if the user names one, otherwise null\n"
    'Respond with a single JSON object like {{"mood": "happy", "genre": null, "artist": null}} '
    "and nothing else.\n"
    "Message: {text}"
)

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*|\s*```\s*$")


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=(text or "").strip())


def strip_code_fences(raw: str) -> str:
    """Remove a leading ```json / ``` fence and the closing ``` if present."""
    return _FENCE_RE.sub("", raw or "").strip()


def parse_mood_json(raw: str) -> MoodAnalysis:
    try:
        data: Any = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MoodStrategyError(f"reply is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MoodStrategyError(f"reply is not a JSON object: {type(data).__name__}")
    if not data.get("mood"):
        raise MoodStrategyError("reply has no mood")
    return MoodAnalysis(mood=data.get("mood"), genre=data.get("genre"), artist=data.get("artist"))


# ---------------------------------------------------------------------------
# Strategy interface
# ---------------------------------------------------------------------------
class MoodStrategy:
    name = "base"

    async def analyze(self, text: str) -> MoodAnalysis:
        raise NotImplementedError


class LLMMoodStrategy(MoodStrategy):
    """Shared flow: check key -> complete -> unwrap -> parse."""

    def __init__(self, api_key: str, model: str, timeout: float = 10.0):
        self.api_key = api_key or ""
        self.model = model
        self.timeout = timeout

    async def _complete(self, prompt: str) -> str:
        raise NotImplementedError

    def _unwrap(self, raw: str) -> str:
        return (raw or "").strip()

    async def analyze(self, text: str) -> MoodAnalysis:
        if not self.api_key:
            raise MoodStrategyError(f"{self.name}: no API key configured")
        try:
            raw = await self._complete(build_prompt(text))
        except MoodStrategyError:
            raise
        except Exception as e:
            raise MoodStrategyError(f"{self.name}: provider call failed: {e}") from e
        return parse_mood_json(self._unwrap(raw))


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------
class OpenAIMoodStrategy(LLMMoodStrategy):
    name = "openai"

    async def _complete(self, prompt: str) -> str:
        async with AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0) as client:
            res = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.0,
                max_tokens=120,
                response_format={"type": "json_object"},
            )
        return res.choices[0].message.content or ""


class GeminiMoodStrategy(LLMMoodStrategy):
    name = "gemini"

    async def _complete(self, prompt: str) -> str:
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model)
        res = await model.generate_content_async(
            f"{SYSTEM_PROMPT}\n\n{prompt}",
            request_options={"timeout": self.timeout},
        )
        return res.text or ""

    def _unwrap(self, raw: str) -> str:
        # Gemini tends to wrap JSON in ```json fences
        return strip_code_fences(raw)


class GroqMoodStrategy(LLMMoodStrategy):
    name = "groq"

    async def _complete(self, prompt: str) -> str:
        async with AsyncGroq(api_key=self.api_key, timeout=self.timeout, max_retries=0) as client:
            res = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.0,
                max_tokens=120,
            )
        return res.choices[0].message.content or ""


__all__ = [
    "MoodStrategy",
    "LLMMoodStrategy",
    "OpenAIMoodStrategy",
    "GeminiMoodStrategy",
    "GroqMoodStrategy",
    "build_prompt",
    "strip_code_fences",
    "parse_mood_json",
]
