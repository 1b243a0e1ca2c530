# moodfi/config.py
# ---------------------------------------------------------------------------
# Process configuration. Everything comes from the environment (optionally a
# .env at the project root) and is built once at startup; request handlers
# receive it through FastAPI's dependency injection.
# ---------------------------------------------------------------------------

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

_ROOT_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=_ROOT_DIR / ".env", override=False)

SCOPES = "user-top-read playlist-modify-public playlist-modify-private"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    # Spotify OAuth
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_redirect_uri: str = "http://127.0.0.1:8000/callback"
    frontend_url: str = "http://127.0.0.1:8501"

    # API key for the helper endpoints used by the UI
    agents_api_key: str = "dev-key-change-me"

    # Language-model providers (a blank key disables the provider)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    groq_api_key: str = ""
    groq_model: str = "llama-3.1-8b-instant"

    # Upstream call policy
    http_timeout: float = 10.0
    retry_attempts: int = 3
    retry_delay: float = 5.0

    # Recommendation policy
    target_track_count: int = 10
    supplementary_attempts: int = 3
    supplementary_page_size: int = 5
    default_genre: str = "pop"

    # Sessions
    session_file: Path = _ROOT_DIR / ".appdata" / "sessions.json"
    cookie_secure: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        session_file: Optional[str] = os.getenv("MOODFI_SESSION_FILE")
        return cls(
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID", ""),
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET", ""),
            spotify_redirect_uri=os.getenv("SPOTIFY_REDIRECT_URI", "http://127.0.0.1:8000/callback"),
            frontend_url=os.getenv("FRONTEND_URL", "http://127.0.0.1:8501"),
            agents_api_key=os.getenv("AGENTS_API_KEY", "dev-key-change-me"),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            groq_model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
            http_timeout=float(os.getenv("MOODFI_HTTP_TIMEOUT", "10")),
            retry_attempts=int(os.getenv("MOODFI_RETRY_ATTEMPTS", "3")),
            retry_delay=float(os.getenv("MOODFI_RETRY_DELAY", "5")),
            session_file=Path(session_file) if session_file else _ROOT_DIR / ".appdata" / "sessions.json",
            cookie_secure=_env_bool("MOODFI_COOKIE_SECURE"),
        )

    def require_spotify(self) -> None:
        if not self.spotify_client_id or not self.spotify_client_secret:
            raise RuntimeError("Missing SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET in .env")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
