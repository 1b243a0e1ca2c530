from __future__ import annotations

from fastapi import Depends, Header, HTTPException

from moodfi.auth import CredentialStore, FileSessionStore, StateStore
from moodfi.config import Settings, get_settings
from moodfi.mood_detector import MoodClassifier, build_mood_classifier


def get_credential_store(settings: Settings = Depends(get_settings)) -> CredentialStore:
    return FileSessionStore(settings.session_file, cookie_secure=settings.cookie_secure)


def get_state_store(settings: Settings = Depends(get_settings)) -> StateStore:
    return StateStore(settings.session_file.with_name("oauth_state.json"))


def get_mood_classifier(settings: Settings = Depends(get_settings)) -> MoodClassifier:
    return build_mood_classifier(settings)


def require_api_key(x_api_key: str = Header(default=""), settings: Settings = Depends(get_settings)):
    if x_api_key != settings.agents_api_key:
        raise HTTPException(status_code=401, detail="Unauthorized")
