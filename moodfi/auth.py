# moodfi/auth.py
from __future__ import annotations

import base64
import json
import logging
import secrets
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from fastapi import Request, Response

from moodfi.config import SCOPES, Settings
from moodfi.schemas import SpotifyTokens

log = logging.getLogger("auth")

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
LOGOUT_URL = "https://accounts.spotify.com/en/logout"

SESSION_COOKIE = "sid"
STATE_TTL_SECS = 600
REFRESH_MARGIN_SECS = 30


# ---- File-backed JSON ----
def _load(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("[auth] unreadable store %s, starting empty: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _save(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---- OAuth state (carries the mood across the redirect) ----
class StateStore:
    """Single-use, expiring `state` nonces mapped to the mood typed before login."""

    def __init__(self, path: Path, ttl: int = STATE_TTL_SECS):
        self.path = path
        self.ttl = ttl

    def new_state(self, mood: str = "") -> str:
        s = secrets.token_urlsafe(24)
        states = _load(self.path)
        now = int(time.time())
        states = {k: v for k, v in states.items() if now - int(v.get("created_at", 0)) <= self.ttl}
        states[s] = {"created_at": now, "mood": mood or ""}
        _save(self.path, states)
        return s

    def pop_state(self, state: Optional[str]) -> Optional[str]:
        """Returns the stored mood, or None for an unknown/expired state."""
        if not state:
            return None
        states = _load(self.path)
        rec = states.pop(state, None)
        if rec is None:
            return None
        _save(self.path, states)
        if int(time.time()) - int(rec.get("created_at", 0)) > self.ttl:
            return None
        return str(rec.get("mood", ""))


# ---- OAuth helpers ----
def create_login_redirect_url(settings: Settings, state: str) -> str:
    settings.require_spotify()
    params = {
        "client_id": settings.spotify_client_id,
        "response_type": "code",
        "redirect_uri": settings.spotify_redirect_uri,
        "scope": SCOPES,
        "state": state,
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def logout_redirect_url(settings: Settings) -> str:
    return f"{LOGOUT_URL}?{urlencode({'continue': settings.frontend_url})}"


def _basic_auth(settings: Settings) -> str:
    return base64.b64encode(f"{settings.spotify_client_id}:{settings.spotify_client_secret}".encode()).decode()


async def _token_request(settings: Settings, data: Dict[str, str],
                         transport: Optional[httpx.AsyncBaseTransport] = None) -> Dict[str, Any]:
    settings.require_spotify()
    async with httpx.AsyncClient(timeout=settings.http_timeout, transport=transport) as client:
        r = await client.post(TOKEN_URL, headers={"Authorization": f"Basic {_basic_auth(settings)}"}, data=data)
        r.raise_for_status()
        return r.json()


async def exchange_code_for_tokens(settings: Settings, code: str,
                                   transport: Optional[httpx.AsyncBaseTransport] = None) -> SpotifyTokens:
    data = await _token_request(settings, {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": settings.spotify_redirect_uri,
    }, transport)
    if not data.get("access_token"):
        raise ValueError("token response has no access_token")
    return SpotifyTokens(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        expires_at=int(time.time()) + int(data.get("expires_in", 3600)),
        scope=data.get("scope", ""),
        token_type=data.get("token_type", "Bearer"),
    )


async def refresh_access_token(settings: Settings, tokens: SpotifyTokens,
                               transport: Optional[httpx.AsyncBaseTransport] = None) -> SpotifyTokens:
    if not tokens.refresh_token:
        raise ValueError("no refresh token")
    data = await _token_request(settings, {
        "grant_type": "refresh_token",
        "refresh_token": tokens.refresh_token,
    }, transport)
    if not data.get("access_token"):
        raise ValueError("refresh response has no access_token")
    # carry forward refresh_token if not returned
    return SpotifyTokens(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token") or tokens.refresh_token,
        expires_at=int(time.time()) + int(data.get("expires_in", 3600)),
        scope=data.get("scope", tokens.scope),
        token_type=data.get("token_type", tokens.token_type),
    )


def is_expired(tokens: SpotifyTokens) -> bool:
    return tokens.expires_at - int(time.time()) <= REFRESH_MARGIN_SECS


# ---- Credential storage ----
class CredentialStore:
    """Where the caller's Spotify tokens live between requests."""

    def read(self, request: Request) -> Optional[SpotifyTokens]:
        raise NotImplementedError

    def write(self, request: Request, tokens: SpotifyTokens, response: Optional[Response] = None) -> None:
        raise NotImplementedError

    def clear(self, request: Request, response: Response) -> None:
        raise NotImplementedError


class FileSessionStore(CredentialStore):
    """
    Tokens are kept server-side in a JSON file keyed by a random session id;
    the browser only holds the id in an http-only cookie.
    """

    def __init__(self, path: Path, cookie_secure: bool = False, max_age: int = 30 * 24 * 3600):
        self.path = path
        self.cookie_secure = cookie_secure
        self.max_age = max_age

    def _sid(self, request: Request) -> str:
        return (request.cookies.get(SESSION_COOKIE) or "").strip()

    def read(self, request: Request) -> Optional[SpotifyTokens]:
        sid = self._sid(request)
        if not sid:
            return None
        rec = _load(self.path).get(sid)
        if not rec or not isinstance(rec, dict):
            return None
        try:
            return SpotifyTokens(**rec.get("tokens", {}))
        except (TypeError, ValueError) as e:
            log.warning("[auth] malformed session record: %s", e)
            return None

    def write(self, request: Request, tokens: SpotifyTokens, response: Optional[Response] = None) -> None:
        """
        Same session id is kept when one exists, so a refresh needs no new cookie.
        Records older than `max_age` are dropped on every write.
        """
        sid = self._sid(request)
        now = int(time.time())
        db = {
            k: v for k, v in _load(self.path).items()
            if isinstance(v, dict) and now - int(v.get("created_at", 0)) <= self.max_age
        }
        if not sid or sid not in db:
            sid = secrets.token_urlsafe(24)
        db[sid] = {"created_at": now, "tokens": tokens.model_dump()}
        _save(self.path, db)
        if response is None:
            return
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            secure=self.cookie_secure,
            samesite="lax",
            max_age=self.max_age,
        )

    def clear(self, request: Request, response: Response) -> None:
        sid = self._sid(request)
        if sid:
            db = _load(self.path)
            if db.pop(sid, None) is not None:
                _save(self.path, db)
        response.delete_cookie(SESSION_COOKIE)


async def ensure_fresh_access_token(settings: Settings, store: CredentialStore, request: Request,
                                    transport: Optional[httpx.AsyncBaseTransport] = None) -> Optional[str]:
    """
    Access token for this caller, refreshed first if it is about to expire.
    None means the caller has to log in again.
    """
    tokens = store.read(request)
    if tokens is None:
        return None
    if not is_expired(tokens):
        return tokens.access_token
    try:
        fresh = await refresh_access_token(settings, tokens, transport)
    except (httpx.HTTPError, ValueError, RuntimeError) as e:
        log.warning("[auth] token refresh failed: %s", e)
        return None
    store.write(request, fresh)
    return fresh.access_token
