# moodfi/routes/auth_routes.py
from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from moodfi.auth import (
    CredentialStore,
    StateStore,
    create_login_redirect_url,
    exchange_code_for_tokens,
    logout_redirect_url,
)
from moodfi.config import Settings, get_settings
from moodfi.dependencies import get_credential_store, get_state_store

log = logging.getLogger("auth")

router = APIRouter(tags=["spotify auth"])


def _safe_redirect(settings: Settings, reason: str) -> RedirectResponse:
    return RedirectResponse(f"{settings.frontend_url}/?{urlencode({'error': reason})}", status_code=302)


@router.get("/login")
def login(
    mood: str = "",
    settings: Settings = Depends(get_settings),
    states: StateStore = Depends(get_state_store),
):
    try:
        settings.require_spotify()
    except RuntimeError as e:
        log.error("[auth] cannot start login: %s", e)
        return _safe_redirect(settings, "auth_failed")
    state = states.new_state(mood)
    log.info("[auth] redirecting to Spotify authorization")
    return RedirectResponse(create_login_redirect_url(settings, state), status_code=302)


@router.get("/callback")
async def callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    states: StateStore = Depends(get_state_store),
    store: CredentialStore = Depends(get_credential_store),
):
    if not code:
        log.info("[auth] authorization code missing, back to /login")
        return RedirectResponse("/login", status_code=302)

    mood = states.pop_state(state)
    if mood is None:
        log.warning("[auth] unknown or expired state")
        return _safe_redirect(settings, "auth_failed")

    try:
        tokens = await exchange_code_for_tokens(settings, code)
    except (httpx.HTTPError, ValueError, RuntimeError) as e:
        log.error("[auth] token exchange failed: %s", e)
        return _safe_redirect(settings, "auth_failed")

    resp = RedirectResponse(f"/generate?{urlencode({'mood': mood})}", status_code=302)
    store.write(request, tokens, resp)
    log.info("[auth] session stored")
    return resp


@router.get("/logout")
def logout(
    request: Request,
    settings: Settings = Depends(get_settings),
    store: CredentialStore = Depends(get_credential_store),
):
    resp = RedirectResponse(logout_redirect_url(settings), status_code=302)
    store.clear(request, resp)
    log.info("[auth] user logged out and cookie cleared")
    return resp
