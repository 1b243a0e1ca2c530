# moodfi/routes/playlist_routes.py
from __future__ import annotations

import html
import logging
import re
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from moodfi.auth import CredentialStore, ensure_fresh_access_token
from moodfi.config import Settings, get_settings
from moodfi.dependencies import get_credential_store, get_mood_classifier
from moodfi.errors import PlaylistGenerationError
from moodfi.mood_detector import MoodClassifier
from moodfi.playlist_service import generate_playlist

log = logging.getLogger("playlist")

router = APIRouter(tags=["playlist"])

_PLAYLIST_ID_RE = re.compile(r"^[A-Za-z0-9]{1,64}$")


@router.get("/generate")
async def generate(
    request: Request,
    mood: str = "",
    settings: Settings = Depends(get_settings),
    store: CredentialStore = Depends(get_credential_store),
    classifier: MoodClassifier = Depends(get_mood_classifier),
):
    access_token = await ensure_fresh_access_token(settings, store, request)
    if not access_token:
        log.info("[generate] no valid credential, redirecting to login")
        return RedirectResponse(f"/login?{urlencode({'mood': mood})}", status_code=302)

    try:
        playlist_id = await generate_playlist(mood, access_token, settings, classifier)
    except PlaylistGenerationError as e:
        log.error("[generate] %s", e)
        return RedirectResponse(f"{settings.frontend_url}/?{urlencode({'error': 'generation_failed'})}", status_code=302)

    return RedirectResponse(f"/result/{playlist_id}", status_code=302)


@router.get("/result/{playlist_id}", response_class=HTMLResponse)
def result(playlist_id: str, settings: Settings = Depends(get_settings)):
    if not _PLAYLIST_ID_RE.match(playlist_id):
        raise HTTPException(status_code=404, detail="Unknown playlist")
    pid = html.escape(playlist_id)
    home = html.escape(settings.frontend_url)
    return HTMLResponse(f"""<!doctype html>
<html><head><meta charset="utf-8"><title>Your Moodfi playlist</title></head>
<body style="font-family:sans-serif;background:#121212;color:#fff;text-align:center;padding:2rem;">
  <h1>Your playlist is ready</h1>
  <iframe src="https://open.spotify.com/embed/playlist/{pid}" width="100%" height="380"
          frameborder="0" allow="encrypted-media" loading="lazy"></iframe>
  <p><a style="color:#1DB954" href="https://open.spotify.com/playlist/{pid}">Open in Spotify</a>
   &middot; <a style="color:#1DB954" href="{home}">Make another</a></p>
</body></html>""")
