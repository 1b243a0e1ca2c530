# moodfi/main.py
from __future__ import annotations

import logging
from typing import List

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from moodfi.config import get_settings
from moodfi.dependencies import require_api_key
from moodfi.routes.auth_routes import router as auth_router
from moodfi.routes.mood_routes import router as mood_router
from moodfi.routes.playlist_routes import router as playlist_router

log = logging.getLogger("moodfi")
if not log.handlers:
    logging.basicConfig(level=logging.INFO)

# ----------------------------------
# App
# ----------------------------------
app = FastAPI(
    title="Moodfi",
    version="1.0.0",
    description="Mood-based Spotify playlist generator.",
)

_settings = get_settings()
allow_origins: List[str] = [_settings.frontend_url, "http://localhost:8501", "http://127.0.0.1:8501"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(dict.fromkeys(allow_origins)),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ----------------------------------
# Routers
# ----------------------------------
app.include_router(auth_router)
app.include_router(playlist_router)
app.include_router(mood_router, dependencies=[Depends(require_api_key)])


# Utility routes
@app.get("/")
def root():
    return {"service": "moodfi", "status": "ok"}


@app.get("/health")
def health():
    return {"ok": True}
