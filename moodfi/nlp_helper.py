# moodfi/nlp_helper.py
# -------------------------------------------------------------------
# Text helpers shared by the mood classifier and the request builder:
# tokenization and the recognized-genre vocabulary.
# -------------------------------------------------------------------

from __future__ import annotations

import re
import unicodedata
from typing import Dict, List, Optional, Set

_WORD_RE = re.compile(r"[a-z0-9\-&']+")


def _norm(s: str) -> str:
    return unicodedata.normalize("NFKC", s or "").strip().lower()


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercased word tokens in input order (duplicates kept)."""
    if not text:
        return []
    return _WORD_RE.findall(_norm(text))


# -------------------------------------------------------------------
# Recognized genres: canonical seed name -> spellings users type
# -------------------------------------------------------------------
GENRE_ALIASES: Dict[str, Set[str]] = {
    "pop":        {"pop"},
    "indie-pop":  {"indie-pop", "indie pop"},
    "indie":      {"indie"},
    "rock":       {"rock", "alt rock", "alt-rock"},
    "alternative": {"alternative"},
    "metal":      {"metal", "heavy metal"},
    "punk":       {"punk"},
    "grunge":     {"grunge"},
    "hardcore":   {"hardcore"},
    "industrial": {"industrial"},
    "hip-hop":    {"hip-hop", "hip hop", "rap"},
    "r-n-b":      {"r-n-b", "r&b", "rnb", "r and b"},
    "soul":       {"soul"},
    "funk":       {"funk"},
    "disco":      {"disco"},
    "edm":        {"edm", "electronic"},
    "dance":      {"dance"},
    "house":      {"house"},
    "techno":     {"techno"},
    "trap":       {"trap"},
    "drill":      {"drill"},
    "jazz":       {"jazz"},
    "blues":      {"blues"},
    "folk":       {"folk"},
    "acoustic":   {"acoustic"},
    "classical":  {"classical", "orchestral"},
    "piano":      {"piano"},
    "ambient":    {"ambient"},
    "lo-fi":      {"lo-fi", "lofi", "lo fi"},
    "shoegaze":   {"shoegaze"},
    "country":    {"country"},
    "reggae":     {"reggae"},
    "latin":      {"latin"},
    "k-pop":      {"k-pop", "kpop"},
    "j-pop":      {"j-pop", "jpop"},
}

_ALIAS_TO_GENRE: Dict[str, str] = {
    alias: canon for canon, aliases in GENRE_ALIASES.items() for alias in (aliases | {canon})
}


def canonical_genre(value: Optional[str]) -> Optional[str]:
    """Map a user/LLM supplied genre to its seed name, or None if unrecognized."""
    g = _norm(value or "")
    if not g:
        return None
    return _ALIAS_TO_GENRE.get(g) or _ALIAS_TO_GENRE.get(g.replace("_", "-"))


def detect_genre(text: Optional[str]) -> Optional[str]:
    """
    First recognized genre mentioned in free text. Two-word spellings
    ("hip hop", "r and b") are checked before single words.
    """
    toks = tokenize(text)
    i = 0
    while i < len(toks):
        for width in (3, 2, 1):
            chunk = " ".join(toks[i:i + width])
            if len(toks[i:i + width]) == width and chunk in _ALIAS_TO_GENRE:
                return _ALIAS_TO_GENRE[chunk]
        i += 1
    return None


__all__ = ["tokenize", "GENRE_ALIASES", "canonical_genre", "detect_genre"]
