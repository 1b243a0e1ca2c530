import html
import os
from urllib.parse import urlencode

import requests
import streamlit as st
from dotenv import load_dotenv

# ----------------------------
# Env / Config
# ----------------------------
load_dotenv()
API_BASE = os.getenv("AGENTS_API_BASE", "http://127.0.0.1:8000")
API_KEY = os.getenv("AGENTS_API_KEY", "dev-key-change-me")

# ----------------------------
# Streamlit page config
# ----------------------------
st.set_page_config(page_title="Moodfi", page_icon="🎧", layout="centered")

st.markdown("""
<style>
:root { --primary: #1DB954; --bg: #121212; --text-secondary: #b3b3b3; }
.stApp { background: var(--bg); color: #ffffff; font-family: 'Inter', sans-serif; }
.header-title { font-size: 2.2rem; font-weight: 700; color: var(--primary); text-align: center; }
.header-subtitle { font-size: 1rem; color: var(--text-secondary); text-align: center; margin-bottom: 1.5rem; }
.go-link { display:inline-block; width:100%; text-align:center; padding:14px 18px; border-radius:12px;
           background:#1DB954; color:#000 !important; font-weight:800; text-decoration:none; }
</style>
<div class="header-title">Moodfi</div>
<div class="header-subtitle">Tell us how you feel, get a Spotify playlist that matches.</div>
""", unsafe_allow_html=True)

# ----------------------------
# Errors bounced back from the API
# ----------------------------
ERRORS = {
    "auth_failed": "Spotify sign-in did not complete. Please try again.",
    "generation_failed": "We couldn't build a playlist this time. Try describing your mood differently.",
}
err = st.query_params.get("error")
if err:
    st.warning(ERRORS.get(err, "Something went wrong. Please try again."))


def analyze_mood(text: str):
    try:
        r = requests.post(
            f"{API_BASE}/analyze",
            headers={"x-api-key": API_KEY},
            json={"text": text},
            timeout=15,
        )
    except requests.exceptions.RequestException:
        return None
    if not r.ok:
        return None
    return r.json()


# ----------------------------
# Mood input
# ----------------------------
user_text = st.text_input("How are you feeling?", placeholder="E.g. 'I feel angry' or 'chill jazz for a rainy day'")

if user_text.strip():
    with st.spinner("Reading the vibe..."):
        analysis = analyze_mood(user_text.strip())
    if analysis:
        parts = [f"Mood: **{analysis['mood']}**"]
        if analysis.get("genre"):
            parts.append(f"Genre: **{analysis['genre']}**")
        if analysis.get("artist"):
            parts.append(f"Artist: **{analysis['artist']}**")
        st.caption(" · ".join(parts))

    login_url = f"{API_BASE}/login?{urlencode({'mood': user_text.strip()})}"
    st.markdown(
        f'<a class="go-link" href="{html.escape(login_url)}" target="_self">🎧 Sign in with Spotify &amp; generate</a>',
        unsafe_allow_html=True,
    )

st.markdown(
    f'<p style="text-align:center;margin-top:2rem;"><a href="{API_BASE}/logout" target="_self" '
    f'style="color:#b3b3b3;">Log out</a></p>',
    unsafe_allow_html=True,
)
