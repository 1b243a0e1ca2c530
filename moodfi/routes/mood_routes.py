from fastapi import APIRouter, Depends, HTTPException

from moodfi.dependencies import get_mood_classifier
from moodfi.mood_detector import MoodClassifier
from moodfi.schemas import AnalyzeResponse, TextInput

# The parent app injects the API-key dependency when including this router
router = APIRouter(tags=["mood"])


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(inp: TextInput, classifier: MoodClassifier = Depends(get_mood_classifier)):
    txt = (inp.text or "").strip()
    if not txt or len(txt) > 800:
        raise HTTPException(status_code=400, detail="Text must be 1..800 characters.")
    result = await classifier.analyze(txt)
    return AnalyzeResponse(mood=result.mood, genre=result.genre, artist=result.artist)
