from __future__ import annotations

from typing import Dict, List

from services.ai_search import SearchIntent
from services.grouping import GroupedEvent

KEYWORD_WEIGHT = 10
MOOD_WEIGHT = 5

MOOD_WORDS: Dict[str, List[str]] = {
    "romantic": ["romantic", "intimate", "date", "dinner", "wine", "candlelight"],
    "stylish": ["stylish", "elegant", "sophisticated", "chic", "fashion", "art", "gallery"],
    "fun": ["party", "festival", "club", "dance", "comedy", "celebration"],
    "cultural": ["museum", "gallery", "theatre", "opera", "classical", "art", "exhibition"],
    "energetic": ["rock", "club", "dance", "party", "festival", "electronic", "edm"],
    "relaxing": ["acoustic", "jazz", "spa", "yoga", "meditation", "ambient"],
    "family": ["family", "kids", "children", "children's", "friendly"],
    "elegant": ["elegant", "sophisticated", "formal", "gala", "black tie"],
}


def score_event(event: GroupedEvent, intent: SearchIntent) -> int:
    text = " ".join(
        (p or "") for p in (event.title, event.description, event.genre, event.category)
    ).lower()
    score = 0
    for kw in intent.keywords:
        if kw and kw.lower() in text:
            score += KEYWORD_WEIGHT
    for word in MOOD_WORDS.get((intent.mood or "").lower(), []):
        if word in text:
            score += MOOD_WEIGHT
    return score


def rank_events(events: List[GroupedEvent], intent: SearchIntent) -> List[GroupedEvent]:
    if not intent.keywords and not intent.mood:
        return list(events)
    scored = [e.with_score(score_event(e, intent)) for e in events]
    return sorted(scored, key=lambda e: e.relevance_score or 0, reverse=True)
