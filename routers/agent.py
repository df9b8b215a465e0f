from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

import agent as _chat_agent
from config import settings
from schemas import (
    AISearchRequest,
    AISearchResponse,
    ChatRequest,
    ChatResponse,
    EventOut,
)
from services.ai_search import (
    AIServiceError,
    build_explanation,
    intent_to_filters,
    make_client,
    parse_query,
)
from services.filters import apply_filters
from services.recommend import rank_events

router = APIRouter(prefix="/ai", tags=["ai"])

_log = logging.getLogger(__name__)


def get_ai_client() -> Any:
    try:
        return make_client(settings.openai_api_key)
    except AIServiceError:
        _log.warning("AI request rejected: OPENAI_API_KEY is not set")
        raise HTTPException(status_code=503, detail="AI service not configured")


# ---------- Routes ----------


@router.post("/search", response_model=AISearchResponse)
def ai_search(
    req: AISearchRequest, client: Any = Depends(get_ai_client)
) -> AISearchResponse:
    """
    Parse a natural-language query into structured search parameters.

    When the client sends the events it is showing, they come back filtered
    by the parsed intent and ranked by keyword and mood relevance.
    """
    if not req.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")
    try:
        intent = parse_query(req.query, client=client, model=settings.ai_model)
    except AIServiceError as exc:
        raise HTTPException(
            status_code=500, detail=f"Failed to process search query: {exc}"
        )
    items = None
    if req.available_events:
        events = [e.to_event() for e in req.available_events]
        matched = apply_filters(events, intent_to_filters(intent))
        items = [EventOut.from_event(e) for e in rank_events(matched, intent)]

    return AISearchResponse(
        success=True,
        search_params=intent.model_dump(mode="json", by_alias=True, exclude_none=True),
        explanation=build_explanation(intent),
        items=items,
    )


@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest, client: Any = Depends(get_ai_client)) -> ChatResponse:
    """
    One assistant turn over the events the client is currently showing.
    """
    if not req.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    history = [
        _chat_agent.ChatMessage(role=m.get("role", ""), content=m.get("content", ""))
        for m in req.conversation_history
    ]
    try:
        turn = _chat_agent.chat(
            req.message,
            client=client,
            history=history,
            events=[e.to_event() for e in req.available_events],
            model=settings.ai_model,
        )
    except AIServiceError as exc:
        raise HTTPException(
            status_code=500, detail=f"Failed to process chat request: {exc}"
        )
    return ChatResponse(
        message=turn.message,
        suggested_event_ids=turn.suggested_event_ids or None,
    )


@router.get("/status")
def ai_status() -> Dict[str, Any]:
    return {
        "configured": bool(settings.openai_api_key),
        "model": settings.ai_model,
    }
