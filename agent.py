from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from openai import APIError
from pydantic import BaseModel

from services.ai_search import AIServiceError
from services.grouping import GroupedEvent

logger = logging.getLogger(__name__)

MAX_CONTEXT_EVENTS = 30
MAX_SUGGESTIONS = 5

_EVENT_IDS_RE = re.compile(r"\[EVENT_IDS:\s*([^\]]+)\]")

SYSTEM_PROMPT = (
    """You are Wattado's event discovery assistant. You help people find
events that fit their mood, budget, schedule and location.
- be friendly and concise,
- ask a clarifying question when the request is vague,
- mention date, place and price when recommending,
- only recommend events from the list below.

When you recommend events, end your reply with
[EVENT_IDS: id1, id2, id3]
"""
)


class ChatMessage(BaseModel):
    role: str  # user | assistant
    content: str


class ChatTurn(BaseModel):
    message: str
    suggested_event_ids: List[str] = []


def _price_label(e: GroupedEvent) -> str:
    if e.price.min == 0 and e.price.max == 0:
        return "Free"
    return f"{e.price.currency} {e.price.min:g}-{e.price.max:g}"


def event_context(events: Sequence[GroupedEvent]) -> str:
    if not events:
        return ""
    lines = [f"Available Events ({len(events)} total):"]
    for i, e in enumerate(events[:MAX_CONTEXT_EVENTS], start=1):
        line = (
            f'{i}. "{e.title}" - {e.category} | {e.location.venue}, {e.location.city}'
            f" | {e.display_date} | {_price_label(e)} | ID: {e.id}"
            f" | Platform: {e.platform}"
        )
        if e.description:
            line += f" | {e.description[:100]}"
        lines.append(line)
    return "\n".join(lines)


def extract_event_ids(text: str) -> tuple[str, List[str]]:
    """Split the trailing [EVENT_IDS: ...] tag off a model reply."""
    m = _EVENT_IDS_RE.search(text or "")
    if not m:
        return (text or "").strip(), []
    ids = [s.strip() for s in m.group(1).split(",") if s.strip()]
    cleaned = _EVENT_IDS_RE.sub("", text, count=1).strip()
    return cleaned, ids[:MAX_SUGGESTIONS]


def chat(
    message: str,
    *,
    client: Any,
    history: Optional[Sequence[ChatMessage]] = None,
    events: Sequence[GroupedEvent] = (),
    model: str = "gpt-4o-mini",
) -> ChatTurn:
    """
    One assistant turn. The event list is rendered into the system prompt so
    the model can only suggest ids that exist.
    """
    system = SYSTEM_PROMPT
    ctx = event_context(events)
    if ctx:
        system += "\n" + ctx

    messages: List[Dict[str, Any]] = [{"role": "system", "content": system}]
    for m in history or []:
        if m.role in ("user", "assistant") and m.content:
            messages.append({"role": m.role, "content": m.content})
    messages.append({"role": "user", "content": message})

    try:
        resp = client.chat.completions.create(
            model=model,
            temperature=0.7,
            max_tokens=1500,
            messages=messages,
        )
    except APIError as exc:
        logger.warning("chat completion failed: %r", exc)
        raise AIServiceError(f"AI request failed: {exc}") from exc

    text = resp.choices[0].message.content or ""
    reply, ids = extract_event_ids(text)
    return ChatTurn(message=reply, suggested_event_ids=ids)
