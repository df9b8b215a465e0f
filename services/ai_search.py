"""
Natural-language search: turns "jazz in London this weekend under £30" into
structured search parameters using an OpenAI chat model.
"""
from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, List, Optional

from openai import APIError, OpenAI
from pydantic import BaseModel, Field, ValidationError

from services.filters import FilterState

logger = logging.getLogger(__name__)

CATEGORIES = ("Music", "Sports", "Arts & Theatre", "Family")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class AIServiceError(RuntimeError):
    pass


class DateRange(BaseModel):
    start: Optional[date] = None
    end: Optional[date] = None


class PriceBand(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None


class SearchIntent(BaseModel):
    category: Optional[str] = None
    location: Optional[str] = None
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")
    price_range: Optional[PriceBand] = Field(default=None, alias="priceRange")
    keywords: List[str] = Field(default_factory=list)
    mood: Optional[str] = None

    model_config = {"populate_by_name": True}


def make_client(api_key: Optional[str], *, timeout: float = 20) -> OpenAI:
    if not api_key:
        raise AIServiceError("AI service not configured")
    return OpenAI(api_key=api_key, timeout=timeout, max_retries=1)


def _prompt(query: str, today: date) -> str:
    return (
        "Parse this event search query into JSON with only the fields that "
        "are mentioned or implied:\n"
        '{"category": one of ' + json.dumps(list(CATEGORIES)) + " or null, "
        '"location": city or null, '
        '"dateRange": {"start": "YYYY-MM-DD" or null, "end": "YYYY-MM-DD" or null}, '
        '"priceRange": {"min": number or null, "max": number or null}, '
        '"keywords": [descriptive words], '
        '"mood": overall vibe or null}\n'
        f"Today is {today:%A} {today.isoformat()}. "
        '"this weekend" means the next Saturday and Sunday, "tonight" means '
        'today, "this week" the next 7 days.\n'
        f'Query: "{query}"\n'
        "Return ONLY the JSON object."
    )


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", (text or "").strip()).strip()


def parse_intent(text: str) -> SearchIntent:
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as exc:
        raise AIServiceError(f"model returned invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AIServiceError("model returned a non-object JSON value")
    try:
        return SearchIntent.model_validate(data)
    except ValidationError as exc:
        raise AIServiceError(f"model returned unexpected fields: {exc}") from exc


def parse_query(
    query: str,
    *,
    client: Any,
    model: str = "gpt-4o-mini",
    today: Optional[date] = None,
) -> SearchIntent:
    query = (query or "").strip()
    if not query:
        raise ValueError("query is required")
    try:
        resp = client.chat.completions.create(
            model=model,
            temperature=0,
            messages=[
                {"role": "system", "content": "You are an event search assistant."},
                {"role": "user", "content": _prompt(query, today or date.today())},
            ],
        )
    except APIError as exc:
        logger.warning("ai search call failed: %r", exc)
        raise AIServiceError(f"AI request failed: {exc}") from exc

    text = resp.choices[0].message.content or ""
    return parse_intent(text)


def _short(d: date) -> str:
    return f"{d:%b} {d.day}"


def build_explanation(intent: SearchIntent) -> str:
    parts = [f"{intent.category} events" if intent.category else "events"]
    if intent.location:
        parts.append(f"in {intent.location}")
    if intent.mood:
        parts.append(f"with a {intent.mood} vibe")
    if intent.keywords:
        kw = " and ".join(intent.keywords[:2])
        if kw and not any(kw in p for p in parts):
            parts.append(f"featuring {kw}")
    if intent.price_range and intent.price_range.max:
        parts.append(f"under £{intent.price_range.max:g}")
    dr = intent.date_range
    if dr and dr.start and dr.end:
        parts.append(f"from {_short(dr.start)} to {_short(dr.end)}")
    elif dr and dr.start:
        parts.append(f"starting {_short(dr.start)}")
    return "Searching for " + " ".join(parts)


def intent_to_filters(intent: SearchIntent, base: Optional[FilterState] = None) -> FilterState:
    f = base or FilterState()
    if intent.category:
        f.categories = [intent.category]
    if intent.location:
        f.location = intent.location
    if intent.date_range:
        f.date_start = intent.date_range.start or f.date_start
        f.date_end = intent.date_range.end or f.date_end
    if intent.price_range:
        if intent.price_range.min is not None:
            f.price_min = intent.price_range.min
        if intent.price_range.max is not None:
            f.price_max = intent.price_range.max
    return f
