from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import List, Optional

import requests
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from config import settings
from providers import ticketmaster
from providers.ticketmaster import SearchParams, TicketmasterProvider
from schemas import EventOut, EventsResponse
from services.aggregator import search_events as agg_search_events
from services.filters import SORT_KEYS, FilterState, apply_filters, sort_events

router = APIRouter(prefix="/events", tags=["events"])

_log = logging.getLogger(__name__)

PROXY_CACHE_CONTROL = "s-maxage=300, stale-while-revalidate=60"


def get_provider() -> TicketmasterProvider:
    """Built per request so configuration is read at call time."""
    return ticketmaster.from_settings(settings)


def _start_of(d: Optional[date]) -> Optional[datetime]:
    return datetime.combine(d, time.min, tzinfo=timezone.utc) if d else None


def _end_of(d: Optional[date]) -> Optional[datetime]:
    return datetime.combine(d, time(23, 59, 59), tzinfo=timezone.utc) if d else None


# ---------- Routes ----------


@router.get("/search", response_model=EventsResponse)
async def search(
    *,
    keyword: Optional[str] = Query(None, description="Upstream keyword search"),
    city: Optional[str] = None,
    state_code: Optional[str] = None,
    country_code: Optional[str] = Query(None, min_length=2, max_length=2),
    classification_name: Optional[str] = None,
    size: int = Query(200, ge=1, le=200),
    page: int = Query(0, ge=0),
    search_text: str = Query("", alias="search"),
    date_start: Optional[date] = None,
    date_end: Optional[date] = None,
    location: str = "",
    categories: List[str] = Query([]),
    price_min: float = Query(0, ge=0),
    price_max: float = Query(1000, ge=0),
    platforms: List[str] = Query([]),
    availability: List[str] = Query([]),
    sort_by: str = Query("date"),
    include_mock: bool = True,
    provider: TicketmasterProvider = Depends(get_provider),
) -> EventsResponse:
    """
    Grouped event search.

    - Fetches one upstream page and groups showtimes into event cards.
    - Adds local listings for the other platforms.
    - Applies the user's filters and sort order.
    Upstream failures are reported in `errors`, not raised.
    """
    if sort_by not in SORT_KEYS:
        raise HTTPException(
            status_code=422, detail=f"sort_by must be one of {list(SORT_KEYS)}"
        )
    if date_start and date_end and date_end < date_start:
        raise HTTPException(status_code=422, detail="date_end is before date_start")

    params = SearchParams(
        keyword=keyword,
        city=city,
        state_code=state_code,
        country_code=(country_code or settings.default_country_code).upper(),
        start_date_time=_start_of(date_start),
        end_date_time=_end_of(date_end),
        classification_name=classification_name,
        size=size,
        page=page,
    )
    payload = await agg_search_events(
        params, provider=provider, include_mock=include_mock
    )

    filters = FilterState(
        search=search_text,
        date_start=date_start,
        date_end=date_end,
        location=location,
        categories=categories,
        price_min=price_min,
        price_max=price_max,
        platforms=platforms,
        availability=availability,
    )
    items = sort_events(apply_filters(payload["items"], filters), by=sort_by)

    return EventsResponse(
        count=len(items),
        items=[EventOut.from_event(e) for e in items],
        errors=payload["errors"],
        debug=payload["debug"],
    )


@router.get("/raw")
def raw_proxy(
    request: Request,
    provider: TicketmasterProvider = Depends(get_provider),
) -> Response:
    """
    Thin Discovery API proxy keeping the API key server-side.
    Only allowlisted query params are forwarded.
    """
    if not provider.configured:
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: missing TICKETMASTER_API_KEY",
        )
    try:
        status, body = provider.proxy(request.query_params.multi_items())
    except requests.RequestException as exc:
        _log.warning("proxy upstream fetch failed: %r", exc)
        raise HTTPException(status_code=502, detail="Upstream fetch failed")

    return Response(
        content=body,
        status_code=status,
        media_type="application/json",
        headers={"Cache-Control": PROXY_CACHE_CONTROL},
    )
