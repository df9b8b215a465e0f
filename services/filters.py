from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from services.grouping import GroupedEvent

SORT_KEYS = ("date", "price", "popularity")


@dataclass
class FilterState:
    search: str = ""
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    location: str = ""
    categories: List[str] = field(default_factory=list)
    price_min: float = 0
    price_max: float = 1000
    platforms: List[str] = field(default_factory=list)
    availability: List[str] = field(default_factory=list)


def _terms(text: str) -> List[str]:
    return [t for t in (text or "").lower().split() if t]


def _parse_dates(e: GroupedEvent) -> List[date]:
    out: List[date] = []
    for d in e.occurrence_dates:
        try:
            out.append(date.fromisoformat(d[:10]))
        except ValueError:
            continue
    return out


def _haystack(parts: Sequence[Optional[str]]) -> str:
    return " ".join((p or "").lower() for p in parts)


def _matches(e: GroupedEvent, f: FilterState, today: date) -> bool:
    dates = _parse_dates(e)

    # past events: only when every showtime is over
    if dates and max(dates) < today:
        return False

    search_terms = _terms(f.search)
    if search_terms:
        text = _haystack([
            e.title, e.description, e.location.venue, e.location.city,
            e.category, e.genre, e.sub_genre,
        ])
        if not all(t in text for t in search_terms):
            return False

    if dates and (f.date_start or f.date_end):
        lo = f.date_start or date.min
        hi = f.date_end or date.max
        if not any(lo <= d <= hi for d in dates):
            return False

    location_terms = _terms(f.location)
    if location_terms:
        text = _haystack([
            e.location.venue, e.location.city, e.location.state, e.location.address,
        ])
        if not all(t in text for t in location_terms):
            return False

    if f.categories:
        cats = [c.lower() for c in (e.category, e.genre, e.sub_genre) if c]
        if not any(want.lower() in c for want in f.categories for c in cats):
            return False

    if e.price.min > f.price_max or e.price.max < f.price_min:
        return False

    if f.platforms and e.platform not in f.platforms:
        return False

    if f.availability and e.availability not in f.availability:
        return False

    return True


def apply_filters(
    events: Sequence[GroupedEvent],
    filters: FilterState,
    *,
    today: Optional[date] = None,
) -> List[GroupedEvent]:
    today = today or date.today()
    return [e for e in events if _matches(e, filters, today)]


def _first_date(e: GroupedEvent):
    dates = _parse_dates(e)
    return (0, min(dates)) if dates else (1, date.max)


def sort_events(events: Sequence[GroupedEvent], by: str = "date") -> List[GroupedEvent]:
    if by == "date":
        return sorted(events, key=_first_date)
    if by == "price":
        return sorted(events, key=lambda e: (e.price.min, e.price.max))
    if by == "popularity":
        return sorted(
            events,
            key=lambda e: (
                e.attendees is None,
                -(e.attendees or 0),
                _first_date(e),
            ),
        )
    raise ValueError(f"unknown sort key {by!r}; expected one of {SORT_KEYS}")
