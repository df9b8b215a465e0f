"""
Groups per-showtime upstream listings into single event cards.

Upstream search APIs return one record per showtime, so a play running for
two weeks shows up dozens of times ("Hamlet Sat 19:30", "Hamlet Sun 14:00",
...). The grouper strips day/time tokens out of the title, keys each record by
(title, venue) and folds every showtime of a key into one GroupedEvent with
the distinct dates, times and an aggregated price band.

Everything here is pure and synchronous. Nothing raises on sparse records:
missing fields degrade to the documented defaults.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

DEFAULT_TITLE = "Untitled Event"
UNKNOWN_VENUE_KEY = "unknown"
UNKNOWN_LABEL = "Unknown"
DEFAULT_CURRENCY = "GBP"
DEFAULT_CATEGORY = "General"
PLACEHOLDER_IMAGE = (
    "https://images.pexels.com/photos/1105666/pexels-photo-1105666.jpeg"
    "?auto=compress&cs=tinysrgb&w=800"
)
KEY_SEPARATOR = "__"

AVAILABLE = "available"
LOW = "low"
SOLD_OUT = "sold-out"

# substring match on purpose: "Satellite" loses "Sat"
_DAY_RE = re.compile(r"(Sun|Mon|Tue|Wed|Thu|Fri|Sat)", re.IGNORECASE)
_CLOCK_RE = re.compile(r"\d{1,2}:\d{2}")
_AMP_RE = re.compile(r"\s*&\s*")
_WS_RE = re.compile(r"\s+")
_TRAILING_HYPHEN_RE = re.compile(r"-\s*$")

_STATUS_MAP = {
    "cancelled": SOLD_OUT,
    "postponed": SOLD_OUT,
    "onsale": AVAILABLE,
    "offsale": SOLD_OUT,
    "presale": LOW,
    "limited": LOW,
}


# ---------- Records ----------


@dataclass(frozen=True)
class ImageCandidate:
    url: str
    width: int = 0
    ratio: Optional[str] = None


@dataclass(frozen=True)
class PriceRange:
    min: float = 0.0
    max: float = 0.0
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class Location:
    venue: str = UNKNOWN_LABEL
    city: str = UNKNOWN_LABEL
    state: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class RawEventRecord:
    """One upstream showtime, already mapped out of the provider's JSON."""

    external_id: str = ""
    raw_name: Optional[str] = None
    venue_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    currency: Optional[str] = None
    segment: Optional[str] = None
    genre: Optional[str] = None
    sub_genre: Optional[str] = None
    promoter: Optional[str] = None
    images: List[ImageCandidate] = field(default_factory=list)
    url: Optional[str] = None
    status_code: Optional[str] = None
    description: str = ""
    platform: str = "ticketmaster"

    def price_range(self) -> Optional[PriceRange]:
        if self.price_min is None and self.price_max is None:
            return None
        return PriceRange(
            min=self.price_min or 0.0,
            max=self.price_max or 0.0,
            currency=self.currency or "",
        )


@dataclass
class GroupedEvent:
    id: str
    title: str
    description: str = ""
    location: Location = field(default_factory=Location)
    price: PriceRange = field(default_factory=PriceRange)
    category: str = DEFAULT_CATEGORY
    genre: Optional[str] = None
    sub_genre: Optional[str] = None
    platform: str = "ticketmaster"
    image: str = PLACEHOLDER_IMAGE
    url: str = ""
    availability: str = AVAILABLE
    promoter: Optional[str] = None
    external_id: Optional[str] = None
    occurrence_dates: List[str] = field(default_factory=list)
    occurrence_times: List[str] = field(default_factory=list)
    display_date: str = ""
    display_time: str = ""
    rating: Optional[float] = None
    attendees: Optional[int] = None
    relevance_score: Optional[int] = None

    def with_score(self, score: int) -> "GroupedEvent":
        return replace(self, relevance_score=score)


# ---------- Normalization ----------


def normalize_title(raw_name: Optional[str]) -> str:
    """
    Strip day-of-week and clock tokens from an upstream title.

    "Live Jazz Sat 20:00 & More -" -> "Live Jazz More"
    """
    s = raw_name or DEFAULT_TITLE
    s = _DAY_RE.sub("", s)
    s = _CLOCK_RE.sub("", s)
    s = _AMP_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s)
    s = _TRAILING_HYPHEN_RE.sub("", s)
    return s.strip()


def build_group_key(title: str, venue_name: Optional[str]) -> str:
    venue = (venue_name or "").strip().lower() or UNKNOWN_VENUE_KEY
    return f"{title.lower()}{KEY_SEPARATOR}{venue}"


def classify_availability(status_code: Optional[str]) -> str:
    return _STATUS_MAP.get((status_code or "").strip().lower(), AVAILABLE)


def aggregate_price(
    existing: PriceRange, incoming: Optional[PriceRange]
) -> PriceRange:
    """
    Fold one showtime's price band into the running band of its group.

    A min of 0 means "free or unknown": zero prices never lower a positive
    running min, and the min stays 0 until a positive one shows up.
    """
    if incoming is None:
        return existing

    new_min = existing.min
    if incoming.min and incoming.min > 0:
        new_min = incoming.min if existing.min <= 0 else min(existing.min, incoming.min)

    new_max = max(existing.max, incoming.max or 0.0)
    currency = incoming.currency or existing.currency
    return PriceRange(min=new_min, max=new_max, currency=currency)


def pick_image(candidates: Iterable[ImageCandidate]) -> str:
    imgs = sorted(
        (c for c in candidates if c and c.url),
        key=lambda c: c.width or 0,
        reverse=True,
    )
    if not imgs:
        return PLACEHOLDER_IMAGE
    for img in imgs:
        if img.ratio == "16_9" and (img.width or 0) >= 800:
            return img.url
    for img in imgs:
        if (img.width or 0) >= 800:
            return img.url
    return imgs[0].url


def _date_sort_key(value: str) -> Tuple[int, Any, str]:
    try:
        return (0, date.fromisoformat(value[:10]), value)
    except ValueError:
        return (1, None, value)


def sort_dates(dates: Iterable[str]) -> List[str]:
    return sorted((d for d in dates if d), key=_date_sort_key)


def display_date(dates: List[str]) -> str:
    ordered = sort_dates(dates)
    if len(ordered) > 1:
        return f"{ordered[0]} - {ordered[-1]}"
    return ordered[0] if ordered else ""


def display_time(times: List[str]) -> str:
    return ", ".join(times)


# ---------- Grouping ----------


@dataclass
class _Accumulator:
    key: str
    title: str
    first: RawEventRecord
    dates: List[str] = field(default_factory=list)
    times: List[str] = field(default_factory=list)
    price: PriceRange = field(default_factory=PriceRange)

    def add(self, rec: RawEventRecord) -> None:
        day = (rec.start_date or "").strip()
        if day and day not in self.dates:
            self.dates.append(day)
        if rec.start_time and rec.start_time not in self.times:
            self.times.append(rec.start_time)
        self.price = aggregate_price(self.price, rec.price_range())

    def finalize(self) -> GroupedEvent:
        rec = self.first
        dates = sort_dates(self.dates)
        return GroupedEvent(
            id=self.key,
            title=self.title,
            description=rec.description or "",
            location=Location(
                venue=rec.venue_name or UNKNOWN_LABEL,
                city=rec.city or UNKNOWN_LABEL,
                state=rec.state or "",
                address=rec.address or "",
                latitude=rec.latitude,
                longitude=rec.longitude,
            ),
            price=self.price,
            category=rec.segment or rec.genre or DEFAULT_CATEGORY,
            genre=rec.genre,
            sub_genre=rec.sub_genre,
            platform=rec.platform,
            image=pick_image(rec.images),
            url=rec.url or "",
            availability=classify_availability(rec.status_code),
            promoter=rec.promoter,
            external_id=rec.external_id or None,
            occurrence_dates=dates,
            occurrence_times=list(self.times),
            display_date=display_date(dates),
            display_time=display_time(self.times),
        )


def group_events(records: Iterable[RawEventRecord]) -> List[GroupedEvent]:
    """
    Collapse showtimes sharing a normalized title and venue into one event.

    Output keeps the order in which each key was first seen. Representative
    fields (location, image, url, ...) come from the first record of a key;
    dates/times are deduplicated; prices are folded across every record.
    """
    groups: Dict[str, _Accumulator] = {}
    for rec in records:
        title = normalize_title(rec.raw_name)
        key = build_group_key(title, rec.venue_name)
        acc = groups.get(key)
        if acc is None:
            acc = _Accumulator(key=key, title=title, first=rec)
            groups[key] = acc
        acc.add(rec)
    return [acc.finalize() for acc in groups.values()]
