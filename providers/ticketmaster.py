from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from providers.base import _coerce_float, _first, build_record, to_iso_z
from services import http
from services.grouping import GroupedEvent, RawEventRecord, group_events
from utils.cache import TTLCache, cache as _shared_cache

logger = logging.getLogger(__name__)

KEY = "ticketmaster"
NAME = "Ticketmaster"
EVENTS_PATH = "/discovery/v2/events.json"
MAX_PAGE_SIZE = 200

# query params the passthrough proxy forwards upstream
ALLOWED_PROXY_PARAMS = frozenset({
    "size",
    "countryCode",
    "city",
    "startDateTime",
    "endDateTime",
    "classificationName",
    "keyword",
    "page",
    "sort",
})


class UpstreamError(RuntimeError):
    """Non-2xx answer from the Discovery API."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Ticketmaster API error: {status_code}")
        self.status_code = status_code
        self.body = body


@dataclass
class SearchParams:
    keyword: Optional[str] = None
    city: Optional[str] = None
    state_code: Optional[str] = None
    country_code: str = "GB"
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    classification_name: Optional[str] = None
    size: int = MAX_PAGE_SIZE
    page: int = 0
    sort: str = "date,asc"


# --------- helpers ---------


def _venue_fields(venue: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not isinstance(venue, dict):
        return {}
    state = venue.get("state") or {}
    loc = venue.get("location") or {}
    return {
        "name": venue.get("name"),
        "city": (venue.get("city") or {}).get("name"),
        "state": state.get("stateCode") or state.get("name"),
        "address": (venue.get("address") or {}).get("line1"),
        "latitude": loc.get("latitude"),
        "longitude": loc.get("longitude"),
    }


def _name_of(obj: Any) -> Optional[str]:
    return obj.get("name") if isinstance(obj, dict) else None


def fold_price_ranges(
    ranges: Any,
) -> Tuple[Optional[float], Optional[float], Optional[str]]:
    """
    Collapse every priceRanges entry (standard, VIP, resale, ...) into one
    band: smallest positive min, largest max, last currency given.
    Returns (None, None, None) when the item carries no price at all.
    """
    lo: Optional[float] = None
    hi: Optional[float] = None
    currency: Optional[str] = None
    seen = False
    for pr in ranges or []:
        if not isinstance(pr, dict):
            continue
        seen = True
        p_min = _coerce_float(pr.get("min"))
        p_max = _coerce_float(pr.get("max"))
        if p_min is not None and p_min > 0:
            lo = p_min if lo is None else min(lo, p_min)
        if p_max is not None:
            hi = p_max if hi is None else max(hi, p_max)
        if pr.get("currency"):
            currency = pr["currency"]
    if not seen:
        return None, None, None
    return (lo or 0.0), (hi or 0.0), currency


def describe_event(it: Dict[str, Any]) -> str:
    """One-paragraph blurb built from venue, genre, price and promoter."""
    name = it.get("name") or ""
    venue = _first(((it.get("_embedded") or {}).get("venues")) or [])
    cls = _first(it.get("classifications") or []) or {}
    segment = _name_of(cls.get("segment"))
    genre = _name_of(cls.get("genre"))
    sub_genre = _name_of(cls.get("subGenre"))

    text = f"Experience {name}"
    if isinstance(venue, dict):
        text += f" at {venue.get('name') or 'the venue'}"
        city = (venue.get("city") or {}).get("name")
        if city:
            text += f" in {city}"
            state_code = (venue.get("state") or {}).get("stateCode")
            if state_code:
                text += f", {state_code}"
    text += "."

    if segment and genre:
        if segment.lower() != genre.lower():
            text += f" This {segment.lower()} event features {genre.lower()}"
            if sub_genre and sub_genre.lower() != genre.lower():
                text += f" with {sub_genre.lower()}"
            text += "."
        else:
            text += f" Don't miss this incredible {genre.lower()} event."

    lo, hi, cur = fold_price_ranges(it.get("priceRanges"))
    if lo is not None and (lo or hi):
        cur = cur or ""
        if lo == hi:
            text += f" Tickets are {cur} {lo:.2f}."
        else:
            text += f" Tickets range from {cur} {lo:.2f} to {cur} {hi:.2f}."

    promoter = _name_of(it.get("promoter"))
    if promoter:
        text += f" Presented by {promoter}."
    return text


def parse_item(it: Dict[str, Any]) -> RawEventRecord:
    """Map one Discovery API event (one showtime) to a RawEventRecord."""
    dates = it.get("dates") or {}
    start = dates.get("start") or {}
    venue = _first(((it.get("_embedded") or {}).get("venues")) or [])
    cls = _first(it.get("classifications") or []) or {}
    price_min, price_max, currency = fold_price_ranges(it.get("priceRanges"))

    return build_record(
        name=it.get("name"),
        start_date=start.get("localDate"),
        start_time=start.get("localTime"),
        venue=_venue_fields(venue),
        price_min=price_min,
        price_max=price_max,
        currency=currency,
        segment=_name_of(cls.get("segment")),
        genre=_name_of(cls.get("genre")),
        sub_genre=_name_of(cls.get("subGenre")),
        promoter=_name_of(it.get("promoter")),
        images=it.get("images"),
        url=it.get("url"),
        status_code=(dates.get("status") or {}).get("code"),
        description=describe_event(it),
        external_id=str(it.get("id") or ""),
        source=KEY,
    )


def _clamp_size(raw: Any) -> int:
    try:
        size = int(str(raw))
    except (TypeError, ValueError):
        return MAX_PAGE_SIZE
    if size <= 0 or size > MAX_PAGE_SIZE:
        return MAX_PAGE_SIZE
    return size


# --------- provider (SYNC) ---------


class TicketmasterProvider:
    name = KEY

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://app.ticketmaster.com",
        timeout: float = 8.0,
        cache: Optional[TTLCache] = None,
        cache_seconds: float = 300,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache if cache is not None else _shared_cache
        self.cache_seconds = cache_seconds

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @property
    def events_url(self) -> str:
        return f"{self.base_url}{EVENTS_PATH}"

    def build_query(
        self, params: SearchParams, *, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        start = params.start_date_time
        if start is None or to_iso_z(start) < to_iso_z(now):
            start = now

        query: Dict[str, Any] = {
            "apikey": self.api_key,
            "size": _clamp_size(params.size),
            "page": max(0, int(params.page or 0)),
            "sort": params.sort or "date,asc",
            "countryCode": (params.country_code or "GB").strip().upper(),
            "startDateTime": to_iso_z(start),
        }
        if params.keyword:
            query["keyword"] = params.keyword
        if params.city:
            query["city"] = params.city
        if params.state_code:
            query["stateCode"] = params.state_code
        if params.end_date_time:
            query["endDateTime"] = to_iso_z(params.end_date_time)
        if params.classification_name:
            query["classificationName"] = params.classification_name
        return query

    def _get_json(self, query: Dict[str, Any]) -> Dict[str, Any]:
        resp = http.get(self.events_url, params=query, timeout=self.timeout)
        if not 200 <= resp.status_code < 300:
            logger.warning(
                "Ticketmaster API error status=%s body=%s",
                resp.status_code,
                (resp.text or "")[:200],
            )
            raise UpstreamError(resp.status_code, resp.text or "")
        try:
            return resp.json() or {}
        except ValueError as exc:
            raise UpstreamError(resp.status_code, "invalid JSON payload") from exc

    def fetch_page(self, params: SearchParams) -> Dict[str, Any]:
        query = self.build_query(params)
        # cache key without the (secret) api key; a start clamped to "now"
        # changes every second, so it stays out of the key
        key_src = {k: v for k, v in query.items() if k != "apikey"}
        if key_src.get("startDateTime") != to_iso_z(params.start_date_time):
            key_src.pop("startDateTime", None)
        cache_key = json.dumps(key_src, sort_keys=True)
        return self.cache.get_or_set(
            KEY, cache_key, self.cache_seconds, lambda: self._get_json(query)
        )

    def search_raw(self, params: SearchParams) -> List[RawEventRecord]:
        if not self.configured:
            logger.warning("Ticketmaster API key is not configured; skipping fetch")
            return []

        data = self.fetch_page(params)
        events = (data.get("_embedded") or {}).get("events") or []
        records: List[RawEventRecord] = []
        for it in events:
            if isinstance(it, dict):
                records.append(parse_item(it))
        logger.info(
            "ticketmaster fetched=%s keyword=%s city=%s",
            len(records),
            params.keyword,
            params.city,
        )
        return records

    def search_grouped(self, params: SearchParams) -> List[GroupedEvent]:
        return group_events(self.search_raw(params))

    def proxy(self, query: Iterable[Tuple[str, str]]) -> Tuple[int, str]:
        """
        Forward an allowlisted query to the Discovery API with the key
        injected server-side. Returns the upstream status and body as-is.
        Transport failures propagate as requests.RequestException.
        """
        pairs = list(query)
        forwarded: List[Tuple[str, str]] = [
            (k, v) for k, v in pairs if k in ALLOWED_PROXY_PARAMS and k != "size"
        ]
        sizes = [v for k, v in pairs if k == "size"]
        forwarded.append(("size", str(_clamp_size(sizes[-1] if sizes else None))))
        forwarded.append(("apikey", self.api_key or ""))

        resp = http.get(self.events_url, params=forwarded, timeout=self.timeout)
        return resp.status_code, resp.text


def from_settings(settings: Any) -> TicketmasterProvider:
    return TicketmasterProvider(
        getattr(settings, "ticketmaster_api_key", None),
        base_url=settings.ticketmaster_base_url,
        timeout=settings.http_timeout_seconds,
        cache_seconds=settings.upstream_cache_seconds,
    )


__all__ = [
    "ALLOWED_PROXY_PARAMS",
    "SearchParams",
    "TicketmasterProvider",
    "UpstreamError",
    "describe_event",
    "fold_price_ranges",
    "from_settings",
    "parse_item",
]
