from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import re

from services.grouping import ImageCandidate, RawEventRecord

ISO_Z_FMT = "%Y-%m-%dT%H:%M:%SZ"


def to_iso_z(dt: datetime | None) -> Optional[str]:
    if not dt:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(ISO_Z_FMT)


_ws_re = re.compile(r"\s+")


def _clean(s: Optional[str]) -> Optional[str]:
    if not s or not isinstance(s, str):
        return None
    return _ws_re.sub(" ", s).strip() or None


def _first(x):
    return x[0] if isinstance(x, list) and x else None


# Normalization helpers

def _coerce_currency(value: Any) -> Optional[str]:
    """Uppercase 3-letter currency codes when possible."""
    if not value:
        return None
    if isinstance(value, str):
        v = value.strip().upper()
        return v[:3] if len(v) >= 3 else v or None
    return None


def _coerce_float(v: Any) -> Optional[float]:
    if v is None or isinstance(v, bool):
        return None
    try:
        s = str(v).strip()
        if not s:
            return None
        return float(s)
    except ValueError:
        return None


def _coerce_int(v: Any) -> int:
    f = _coerce_float(v)
    return int(f) if f is not None else 0


def _coerce_images(images: Any) -> List[ImageCandidate]:
    out: List[ImageCandidate] = []
    for img in images or []:
        if not isinstance(img, dict) or not img.get("url"):
            continue
        out.append(
            ImageCandidate(
                url=str(img["url"]),
                width=_coerce_int(img.get("width")),
                ratio=img.get("ratio"),
            )
        )
    return out


# --------------------------
# Public builder
# --------------------------

def build_record(
    *,
    name: Optional[str],
    start_date: Optional[str],
    start_time: Optional[str] = None,
    venue: Optional[Dict[str, Any]] = None,
    price_min: Any = None,
    price_max: Any = None,
    currency: Any = None,
    segment: Optional[str] = None,
    genre: Optional[str] = None,
    sub_genre: Optional[str] = None,
    promoter: Optional[str] = None,
    images: Any = None,
    url: Optional[str] = None,
    status_code: Optional[str] = None,
    description: Optional[str] = None,
    external_id: Optional[str] = None,
    source: str = "ticketmaster",
) -> RawEventRecord:
    """
    Standardizes provider fields into a RawEventRecord.
    Venue is a flat dict: name, city, state, address, latitude, longitude.
    """
    venue = venue or {}
    return RawEventRecord(
        external_id=external_id or "",
        raw_name=name or None,
        venue_name=_clean(venue.get("name")),
        city=_clean(venue.get("city")),
        state=_clean(venue.get("state")),
        address=_clean(venue.get("address")),
        latitude=_coerce_float(venue.get("latitude")),
        longitude=_coerce_float(venue.get("longitude")),
        start_date=(start_date or "").strip() or None,
        start_time=(start_time or "").strip() or None,
        price_min=_coerce_float(price_min),
        price_max=_coerce_float(price_max),
        currency=_coerce_currency(currency),
        segment=_clean(segment),
        genre=_clean(genre),
        sub_genre=_clean(sub_genre),
        promoter=_clean(promoter),
        images=_coerce_images(images),
        url=url or None,
        status_code=_clean(status_code),
        description=_clean(description) or "",
        platform=source,
    )
