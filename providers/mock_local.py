# providers/mock_local.py
from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple

from services.grouping import GroupedEvent, Location, PriceRange

KEY = "mock_local"
NAME = "Other platforms (local listings)"

PLATFORMS = ("eventbrite", "ticketmaster", "stubhub", "seatgeek", "vivid-seats")

_IMG = "https://images.pexels.com/photos/{}/pexels-photo-{}.jpeg?auto=compress&cs=tinysrgb&w=800"


def _listing(
    id: str,
    title: str,
    days_ahead: int,
    time: str,
    location: Location,
    price: PriceRange,
    category: str,
    platform: str,
    photo: int,
    availability: str,
    description: str,
    rating: Optional[float] = None,
    attendees: Optional[int] = None,
) -> Tuple[int, GroupedEvent]:
    return days_ahead, GroupedEvent(
        id=id,
        title=title,
        description=description,
        location=location,
        price=price,
        category=category,
        platform=platform,
        image=_IMG.format(photo, photo),
        url="#",
        availability=availability,
        occurrence_times=[time],
        display_time=time,
        rating=rating,
        attendees=attendees,
    )


_LISTINGS: List[Tuple[int, GroupedEvent]] = [
    _listing(
        "mock-1", "Stadium Pop Spectacular", 26, "20:00",
        Location("Wembley Stadium", "London", "", "Wembley, London HA9 0WS"),
        PriceRange(89, 599, "GBP"), "Music", "ticketmaster", 1105666, "low",
        "A night of chart-topping pop across every era of the headliner's career.",
        rating=4.9, attendees=82547,
    ),
    _listing(
        "mock-2", "Tech Innovation Summit", 32, "09:00",
        Location("ExCeL London", "London", "", "Royal Victoria Dock, London E16 1XL"),
        PriceRange(299, 799, "GBP"), "Technology", "eventbrite", 2774556, "available",
        "Industry leaders discuss the future of technology.",
        rating=4.7, attendees=3200,
    ),
    _listing(
        "mock-3", "Borough Food & Wine Festival", 34, "12:00",
        Location("Borough Market", "London", "", "8 Southwark St, London SE1 1TL"),
        PriceRange(45, 125, "GBP"), "Food & Drink", "stubhub", 1267320, "available",
        "Tastings from the city's best kitchens and wineries.",
        rating=4.6, attendees=5400,
    ),
    _listing(
        "mock-4", "Premier League Derby", 41, "15:00",
        Location("Old Trafford", "Manchester", "", "Sir Matt Busby Way, Manchester M16 0RA"),
        PriceRange(65, 350, "GBP"), "Sports", "seatgeek", 1884574, "low",
        "Local rivals meet under the lights.",
        rating=4.8, attendees=74000,
    ),
    _listing(
        "mock-5", "West End Musical Gala", 45, "19:30",
        Location("London Palladium", "London", "", "8 Argyll St, London W1F 7TF"),
        PriceRange(35, 180, "GBP"), "Arts & Theatre", "vivid-seats", 3359734, "available",
        "Showstoppers from the West End's best-loved musicals.",
        rating=4.5, attendees=2286,
    ),
    _listing(
        "mock-6", "Sunday Jazz Brunch", 48, "11:00",
        Location("Ronnie Scott's", "London", "", "47 Frith St, London W1D 4HT"),
        PriceRange(0, 0, "GBP"), "Music", "eventbrite", 1763075, "available",
        "Free live jazz with brunch in Soho.",
        rating=4.4, attendees=180,
    ),
]


def search(
    *,
    query: Optional[str] = None,
    exclude_platforms: Iterable[str] = ("ticketmaster",),
    today: Optional[date] = None,
) -> List[GroupedEvent]:
    """
    Local listings for platforms without a live integration, dated relative
    to today. Returns fresh copies so callers can annotate them freely.
    """
    today = today or date.today()
    excluded = {p.lower() for p in exclude_platforms}
    out: List[GroupedEvent] = []
    for days_ahead, e in _LISTINGS:
        if e.platform in excluded:
            continue
        day = (today + timedelta(days=days_ahead)).isoformat()
        out.append(replace(
            e,
            occurrence_dates=[day],
            occurrence_times=list(e.occurrence_times),
            display_date=day,
        ))
    if query:
        q = query.lower()
        out = [e for e in out if q in e.title.lower() or q in e.category.lower()]
    return out
