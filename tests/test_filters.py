from datetime import date

import pytest

from services.filters import FilterState, apply_filters, sort_events
from services.grouping import GroupedEvent, Location, PriceRange

TODAY = date(2030, 6, 1)


def ev(id, dates=(), lo=10, hi=20, category="Music", city="London", attendees=None, **kw):
    return GroupedEvent(
        id=id,
        title=kw.pop("title", id.title()),
        location=Location(kw.pop("venue", "Hall"), city),
        price=PriceRange(lo, hi, "GBP"),
        category=category,
        occurrence_dates=list(dates),
        attendees=attendees,
        **kw,
    )


def ids(events):
    return [e.id for e in events]


def test_past_events_are_dropped_only_when_every_date_is_over():
    events = [
        ev("gone", ["2030-05-01"]),
        ev("running", ["2030-05-01", "2030-06-10"]),
        ev("dateless"),
    ]
    assert ids(apply_filters(events, FilterState(), today=TODAY)) == ["running", "dateless"]


def test_search_requires_every_term():
    events = [
        ev("a", title="Jazz Night", description="smoky basement trio"),
        ev("b", title="Jazz Brunch"),
    ]
    out = apply_filters(events, FilterState(search="jazz trio"), today=TODAY)
    assert ids(out) == ["a"]


def test_date_range_matches_any_occurrence():
    events = [
        ev("in", ["2030-06-02", "2030-07-01"]),
        ev("out", ["2030-08-01"]),
        ev("dateless"),
    ]
    f = FilterState(date_start=date(2030, 6, 20), date_end=date(2030, 7, 5))
    assert ids(apply_filters(events, f, today=TODAY)) == ["in", "dateless"]


def test_location_category_platform_and_availability():
    events = [
        ev("ldn", city="London", category="Arts & Theatre", platform="eventbrite"),
        ev("mcr", city="Manchester", category="Sports", availability="low"),
    ]
    assert ids(apply_filters(events, FilterState(location="manchester"), today=TODAY)) == ["mcr"]
    assert ids(apply_filters(events, FilterState(categories=["theatre"]), today=TODAY)) == ["ldn"]
    assert ids(apply_filters(events, FilterState(platforms=["eventbrite"]), today=TODAY)) == ["ldn"]
    assert ids(apply_filters(events, FilterState(availability=["low"]), today=TODAY)) == ["mcr"]


def test_price_bands_must_overlap():
    events = [ev("cheap", lo=0, hi=0), ev("mid", lo=25, hi=60), ev("dear", lo=300, hi=900)]
    f = FilterState(price_min=20, price_max=100)
    assert ids(apply_filters(events, f, today=TODAY)) == ["mid"]


def test_sort_by_date_puts_dateless_last():
    events = [ev("none"), ev("late", ["2030-09-01"]), ev("early", ["2030-07-01", "2030-10-01"])]
    assert ids(sort_events(events, "date")) == ["early", "late", "none"]


def test_sort_by_price():
    events = [ev("b", lo=10, hi=50), ev("c", lo=30, hi=40), ev("a", lo=10, hi=20)]
    assert ids(sort_events(events, "price")) == ["a", "b", "c"]


def test_sort_by_popularity():
    events = [
        ev("quiet", ["2030-07-01"], attendees=10),
        ev("unknown", ["2030-06-05"]),
        ev("busy", ["2030-08-01"], attendees=5000),
    ]
    assert ids(sort_events(events, "popularity")) == ["busy", "quiet", "unknown"]


def test_unknown_sort_key():
    with pytest.raises(ValueError):
        sort_events([], "rating")
