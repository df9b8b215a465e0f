from services.grouping import (
    ImageCandidate,
    PriceRange,
    RawEventRecord,
    aggregate_price,
    build_group_key,
    classify_availability,
    group_events,
    normalize_title,
    pick_image,
)


def rec(name, venue="Blue Note", day=None, time=None, lo=None, hi=None, cur=None, **kw):
    return RawEventRecord(
        raw_name=name, venue_name=venue, start_date=day, start_time=time,
        price_min=lo, price_max=hi, currency=cur, **kw,
    )


def test_normalize_strips_day_time_and_ampersand():
    assert normalize_title("Live Jazz Sat 20:00 & More -") == "Live Jazz More"
    assert normalize_title("Hamlet - Thu 19:30") == "Hamlet"
    assert normalize_title("Matinee 9:05") == "Matinee"


def test_normalize_day_tokens_are_substring_matches():
    # day tokens match inside words too
    assert normalize_title("Satellite Sessions") == "ellite Sessions"
    assert normalize_title("MONSTER Jam") == "STER Jam"


def test_normalize_empty_name_defaults():
    assert normalize_title("") == "Untitled Event"
    assert normalize_title(None) == "Untitled Event"


def test_group_key_lowercases_and_defaults_venue():
    assert build_group_key("Jazz Night", "  Blue Note ") == "jazz night__blue note"
    assert build_group_key("Jazz Night", None) == "jazz night__unknown"
    assert build_group_key("Jazz Night", "   ") == "jazz night__unknown"


def test_availability_mapping():
    assert classify_availability("presale") == "low"
    assert classify_availability("limited") == "low"
    assert classify_availability(None) == "available"
    assert classify_availability("cancelled") == "sold-out"
    assert classify_availability("Postponed") == "sold-out"
    assert classify_availability("offsale") == "sold-out"
    assert classify_availability("onsale") == "available"
    assert classify_availability("rescheduled") == "available"


def test_aggregate_price_ignores_zero_min():
    band = PriceRange()
    for incoming in (PriceRange(0, 0, "GBP"), PriceRange(25, 80, "GBP"), PriceRange(0, 50, "GBP")):
        band = aggregate_price(band, incoming)
    assert (band.min, band.max) == (25, 80)


def test_aggregate_price_without_incoming_is_unchanged():
    band = PriceRange(10, 20, "USD")
    assert aggregate_price(band, None) is band


def test_key_stability_across_case_and_whitespace():
    out = group_events([
        rec("Jazz  Night", venue="Blue Note", day="2025-06-01"),
        rec("JAZZ NIGHT", venue="  blue note ", day="2025-06-02"),
    ])
    assert len(out) == 1
    assert out[0].title == "Jazz Night"
    assert out[0].occurrence_dates == ["2025-06-01", "2025-06-02"]


def test_dates_are_deduplicated_and_sorted():
    out = group_events([
        rec("Play", day="2025-01-12"),
        rec("Play", day="2025-01-10"),
        rec("Play", day="2025-01-10"),
    ])
    assert out[0].occurrence_dates == ["2025-01-10", "2025-01-12"]
    assert out[0].display_date == "2025-01-10 - 2025-01-12"


def test_single_date_display():
    out = group_events([rec("Solo", day="2025-03-01")])
    assert out[0].display_date == "2025-03-01"


def test_times_keep_first_seen_order():
    out = group_events([
        rec("Hamlet Sat 19:30", day="2025-03-01", time="19:30:00"),
        rec("Hamlet Sun 14:00", day="2025-03-02", time="14:00:00"),
        rec("Hamlet Sat 19:30", day="2025-03-08", time="19:30:00"),
    ])
    assert len(out) == 1
    assert out[0].title == "Hamlet"
    assert out[0].occurrence_times == ["19:30:00", "14:00:00"]
    assert out[0].display_time == "19:30:00, 14:00:00"


def test_currency_is_last_write_wins():
    out = group_events([
        rec("Gig", lo=10, hi=20, cur="USD"),
        rec("Gig", lo=15, hi=30, cur="EUR"),
        rec("Gig"),
    ])
    assert out[0].price == PriceRange(10, 30, "EUR")


def test_representative_fields_come_from_first_record():
    out = group_events([
        rec("Gig", url="https://first", status_code="presale", city="London"),
        rec("Gig", url="https://second", status_code="onsale", city="Leeds"),
    ])
    assert out[0].url == "https://first"
    assert out[0].availability == "low"
    assert out[0].location.city == "London"


def test_end_to_end_scenario():
    records = [
        rec("Jazz Night", venue="Blue Note", day="2025-06-01", lo=20, hi=50, cur="GBP"),
        rec("Comedy Show", venue="Laugh Club", day="2025-06-05", lo=10, hi=10, cur="GBP"),
        rec("Jazz Night", venue="Blue Note", day="2025-06-03", lo=15, hi=60, cur="GBP"),
        rec("Mystery Event", venue=""),
    ]
    out = group_events(records)

    assert [e.id for e in out] == [
        "jazz night__blue note",
        "comedy show__laugh club",
        "mystery event__unknown",
    ]
    jazz, comedy, mystery = out
    assert jazz.occurrence_dates == ["2025-06-01", "2025-06-03"]
    assert (jazz.price.min, jazz.price.max) == (15, 60)
    assert jazz.display_date == "2025-06-01 - 2025-06-03"

    assert comedy.occurrence_dates == ["2025-06-05"]
    assert (comedy.price.min, comedy.price.max) == (10, 10)

    assert mystery.display_date == ""
    assert mystery.occurrence_dates == []
    assert (mystery.price.min, mystery.price.max) == (0, 0)
    assert mystery.location.venue == "Unknown"


def test_grouping_is_idempotent():
    records = [
        rec("A Sat 19:00", day="2025-01-02", lo=5, hi=9, cur="GBP"),
        rec("B", venue=None, day="2025-01-01"),
        rec("A Sun 19:00", day="2025-01-01"),
    ]
    assert group_events(records) == group_events(records)


def test_bad_dates_do_not_raise():
    out = group_events([rec("X", day="not-a-date"), rec("X", day="2025-01-01")])
    assert out[0].occurrence_dates == ["2025-01-01", "not-a-date"]


def test_pick_image_prefers_wide_16_9():
    imgs = [
        ImageCandidate("https://a", 1200, "4_3"),
        ImageCandidate("https://b", 1024, "16_9"),
        ImageCandidate("https://c", 300, "16_9"),
    ]
    assert pick_image(imgs) == "https://b"
    assert pick_image([ImageCandidate("https://c", 300, "16_9"), ImageCandidate("https://d", 640)]) == "https://d"
    assert pick_image([]).startswith("https://")


def test_empty_dates_are_never_collected():
    out = group_events([
        rec("Play", day=""),
        rec("Play", day="2025-01-10"),
        rec("Play", day="   "),
        rec("Play", day="2025-01-08"),
    ])
    assert "" not in out[0].occurrence_dates
    assert out[0].occurrence_dates == ["2025-01-08", "2025-01-10"]
    assert out[0].display_date == "2025-01-08 - 2025-01-10"

    only_blank = group_events([rec("Blank", day="")])[0]
    assert only_blank.occurrence_dates == []
    assert only_blank.display_date == ""
