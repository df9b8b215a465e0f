from services.ai_search import SearchIntent
from services.grouping import GroupedEvent
from services.recommend import rank_events, score_event


def test_scoring_pref_match():
    e = GroupedEvent(id="1", title="Indie Concert", category="Music")
    s = score_event(e, SearchIntent(keywords=["indie"]))
    assert s == 10


def test_mood_words_add_to_score():
    e = GroupedEvent(id="1", title="Acoustic Jazz Evening", description="Yoga first.")
    assert score_event(e, SearchIntent(mood="Relaxing")) == 15


def test_rank_orders_by_relevance():
    events = [
        GroupedEvent(id="a", title="Comedy Club"),
        GroupedEvent(id="b", title="Jazz Cellar", genre="Jazz"),
        GroupedEvent(id="c", title="Rock Jazz Fusion Party"),
    ]
    out = rank_events(events, SearchIntent(keywords=["jazz"], mood="energetic"))
    assert [e.id for e in out] == ["c", "b", "a"]
    assert [e.relevance_score for e in out] == [20, 10, 5]


def test_rank_without_preferences_keeps_order():
    events = [GroupedEvent(id="a", title="A"), GroupedEvent(id="b", title="B")]
    out = rank_events(events, SearchIntent())
    assert [e.id for e in out] == ["a", "b"]
    assert out[0].relevance_score is None
