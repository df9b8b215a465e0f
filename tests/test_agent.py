from agent import ChatMessage, chat, event_context, extract_event_ids
from conftest import fake_openai
from services.grouping import GroupedEvent, Location, PriceRange


def test_extract_event_ids():
    text = "Try these!\n[EVENT_IDS: a, b , c,d,e,f]"
    cleaned, ids = extract_event_ids(text)
    assert cleaned == "Try these!"
    assert ids == ["a", "b", "c", "d", "e"]


def test_extract_without_tag():
    assert extract_event_ids("  hello ") == ("hello", [])


def test_event_context_lists_events():
    events = [
        GroupedEvent(
            id="jazz__blue note",
            title="Jazz",
            location=Location("Blue Note", "London"),
            price=PriceRange(0, 0, "GBP"),
            display_date="2030-01-01",
        )
    ]
    ctx = event_context(events)
    assert ctx.startswith("Available Events (1 total):")
    assert "ID: jazz__blue note" in ctx
    assert "Free" in ctx
    assert event_context([]) == ""


def test_chat_builds_messages_and_returns_suggestions():
    client = fake_openai("How about the jazz night? [EVENT_IDS: jazz__blue note]")
    history = [
        ChatMessage(role="user", content="hi"),
        ChatMessage(role="assistant", content="Hello!"),
        ChatMessage(role="system", content="ignored"),
    ]
    turn = chat(
        "something chill",
        client=client,
        history=history,
        events=[GroupedEvent(id="jazz__blue note", title="Jazz")],
    )
    assert turn.message == "How about the jazz night?"
    assert turn.suggested_event_ids == ["jazz__blue note"]

    messages = client.chat.completions.calls[0]["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert "ID: jazz__blue note" in messages[0]["content"]
    assert messages[-1]["content"] == "something chill"
