from types import SimpleNamespace

import pytest

from services import storage


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(storage, "DB_PATH", tmp_path / "test.db")
    storage.init_db()
    return storage


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeCompletions:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        msg = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=msg)])


def fake_openai(reply):
    completions = FakeCompletions(reply)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def tm_item(
    id="1",
    name="Hamlet Sat 19:30",
    venue="Old Vic",
    local_date="2099-11-14",
    local_time="19:30:00",
    price=(25.0, 80.0, "GBP"),
    status="onsale",
):
    item = {
        "id": id,
        "name": name,
        "url": f"https://www.ticketmaster.co.uk/event/{id}",
        "images": [
            {"ratio": "3_2", "url": "https://img/small.jpg", "width": 305},
            {"ratio": "16_9", "url": "https://img/big.jpg", "width": 1024},
        ],
        "dates": {
            "start": {"localDate": local_date, "localTime": local_time},
            "status": {"code": status},
        },
        "classifications": [{
            "segment": {"name": "Arts & Theatre"},
            "genre": {"name": "Theatre"},
            "subGenre": {"name": "Drama"},
        }],
        "promoter": {"name": "NT Live"},
        "_embedded": {"venues": [{
            "name": venue,
            "city": {"name": "London"},
            "state": {"name": "Greater London"},
            "address": {"line1": "The Cut"},
            "location": {"latitude": "51.5021", "longitude": "-0.1092"},
        }]},
    }
    if price:
        item["priceRanges"] = [
            {"type": "standard", "min": price[0], "max": price[1], "currency": price[2]}
        ]
    return item
