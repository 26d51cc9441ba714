import json
from types import SimpleNamespace

import httpx
import pytest

from voice_insights.db import Database
from voice_insights.store import ConversationStore


class FakeMessages:
    def __init__(self, reply="", usage=(120, 80), error=None):
        self.reply = reply
        self.usage = usage
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        usage = None
        if self.usage is not None:
            usage = SimpleNamespace(input_tokens=self.usage[0], output_tokens=self.usage[1])
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.reply)], usage=usage)


class FakeClient:
    def __init__(self, reply="", usage=(120, 80), error=None):
        self.messages = FakeMessages(reply, usage, error)


def json_reply(main_points=None, action_items=None, next_steps=None):
    return json.dumps(
        {
            "mainPoints": main_points or ["Discussed the roadmap"],
            "actionItems": action_items or ["Send the notes"],
            "nextSteps": next_steps or ["Meet again on Monday"],
        }
    )


def status_error(error_cls, status_code):
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status_code, request=request)
    return error_cls("backend said no", response=response, body=None)


@pytest.fixture(autouse=True)
def offline_token_counts(monkeypatch):
    monkeypatch.setattr("voice_insights.heuristic.count_tokens", lambda text: len(text.split()))


@pytest.fixture
def db(tmp_path):
    database = Database(tmp_path / "voice.db")
    database.connect()
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def store(db):
    s = ConversationStore(db)
    s.load()
    return s
