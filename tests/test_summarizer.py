import asyncio
import json

import anthropic
import httpx
import pytest

import voice_insights.summarizer as sm
from conftest import FakeClient, json_reply, status_error


def summarize(client, transcript="Alice and Bob talked about the launch."):
    return asyncio.run(sm.Summarizer(client=client).summarize(transcript))


def test_summarize_success_reports_usage():
    client = FakeClient(reply=json_reply(next_steps=["Review on Friday"]), usage=(300, 45))
    summary = summarize(client)

    assert summary.analysis.main_points == ["Discussed the roadmap"]
    assert summary.analysis.next_steps == ["Review on Friday"]
    assert summary.usage.prompt_tokens == 300
    assert summary.usage.completion_tokens == 45
    assert summary.usage.total_tokens == 345


def test_request_shape():
    client = FakeClient(reply=json_reply())
    summarize(client, "hello world")

    call = client.messages.calls[0]
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 1000
    assert call["system"] == sm.SYSTEM_PROMPT
    assert call["messages"] == [
        {"role": "user", "content": "Please analyze this conversation transcript:\n\nhello world"}
    ]
    for key in ("mainPoints", "actionItems", "nextSteps"):
        assert key in call["system"]


def test_missing_usage_is_not_an_error():
    summary = summarize(FakeClient(reply=json_reply(), usage=None))
    assert summary.usage is None


@pytest.mark.parametrize("transcript", ["", "   ", "\n\t "])
def test_empty_transcript_rejected_before_call(transcript):
    client = FakeClient(reply=json_reply())
    with pytest.raises(sm.SummarizerError) as exc:
        summarize(client, transcript)

    assert exc.value.kind == sm.ErrorKind.EMPTY_TRANSCRIPT
    assert exc.value.status_code == 400
    assert len(client.messages.calls) == 0


def test_missing_credential(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    created = []
    monkeypatch.setattr(sm, "AsyncAnthropic", lambda **kw: created.append(kw))

    with pytest.raises(sm.SummarizerError) as exc:
        asyncio.run(sm.Summarizer().summarize("some words"))

    assert exc.value.kind == sm.ErrorKind.MISSING_CREDENTIAL
    assert exc.value.status_code == 500
    assert created == []


def test_credential_from_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    created = []

    def fake_client(**kwargs):
        created.append(kwargs)
        return FakeClient(reply=json_reply())

    monkeypatch.setattr(sm, "AsyncAnthropic", fake_client)
    asyncio.run(sm.Summarizer().summarize("some words"))

    assert created == [{"api_key": "sk-test", "max_retries": 0}]


def test_brace_extraction_fallback():
    client = FakeClient(reply='some preamble {"mainPoints":["a"]} trailing')
    summary = summarize(client)

    assert summary.analysis.to_dict() == {
        "mainPoints": ["a"],
        "actionItems": ["No action items identified"],
        "nextSteps": ["No next steps identified"],
    }


def test_fenced_json_reply():
    reply = "```json\n" + json_reply() + "\n```"
    summary = summarize(FakeClient(reply=reply))
    assert summary.analysis.action_items == ["Send the notes"]


@pytest.mark.parametrize("reply", ["not json at all", "{ broken: json ]}", "   "])
def test_malformed_response(reply):
    with pytest.raises(sm.SummarizerError) as exc:
        summarize(FakeClient(reply=reply))
    assert exc.value.kind == sm.ErrorKind.MALFORMED_RESPONSE


def test_per_field_repair():
    reply = json.dumps({"mainPoints": "just a string", "actionItems": [], "nextSteps": ["Call Dana"]})
    analysis = summarize(FakeClient(reply=reply)).analysis

    assert analysis.main_points == ["No main points identified"]
    assert analysis.action_items == ["No action items identified"]
    assert analysis.next_steps == ["Call Dana"]


def test_non_object_json_is_fully_repaired():
    analysis = sm.validate_analysis(["a", "b"])
    assert analysis.main_points == ["No main points identified"]
    assert analysis.action_items == ["No action items identified"]
    assert analysis.next_steps == ["No next steps identified"]


@pytest.mark.parametrize(
    "error, kind, status",
    [
        (status_error(anthropic.AuthenticationError, 401), sm.ErrorKind.AUTHENTICATION_FAILED, 401),
        (status_error(anthropic.PermissionDeniedError, 403), sm.ErrorKind.AUTHENTICATION_FAILED, 401),
        (status_error(anthropic.RateLimitError, 429), sm.ErrorKind.QUOTA_EXCEEDED, 429),
        (status_error(anthropic.InternalServerError, 500), sm.ErrorKind.TRANSPORT_FAILURE, 500),
        (
            anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com")),
            sm.ErrorKind.TRANSPORT_FAILURE,
            500,
        ),
    ],
)
def test_backend_errors_are_classified(error, kind, status):
    client = FakeClient(error=error)
    with pytest.raises(sm.SummarizerError) as exc:
        summarize(client)

    assert exc.value.kind == kind
    assert exc.value.status_code == status
    assert len(client.messages.calls) == 1


def test_error_messages_are_distinct():
    messages = [sm.SummarizerError(kind).message for kind in sm.ErrorKind]
    assert len(set(messages)) == len(messages)


def test_analysis_response_success():
    summary = summarize(FakeClient(reply=json_reply(), usage=(10, 5)))
    status, body = sm.analysis_response(summary)

    assert status == 200
    assert body["success"] is True
    assert body["analysis"]["actionItems"] == ["Send the notes"]
    assert body["usage"] == {"promptTokens": 10, "completionTokens": 5, "totalTokens": 15}


def test_analysis_response_error():
    status, body = sm.analysis_response(sm.SummarizerError(sm.ErrorKind.QUOTA_EXCEEDED, "slow down"))

    assert status == 429
    assert body == {"error": "Anthropic API quota exceeded", "details": "slow down"}
    assert "success" not in body


def test_deeply_nested_reply_is_malformed():
    with pytest.raises(sm.SummarizerError) as exc:
        summarize(FakeClient(reply='{"a": ' * 100000 + "1" + "}" * 100000))
    assert exc.value.kind == sm.ErrorKind.MALFORMED_RESPONSE
