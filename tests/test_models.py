from voice_insights.models import AnalysisStatus, Conversation, UsageCounters, clock_id, make_title


def test_title_short_transcript():
    assert make_title("Quick sync") == "Quick sync"


def test_title_truncated():
    transcript = "x" * 51
    assert make_title(transcript) == "x" * 50 + "..."
    assert make_title("y" * 50) == "y" * 50


def test_clock_id_moves_past_previous():
    now = clock_id()
    assert clock_id(now) > now
    assert clock_id(10**15) == 10**15 + 1


def test_create_starts_pending_with_placeholder():
    conv = Conversation.create("We talked about hiring.", 7)
    assert conv.id == 7
    assert conv.status == AnalysisStatus.PENDING
    assert conv.title == "We talked about hiring."
    assert conv.token_usage is None
    assert conv.analysis.main_points


def test_usage_total():
    usage = UsageCounters(prompt_tokens=7, completion_tokens=5)
    assert usage.total_tokens == 12
    assert UsageCounters.from_dict(usage.to_dict()) == usage
    assert UsageCounters.from_dict(None) is None
