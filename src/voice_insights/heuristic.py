"""Keyword-based transcript analysis that runs without a backend."""

import re

from .models import ACTION_ITEMS, MAIN_POINTS, NEXT_STEPS, AnalysisResult, UsageCounters, sentinel
from .stats import count_tokens
from .summarizer import ErrorKind, Summary, SummarizerError

ACTION_KEYWORDS = (
    "need to",
    "needs to",
    "have to",
    "must",
    "should",
    "will",
    "going to",
    "todo",
    "to do",
    "assign",
    "responsible",
    "make sure",
)

NEXT_STEP_KEYWORDS = (
    "next",
    "follow up",
    "follow-up",
    "schedule",
    "tomorrow",
    "later",
    "meeting",
    "plan",
    "deadline",
    "by friday",
    "next week",
)

MAX_ITEMS = 5

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def _matches(sentence: str, keywords: tuple[str, ...]) -> bool:
    lowered = sentence.lower()
    return any(re.search(rf"\b{re.escape(k)}\b", lowered) for k in keywords)


class HeuristicSummarizer:
    """Same interface as Summarizer; sorts sentences by keyword."""

    async def summarize(self, transcript: str) -> Summary:
        if not transcript or not transcript.strip():
            raise SummarizerError(ErrorKind.EMPTY_TRANSCRIPT)

        sentences = split_sentences(transcript)
        actions = [s for s in sentences if _matches(s, ACTION_KEYWORDS)]
        next_steps = [s for s in sentences if _matches(s, NEXT_STEP_KEYWORDS)]
        main_points = [s for s in sentences if s not in actions and s not in next_steps]
        if not main_points:
            main_points = sentences

        analysis = AnalysisResult(
            main_points=main_points[:MAX_ITEMS] or [sentinel(MAIN_POINTS)],
            action_items=actions[:MAX_ITEMS] or [sentinel(ACTION_ITEMS)],
            next_steps=next_steps[:MAX_ITEMS] or [sentinel(NEXT_STEPS)],
        )
        completion = "\n".join(analysis.main_points + analysis.action_items + analysis.next_steps)
        usage = UsageCounters(
            prompt_tokens=count_tokens(transcript),
            completion_tokens=count_tokens(completion),
        )
        return Summary(analysis=analysis, usage=usage)
