"""Data models for voice insights."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

TITLE_LENGTH = 50

MAIN_POINTS = "main points"
ACTION_ITEMS = "action items"
NEXT_STEPS = "next steps"


def sentinel(category: str) -> str:
    """Placeholder entry for a category with nothing extracted."""
    return f"No {category} identified"


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    ANALYZING = "analyzing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class UsageCounters:
    """Token accounting reported for one analysis call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> dict:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "UsageCounters | None":
        if not data:
            return None
        return cls(
            prompt_tokens=int(data.get("promptTokens", 0)),
            completion_tokens=int(data.get("completionTokens", 0)),
        )


@dataclass
class AnalysisResult:
    """The three-category summary of a transcript."""

    main_points: list[str] = field(default_factory=list)
    action_items: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)

    def copy(self) -> "AnalysisResult":
        return AnalysisResult(list(self.main_points), list(self.action_items), list(self.next_steps))

    def to_dict(self) -> dict:
        return {
            "mainPoints": list(self.main_points),
            "actionItems": list(self.action_items),
            "nextSteps": list(self.next_steps),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnalysisResult":
        return cls(
            main_points=list(data.get("mainPoints", [])),
            action_items=list(data.get("actionItems", [])),
            next_steps=list(data.get("nextSteps", [])),
        )


PLACEHOLDER_ANALYSIS = AnalysisResult(
    main_points=["Analyzing transcript..."],
    action_items=["Processing..."],
    next_steps=["Please wait..."],
)

FAILED_ANALYSIS = AnalysisResult(
    main_points=["Analysis failed - summarization backend error"],
    action_items=["Check your API key and try again"],
    next_steps=["Verify your account credits and permissions"],
)


def make_title(transcript: str) -> str:
    """Preview title: the first 50 characters, with an ellipsis if cut."""
    title = transcript[:TITLE_LENGTH]
    if len(transcript) > TITLE_LENGTH:
        title += "..."
    return title


def clock_id(after: int = 0) -> int:
    """Millisecond clock value, bumped past `after` so ids strictly increase."""
    return max(time.time_ns() // 1_000_000, after + 1)


@dataclass
class Conversation:
    """A recorded conversation and its analysis."""

    id: int
    created_at: datetime
    transcript: str
    title: str
    analysis: AnalysisResult
    status: AnalysisStatus = AnalysisStatus.PENDING
    token_usage: UsageCounters | None = None

    @classmethod
    def create(cls, transcript: str, conversation_id: int) -> "Conversation":
        return cls(
            id=conversation_id,
            created_at=datetime.now(),
            transcript=transcript,
            title=make_title(transcript),
            analysis=PLACEHOLDER_ANALYSIS.copy(),
        )

    @property
    def is_analyzing(self) -> bool:
        return self.status == AnalysisStatus.ANALYZING

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "createdAt": self.created_at.isoformat(),
            "transcript": self.transcript,
            "title": self.title,
            "analysis": self.analysis.to_dict(),
            "status": self.status.value,
            "tokenUsage": self.token_usage.to_dict() if self.token_usage else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Conversation":
        return cls(
            id=int(data["id"]),
            created_at=datetime.fromisoformat(data["createdAt"]),
            transcript=data["transcript"],
            title=data.get("title") or make_title(data["transcript"]),
            analysis=AnalysisResult.from_dict(data.get("analysis") or {}),
            status=AnalysisStatus(data.get("status", AnalysisStatus.PENDING.value)),
            token_usage=UsageCounters.from_dict(data.get("tokenUsage")),
        )


@dataclass
class User:
    """The identity handed over by the login boundary."""

    email: str
    name: str

    @classmethod
    def from_email(cls, email: str) -> "User":
        return cls(email=email, name=email.split("@")[0])
