"""Transcript analysis using Claude."""

import json
import os
import re
from dataclasses import dataclass
from enum import Enum

import anthropic
from anthropic import AsyncAnthropic
from rich.console import Console

from .models import ACTION_ITEMS, MAIN_POINTS, NEXT_STEPS, AnalysisResult, UsageCounters, sentinel

console = Console()

DEFAULT_MODEL = "claude-sonnet-4-20250514"
TEMPERATURE = 0.3
MAX_TOKENS = 1000

SYSTEM_PROMPT = """You are an expert conversation analyst. Analyze the provided transcript and extract:

1. Main Points: Key topics, important information, and significant insights discussed
2. Action Items: Specific tasks, to-dos, responsibilities, and commitments mentioned
3. Next Steps: Follow-up actions, future plans, and scheduled activities

Instructions:
- Provide 3-5 items for each category when possible
- Be concise but specific
- If a category has no relevant content, provide a meaningful "No [category] identified" message
- Focus on actionable and concrete items
- Use clear, professional language
- Return ONLY a valid JSON object with an array for each category, no other text

Example format:
{
  "mainPoints": ["Point 1", "Point 2", "Point 3"],
  "actionItems": ["Action 1", "Action 2", "Action 3"],
  "nextSteps": ["Step 1", "Step 2", "Step 3"]
}"""

USER_PROMPT = "Please analyze this conversation transcript:\n\n{transcript}"

# response key -> category label used in sentinels
CATEGORIES = {
    "mainPoints": MAIN_POINTS,
    "actionItems": ACTION_ITEMS,
    "nextSteps": NEXT_STEPS,
}

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class ErrorKind(str, Enum):
    EMPTY_TRANSCRIPT = "empty_transcript"
    MISSING_CREDENTIAL = "missing_credential"
    AUTHENTICATION_FAILED = "authentication_failed"
    QUOTA_EXCEEDED = "quota_exceeded"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_FAILURE = "transport_failure"


ERROR_MESSAGES = {
    ErrorKind.EMPTY_TRANSCRIPT: "Transcript is required",
    ErrorKind.MISSING_CREDENTIAL: "Anthropic API key is not configured",
    ErrorKind.AUTHENTICATION_FAILED: "Invalid Anthropic API key",
    ErrorKind.QUOTA_EXCEEDED: "Anthropic API quota exceeded",
    ErrorKind.MALFORMED_RESPONSE: "Invalid JSON response from the model",
    ErrorKind.TRANSPORT_FAILURE: "Failed to analyze transcript",
}

ERROR_STATUS = {
    ErrorKind.EMPTY_TRANSCRIPT: 400,
    ErrorKind.AUTHENTICATION_FAILED: 401,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.MISSING_CREDENTIAL: 500,
    ErrorKind.MALFORMED_RESPONSE: 500,
    ErrorKind.TRANSPORT_FAILURE: 500,
}


class SummarizerError(Exception):
    """A summarization failure tagged with its ErrorKind."""

    def __init__(self, kind: ErrorKind, details: str | None = None):
        self.kind = kind
        self.details = details
        super().__init__(self.message if not details else f"{self.message}: {details}")

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]


@dataclass
class Summary:
    analysis: AnalysisResult
    usage: UsageCounters | None = None


def parse_json_response(content: str):
    """Parse the model reply, falling back to the outermost brace-delimited span."""
    try:
        return json.loads(content)
    except (json.JSONDecodeError, RecursionError):
        pass

    match = _JSON_OBJECT.search(content)
    if not match:
        raise SummarizerError(ErrorKind.MALFORMED_RESPONSE, "no JSON object in response")

    console.print("[yellow]Response was not pure JSON, using embedded object[/yellow]")
    try:
        return json.loads(match.group(0))
    except (json.JSONDecodeError, RecursionError) as e:
        raise SummarizerError(ErrorKind.MALFORMED_RESPONSE, str(e)) from e


def validate_analysis(data) -> AnalysisResult:
    """Repair each category independently; anything unusable becomes a sentinel."""
    if not isinstance(data, dict):
        data = {}

    fields = {}
    for key, label in CATEGORIES.items():
        items = data.get(key)
        if isinstance(items, list):
            items = [item if isinstance(item, str) else json.dumps(item) for item in items]
        if not isinstance(items, list) or not items:
            items = [sentinel(label)]
        fields[key] = items

    return AnalysisResult(
        main_points=fields["mainPoints"],
        action_items=fields["actionItems"],
        next_steps=fields["nextSteps"],
    )


def parse_usage(usage) -> UsageCounters | None:
    if usage is None:
        return None
    prompt = getattr(usage, "input_tokens", None)
    completion = getattr(usage, "output_tokens", None)
    if prompt is None and completion is None:
        return None
    return UsageCounters(prompt_tokens=prompt or 0, completion_tokens=completion or 0)


def build_request(transcript: str, model: str = DEFAULT_MODEL) -> dict:
    """Keyword arguments for messages.create."""
    return {
        "model": model,
        "system": SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": USER_PROMPT.format(transcript=transcript)}],
        "temperature": TEMPERATURE,
        "max_tokens": MAX_TOKENS,
    }


class Summarizer:
    """Summarizer backed by the Anthropic Messages API.

    The client is created lazily on the first call so a missing key is
    reported as MISSING_CREDENTIAL rather than failing at construction.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: AsyncAnthropic | None = None,
    ):
        self.api_key = api_key
        self.model = model or os.environ.get("VOICE_INSIGHTS_MODEL") or DEFAULT_MODEL
        self.client = client

    def _get_client(self) -> AsyncAnthropic:
        if self.client is not None:
            return self.client
        api_key = self.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise SummarizerError(ErrorKind.MISSING_CREDENTIAL)
        # retries are the orchestrator's decision
        self.client = AsyncAnthropic(api_key=api_key, max_retries=0)
        return self.client

    async def summarize(self, transcript: str) -> Summary:
        if not transcript or not transcript.strip():
            raise SummarizerError(ErrorKind.EMPTY_TRANSCRIPT)

        client = self._get_client()

        try:
            response = await client.messages.create(**build_request(transcript, self.model))
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            console.print(f"[red]API error: {e}[/red]")
            raise SummarizerError(ErrorKind.AUTHENTICATION_FAILED, str(e)) from e
        except anthropic.RateLimitError as e:
            console.print(f"[red]API error: {e}[/red]")
            raise SummarizerError(ErrorKind.QUOTA_EXCEEDED, str(e)) from e
        except anthropic.APIError as e:
            console.print(f"[red]API error: {e}[/red]")
            raise SummarizerError(ErrorKind.TRANSPORT_FAILURE, str(e)) from e

        content = "".join(
            block.text for block in (response.content or []) if getattr(block, "text", None)
        ).strip()
        if not content:
            raise SummarizerError(ErrorKind.MALFORMED_RESPONSE, "empty response")

        data = parse_json_response(content)
        return Summary(analysis=validate_analysis(data), usage=parse_usage(getattr(response, "usage", None)))


def analysis_response(result: Summary | SummarizerError) -> tuple[int, dict]:
    """HTTP-style status and body for a summarization outcome."""
    if isinstance(result, SummarizerError):
        body = {"error": result.message}
        if result.details:
            body["details"] = result.details
        return result.status_code, body

    return 200, {
        "success": True,
        "analysis": result.analysis.to_dict(),
        "usage": result.usage.to_dict() if result.usage else None,
    }
