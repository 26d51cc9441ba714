"""Drives each conversation from a finalized transcript to a stored analysis."""

import asyncio
import dataclasses
from dataclasses import dataclass
from typing import Callable

from rich.console import Console

from .capture import CaptureError, TranscriptSource
from .models import FAILED_ANALYSIS, PLACEHOLDER_ANALYSIS, AnalysisStatus, Conversation
from .store import ConversationStore
from .summarizer import ErrorKind, Summarizer, SummarizerError

console = Console()

DEFAULT_TIMEOUT = 60.0


@dataclass
class Notification:
    level: str  # "error" or "success"
    message: str
    kind: ErrorKind | None = None


class Orchestrator:
    """Owns the conversation store and runs one analysis per finalized transcript.

    ``summarizer`` is anything with an async ``summarize(transcript)`` returning a
    Summary, e.g. Summarizer or HeuristicSummarizer. Each call is bounded by
    ``timeout`` seconds (None waits forever).
    """

    def __init__(
        self,
        store: ConversationStore,
        summarizer: Summarizer,
        source: TranscriptSource | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        on_notify: Callable[[Notification], None] | None = None,
    ):
        self.store = store
        self.summarizer = summarizer
        self.source = source
        self.timeout = timeout
        self.on_notify = on_notify
        self.notification: Notification | None = None
        self.recording = False
        self.current_transcript = ""
        self._selected_id: int | None = None

        if source is not None:
            source.on_result(self._on_capture_result)
            source.on_error(self._on_capture_error)

    def init(self) -> list[Conversation]:
        """Load persisted conversations and recover ones interrupted mid-analysis."""
        records = self.store.load()
        for record in records:
            if record.status in (AnalysisStatus.ANALYZING, AnalysisStatus.PENDING):
                self.store.update(record.id, self._mark_failed)
        return self.store.list()

    # Notifications

    def _notify(self, level: str, message: str, kind: ErrorKind | None = None):
        self.notification = Notification(level=level, message=message, kind=kind)
        if self.on_notify:
            self.on_notify(self.notification)

    def dismiss_notification(self):
        self.notification = None

    # Capture

    def _on_capture_result(self, text: str):
        self.current_transcript = text

    def _on_capture_error(self, reason: str):
        self.recording = False
        self._notify("error", f"Speech recognition error: {reason}")

    def start(self) -> bool:
        """Begin recording. Returns False, with a notification, if capture is unavailable."""
        self.dismiss_notification()
        if self.source is None:
            self._notify("error", "No transcript source configured")
            return False

        self.current_transcript = ""
        try:
            self.source.start()
        except CaptureError as e:
            self._notify("error", str(e))
            return False
        self.recording = True
        return True

    async def stop(self) -> Conversation | None:
        """Stop recording and analyze the transcript, if anything was captured."""
        if self.source is None or not self.recording:
            return None
        self.recording = False
        transcript = self.source.stop() or self.current_transcript
        self.current_transcript = ""
        if not transcript.strip():
            return None
        return await self.analyze(transcript)

    # Analysis

    @staticmethod
    def _mark_analyzing(record: Conversation) -> Conversation:
        return dataclasses.replace(
            record, status=AnalysisStatus.ANALYZING, analysis=PLACEHOLDER_ANALYSIS.copy()
        )

    @staticmethod
    def _mark_failed(record: Conversation) -> Conversation:
        return dataclasses.replace(
            record, status=AnalysisStatus.FAILED, analysis=FAILED_ANALYSIS.copy(), token_usage=None
        )

    async def _summarize(self, transcript: str):
        if self.timeout is None:
            return await self.summarizer.summarize(transcript)
        try:
            return await asyncio.wait_for(self.summarizer.summarize(transcript), self.timeout)
        except asyncio.TimeoutError as e:
            raise SummarizerError(
                ErrorKind.TRANSPORT_FAILURE, f"no response after {self.timeout:g}s"
            ) from e

    async def _run(self, conversation_id: int, transcript: str) -> Conversation | None:
        try:
            summary = await self._summarize(transcript)
        except SummarizerError as e:
            self._notify("error", e.message, e.kind)
            return self.store.update(conversation_id, self._mark_failed)
        except Exception as e:
            console.print(f"[red]Analysis error: {e!r}[/red]")
            error = SummarizerError(ErrorKind.TRANSPORT_FAILURE, str(e))
            self._notify("error", error.message, error.kind)
            return self.store.update(conversation_id, self._mark_failed)

        self._notify("success", "Analysis complete")
        return self.store.update(
            conversation_id,
            lambda r: dataclasses.replace(
                r,
                status=AnalysisStatus.SUCCEEDED,
                analysis=summary.analysis,
                token_usage=summary.usage,
            ),
        )

    async def analyze(self, transcript: str) -> Conversation | None:
        """Create a record for a finalized transcript and analyze it."""
        if not transcript or not transcript.strip():
            error = SummarizerError(ErrorKind.EMPTY_TRANSCRIPT)
            self._notify("error", error.message, error.kind)
            return None

        self.dismiss_notification()
        record = Conversation.create(transcript, self.store.next_id())
        self.store.insert(record)
        self.store.update(record.id, self._mark_analyzing)
        self._selected_id = record.id
        return await self._run(record.id, transcript)

    async def retry(self, conversation_id: int) -> Conversation | None:
        """Re-run analysis on the unchanged transcript. Ignored while one is in flight."""
        record = self.store.get(conversation_id)
        if record is None:
            return None
        if record.is_analyzing:
            console.print(f"[dim]Conversation {conversation_id} is already being analyzed[/dim]")
            return record

        self.dismiss_notification()
        self.store.update(conversation_id, self._mark_analyzing)
        self._selected_id = conversation_id
        return await self._run(conversation_id, record.transcript)

    # Browsing

    def delete(self, conversation_id: int) -> bool:
        removed = self.store.remove(conversation_id)
        if self._selected_id == conversation_id:
            self._selected_id = None
        return removed

    def select(self, conversation_id: int | None) -> Conversation | None:
        if conversation_id is None or self.store.get(conversation_id) is None:
            self._selected_id = None
            return None
        self._selected_id = conversation_id
        return self.store.get(conversation_id)

    def selected(self) -> Conversation | None:
        if self._selected_id is None:
            return None
        return self.store.get(self._selected_id)

    def list(self) -> list[Conversation]:
        return self.store.list()

    def aggregate_usage(self) -> int:
        return self.store.token_total
