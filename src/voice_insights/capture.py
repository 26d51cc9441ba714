"""Transcript sources: the capture side of the pipeline.

A source accumulates text while recording and hands the final transcript back
from ``stop()``. Listeners registered with ``on_result`` receive the full
accumulated text after every update; ``on_error`` listeners receive a reason
string when capture fails.
"""

from abc import ABC, abstractmethod
from typing import Callable


class CaptureError(Exception):
    """Capture could not start or failed while recording."""


class CaptureUnsupported(CaptureError):
    """No transcription capability in this environment."""


class TranscriptSource(ABC):
    supported = True

    def __init__(self):
        self._result_callbacks: list[Callable[[str], None]] = []
        self._error_callbacks: list[Callable[[str], None]] = []

    def on_result(self, callback: Callable[[str], None]):
        self._result_callbacks.append(callback)

    def on_error(self, callback: Callable[[str], None]):
        self._error_callbacks.append(callback)

    def _emit_result(self, text: str):
        for callback in self._result_callbacks:
            callback(text)

    def _emit_error(self, reason: str):
        for callback in self._error_callbacks:
            callback(reason)

    @abstractmethod
    def start(self):
        """Begin capturing. Raises CaptureError if that is not possible."""

    @abstractmethod
    def stop(self) -> str:
        """Stop capturing and return the final transcript."""


class BufferedTranscriptSource(TranscriptSource):
    """Source fed with recognized text segments, e.g. lines read from a terminal."""

    def __init__(self, separator: str = " "):
        super().__init__()
        self.separator = separator
        self.recording = False
        self._segments: list[str] = []

    @property
    def text(self) -> str:
        return self.separator.join(self._segments)

    def start(self):
        self._segments = []
        self.recording = True

    def feed(self, segment: str):
        if not self.recording:
            return
        segment = segment.strip()
        if segment:
            self._segments.append(segment)
            self._emit_result(self.text)

    def fail(self, reason: str):
        """Abort the recording, notifying error listeners."""
        self.recording = False
        self._emit_error(reason)

    def stop(self) -> str:
        self.recording = False
        return self.text


class UnsupportedTranscriptSource(TranscriptSource):
    """Placeholder for environments without speech recognition."""

    supported = False

    def __init__(self, reason: str = "Speech recognition is not supported in this environment"):
        super().__init__()
        self.reason = reason

    def start(self):
        raise CaptureUnsupported(self.reason)

    def stop(self) -> str:
        return ""
