"""
Incremental Presenter - Folds a classification stream into markup.

For each request:
1. begin() discards the previous buffer
2. Every delta is appended, then the WHOLE buffer is re-rendered
3. The signal is recomputed from the whole buffer (last computed wins)
4. On failure a separator and the error are appended to the markup,
   partial output stays visible

Markup is always render(buffer text): never patched incrementally.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Callable
import html
import logging

from ..classify.classifier import ClassificationStream, StreamFailed, TextDelta
from .markup import render_markup

logger = logging.getLogger(__name__)

PLACEHOLDER = "(Results will appear here)"
GENERATING = "Generating..."
SEPARATOR = "<hr>"


class ClassificationSignal(Enum):
    """Tri-state verdict used for display styling."""
    UNKNOWN = "unknown"
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"


class PresenterStatus(Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class SignalMarkers:
    """Case-insensitive substrings that imply a verdict."""
    affirmative: tuple[str, ...] = ("yes, this is recyclable",)
    negative: tuple[str, ...] = (
        "no, this isn't recyclable",
        "no, this isnt recyclable",
        "no, this is not recyclable",
    )


DEFAULT_MARKERS = SignalMarkers()


def detect_signal(text: str, markers: SignalMarkers = DEFAULT_MARKERS) -> ClassificationSignal:
    """
    Infer the verdict from accumulated text.

    Affirmative markers are checked first, so text containing both
    (e.g. an echoed instruction) reads as AFFIRMATIVE. This is a
    heuristic, not a guaranteed classification.
    """
    normalized = text.replace("’", "'").lower()
    if any(marker in normalized for marker in markers.affirmative):
        return ClassificationSignal.AFFIRMATIVE
    if any(marker in normalized for marker in markers.negative):
        return ClassificationSignal.NEGATIVE
    return ClassificationSignal.UNKNOWN


@dataclass
class StreamBuffer:
    """Append-only fragments for one request."""
    request_id: str
    fragments: list[str] = field(default_factory=list)

    def append(self, text: str):
        self.fragments.append(text)

    @property
    def text(self) -> str:
        return "".join(self.fragments)


@dataclass(frozen=True)
class PresenterSnapshot:
    """What the output region shows at one moment."""
    request_id: str | None
    status: PresenterStatus
    markup: str
    text: str
    signal: ClassificationSignal
    error: str | None = None


class IncrementalPresenter:
    """
    Owns the stream buffer and rendered output for one session.

    Usage:
        presenter = IncrementalPresenter()
        async for snapshot in presenter.consume(classifier.classify(request)):
            show(snapshot.markup, snapshot.signal)
    """

    def __init__(
        self,
        render: Callable[[str], str] = render_markup,
        markers: SignalMarkers = DEFAULT_MARKERS,
    ):
        self.render = render
        self.markers = markers
        self.buffer: StreamBuffer | None = None
        self.markup = PLACEHOLDER
        self.signal = ClassificationSignal.UNKNOWN
        self.status = PresenterStatus.IDLE
        self.error: str | None = None

    @property
    def request_id(self) -> str | None:
        return self.buffer.request_id if self.buffer else None

    def begin(self, request_id: str) -> PresenterSnapshot:
        """Start a new request, discarding the previous buffer."""
        self.buffer = StreamBuffer(request_id=request_id)
        self.markup = GENERATING
        self.signal = ClassificationSignal.UNKNOWN
        self.status = PresenterStatus.STREAMING
        self.error = None
        return self.snapshot()

    def apply(self, request_id: str, delta: TextDelta | str) -> PresenterSnapshot:
        """Append a delta and re-render the whole buffer."""
        if not self._accepts(request_id):
            return self.snapshot()

        text = delta.text if isinstance(delta, TextDelta) else delta
        self.buffer.append(text)
        full_text = self.buffer.text
        self.markup = self.render(full_text)
        self.signal = detect_signal(full_text, self.markers)
        return self.snapshot()

    def complete(self, request_id: str) -> PresenterSnapshot:
        """Stream ended normally; output stays as is."""
        if self._accepts(request_id):
            self.status = PresenterStatus.COMPLETE
        return self.snapshot()

    def fail(self, request_id: str, description: str) -> PresenterSnapshot:
        """Stream aborted: keep partial output, append separator and error."""
        if not self._accepts(request_id):
            return self.snapshot()

        self.markup = f"{self.markup}{SEPARATOR}{html.escape(description)}"
        self.status = PresenterStatus.FAILED
        self.error = description
        return self.snapshot()

    def reset(self):
        """Discard buffer and output (session teardown)."""
        self.buffer = None
        self.markup = PLACEHOLDER
        self.signal = ClassificationSignal.UNKNOWN
        self.status = PresenterStatus.IDLE
        self.error = None

    async def consume(self, stream: ClassificationStream) -> AsyncIterator[PresenterSnapshot]:
        """
        Drive the presenter from a classification stream.

        Yields a snapshot after begin, after each delta, and once
        more at completion or failure.
        """
        request_id = stream.request.request_id
        yield self.begin(request_id)

        async for event in stream:
            if isinstance(event, StreamFailed):
                yield self.fail(request_id, event.description)
                return
            yield self.apply(request_id, event)

        yield self.complete(request_id)

    def snapshot(self) -> PresenterSnapshot:
        return PresenterSnapshot(
            request_id=self.request_id,
            status=self.status,
            markup=self.markup,
            text=self.buffer.text if self.buffer else "",
            signal=self.signal,
            error=self.error,
        )

    def _accepts(self, request_id: str) -> bool:
        if self.buffer is None or self.buffer.request_id != request_id:
            logger.debug("Ignoring event for stale request %s", request_id)
            return False
        return self.status == PresenterStatus.STREAMING
