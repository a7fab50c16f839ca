"""
Streaming Classifier - Issues the multimodal request and streams text.

The stream:
- Is lazy: nothing is sent until iteration starts
- Yields TextDelta items in arrival order, no reordering or dedup
- Ends normally by exhaustion, or with ONE terminal StreamFailed item
- Can be iterated only once
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable
import logging

from ..capture.frame import CapturedFrame
from ..errors import StreamConsumedError
from .backends import CompletionBackend
from .prompts import RecyclingPrompts
from .request import (
    ClassificationRequest,
    DEFAULT_SAFETY_SETTINGS,
    ImagePart,
    PromptPart,
    SafetySetting,
    TextPart,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextDelta:
    """One incremental fragment of generated text."""
    text: str


@dataclass(frozen=True)
class StreamFailed:
    """Terminal failure value. Always the last item of a stream."""
    description: str
    error: BaseException | None = field(default=None, compare=False)


StreamEvent = TextDelta | StreamFailed


def describe_error(error: BaseException) -> str:
    message = str(error)
    name = type(error).__name__
    return f"{name}: {message}" if message else name


class ClassificationStream:
    """
    Single-use async iterator over one request's events.

    Usage:
        async for event in classifier.classify(request):
            if isinstance(event, StreamFailed):
                ...
    """

    def __init__(self, request: ClassificationRequest, open_chunks: Callable[[], AsyncIterator[str]]):
        self.request = request
        self.failure: StreamFailed | None = None
        self._open_chunks = open_chunks
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        if self._consumed:
            raise StreamConsumedError(f"Stream for request {self.request.request_id} already consumed")
        self._consumed = True
        return self._events()

    async def _events(self) -> AsyncIterator[StreamEvent]:
        try:
            async for chunk in self._open_chunks():
                if chunk:
                    yield TextDelta(chunk)
        except Exception as e:
            logger.error("Classification stream aborted: %s", e)
            self.failure = StreamFailed(describe_error(e), e)
            yield self.failure


class StreamingClassifier:
    """
    Builds recycling prompts and streams the model's answer.

    Usage:
        classifier = StreamingClassifier(GeminiBackend(api_key))
        request = classifier.build_request(frame, "Springfield, Illinois, USA")
        async for event in classifier.classify(request):
            ...
    """

    def __init__(
        self,
        backend: CompletionBackend,
        prompts: RecyclingPrompts | None = None,
        safety_settings: tuple[SafetySetting, ...] = DEFAULT_SAFETY_SETTINGS,
    ):
        self.backend = backend
        self.prompts = prompts or RecyclingPrompts()
        self.safety_settings = safety_settings

    def build_request(self, frame: CapturedFrame, location: str) -> ClassificationRequest:
        """Snapshot frame, location and instruction for one submit."""
        return ClassificationRequest.create(
            frame=frame,
            location=location,
            instruction=self.prompts.instruction(location),
        )

    def build_prompt(self, request: ClassificationRequest) -> list[PromptPart]:
        """Single user turn: image first, then the instruction."""
        return [
            ImagePart(mime_type=request.frame.mime_type, data=request.frame.data),
            TextPart(text=request.instruction),
        ]

    def classify(self, request: ClassificationRequest) -> ClassificationStream:
        """Create the (not yet started) stream for a request."""
        parts = self.build_prompt(request)
        logger.info("Classifying request %s for location %r", request.request_id, request.location)
        return ClassificationStream(
            request,
            lambda: self.backend.stream(parts, self.safety_settings),
        )
