"""
Classify Module - Streaming recyclability classification.

    CapturedFrame + location -> ClassificationRequest -> CompletionBackend
        -> ClassificationStream of TextDelta ... [StreamFailed]

Whether the location is real is judged by the model through the
instruction text; it is best-effort, not validated here.
"""

from .prompts import (
    RecyclingPrompts,
    AFFIRMATIVE_PHRASE,
    NEGATIVE_PHRASE,
    LOCATION_NOT_FOUND_MESSAGE,
)
from .request import (
    ClassificationRequest,
    ImagePart,
    TextPart,
    PromptPart,
    SafetySetting,
    DEFAULT_SAFETY_SETTINGS,
)
from .backends import CompletionBackend
from .classifier import (
    StreamingClassifier,
    ClassificationStream,
    TextDelta,
    StreamFailed,
    StreamEvent,
    describe_error,
)

__all__ = [
    "RecyclingPrompts",
    "AFFIRMATIVE_PHRASE",
    "NEGATIVE_PHRASE",
    "LOCATION_NOT_FOUND_MESSAGE",
    "ClassificationRequest",
    "ImagePart",
    "TextPart",
    "PromptPart",
    "SafetySetting",
    "DEFAULT_SAFETY_SETTINGS",
    "CompletionBackend",
    "StreamingClassifier",
    "ClassificationStream",
    "TextDelta",
    "StreamFailed",
    "StreamEvent",
    "describe_error",
]
