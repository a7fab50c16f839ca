"""
Classification Request - Immutable submit-time snapshot.

Once built, a request never changes: editing the location field
afterwards does not affect a request already in flight.
"""

from __future__ import annotations
from dataclasses import dataclass
import uuid

from ..capture.frame import CapturedFrame


@dataclass(frozen=True)
class ImagePart:
    """Inline image payload (base64 text)."""
    mime_type: str
    data: str


@dataclass(frozen=True)
class TextPart:
    text: str


PromptPart = ImagePart | TextPart


@dataclass(frozen=True)
class SafetySetting:
    """One harm category and the threshold at which it is blocked."""
    category: str = "HARASSMENT"
    threshold: str = "BLOCK_ONLY_HIGH"


DEFAULT_SAFETY_SETTINGS = (SafetySetting(),)


@dataclass(frozen=True)
class ClassificationRequest:
    frame: CapturedFrame
    location: str
    instruction: str
    request_id: str = ""

    @classmethod
    def create(cls, frame: CapturedFrame, location: str, instruction: str) -> ClassificationRequest:
        return cls(
            frame=frame,
            location=location,
            instruction=instruction,
            request_id=str(uuid.uuid4()),
        )
