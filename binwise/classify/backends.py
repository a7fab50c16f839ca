"""
Completion Backends - The streaming model RPC.

A backend takes prompt parts and safety settings and yields text
chunks in arrival order. Transport and provider errors are raised
from the iterator; the classifier turns them into a terminal value.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import AsyncIterator, Sequence

from .request import PromptPart, SafetySetting


class CompletionBackend(ABC):
    """Streaming multimodal completion."""

    @abstractmethod
    def stream(
        self,
        parts: Sequence[PromptPart],
        safety_settings: Sequence[SafetySetting],
    ) -> AsyncIterator[str]:
        """Yield text chunks for a single-turn user prompt."""
        pass
