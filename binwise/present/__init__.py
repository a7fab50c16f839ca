"""
Present Module - Incremental rendering of the streamed verdict.

    ClassificationStream -> IncrementalPresenter -> PresenterSnapshot

Markup is always a pure function of the accumulated buffer.
"""

from .markup import render_markup
from .presenter import (
    IncrementalPresenter,
    PresenterSnapshot,
    PresenterStatus,
    ClassificationSignal,
    SignalMarkers,
    StreamBuffer,
    DEFAULT_MARKERS,
    PLACEHOLDER,
    GENERATING,
    SEPARATOR,
    detect_signal,
)

__all__ = [
    "render_markup",
    "IncrementalPresenter",
    "PresenterSnapshot",
    "PresenterStatus",
    "ClassificationSignal",
    "SignalMarkers",
    "StreamBuffer",
    "DEFAULT_MARKERS",
    "PLACEHOLDER",
    "GENERATING",
    "SEPARATOR",
    "detect_signal",
]
