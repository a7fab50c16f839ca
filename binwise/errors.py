"""
Errors - Exception hierarchy shared by every layer.

Categories:
- Transient: geolocation / geocoding failures (logged, never surfaced)
- User input: submitting without a captured frame
- Device: camera denied or unavailable, invalid capture transitions
- Remote/stream: handled as terminal stream values, not exceptions

Nothing here is fatal to a running session.
"""

from __future__ import annotations
from enum import Enum


class BinwiseError(Exception):
    """Base class for all binwise errors."""


class GeolocationErrorKind(Enum):
    """Why the device position could not be obtained."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"


class GeolocationError(BinwiseError):
    """Device coordinates could not be obtained."""

    def __init__(self, kind: GeolocationErrorKind, message: str = ""):
        self.kind = kind
        super().__init__(message or kind.value)


class GeocodeError(BinwiseError):
    """Reverse lookup failed (network or malformed payload)."""


class CameraError(BinwiseError):
    """Camera access denied or device unavailable."""


class CaptureStateError(BinwiseError):
    """Operation not valid in the controller's current state."""


class NoFrameAvailableError(CaptureStateError):
    """Capture requested while the live feed has no frame yet."""


class MissingFrameError(BinwiseError):
    """Submit attempted before a frame was captured."""


class RequestInFlightError(BinwiseError):
    """A classification request is already streaming for this session."""


class StreamConsumedError(BinwiseError):
    """A classification stream was iterated more than once."""
