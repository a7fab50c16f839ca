"""
Pydantic Schemas for API - Request/response models for OpenAPI.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or was ended
- NO_CAPTURED_FRAME: Submit attempted before capturing an image
- REQUEST_IN_FLIGHT: A request is already streaming for the session
- CAMERA_UNAVAILABLE: Camera access denied or device failed
- NO_FRAME_AVAILABLE: Capture attempted before the feed produced a frame
- INVALID_TRANSITION: Camera action not valid in the current state
- PHOTO_UNREADABLE: Uploaded photo could not be decoded
- CONFIGURATION_ERROR: Server is missing required configuration
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class CaptureStatus(str, Enum):
    """Capture controller states."""
    IDLE = "idle"
    STARTING = "starting"
    PREVIEWING = "previewing"
    CAPTURED = "captured"


class OutputStatus(str, Enum):
    """Presenter states."""
    IDLE = "idle"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"


class Signal(str, Enum):
    """Classification signal for display styling."""
    UNKNOWN = "unknown"
    AFFIRMATIVE = "affirmative"
    NEGATIVE = "negative"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    NO_CAPTURED_FRAME = "NO_CAPTURED_FRAME"
    REQUEST_IN_FLIGHT = "REQUEST_IN_FLIGHT"
    CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
    NO_FRAME_AVAILABLE = "NO_FRAME_AVAILABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    PHOTO_UNREADABLE = "PHOTO_UNREADABLE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Requests
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Create a session, optionally with the device's coordinates."""
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    location: Optional[str] = Field(
        default=None,
        description="Initial location text; counts as a user edit",
    )


class LocationUpdateRequest(BaseModel):
    """User edit of the location field."""
    location: str


# =============================================================================
# Responses
# =============================================================================

class LocationInfo(BaseModel):
    value: str = ""
    edited: bool = False
    resolved: bool = False

    model_config = {"from_attributes": True}


class CaptureInfo(BaseModel):
    state: CaptureStatus
    has_frame: bool = False
    can_capture: bool = False
    can_retake: bool = False
    frame_width: Optional[int] = None
    frame_height: Optional[int] = None
    last_error: Optional[str] = None


class OutputInfo(BaseModel):
    """Rendered output region. markup is trusted HTML from the renderer."""
    request_id: Optional[str] = None
    status: OutputStatus
    markup: str
    text: str = ""
    signal: Signal = Signal.UNKNOWN
    error: Optional[str] = None


class SessionResponse(BaseModel):
    session_id: str
    created_at: float
    location: LocationInfo
    capture: CaptureInfo
    output: OutputInfo
    can_submit: bool = False


class CapturedFrameResponse(BaseModel):
    """Captured still, returned by capture and photo upload."""
    session_id: str
    mime_type: str
    width: int
    height: int
    data: str = Field(description="Base64 encoded image")


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
