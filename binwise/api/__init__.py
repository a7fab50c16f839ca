"""
API Module - HTTP interface for clients.

A client:
1. Creates a session (optionally sharing device coordinates)
2. Previews and captures with the camera, or uploads a photo
3. Edits the location if needed
4. Submits and reads the streamed verdict

All state is session-scoped. No user accounts.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    LocationUpdateRequest,
    # Responses
    SessionResponse,
    CapturedFrameResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Shared
    LocationInfo,
    CaptureInfo,
    OutputInfo,
    # Enums
    CaptureStatus,
    OutputStatus,
    Signal,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "LocationUpdateRequest",
    # Responses
    "SessionResponse",
    "CapturedFrameResponse",
    "ErrorResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "HealthResponse",
    # Shared
    "LocationInfo",
    "CaptureInfo",
    "OutputInfo",
    # Enums
    "CaptureStatus",
    "OutputStatus",
    "Signal",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
