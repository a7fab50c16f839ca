"""
API Service - Business logic layer between HTTP and sessions.

The service:
1. Translates API requests to session calls
2. Maps domain errors to structured ErrorResponse objects
3. Formats session state for clients

This layer is framework-agnostic (usable from FastAPI, the CLI, tests).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable
import logging

from ..capture import CapturedFrame
from ..classify import ClassificationRequest
from ..errors import (
    CameraError,
    CaptureStateError,
    MissingFrameError,
    NoFrameAvailableError,
    RequestInFlightError,
)
from ..geo import FixedPosition
from ..present import PresenterSnapshot
from ..session import RecycleSession, SessionManager
from .schemas import (
    CaptureInfo,
    CaptureStatus,
    CapturedFrameResponse,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    LocationInfo,
    LocationUpdateRequest,
    OutputInfo,
    OutputStatus,
    SessionResponse,
    Signal,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        response = await service.create_session(CreateSessionRequest(latitude=..., longitude=...))
        await service.start_camera(response.session_id)
        await service.capture(response.session_id)

        prepared = service.prepare_submit(response.session_id)
        async for output in service.stream_submit(*prepared):
            ...
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    async def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """Create a session and start the background location lookup."""
        position = None
        if request.latitude is not None and request.longitude is not None:
            position = FixedPosition(request.latitude, request.longitude)

        session = self.session_manager.create_session(
            position=position,
            location=request.location,
        )
        session.start_location_lookup()
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    async def end_session(self, session_id: str) -> bool:
        return await self.session_manager.end_session(session_id)

    def update_location(
        self,
        session_id: str,
        request: LocationUpdateRequest,
    ) -> SessionResponse | ErrorResponse:
        """Apply a user edit; later resolver results will not overwrite it."""
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        session.edit_location(request.location)
        return self._session_to_response(session)

    # =========================================================================
    # Camera
    # =========================================================================

    async def start_camera(self, session_id: str) -> SessionResponse | ErrorResponse:
        async def action(session: RecycleSession):
            if not await session.start_camera():
                return ErrorResponse(
                    error=str(session.capture.last_error or "Camera unavailable"),
                    error_code=ErrorCode.CAMERA_UNAVAILABLE,
                )
            return self._session_to_response(session)

        return await self._camera_action(session_id, action)

    async def capture(self, session_id: str) -> CapturedFrameResponse | ErrorResponse:
        async def action(session: RecycleSession):
            frame = await session.capture_frame()
            return self._frame_to_response(session.session_id, frame)

        return await self._camera_action(session_id, action)

    async def retake(self, session_id: str) -> SessionResponse | ErrorResponse:
        async def action(session: RecycleSession):
            if not await session.retake():
                return ErrorResponse(
                    error=str(session.capture.last_error or "Camera unavailable"),
                    error_code=ErrorCode.CAMERA_UNAVAILABLE,
                )
            return self._session_to_response(session)

        return await self._camera_action(session_id, action)

    async def stop_camera(self, session_id: str) -> SessionResponse | ErrorResponse:
        async def action(session: RecycleSession):
            await session.stop_camera()
            return self._session_to_response(session)

        return await self._camera_action(session_id, action)

    async def upload_photo(self, session_id: str, image_data: bytes) -> CapturedFrameResponse | ErrorResponse:
        """Capture an uploaded still image instead of a live camera frame."""
        async def action(session: RecycleSession):
            try:
                frame = await session.use_still_image(image_data)
            except CameraError as e:
                return ErrorResponse(error=str(e), error_code=ErrorCode.PHOTO_UNREADABLE)
            return self._frame_to_response(session.session_id, frame)

        return await self._camera_action(session_id, action)

    # =========================================================================
    # Submit
    # =========================================================================

    def prepare_submit(
        self,
        session_id: str,
    ) -> tuple[RecycleSession, ClassificationRequest] | ErrorResponse:
        """
        Validate and snapshot a submit.

        No request is built, and the classifier is never called,
        when the session has no captured frame. A returned request
        reserves the session until stream_submit() finishes or
        cancel_submit() is called, so a concurrent submit gets
        REQUEST_IN_FLIGHT.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        try:
            request = session.prepare_request()
        except MissingFrameError as e:
            logger.info("Submit blocked for %s: no captured frame", session_id)
            return ErrorResponse(error=str(e), error_code=ErrorCode.NO_CAPTURED_FRAME)
        except RequestInFlightError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.REQUEST_IN_FLIGHT)
        return session, request

    async def stream_submit(
        self,
        session: RecycleSession,
        request: ClassificationRequest,
    ) -> AsyncIterator[OutputInfo]:
        """Stream output snapshots for a prepared request."""
        async for snapshot in session.run(request):
            yield self._snapshot_to_output(snapshot)

    def cancel_submit(self, session: RecycleSession, request: ClassificationRequest):
        """Release a prepared request whose stream was never consumed."""
        session.release(request)

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    async def _camera_action(
        self,
        session_id: str,
        action: Callable[[RecycleSession], Awaitable],
    ):
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        try:
            return await action(session)
        except NoFrameAvailableError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.NO_FRAME_AVAILABLE)
        except CaptureStateError as e:
            return ErrorResponse(
                error=str(e),
                error_code=ErrorCode.INVALID_TRANSITION,
                details={"state": session.capture.state.value},
            )
        except CameraError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.CAMERA_UNAVAILABLE)

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(self, session: RecycleSession) -> SessionResponse:
        controller = session.capture
        frame = controller.frame
        return SessionResponse(
            session_id=session.session_id,
            created_at=session.created_at,
            location=LocationInfo.model_validate(session.location),
            capture=CaptureInfo(
                state=CaptureStatus(controller.state.value),
                has_frame=frame is not None,
                can_capture=controller.can_capture,
                can_retake=controller.can_retake,
                frame_width=frame.width if frame else None,
                frame_height=frame.height if frame else None,
                last_error=str(controller.last_error) if controller.last_error else None,
            ),
            output=self._snapshot_to_output(session.snapshot()),
            can_submit=session.can_submit,
        )

    def _frame_to_response(self, session_id: str, frame: CapturedFrame) -> CapturedFrameResponse:
        return CapturedFrameResponse(
            session_id=session_id,
            mime_type=frame.mime_type,
            width=frame.width,
            height=frame.height,
            data=frame.data,
        )

    @staticmethod
    def _snapshot_to_output(snapshot: PresenterSnapshot) -> OutputInfo:
        return OutputInfo(
            request_id=snapshot.request_id,
            status=OutputStatus(snapshot.status.value),
            markup=snapshot.markup,
            text=snapshot.text,
            signal=Signal(snapshot.signal.value),
            error=snapshot.error,
        )
