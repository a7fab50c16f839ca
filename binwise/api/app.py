"""
FastAPI Application - REST API for the recycling client.

Endpoints:
    POST   /api/v1/sessions                         Create session
    GET    /api/v1/sessions                         List sessions
    GET    /api/v1/sessions/{id}                    Get session state
    DELETE /api/v1/sessions/{id}                    End session
    PUT    /api/v1/sessions/{id}/location           Edit location
    POST   /api/v1/sessions/{id}/camera/start       Start preview
    POST   /api/v1/sessions/{id}/camera/capture     Capture still
    POST   /api/v1/sessions/{id}/camera/retake      Discard still, preview again
    POST   /api/v1/sessions/{id}/camera/stop        Stop preview
    POST   /api/v1/sessions/{id}/photo              Capture an uploaded photo
    POST   /api/v1/sessions/{id}/submit             Stream the verdict (NDJSON)

Submit streams one JSON OutputInfo per line: after the request starts,
after every text delta, and once at completion or failure. The markup
field is trusted HTML produced by the markdown renderer.
"""

from contextlib import asynccontextmanager
from typing import Annotated, Optional, Union
import logging

from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from .. import __version__
from ..config import Settings, configure_logging
from ..session import SessionManager
from .schemas import (
    CapturedFrameResponse,
    CreateSessionRequest,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    LocationUpdateRequest,
    SessionListResponse,
    SessionResponse,
)
from .service import APIService

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.REQUEST_IN_FLIGHT: 409,
    ErrorCode.INVALID_TRANSITION: 409,
    ErrorCode.CAMERA_UNAVAILABLE: 503,
    ErrorCode.CONFIGURATION_ERROR: 500,
}


def make_error_response(error: ErrorResponse) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(error.error_code, 400),
        content=error.model_dump(mode="json"),
    )


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)
        settings: Optional settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()
    api_service = service or APIService(session_manager=SessionManager(settings=settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await api_service.session_manager.close_all()

    app = FastAPI(
        title="Binwise API",
        description="""
Point a camera at an object, supply a location, and stream a verdict on
whether it is recyclable there.

## Flow

1. `POST /sessions` (optionally with the device's latitude/longitude)
2. `POST /camera/start`, then `POST /camera/capture` (or `POST /photo`)
3. Optionally `PUT /location` - user edits always win over the lookup
4. `POST /submit` and read NDJSON output lines until the stream ends
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = api_service

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={500: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Create a new session",
    )
    async def create_session(
        body: Optional[CreateSessionRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        """
        Create a session.

        If latitude/longitude are given, the location field is filled in
        the background once the place is resolved, unless the user has
        edited it first.
        """
        try:
            return await api_service.create_session(body or CreateSessionRequest())
        except ValueError as e:
            logger.error("Session creation failed: %s", e)
            return make_error_response(
                ErrorResponse(error=str(e), error_code=ErrorCode.CONFIGURATION_ERROR)
            )

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session state",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return _respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session and release its camera."""
        success = await api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.put(
        "/api/v1/sessions/{session_id}/location",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Edit the location",
    )
    async def update_location(
        session_id: str,
        body: LocationUpdateRequest,
    ) -> Union[SessionResponse, JSONResponse]:
        return _respond(api_service.update_location(session_id, body))

    # =========================================================================
    # Camera Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/camera/start",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
        tags=["Camera"],
        summary="Start the camera preview",
    )
    async def start_camera(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return _respond(await api_service.start_camera(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/camera/capture",
        response_model=CapturedFrameResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
        tags=["Camera"],
        summary="Capture a still and release the camera",
    )
    async def capture(session_id: str) -> Union[CapturedFrameResponse, JSONResponse]:
        return _respond(await api_service.capture(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/camera/retake",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
        tags=["Camera"],
        summary="Discard the still and preview again",
    )
    async def retake(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return _respond(await api_service.retake(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/camera/stop",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Camera"],
        summary="Stop the camera preview",
    )
    async def stop_camera(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return _respond(await api_service.stop_camera(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/photo",
        response_model=CapturedFrameResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Camera"],
        summary="Capture an uploaded photo",
    )
    async def upload_photo(
        session_id: str,
        photo: Annotated[UploadFile, File(description="Photo of the object")],
    ) -> Union[CapturedFrameResponse, JSONResponse]:
        image_data = await photo.read()
        if len(image_data) == 0:
            return make_error_response(
                ErrorResponse(error="Empty photo file", error_code=ErrorCode.PHOTO_UNREADABLE)
            )
        return _respond(await api_service.upload_photo(session_id, image_data))

    # =========================================================================
    # Submit Endpoint
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/submit",
        responses={
            200: {"content": {"application/x-ndjson": {}}, "description": "Stream of OutputInfo lines"},
            400: {"model": ErrorResponse, "description": "No captured frame"},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Request already streaming"},
        },
        tags=["Classification"],
        summary="Classify the captured frame",
    )
    async def submit(session_id: str):
        """
        Classify the captured frame at the current location.

        Transport or provider failures do not fail the HTTP response:
        the last line has status `failed` with the partial output, a
        separator, and the error description.
        """
        prepared = api_service.prepare_submit(session_id)
        if isinstance(prepared, ErrorResponse):
            return make_error_response(prepared)

        session, request = prepared

        async def lines():
            async for output in api_service.stream_submit(session, request):
                yield output.model_dump_json() + "\n"

        # Frees the session if the client goes away before the body starts
        return StreamingResponse(
            lines(),
            media_type="application/x-ndjson",
            background=BackgroundTask(api_service.cancel_submit, session, request),
        )

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="binwise",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Binwise API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    def _respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    return app


def run(host: str = "127.0.0.1", port: int = 8000, settings: Optional[Settings] = None):
    """Serve the API with uvicorn."""
    import uvicorn

    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings=settings), host=host, port=port)
