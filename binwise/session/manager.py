"""
Session Manager - Creates and manages recycling sessions.

LIFECYCLE:
1. Session created -> location lookup starts in the background
2. User edits location at any time (edits win over late lookups)
3. User previews, captures, retakes
4. User submits -> one request streams into the presenter
5. Session closed -> camera released, lookup cancelled, buffer dropped

OWNERSHIP (one owner per resource):
- LocationField: the session
- Camera stream handle: the capture controller
- StreamBuffer: the presenter

Sessions are in-memory only. Nothing is persisted.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Callable
import asyncio
import logging
import time
import uuid

from ..capture import CapturedFrame, MediaCaptureController, MediaDevice, OpenCVCamera, StillImageDevice
from ..classify import ClassificationRequest, StreamingClassifier
from ..config import Settings
from ..errors import MissingFrameError, RequestInFlightError
from ..geo import GeoResolver, LocationField, NominatimGeocoder, PositionSource, ReverseGeocoder
from ..present import IncrementalPresenter, PresenterSnapshot

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a recycling session."""
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class RecycleSession:
    """
    One user's capture-and-classify session.

    Contains:
    - The location field and its optional resolver
    - The capture controller (owns the camera)
    - The classifier and the presenter for its output
    """
    session_id: str
    created_at: float
    capture: MediaCaptureController
    classifier: StreamingClassifier
    presenter: IncrementalPresenter = field(default_factory=IncrementalPresenter)
    location: LocationField = field(default_factory=LocationField)
    resolver: GeoResolver | None = None

    state: SessionState = SessionState.ACTIVE

    _geo_task: asyncio.Task | None = None
    _active_request: ClassificationRequest | None = None

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def frame(self) -> CapturedFrame | None:
        return self.capture.frame

    @property
    def in_flight(self) -> bool:
        return self._active_request is not None

    @property
    def can_submit(self) -> bool:
        return self.frame is not None and not self.in_flight

    # Location

    def start_location_lookup(self) -> asyncio.Task | None:
        """Start the best-effort lookup in the background. Must run inside a loop."""
        if self.resolver is None or self._geo_task is not None:
            return self._geo_task
        self._geo_task = asyncio.create_task(self.resolver.populate(self.location))
        return self._geo_task

    def edit_location(self, text: str):
        self.location.edit(text)

    # Camera

    async def start_camera(self) -> bool:
        return await self.capture.start()

    async def capture_frame(self) -> CapturedFrame:
        return await self.capture.capture()

    async def retake(self) -> bool:
        return await self.capture.retake()

    async def stop_camera(self):
        await self.capture.stop()

    async def use_still_image(self, image_data: bytes) -> CapturedFrame:
        """
        Capture an uploaded image and hold it as the session's frame.

        The image goes through its own one-shot controller; the session's
        camera stays configured, so retake previews the camera again.
        Raises CameraError if the image cannot be decoded, leaving the
        session's capture state untouched.
        """
        still = MediaCaptureController(StillImageDevice(image_data))
        async with still:
            if not await still.start():
                raise still.last_error
            frame = await still.capture()
        await self.capture.adopt(frame)
        return frame

    # Classification

    def prepare_request(self) -> ClassificationRequest:
        """
        Snapshot the captured frame and current location.

        Raises MissingFrameError before anything is built if no frame
        has been captured. The returned request reserves the session:
        further submits are rejected until run() finishes with it or
        release() is called.
        """
        if self.frame is None:
            raise MissingFrameError("Please capture an image before submitting.")
        if self.in_flight:
            raise RequestInFlightError("A request is already streaming for this session")
        request = self.classifier.build_request(self.frame, self.location.value)
        self._active_request = request
        return request

    async def run(self, request: ClassificationRequest) -> AsyncIterator[PresenterSnapshot]:
        """Stream a prepared request into the presenter, yielding each snapshot."""
        if self._active_request is not request:
            raise RequestInFlightError(f"Request {request.request_id} is not the session's reserved request")

        try:
            async for snapshot in self.presenter.consume(self.classifier.classify(request)):
                yield snapshot
        finally:
            self.release(request)

    def release(self, request: ClassificationRequest):
        """Drop the reservation held by request, if it still holds it."""
        if self._active_request is request:
            self._active_request = None

    async def submit(self) -> AsyncIterator[PresenterSnapshot]:
        """prepare_request() then run(); errors surface on first iteration."""
        request = self.prepare_request()
        async for snapshot in self.run(request):
            yield snapshot

    def snapshot(self) -> PresenterSnapshot:
        return self.presenter.snapshot()

    async def close(self):
        """Release the camera, cancel the lookup, drop output."""
        if self._geo_task is not None and not self._geo_task.done():
            self._geo_task.cancel()
            try:
                await self._geo_task
            except asyncio.CancelledError:
                pass
        self._geo_task = None

        await self.capture.close()

        # Late events from a stream still running are ignored as stale
        self._active_request = None
        self.presenter.reset()
        self.state = SessionState.CLOSED


class SessionManager:
    """
    Manages recycling sessions.

    Responsibilities:
    - Create sessions with their device, classifier and resolver
    - Track active sessions
    - Close sessions and release their resources

    No persistence - sessions are in-memory only.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        classifier: StreamingClassifier | None = None,
        device_factory: Callable[[], MediaDevice] | None = None,
        geocoder: ReverseGeocoder | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self._classifier = classifier
        self._geocoder = geocoder
        self.device_factory = device_factory or (lambda: OpenCVCamera(self.settings.camera_index))
        self._sessions: dict[str, RecycleSession] = {}

    @property
    def classifier(self) -> StreamingClassifier:
        """Shared classifier, built from settings on first use."""
        if self._classifier is None:
            from ..classify.gemini import GeminiBackend
            backend = GeminiBackend(self.settings.api_key, self.settings.model_name)
            self._classifier = StreamingClassifier(backend)
        return self._classifier

    @property
    def geocoder(self) -> ReverseGeocoder:
        if self._geocoder is None:
            self._geocoder = NominatimGeocoder(
                url=self.settings.geocoder_url,
                user_agent=self.settings.user_agent,
            )
        return self._geocoder

    def create_session(
        self,
        position: PositionSource | None = None,
        location: str | None = None,
        device: MediaDevice | None = None,
    ) -> RecycleSession:
        """
        Create a new session.

        Args:
            position: Device position for the background lookup (None skips it)
            location: Initial location text, treated as a user edit
            device: Camera source (defaults to the configured camera)

        Returns:
            New RecycleSession; call start_location_lookup() from a loop
        """
        resolver = None
        if position is not None:
            resolver = GeoResolver(position, self.geocoder, timeout=self.settings.geo_timeout)

        session = RecycleSession(
            session_id=str(uuid.uuid4()),
            created_at=time.time(),
            capture=MediaCaptureController(device or self.device_factory()),
            classifier=self.classifier,
            resolver=resolver,
        )
        if location:
            session.edit_location(location)

        self._sessions[session.session_id] = session
        logger.info("Session %s created", session.session_id)
        return session

    def get_session(self, session_id: str) -> RecycleSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    async def end_session(self, session_id: str) -> bool:
        """Close a session and forget it."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info("Session %s ended", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    async def close_all(self):
        for session_id in list(self._sessions):
            await self.end_session(session_id)
