"""
Media Capture Controller - Camera stream lifecycle and still capture.

STATES:
    IDLE -> STARTING -> PREVIEWING -> CAPTURED
    CAPTURED -> PREVIEWING          (retake)
    any -> CAPTURED                 (adopt an uploaded frame)
    any -> IDLE with last_error     (device failure)

STREAM OWNERSHIP (Non-Negotiable):
- At most one live stream handle per controller
- Every path that leaves PREVIEWING releases it exactly once:
  capture, stop, device failure, close
- A handle that arrives after stop() was requested is released
  immediately and never stored
"""

from __future__ import annotations
from enum import Enum
from typing import Callable
import asyncio
import logging

from ..errors import CameraError, CaptureStateError, NoFrameAvailableError
from .devices import MediaDevice, MediaStream
from .frame import CapturedFrame, encode_frame

logger = logging.getLogger(__name__)

PreviewSink = Callable[[MediaStream | None], None]


class CaptureState(Enum):
    """State of the capture controller."""
    IDLE = "idle"
    STARTING = "starting"  # Waiting for camera access
    PREVIEWING = "previewing"  # Live stream bound to preview
    CAPTURED = "captured"  # Still frame held, stream released


class MediaCaptureController:
    """
    Drives one camera through preview and capture.

    Usage:
        controller = MediaCaptureController(OpenCVCamera(0))

        if await controller.start():
            frame = await controller.capture()

        # Later
        await controller.retake()
        ...
        await controller.close()
    """

    def __init__(self, device: MediaDevice, preview_sink: PreviewSink | None = None):
        self.device = device
        self.preview_sink = preview_sink

        self.state = CaptureState.IDLE
        self.frame: CapturedFrame | None = None
        self.last_error: CameraError | None = None

        self._stream: MediaStream | None = None
        self._start_token = 0

        # Handle accounting
        self.acquired_count = 0
        self.released_count = 0

    @property
    def has_stream(self) -> bool:
        return self._stream is not None

    @property
    def can_capture(self) -> bool:
        return self.state == CaptureState.PREVIEWING

    @property
    def can_retake(self) -> bool:
        return self.state == CaptureState.CAPTURED

    async def start(self) -> bool:
        """
        Request camera access and begin previewing.

        Returns False if the device refused or failed; the controller
        stays IDLE with last_error set and start() may be retried.
        """
        if self.state != CaptureState.IDLE:
            raise CaptureStateError(f"Cannot start while {self.state.value}")

        self.state = CaptureState.STARTING
        self.last_error = None
        self._start_token += 1
        token = self._start_token

        try:
            stream = await self.device.open_stream()
        except asyncio.CancelledError:
            if token == self._start_token:
                self.state = CaptureState.IDLE
            raise
        except Exception as e:
            error = e if isinstance(e, CameraError) else CameraError(str(e))
            logger.error("Camera start failed: %s", error)
            if token == self._start_token:
                self.state = CaptureState.IDLE
                self.last_error = error
            return False

        self.acquired_count += 1

        if token != self._start_token:
            logger.info("Camera opened after stop was requested, releasing")
            self._release_handle(stream)
            return False

        self._stream = stream
        self.state = CaptureState.PREVIEWING
        if self.preview_sink:
            self.preview_sink(stream)
        return True

    async def capture(self) -> CapturedFrame:
        """
        Capture the current frame and release the stream.

        Capture and release happen in one transition: on return the
        controller is CAPTURED and holds no stream. Reading and encoding
        run in a worker thread; if the stream is released meanwhile
        (stop, close, another capture) the capture is abandoned.
        """
        if self.state != CaptureState.PREVIEWING or self._stream is None:
            raise CaptureStateError(f"Cannot capture while {self.state.value}")

        stream = self._stream
        try:
            raw = await asyncio.to_thread(stream.read_frame)
        except Exception as e:
            self._ensure_current(stream)
            raise self._fail(e) from e
        self._ensure_current(stream)

        if raw is None:
            raise NoFrameAvailableError("No video frame available yet")

        resolution = stream.native_resolution
        try:
            data = await asyncio.to_thread(encode_frame, raw, resolution)
        except Exception as e:
            self._ensure_current(stream)
            raise self._fail(e) from e
        self._ensure_current(stream)

        height, width = raw.shape[:2]
        if resolution[0] > 0 and resolution[1] > 0:
            width, height = resolution

        self._release()
        self.frame = CapturedFrame(data=data, width=width, height=height)
        self.state = CaptureState.CAPTURED
        return self.frame

    async def retake(self) -> bool:
        """Discard the captured frame and preview again."""
        if self.state != CaptureState.CAPTURED:
            raise CaptureStateError(f"Cannot retake while {self.state.value}")

        self.frame = None
        self.state = CaptureState.IDLE
        return await self.start()

    async def stop(self):
        """
        Leave STARTING/PREVIEWING and release the stream.

        No-op in IDLE and CAPTURED. Safe to call repeatedly.
        """
        if self.state not in {CaptureState.STARTING, CaptureState.PREVIEWING}:
            return

        # Invalidate any pending start()
        self._start_token += 1
        self._release()
        self.state = CaptureState.IDLE

    async def close(self):
        """Tear down: release everything and drop the frame."""
        await self.stop()
        self.frame = None
        self.state = CaptureState.IDLE

    async def adopt(self, frame: CapturedFrame):
        """
        Hold a frame captured elsewhere (an uploaded photo).

        Any live stream is released first. The device is kept, so a
        later retake previews the camera again.
        """
        await self.stop()
        self.frame = frame
        self.state = CaptureState.CAPTURED

    async def __aenter__(self) -> MediaCaptureController:
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _ensure_current(self, stream: MediaStream):
        if self._stream is not stream:
            raise CaptureStateError("Capture interrupted: stream was released")

    def _fail(self, error: Exception) -> CameraError:
        """Device failure while previewing: release and drop to IDLE."""
        logger.error("Capture failed: %s", error)
        self._release()
        self.state = CaptureState.IDLE
        self.last_error = error if isinstance(error, CameraError) else CameraError(str(error))
        return self.last_error

    def _release(self):
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        if self.preview_sink:
            self.preview_sink(None)
        self._release_handle(stream)

    def _release_handle(self, stream: MediaStream):
        try:
            stream.stop_all_tracks()
        finally:
            self.released_count += 1
