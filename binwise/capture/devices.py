"""
Media Devices - Camera sources for the capture controller.

Implementations:
- OpenCVCamera: USB/webcam via OpenCV
- StillImageDevice: an uploaded or on-disk image served as a one-frame feed

A device hands out MediaStream handles. Whoever receives a handle
owns it and must call stop_all_tracks() exactly once.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
import asyncio
import logging

import cv2
import numpy as np

from ..errors import CameraError

logger = logging.getLogger(__name__)


class MediaStream(ABC):
    """A live video stream handle."""

    @property
    @abstractmethod
    def native_resolution(self) -> tuple[int, int]:
        """(width, height) of the live feed."""
        pass

    @abstractmethod
    def read_frame(self) -> np.ndarray | None:
        """Current BGR frame, or None if no frame is available yet."""
        pass

    @abstractmethod
    def stop_all_tracks(self):
        """Stop every track and release the underlying device."""
        pass


class MediaDevice(ABC):
    """A camera that can be opened into a stream."""

    @abstractmethod
    async def open_stream(self) -> MediaStream:
        """
        Request camera access.

        Raises CameraError if access is denied or the device is unavailable.
        """
        pass


class OpenCVStream(MediaStream):
    def __init__(self, capture: cv2.VideoCapture):
        self._capture = capture
        self._active = True

    @property
    def native_resolution(self) -> tuple[int, int]:
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return width, height

    def read_frame(self) -> np.ndarray | None:
        if not self._active:
            return None
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return frame

    def stop_all_tracks(self):
        self._active = False
        self._capture.release()


class OpenCVCamera(MediaDevice):
    """USB/webcam device by index."""

    def __init__(self, index: int = 0, resolution: tuple[int, int] | None = None):
        self.index = index
        self.resolution = resolution

    async def open_stream(self) -> MediaStream:
        # The worker thread keeps opening after a cancel; release what it returns
        opening = asyncio.ensure_future(asyncio.to_thread(cv2.VideoCapture, self.index))
        try:
            capture = await asyncio.shield(opening)
        except asyncio.CancelledError:
            opening.add_done_callback(_release_abandoned)
            raise

        if not capture.isOpened():
            capture.release()
            raise CameraError(f"Camera {self.index} unavailable")

        if self.resolution:
            capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])

        logger.info("Camera %s opened", self.index)
        return OpenCVStream(capture)


def _release_abandoned(opening: asyncio.Future):
    if opening.cancelled() or opening.exception() is not None:
        return
    logger.info("Releasing camera opened after start was cancelled")
    opening.result().release()


class StillImageStream(MediaStream):
    def __init__(self, frame: np.ndarray):
        self._frame = frame
        self._active = True

    @property
    def native_resolution(self) -> tuple[int, int]:
        height, width = self._frame.shape[:2]
        return width, height

    def read_frame(self) -> np.ndarray | None:
        return self._frame if self._active else None

    def stop_all_tracks(self):
        self._active = False


class StillImageDevice(MediaDevice):
    """
    Serves a single encoded image as a live feed.

    Lets uploaded photos go through the same start/capture
    lifecycle as a real camera.
    """

    def __init__(self, image_data: bytes):
        self.image_data = image_data

    @classmethod
    def from_path(cls, path: str | Path) -> StillImageDevice:
        return cls(Path(path).read_bytes())

    async def open_stream(self) -> MediaStream:
        buffer = np.frombuffer(self.image_data, dtype=np.uint8)
        frame = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
        if frame is None:
            raise CameraError("Image could not be decoded")
        return StillImageStream(frame)
