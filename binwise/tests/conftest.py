"""
Pytest fixtures and fakes for Binwise tests.
"""

from __future__ import annotations
from typing import AsyncIterator, Sequence
import asyncio

import cv2
import numpy as np
import pytest

from ..capture import MediaDevice, MediaStream
from ..classify import CompletionBackend, StreamingClassifier
from ..classify.request import PromptPart, SafetySetting
from ..config import Settings
from ..errors import CameraError
from ..geo import Coordinates, PlaceRecord, PositionSource, ReverseGeocoder
from ..session import SessionManager


# =============================================================================
# Camera fakes
# =============================================================================

class FakeStream(MediaStream):
    """Stream handle that records how often it was stopped."""

    def __init__(self, frame: np.ndarray | None, resolution: tuple[int, int] | None = None):
        self.frame = frame
        self.resolution = resolution
        self.stop_calls = 0

    @property
    def native_resolution(self) -> tuple[int, int]:
        if self.resolution:
            return self.resolution
        height, width = self.frame.shape[:2]
        return width, height

    def read_frame(self):
        return self.frame if self.stop_calls == 0 else None

    def stop_all_tracks(self):
        self.stop_calls += 1


class FakeDevice(MediaDevice):
    """
    Camera that hands out FakeStreams.

    Set deny=True to refuse access, frame=None to simulate a feed
    with no frame yet, or gate to an asyncio.Event to hold open_stream.
    """

    def __init__(
        self,
        frame: np.ndarray | None = None,
        deny: bool = False,
        resolution: tuple[int, int] | None = None,
    ):
        self.frame = frame if frame is not None else make_frame()
        self.deny = deny
        self.resolution = resolution
        self.gate: asyncio.Event | None = None
        self.streams: list[FakeStream] = []
        self.no_frame = False

    async def open_stream(self) -> MediaStream:
        if self.gate is not None:
            await self.gate.wait()
        if self.deny:
            raise CameraError("Permission denied")
        stream = FakeStream(None if self.no_frame else self.frame, self.resolution)
        self.streams.append(stream)
        return stream

    @property
    def open_count(self) -> int:
        return len(self.streams)

    @property
    def stop_count(self) -> int:
        return sum(s.stop_calls for s in self.streams)


def make_frame(width: int = 64, height: int = 48) -> np.ndarray:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, : width // 2] = (0, 128, 255)
    return frame


def make_jpeg(width: int = 64, height: int = 48) -> bytes:
    ok, buffer = cv2.imencode(".jpg", make_frame(width, height))
    assert ok
    return buffer.tobytes()


# =============================================================================
# Geo fakes
# =============================================================================

class FakePosition(PositionSource):
    def __init__(self, latitude: float = 39.78, longitude: float = -89.65, error: Exception | None = None):
        self.coordinates = Coordinates(latitude, longitude)
        self.error = error
        self.gate: asyncio.Event | None = None

    async def get_current_position(self) -> Coordinates:
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.coordinates


class FakeGeocoder(ReverseGeocoder):
    def __init__(self, place: PlaceRecord | None = None, error: Exception | None = None):
        self.place = place
        self.error = error
        self.calls: list[tuple[float, float]] = []

    async def reverse(self, latitude: float, longitude: float) -> PlaceRecord | None:
        self.calls.append((latitude, longitude))
        if self.error:
            raise self.error
        return self.place


SPRINGFIELD = PlaceRecord(city="Springfield", state="Illinois", country="USA")


# =============================================================================
# Model fakes
# =============================================================================

class FakeBackend(CompletionBackend):
    """
    Streams fixed chunks.

    If error is set it is raised after error_after chunks.
    """

    def __init__(
        self,
        chunks: Sequence[str] = (),
        error: Exception | None = None,
        error_after: int = 0,
    ):
        self.chunks = list(chunks)
        self.error = error
        self.error_after = error_after
        self.calls: list[tuple[list[PromptPart], list[SafetySetting]]] = []

    async def stream(self, parts, safety_settings) -> AsyncIterator[str]:
        self.calls.append((list(parts), list(safety_settings)))
        for i, chunk in enumerate(self.chunks):
            if self.error and i == self.error_after:
                raise self.error
            await asyncio.sleep(0)
            yield chunk
        if self.error and self.error_after >= len(self.chunks):
            raise self.error


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def frame() -> np.ndarray:
    return make_frame()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(["This is a ", "plastic bottle. ", "Yes, this is recyclable!"])


@pytest.fixture
def classifier(backend: FakeBackend) -> StreamingClassifier:
    return StreamingClassifier(backend)


@pytest.fixture
def settings() -> Settings:
    return Settings.from_env({"GEMINI_API_KEY": "test-key", "BINWISE_GEO_TIMEOUT": "1"})


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(place=SPRINGFIELD)


@pytest.fixture
def manager(settings, classifier, device, geocoder) -> SessionManager:
    return SessionManager(
        settings=settings,
        classifier=classifier,
        device_factory=lambda: device,
        geocoder=geocoder,
    )
