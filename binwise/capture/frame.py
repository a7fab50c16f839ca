"""
Captured Frame - Immutable still image produced by a capture.
"""

from __future__ import annotations
from dataclasses import dataclass
import base64

import cv2
import numpy as np

JPEG_MIME_TYPE = "image/jpeg"


@dataclass(frozen=True)
class CapturedFrame:
    """
    An encoded still frame.

    data is the base64 text of the JPEG bytes. A new frame replaces
    the old one wholesale on retake; frames are never mutated.
    """
    data: str
    width: int
    height: int
    mime_type: str = JPEG_MIME_TYPE

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def encode_frame(
    frame: np.ndarray,
    size: tuple[int, int] | None = None,
    quality: int = 90,
) -> str:
    """
    Encode a BGR frame as base64 JPEG.

    The frame is drawn into a raster of the given (width, height)
    first, so the still matches the live feed's native resolution.
    """
    if size and size[0] > 0 and size[1] > 0:
        height, width = frame.shape[:2]
        if (width, height) != tuple(size):
            frame = cv2.resize(frame, tuple(size), interpolation=cv2.INTER_LINEAR)

    ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise ValueError("JPEG encoding failed")
    return base64.b64encode(buffer.tobytes()).decode("ascii")
