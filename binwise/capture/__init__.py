"""
Capture Module - Camera stream lifecycle and still-frame capture.

    MediaDevice -> MediaStream -> MediaCaptureController -> CapturedFrame

The controller is the only owner of the stream handle. Every
transition that leaves preview releases the handle exactly once.
"""

from .frame import CapturedFrame, encode_frame
from .devices import (
    MediaDevice,
    MediaStream,
    OpenCVCamera,
    StillImageDevice,
)
from .controller import MediaCaptureController, CaptureState

__all__ = [
    "CapturedFrame",
    "encode_frame",
    "MediaDevice",
    "MediaStream",
    "OpenCVCamera",
    "StillImageDevice",
    "MediaCaptureController",
    "CaptureState",
]
