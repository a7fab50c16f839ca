"""
Binwise - Recyclability verdicts from a photo and a location.

Point a camera at an object, supply a location, and receive a
streamed, incrementally rendered verdict on whether the object is
recyclable under that location's rules. The package provides:
- Best-effort location resolution
- Camera lifecycle and still capture
- Streaming multimodal classification
- Incremental markup rendering with a verdict signal
"""

__version__ = "0.1.0"
