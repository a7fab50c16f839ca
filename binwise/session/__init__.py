"""
Session Module - Ephemeral capture-and-classify sessions.

A session ties together, with one owner each:
- the location field (and its background resolver)
- the capture controller (and its camera stream)
- the presenter (and its stream buffer)

Sessions are EPHEMERAL: nothing is persisted, and closing a
session releases every resource it holds.
"""

from .manager import SessionManager, RecycleSession, SessionState

__all__ = [
    "SessionManager",
    "RecycleSession",
    "SessionState",
]
