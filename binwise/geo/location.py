"""
Location Field - The user-editable location string.

Two writers:
- The user, at any time (edit)
- The resolver, at most once (offer_resolved)

User edits always win: once the field has been hand-edited, a
resolver result that arrives late is discarded.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass
class LocationField:
    """
    Free-text location owned by one session.

    Holds "city, region, country" when resolved, or whatever
    the user typed.
    """
    value: str = ""
    edited: bool = False
    resolved: bool = False

    def edit(self, text: str):
        """Apply a user edit. Marks the field as hand-edited."""
        self.value = text
        self.edited = True

    def offer_resolved(self, text: str | None) -> bool:
        """
        Offer a resolver result.

        Returns True if the value was written. Rejected when the user
        already edited the field or a resolver write already landed.
        """
        if not text or self.edited or self.resolved:
            return False
        self.value = text
        self.resolved = True
        return True
