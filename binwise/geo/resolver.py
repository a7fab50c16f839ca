"""
Geo Resolver - Best-effort device location lookup.

Flow:
    PositionSource -> Coordinates -> ReverseGeocoder -> PlaceRecord -> LocationString

The resolver is NON-BLOCKING and NON-FATAL:
- It runs as a background task when a session starts
- Every failure is logged and swallowed
- The location field stays empty and editable on failure
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import asyncio
import logging

from ..errors import GeolocationError, GeolocationErrorKind
from .location import LocationField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PlaceRecord:
    """
    Address fields returned by a reverse lookup.

    Any field may be missing. Locality is the first of
    city / town / village that is present.
    """
    city: str | None = None
    town: str | None = None
    village: str | None = None
    state: str | None = None
    country: str | None = None

    @property
    def locality(self) -> str | None:
        return self.city or self.town or self.village

    def to_location_string(self) -> str | None:
        """Format as "locality, state, country" if all three are present."""
        if self.locality and self.state and self.country:
            return f"{self.locality}, {self.state}, {self.country}"
        return None

    @classmethod
    def from_address(cls, address: dict) -> PlaceRecord:
        """Build from a geocoder address mapping."""
        return cls(
            city=address.get("city"),
            town=address.get("town"),
            village=address.get("village"),
            state=address.get("state"),
            country=address.get("country"),
        )


class PositionSource(ABC):
    """Source of the device's current coordinates."""

    @abstractmethod
    async def get_current_position(self) -> Coordinates:
        """
        Return the current coordinates.

        Raises GeolocationError on permission denial,
        unavailable position, or timeout.
        """
        pass


class FixedPosition(PositionSource):
    """Coordinates already reported by the client device."""

    def __init__(self, latitude: float, longitude: float):
        self.coordinates = Coordinates(latitude, longitude)

    async def get_current_position(self) -> Coordinates:
        return self.coordinates


class ReverseGeocoder(ABC):
    """Converts coordinates into a place record."""

    @abstractmethod
    async def reverse(self, latitude: float, longitude: float) -> PlaceRecord | None:
        """Look up a place. Raises GeocodeError on network/payload failure."""
        pass


class GeoResolver:
    """
    Resolves the session's location string once.

    Usage:
        resolver = GeoResolver(FixedPosition(39.78, -89.65), NominatimGeocoder())
        task = asyncio.create_task(resolver.populate(session.location))
    """

    def __init__(
        self,
        position_source: PositionSource,
        geocoder: ReverseGeocoder,
        timeout: float = 10.0,
    ):
        self.position_source = position_source
        self.geocoder = geocoder
        self.timeout = timeout

    async def resolve(self) -> str | None:
        """
        Resolve the current location string.

        Returns None when the position is unavailable, the lookup
        fails, or the place record is incomplete.
        """
        try:
            coords = await self._get_position()
            place = await self.geocoder.reverse(coords.latitude, coords.longitude)
        except GeolocationError as e:
            logger.warning("Error getting location: %s", e.kind.value)
            return None
        except Exception as e:
            logger.warning("Error fetching location details: %s", e)
            return None

        if place is None:
            logger.info("Reverse lookup returned no place")
            return None

        location = place.to_location_string()
        if location is None:
            logger.info("Place record incomplete, leaving location empty: %s", place)
        return location

    async def populate(self, location: LocationField) -> bool:
        """
        Resolve and offer the result to the location field.

        Returns True if the field was written. A user edit made
        while resolving takes precedence.
        """
        result = await self.resolve()
        if result is None:
            return False
        written = location.offer_resolved(result)
        if not written:
            logger.debug("Discarding resolved location, field already set")
        return written

    async def _get_position(self) -> Coordinates:
        try:
            return await asyncio.wait_for(
                self.position_source.get_current_position(),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise GeolocationError(GeolocationErrorKind.TIMEOUT)
