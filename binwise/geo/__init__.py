"""
Geo Module - Best-effort location resolution.

    PositionSource -> GeoResolver -> ReverseGeocoder -> LocationField

Resolution never blocks or fails the session. User edits to the
location field always take precedence over late resolver results.
"""

from .location import LocationField
from .resolver import (
    Coordinates,
    PlaceRecord,
    PositionSource,
    FixedPosition,
    ReverseGeocoder,
    GeoResolver,
)
from .nominatim import NominatimGeocoder

__all__ = [
    "LocationField",
    "Coordinates",
    "PlaceRecord",
    "PositionSource",
    "FixedPosition",
    "ReverseGeocoder",
    "GeoResolver",
    "NominatimGeocoder",
]
