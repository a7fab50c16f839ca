"""
Nominatim Geocoder - Reverse lookup against OpenStreetMap Nominatim.

The HTTP call uses requests and runs in a worker thread so the
event loop is never blocked.
"""

from __future__ import annotations
import asyncio
import logging

import requests

from ..config import DEFAULT_GEOCODER_URL, DEFAULT_USER_AGENT
from ..errors import GeocodeError
from .resolver import PlaceRecord, ReverseGeocoder

logger = logging.getLogger(__name__)


class NominatimGeocoder(ReverseGeocoder):
    """Reverse geocoder using the Nominatim JSON API."""

    def __init__(
        self,
        url: str = DEFAULT_GEOCODER_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    async def reverse(self, latitude: float, longitude: float) -> PlaceRecord | None:
        return await asyncio.to_thread(self._reverse_sync, latitude, longitude)

    def _reverse_sync(self, latitude: float, longitude: float) -> PlaceRecord | None:
        params = {
            "format": "json",
            "lat": latitude,
            "lon": longitude,
            "addressdetails": 1,
            "accept-language": "en",
        }
        try:
            r = self.session.get(
                self.url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodeError(f"Reverse geocoding failed: {e}") from e

        if not isinstance(data, dict):
            raise GeocodeError("Malformed geocoder response")

        address = data.get("address")
        if address is None:
            # Nominatim answers {"error": "Unable to geocode"} for open sea etc.
            logger.info("No address for %s,%s: %s", latitude, longitude, data.get("error"))
            return None
        if not isinstance(address, dict):
            raise GeocodeError("Malformed address in geocoder response")

        return PlaceRecord.from_address(address)
