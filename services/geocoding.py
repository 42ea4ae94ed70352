"""Reverse geocoding for scan locations.

Scans taken on the field app store their position as
``"Latitude: 12.34, Longitude: 56.78"`` until someone looks them up. The
History view swaps that text for a place name using `GeocodingResolver`,
which calls geopy's OpenCage geocoder in a worker thread (geopy is blocking).
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, Optional, Tuple

from geopy.exc import GeopyError
from geopy.geocoders import OpenCage

LOGGER = logging.getLogger(__name__)

LOCATION_NOT_FOUND = "Location not found"

_COORDINATES = re.compile(
    r"Latitude:\s*(-?\d+(?:\.\d+)?)\s*,\s*Longitude:\s*(-?\d+(?:\.\d+)?)",
    re.IGNORECASE,
)


class GeocodingError(RuntimeError):
    """Raised when the geocoding service call itself fails."""


def parse_coordinates(text: str) -> Optional[Tuple[float, float]]:
    """Return `(lat, lon)` embedded in `text`, or None if there is no pair.

    Out-of-range values are treated as no match.
    """
    if not text:
        return None
    match = _COORDINATES.search(text)
    if not match:
        return None
    lat, lon = float(match.group(1)), float(match.group(2))
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return lat, lon


class GeocodingResolver:
    """Resolve coordinates to a place name, caching answers per coordinate pair.

    Args:
        api_key: OpenCage API key.
        timeout: Per-request timeout in seconds.
        geocoder: Optional preconfigured geopy geocoder (anything with `reverse`).
    """

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0, geocoder=None) -> None:
        if geocoder is None:
            if not api_key:
                raise ValueError("A geocoder API key must be provided.")
            geocoder = OpenCage(api_key=api_key, timeout=timeout)
        self._geocoder = geocoder
        self._cache: Dict[Tuple[float, float], str] = {}

    async def resolve(self, lat: float, lon: float) -> str:
        """Return the place name for `(lat, lon)`.

        Returns `LOCATION_NOT_FOUND` when the service has no answer.

        Raises:
            GeocodingError: If the lookup fails.
        """
        key = (round(lat, 6), round(lon, 6))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            location = await asyncio.to_thread(self._geocoder.reverse, key, exactly_one=True)
        except GeopyError as exc:
            raise GeocodingError(f"Reverse geocoding failed for {key}: {exc}") from exc

        address = getattr(location, "address", None) if location is not None else None
        name = address or LOCATION_NOT_FOUND
        self._cache[key] = name
        return name

    async def resolve_text(self, text: str) -> str:
        """Replace a coordinate pair in `text` with a place name.

        Text without coordinates is returned as is. On lookup failure the
        original text is kept and the error is logged.
        """
        coords = parse_coordinates(text)
        if coords is None:
            return text
        try:
            return await self.resolve(*coords)
        except GeocodingError as exc:
            LOGGER.warning("Keeping raw location %r: %s", text, exc)
            return text
