"""
Device-location capabilities for the "my location" suggestion.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import httpx

from .config import LocationConfig
from .errors import LocationUnavailableError
from .models import Coordinate

logger = logging.getLogger(__name__)


def validate_coordinate(latitude: float | None, longitude: float | None) -> Coordinate:
    """Build a coordinate, rejecting missing or out-of-range values."""
    if latitude is None or longitude is None:
        raise LocationUnavailableError()
    try:
        latitude = float(latitude)
        longitude = float(longitude)
    except (TypeError, ValueError):
        raise LocationUnavailableError() from None
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise LocationUnavailableError()
    return Coordinate(latitude=latitude, longitude=longitude)


class LocationCapability(ABC):
    """Something that can report where the user is."""

    name: str = "base"

    @abstractmethod
    async def current_position(self) -> Coordinate:
        """
        Return the current position.

        Raises:
            LocationUnavailableError: if the position is denied or unknown
        """
        pass


class FixedLocation(LocationCapability):
    """A configured position, e.g. for a kiosk."""

    name = "fixed"

    def __init__(self, coordinate: Coordinate | None = None):
        self.coordinate = coordinate

    async def current_position(self) -> Coordinate:
        if self.coordinate is None:
            raise LocationUnavailableError(source=self.name)
        return self.coordinate


class CallerLocation(LocationCapability):
    """A position the caller supplied with its request."""

    name = "caller"

    def __init__(self, latitude: float | None = None, longitude: float | None = None):
        self.latitude = latitude
        self.longitude = longitude

    async def current_position(self) -> Coordinate:
        return validate_coordinate(self.latitude, self.longitude)


class IPGeolocation(LocationCapability):
    """Approximate position from an IP geolocation JSON service."""

    name = "ip"

    def __init__(self, url: str = "http://ip-api.com/json/", timeout_seconds: float = 10.0):
        self.url = url
        self.timeout = timeout_seconds

    async def current_position(self) -> Coordinate:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"IP geolocation lookup failed: {e}")
                raise LocationUnavailableError(source=self.name) from e

        # ip-api uses lat/lon; other services use latitude/longitude
        latitude = data.get("lat", data.get("latitude"))
        longitude = data.get("lon", data.get("longitude"))
        return validate_coordinate(latitude, longitude)


class TimeoutLocation(LocationCapability):
    """Bounds another capability's lookup time."""

    def __init__(self, capability: LocationCapability, timeout_seconds: float):
        self.capability = capability
        self.timeout = timeout_seconds
        self.name = capability.name

    async def current_position(self) -> Coordinate:
        try:
            return await asyncio.wait_for(
                self.capability.current_position(), timeout=self.timeout
            )
        except TimeoutError as e:
            logger.warning(f"Location lookup via {self.name} timed out")
            raise LocationUnavailableError(
                "Finding your location took too long.", source=self.name
            ) from e


def with_timeout(capability: LocationCapability, seconds: float) -> LocationCapability:
    """Wrap a capability so lookups give up after `seconds`."""
    return TimeoutLocation(capability, seconds)


def location_from_config(
    config: LocationConfig,
    latitude: float | None = None,
    longitude: float | None = None,
) -> LocationCapability:
    """
    Build the configured location capability.

    Args:
        config: Location configuration
        latitude: Caller-supplied latitude (caller provider only)
        longitude: Caller-supplied longitude (caller provider only)

    Raises:
        ValueError: if the provider is not caller, fixed or ip
    """
    if config.provider == "fixed":
        coordinate = None
        if config.latitude is not None and config.longitude is not None:
            coordinate = Coordinate(config.latitude, config.longitude)
        capability: LocationCapability = FixedLocation(coordinate)
    elif config.provider == "ip":
        capability = IPGeolocation(config.ip_lookup_url, config.timeout_seconds)
    elif config.provider == "caller":
        capability = CallerLocation(latitude, longitude)
    else:
        raise ValueError(f"Unknown location provider: {config.provider!r}")
    return with_timeout(capability, config.timeout_seconds)
