"""
ArcGIS geocode service client for campus-search.

Talks to GeocodeServer endpoints for location suggestions and candidate
lookup.

API Documentation:
https://developers.arcgis.com/rest/geocode/api-reference/overview-world-geocoding-service.htm
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from .errors import TransportError
from .models import Coordinate, SourceDescriptor

logger = logging.getLogger(__name__)

# WGS84; requested explicitly since locators default to different projections
WGS84_WKID = 4326


@dataclass
class GeocodeSuggestion:
    """A suggestion returned by a locator's suggest operation."""

    text: str
    magic_key: str


@dataclass
class GeocodeCandidate:
    """An address candidate returned by findAddressCandidates."""

    address: str
    latitude: float
    longitude: float
    score: float | None = None


def raise_for_arcgis_error(data: dict[str, Any], source: str) -> None:
    """ArcGIS reports many failures as HTTP 200 with an error body."""
    error = data.get("error")
    if error:
        code = error.get("code")
        message = error.get("message", "Unknown error")
        raise TransportError(f"ArcGIS error {code} from {source}: {message}", source=source)


class GeocodeClient:
    """
    Client for ArcGIS GeocodeServer endpoints.

    Each call names the descriptor it targets, so one client serves every
    configured locator.
    """

    def __init__(self, timeout_seconds: float = 10.0):
        """
        Initialize the geocode client.

        Args:
            timeout_seconds: Request timeout in seconds
        """
        self.timeout = timeout_seconds

    async def suggest(
        self,
        descriptor: SourceDescriptor,
        text: str,
        anchor: Coordinate,
        radius_meters: int,
        max_suggestions: int = 5,
    ) -> list[GeocodeSuggestion]:
        """
        Get location suggestions near an anchor point.

        Args:
            descriptor: Locator to query
            text: Partial user input
            anchor: Point suggestions are biased toward
            radius_meters: Search distance from the anchor
            max_suggestions: Maximum suggestions to return

        Returns:
            Suggestions in the locator's order
        """
        params = {
            "text": text,
            "location": f"{anchor.longitude},{anchor.latitude}",
            "distance": radius_meters,
            "maxSuggestions": max_suggestions,
            "f": "json",
        }
        data = await self._get(descriptor, "suggest", params)
        return self._parse_suggestions(data)

    async def find_candidates(
        self,
        descriptor: SourceDescriptor,
        magic_key: str,
        out_wkid: int = WGS84_WKID,
    ) -> list[GeocodeCandidate]:
        """
        Look up the address candidates for a suggestion.

        Args:
            descriptor: Locator the suggestion came from
            magic_key: Key returned alongside the suggestion
            out_wkid: Spatial reference for returned coordinates

        Returns:
            Candidates, best first (at most one is requested)
        """
        params = {
            "magicKey": magic_key,
            "maxLocations": 1,
            "outSR": json.dumps({"wkid": out_wkid}),
            "f": "json",
        }
        data = await self._get(descriptor, "findAddressCandidates", params)
        return self._parse_candidates(data)

    async def _get(
        self,
        descriptor: SourceDescriptor,
        operation: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        url = f"{descriptor.endpoint}/{operation}"
        logger.debug(f"GET {url} ({descriptor.identifier})")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(url, params=params, follow_redirects=True)
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"{operation} failed for {descriptor.identifier}: {e}")
                raise TransportError(
                    f"{operation} request to {descriptor.identifier} failed: {e}",
                    source=descriptor.identifier,
                ) from e

        raise_for_arcgis_error(data, descriptor.identifier)
        return data

    def _parse_suggestions(self, data: dict[str, Any]) -> list[GeocodeSuggestion]:
        """Parse suggestions from API response."""
        return [
            GeocodeSuggestion(text=s.get("text", ""), magic_key=s.get("magicKey", ""))
            for s in data.get("suggestions", [])
            if s.get("text")
        ]

    def _parse_candidates(self, data: dict[str, Any]) -> list[GeocodeCandidate]:
        """Parse address candidates from API response."""
        candidates = []
        for candidate in data.get("candidates", []):
            location = candidate.get("location") or {}
            if "x" not in location or "y" not in location:
                continue
            candidates.append(
                GeocodeCandidate(
                    address=candidate.get("address", ""),
                    latitude=location["y"],
                    longitude=location["x"],
                    score=candidate.get("score"),
                )
            )
        return candidates
