"""
Resolution of a chosen suggestion into a search result.
"""

import logging

from .errors import EmptyResultError, UnsupportedSuggestionError
from .geocode import WGS84_WKID, GeocodeClient
from .location import FixedLocation, LocationCapability
from .models import (
    BuildingSuggestion,
    FilterSuggestion,
    LocationSuggestion,
    MyLocationSuggestion,
    SearchResult,
    SourceDescriptor,
    SourceKind,
    SpaceSuggestion,
    Suggestion,
)

logger = logging.getLogger(__name__)


class SearchResolver:
    """
    Turns a suggestion into a `SearchResult`.

    Location suggestions need a second geocoder round trip and my-location
    suggestions ask the location capability; everything else carries what
    it needs already.
    """

    def __init__(
        self,
        descriptors: list[SourceDescriptor],
        geocoder: GeocodeClient,
        location: LocationCapability | None = None,
    ):
        self.descriptors = list(descriptors)
        self.geocoder = geocoder
        self.location = location or FixedLocation()

    async def search(self, suggestion: Suggestion) -> SearchResult:
        """
        Resolve a suggestion.

        Raises:
            EmptyResultError: a location suggestion had no candidates
            LocationUnavailableError: the user's position is unavailable
            TransportError: a network call failed
            UnsupportedSuggestionError: the suggestion kind is not known
        """
        if isinstance(suggestion, LocationSuggestion):
            return await self._search_location(suggestion)

        if isinstance(suggestion, (FilterSuggestion, SpaceSuggestion)):
            return SearchResult(
                name=suggestion.text,
                source_kind=suggestion.source_kind,
                filter=suggestion.filter,
            )

        if isinstance(suggestion, BuildingSuggestion):
            return SearchResult(
                name=suggestion.text,
                source_kind=SourceKind.BUILDING,
                latitude=suggestion.latitude,
                longitude=suggestion.longitude,
            )

        if isinstance(suggestion, MyLocationSuggestion):
            position = await self.location.current_position()
            return SearchResult(
                name=suggestion.text,
                source_kind=SourceKind.MY_LOCATION,
                latitude=position.latitude,
                longitude=position.longitude,
            )

        raise UnsupportedSuggestionError(
            f"Unsupported suggestion type: {type(suggestion).__name__}"
        )

    async def _search_location(self, suggestion: LocationSuggestion) -> SearchResult:
        """Look up the top candidate from the suggestion's own locator."""
        if not 0 <= suggestion.source_index < len(self.descriptors):
            raise UnsupportedSuggestionError(
                f"Unknown location source index {suggestion.source_index}"
            )

        descriptor = self.descriptors[suggestion.source_index]
        candidates = await self.geocoder.find_candidates(
            descriptor, suggestion.correlation_key, out_wkid=WGS84_WKID
        )
        if not candidates:
            logger.info(
                f"No candidates from {descriptor.identifier} for key "
                f"{suggestion.correlation_key}"
            )
            raise EmptyResultError(suggestion.correlation_key)

        top = candidates[0]
        return SearchResult(
            name=top.address,
            source_kind=SourceKind.LOCATION,
            latitude=top.latitude,
            longitude=top.longitude,
        )
