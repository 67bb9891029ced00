"""
Suggestion sources for campus-search.

Each source turns free text into an ordered list of suggestions of one kind.
The aggregator decides which sources run and in what order.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

from .clauses import equals_clause, like_clause
from .features import FeatureStoreClient
from .filters import FilterTable, tokenize
from .geocode import WGS84_WKID, GeocodeClient
from .models import (
    BuildingSuggestion,
    Coordinate,
    FilterSuggestion,
    LocationSuggestion,
    MyLocationSuggestion,
    SearchFilter,
    SourceDescriptor,
    SpaceSuggestion,
    Suggestion,
)

logger = logging.getLogger(__name__)

MY_LOCATION_TOKENS = frozenset({"my", "me"})


async def gather_all(*operations):
    """
    Run operations concurrently and wait for every one of them.

    Results come back in argument order. If any operation failed, the first
    failure in argument order is raised once all have settled; later
    failures are logged.
    """
    results = await asyncio.gather(*operations, return_exceptions=True)
    errors = [r for r in results if isinstance(r, BaseException)]
    if errors:
        for extra in errors[1:]:
            logger.warning(f"Additional source failure in the same batch: {extra}")
        raise errors[0]
    return results


class SuggestionSource(ABC):
    """Base class for suggestion sources."""

    name: str = "base"

    @abstractmethod
    async def suggest(self, term: str) -> list[Suggestion]:
        """Suggestions for `term`, best first."""
        pass


class LocationSource(SuggestionSource):
    """Geocoder suggestions from one or more locators.

    Locators are queried concurrently and their answers concatenated in
    descriptor order. Each suggestion records the index of its locator in
    the full descriptor list so the resolver can go back to it.
    """

    name = "locations"

    def __init__(
        self,
        geocoder: GeocodeClient,
        descriptors: list[SourceDescriptor],
        indices: list[int],
        anchor: Coordinate,
        radius_meters: int,
        max_suggestions: int = 5,
    ):
        self.geocoder = geocoder
        self.descriptors = descriptors
        self.indices = indices
        self.anchor = anchor
        self.radius_meters = radius_meters
        self.max_suggestions = max_suggestions

    async def suggest(self, term: str) -> list[Suggestion]:
        responses = await gather_all(
            *(
                self.geocoder.suggest(
                    self.descriptors[index],
                    term,
                    self.anchor,
                    self.radius_meters,
                    self.max_suggestions,
                )
                for index in self.indices
            )
        )

        suggestions: list[Suggestion] = []
        for index, response in zip(self.indices, responses):
            for item in response:
                suggestions.append(
                    LocationSuggestion(
                        text=item.text,
                        correlation_key=item.magic_key,
                        source_index=index,
                    )
                )
        return suggestions


class BuildingSource(SuggestionSource):
    """Buildings whose name contains the term."""

    name = "buildings"

    def __init__(self, store: FeatureStoreClient, name_field: str, limit: int = 5):
        self.store = store
        self.name_field = name_field
        self.limit = limit

    async def suggest(self, term: str) -> list[Suggestion]:
        features = await self.store.query(
            like_clause(self.name_field, term),
            out_fields=(self.name_field,),
            out_wkid=WGS84_WKID,
            limit=self.limit,
            return_geometry=True,
            order_by=self.name_field,
        )

        suggestions: list[Suggestion] = []
        for feature in features[: self.limit]:
            name = feature.attributes.get(self.name_field)
            if not name:
                continue
            center = feature.centroid()
            suggestions.append(
                BuildingSuggestion(
                    text=name,
                    latitude=center.latitude if center else None,
                    longitude=center.longitude if center else None,
                )
            )
        return suggestions


class FilterSource(SuggestionSource):
    """Static filters matched by tag; no I/O."""

    name = "filters"

    def __init__(self, table: FilterTable, limit: int = 5):
        self.table = table
        self.limit = limit

    async def suggest(self, term: str) -> list[Suggestion]:
        return [
            FilterSuggestion(text=f.name, filter=f)
            for f in self.table.match(term, limit=self.limit)
        ]


class SpaceSource(SuggestionSource):
    """Spaces matching the term, one suggestion per distinct client.

    A client with many spaces still yields a single suggestion whose filter
    selects all of that client's spaces.
    """

    name = "spaces"

    def __init__(
        self,
        store: FeatureStoreClient,
        search_field: str,
        client_field: str,
        limit: int = 5,
    ):
        self.store = store
        self.search_field = search_field
        self.client_field = client_field
        self.limit = limit

    async def suggest(self, term: str) -> list[Suggestion]:
        features = await self.store.query(
            like_clause(self.search_field, term),
            out_fields=tuple(dict.fromkeys((self.search_field, self.client_field))),
            order_by=self.client_field,
        )

        counts: dict[str, int] = {}
        for feature in features:
            client = feature.attributes.get(self.client_field)
            if client:
                counts[client] = counts.get(client, 0) + 1

        suggestions: list[Suggestion] = []
        for client, count in list(counts.items())[: self.limit]:
            noun = "space" if count == 1 else "spaces"
            suggestions.append(
                SpaceSuggestion(
                    text=client,
                    filter=SearchFilter(
                        name=client,
                        clauses=(equals_clause(self.client_field, client),),
                    ),
                    description=f"{count} {noun} assigned to {client}",
                )
            )
        return suggestions


class MyLocationSource(SuggestionSource):
    """Offers the user's own position when the term mentions "my" or "me"."""

    name = "my_location"

    def __init__(self, text: str = "My location"):
        self.text = text

    async def suggest(self, term: str) -> list[Suggestion]:
        if MY_LOCATION_TOKENS.intersection(tokenize(term)):
            return [MyLocationSuggestion(text=self.text)]
        return []
