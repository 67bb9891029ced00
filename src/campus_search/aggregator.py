"""
Suggestion aggregation for campus-search.

Fans a search term out to every applicable source, waits for all of them,
and merges the results into one list in a fixed group order:

    filters, spaces, on-campus locations, buildings,
    off-campus locations, my location

The join is fail-fast: if any source fails the whole batch fails with no
partial list. Every source is still awaited before the failure is raised,
and the slowest source sets the pace. Both keep the merged order
deterministic.
"""

import logging

from .config import SearchConfig
from .geocode import GeocodeClient
from .models import (
    BuildingSuggestion,
    FilterSuggestion,
    LocationSuggestion,
    MyLocationSuggestion,
    SourceDescriptor,
    SpaceSuggestion,
    Suggestion,
)
from .sources import LocationSource, MyLocationSource, SuggestionSource, gather_all

logger = logging.getLogger(__name__)

GROUP_HEADERS = {
    FilterSuggestion: "Filters",
    SpaceSuggestion: "Spaces",
    BuildingSuggestion: "Buildings",
    MyLocationSuggestion: "My location",
}


def remove_duplicate_buildings(
    suggestions: list[Suggestion],
    location_suggestions: list[Suggestion],
) -> list[Suggestion]:
    """Drop buildings whose text exactly matches a location suggestion."""
    location_texts = {s.text for s in location_suggestions}
    return [
        s
        for s in suggestions
        if not (isinstance(s, BuildingSuggestion) and s.text in location_texts)
    ]


class SuggestionAggregator:
    """
    Merges suggestions from every source into one ordered list.

    Sources are chosen once, at construction, from the search config.
    """

    def __init__(
        self,
        descriptors: list[SourceDescriptor],
        geocoder: GeocodeClient,
        buildings: SuggestionSource,
        spaces: SuggestionSource,
        filters: SuggestionSource,
        config: SearchConfig | None = None,
        my_location: SuggestionSource | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            descriptors: All configured locators; suggestion source indices
                point into this list
            geocoder: Client used for every locator
            buildings: Building source
            spaces: Space source
            filters: Filter table source
            config: Group selection and location tuning
            my_location: "My location" source (default: MyLocationSource)
        """
        self.descriptors = list(descriptors)
        self.config = config or SearchConfig()
        self.locations_only = self.config.locations_only
        self.on_campus_locations_only = self.config.on_campus_locations_only

        on_campus = [i for i, d in enumerate(self.descriptors) if d.on_campus]
        off_campus = [i for i, d in enumerate(self.descriptors) if not d.on_campus]

        self.on_campus_locations = self._location_source(geocoder, on_campus)
        self.off_campus_locations = self._location_source(geocoder, off_campus)
        self.buildings = buildings
        self.spaces = spaces
        self.filters = filters
        self.my_location = my_location or MyLocationSource()

    def _location_source(self, geocoder: GeocodeClient, indices: list[int]) -> LocationSource:
        return LocationSource(
            geocoder,
            self.descriptors,
            indices,
            anchor=self.config.anchor,
            radius_meters=self.config.radius_meters,
            max_suggestions=self.config.max_location_suggestions,
        )

    def sources(self) -> list[SuggestionSource]:
        """The sources a suggest call runs, in group order."""
        groups: list[SuggestionSource] = []
        if not self.locations_only:
            groups.append(self.filters)
            groups.append(self.spaces)
        if self.on_campus_locations.indices:
            groups.append(self.on_campus_locations)
        groups.append(self.buildings)
        if not self.on_campus_locations_only and self.off_campus_locations.indices:
            groups.append(self.off_campus_locations)
        groups.append(self.my_location)
        return groups

    async def suggest(self, search_term: str) -> list[Suggestion]:
        """
        Suggestions for `search_term` from every applicable source.

        Raises:
            SearchError: if any source fails; no partial list is returned
        """
        if not search_term.strip():
            return []

        sources = self.sources()
        logger.debug(
            f"Suggesting {search_term!r} from: {', '.join(s.name for s in sources)}"
        )
        results = await gather_all(*(s.suggest(search_term) for s in sources))

        location_suggestions: list[Suggestion] = next(
            (
                result
                for source, result in zip(sources, results)
                if isinstance(source, LocationSource) and result
            ),
            [],
        )

        merged = [s for result in results for s in result]
        suggestions = remove_duplicate_buildings(merged, location_suggestions)

        logger.info(
            f"{len(suggestions)} suggestion(s) for {search_term!r} "
            f"({len(merged) - len(suggestions)} duplicate building(s) removed)"
        )
        return suggestions

    def suggestion_header(self, suggestion: Suggestion) -> str:
        """Heading for the group a suggestion is shown under."""
        if isinstance(suggestion, LocationSuggestion):
            return self.descriptors[suggestion.source_index].display_title
        return GROUP_HEADERS.get(type(suggestion), "")

    def group_suggestions(
        self, suggestions: list[Suggestion]
    ) -> list[tuple[str, list[Suggestion]]]:
        """Split a merged list into consecutive (header, suggestions) groups."""
        groups: list[tuple[str, list[Suggestion]]] = []
        for suggestion in suggestions:
            header = self.suggestion_header(suggestion)
            if groups and groups[-1][0] == header:
                groups[-1][1].append(suggestion)
            else:
                groups.append((header, [suggestion]))
        return groups
