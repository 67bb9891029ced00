"""
Wiring of configured clients into an aggregator and resolver.
"""

from .aggregator import SuggestionAggregator
from .config import CampusSearchConfig
from .features import FeatureStoreClient
from .filters import FilterTable
from .geocode import GeocodeClient
from .location import LocationCapability, location_from_config
from .resolver import SearchResolver
from .sources import BuildingSource, FilterSource, SpaceSource


def build_aggregator(
    config: CampusSearchConfig,
    geocoder: GeocodeClient | None = None,
) -> SuggestionAggregator:
    """Create an aggregator for the configured sources."""
    search = config.search
    geocoder = geocoder or GeocodeClient(timeout_seconds=search.timeout_seconds)

    buildings = BuildingSource(
        FeatureStoreClient(config.buildings.url, search.timeout_seconds),
        name_field=config.buildings.search_field,
        limit=search.max_building_results,
    )
    spaces = SpaceSource(
        FeatureStoreClient(config.spaces.url, search.timeout_seconds),
        search_field=config.spaces.search_field,
        client_field=config.spaces.group_field or config.spaces.search_field,
        limit=search.max_space_results,
    )
    filters = FilterSource(FilterTable(config.filters), limit=search.max_filter_results)

    return SuggestionAggregator(
        config.sources,
        geocoder,
        buildings=buildings,
        spaces=spaces,
        filters=filters,
        config=search,
    )


def build_resolver(
    config: CampusSearchConfig,
    geocoder: GeocodeClient | None = None,
    location: LocationCapability | None = None,
) -> SearchResolver:
    """Create a resolver; `location` defaults to the configured provider."""
    geocoder = geocoder or GeocodeClient(timeout_seconds=config.search.timeout_seconds)
    return SearchResolver(
        config.sources,
        geocoder,
        location or location_from_config(config.location),
    )


def build_engine(
    config: CampusSearchConfig,
) -> tuple[SuggestionAggregator, SearchResolver]:
    """Create an aggregator and resolver sharing one geocode client."""
    geocoder = GeocodeClient(timeout_seconds=config.search.timeout_seconds)
    return build_aggregator(config, geocoder), build_resolver(config, geocoder)
