"""
Configuration for campus-search.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .models import Coordinate, SearchFilter, SourceDescriptor

PLUGIN_NAME = "datasette-campus-search"

# Center of the UMass Amherst campus
CAMPUS_ANCHOR = Coordinate(latitude=42.3903, longitude=-72.5293)


def default_sources() -> list[SourceDescriptor]:
    """The geocoders queried for location suggestions, in group order."""
    return [
        SourceDescriptor(
            identifier="campus",
            display_title="On-campus locations",
            endpoint=(
                "https://maps.umass.edu/arcgis/rest/services/Locators/"
                "CampusAddressLocatorWithSuggestions/GeocodeServer"
            ),
            on_campus=True,
        ),
        SourceDescriptor(
            identifier="world",
            display_title="Off-campus locations",
            endpoint="https://geocode.arcgis.com/arcgis/rest/services/World/GeocodeServer",
            on_campus=False,
        ),
    ]


def default_filters() -> list[SearchFilter]:
    """Filters available when no table is configured."""
    return [
        SearchFilter(
            name="Visitor parking",
            tags=("visitor", "guest", "parking"),
            clauses=("SectionColor IN ('Visitor', 'Pay by hour')",),
        ),
        SearchFilter(
            name="Accessible parking",
            tags=("accessible", "handicap", "disability", "ada"),
            clauses=("Accessible = 1",),
        ),
        SearchFilter(
            name="Electric vehicle charging",
            tags=("ev", "electric", "charging", "charger"),
            clauses=("EVCharging = 1",),
        ),
        SearchFilter(
            name="Motorcycle parking",
            tags=("motorcycle", "moped", "scooter"),
            clauses=("SectionColor = 'Motorcycle'",),
        ),
        SearchFilter(
            name="Bike racks",
            clauses=("AssetType = 'Bike Rack'",),
        ),
    ]


@dataclass
class SearchConfig:
    """Which groups to query and how to tune each source."""

    locations_only: bool = False
    on_campus_locations_only: bool = False
    anchor: Coordinate = CAMPUS_ANCHOR
    radius_meters: int = 10000
    max_location_suggestions: int = 5
    max_building_results: int = 5
    max_space_results: int = 5
    max_filter_results: int = 5
    timeout_seconds: float = 10.0


@dataclass
class FeatureLayerConfig:
    """A queryable feature layer."""

    url: str
    search_field: str
    group_field: str | None = None


@dataclass
class LocationConfig:
    """Where "my location" comes from."""

    provider: str = "caller"  # caller, fixed, ip
    latitude: float | None = None
    longitude: float | None = None
    ip_lookup_url: str = "http://ip-api.com/json/"
    timeout_seconds: float = 10.0


def default_buildings() -> FeatureLayerConfig:
    return FeatureLayerConfig(
        url=(
            "https://maps.umass.edu/arcgis/rest/services/Campus/"
            "Buildings/FeatureServer/0"
        ),
        search_field="Building_Name",
    )


def default_spaces() -> FeatureLayerConfig:
    return FeatureLayerConfig(
        url=(
            "https://maps.umass.edu/arcgis/rest/services/Campus/"
            "Spaces/FeatureServer/0"
        ),
        search_field="Client",
        group_field="Client",
    )


@dataclass
class CampusSearchConfig:
    """Complete campus-search configuration."""

    search: SearchConfig = field(default_factory=SearchConfig)
    sources: list[SourceDescriptor] = field(default_factory=default_sources)
    buildings: FeatureLayerConfig = field(default_factory=default_buildings)
    spaces: FeatureLayerConfig = field(default_factory=default_spaces)
    filters: list[SearchFilter] = field(default_factory=default_filters)
    location: LocationConfig = field(default_factory=LocationConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CampusSearchConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "search" in data:
            search = data["search"]
            anchor = search.get("anchor")
            config.search = SearchConfig(
                locations_only=search.get("locations_only", False),
                on_campus_locations_only=search.get("on_campus_locations_only", False),
                anchor=(
                    Coordinate(anchor["latitude"], anchor["longitude"])
                    if anchor
                    else CAMPUS_ANCHOR
                ),
                radius_meters=search.get("radius_meters", 10000),
                max_location_suggestions=search.get("max_location_suggestions", 5),
                max_building_results=search.get("max_building_results", 5),
                max_space_results=search.get("max_space_results", 5),
                max_filter_results=search.get("max_filter_results", 5),
                timeout_seconds=search.get("timeout_seconds", 10.0),
            )

        if "sources" in data:
            config.sources = [SourceDescriptor.from_dict(s) for s in data["sources"]]

        if "buildings" in data:
            buildings = data["buildings"]
            config.buildings = FeatureLayerConfig(
                url=buildings.get("url", config.buildings.url),
                search_field=buildings.get("search_field", config.buildings.search_field),
            )

        if "spaces" in data:
            spaces = data["spaces"]
            config.spaces = FeatureLayerConfig(
                url=spaces.get("url", config.spaces.url),
                search_field=spaces.get("search_field", config.spaces.search_field),
                group_field=spaces.get("group_field", config.spaces.group_field),
            )

        if "filters" in data:
            config.filters = [SearchFilter.from_dict(f) for f in data["filters"]]

        if "location" in data:
            location = data["location"]
            config.location = LocationConfig(
                provider=location.get("provider", "caller"),
                latitude=location.get("latitude"),
                longitude=location.get("longitude"),
                ip_lookup_url=location.get("ip_lookup_url", config.location.ip_lookup_url),
                timeout_seconds=location.get("timeout_seconds", 10.0),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "CampusSearchConfig":
        """Load config from a YAML file (datasette.yaml format)."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        plugin_config = data.get("plugins", {}).get(PLUGIN_NAME, {})
        return cls.from_dict(plugin_config)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "search": {
                "locations_only": self.search.locations_only,
                "on_campus_locations_only": self.search.on_campus_locations_only,
                "anchor": self.search.anchor.to_dict(),
                "radius_meters": self.search.radius_meters,
                "max_location_suggestions": self.search.max_location_suggestions,
                "max_building_results": self.search.max_building_results,
                "max_space_results": self.search.max_space_results,
                "max_filter_results": self.search.max_filter_results,
                "timeout_seconds": self.search.timeout_seconds,
            },
            "sources": [s.to_dict() for s in self.sources],
            "buildings": {
                "url": self.buildings.url,
                "search_field": self.buildings.search_field,
            },
            "spaces": {
                "url": self.spaces.url,
                "search_field": self.spaces.search_field,
                "group_field": self.spaces.group_field,
            },
            "filters": [f.to_dict() for f in self.filters],
            "location": {
                "provider": self.location.provider,
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "ip_lookup_url": self.location.ip_lookup_url,
                "timeout_seconds": self.location.timeout_seconds,
            },
        }
