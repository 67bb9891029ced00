"""
Data models for campus-search.

Suggestions are a tagged union: one frozen dataclass per source kind, each
carrying only the fields that kind needs for resolution.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from .errors import UnsupportedSuggestionError


class SourceKind(str, Enum):
    """Where a suggestion came from."""

    LOCATION = "location"
    BUILDING = "building"
    FILTER = "filter"
    SPACE = "space"
    MY_LOCATION = "my_location"


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 latitude/longitude pair."""

    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class SourceDescriptor:
    """A geocoding backend that can be queried for location suggestions."""

    identifier: str
    display_title: str
    endpoint: str
    on_campus: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "identifier": self.identifier,
            "display_title": self.display_title,
            "endpoint": self.endpoint,
            "on_campus": self.on_campus,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceDescriptor":
        """Create from dictionary."""
        return cls(
            identifier=data["identifier"],
            display_title=data.get("display_title", data["identifier"]),
            endpoint=data["endpoint"].rstrip("/"),
            on_campus=data.get("on_campus", False),
        )


@dataclass(frozen=True)
class SearchFilter:
    """A named set of layer clauses, found by tag or name."""

    name: str
    tags: tuple[str, ...] = ()
    clauses: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"name": self.name}
        if self.tags:
            result["tags"] = list(self.tags)
        if self.clauses:
            result["clauses"] = list(self.clauses)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchFilter":
        """Create from dictionary."""
        return cls(
            name=data["name"],
            tags=tuple(data.get("tags", [])),
            clauses=tuple(data.get("clauses", [])),
        )


@dataclass(frozen=True)
class LocationSuggestion:
    """A geocoder suggestion, resolved later by its correlation key."""

    source_kind: ClassVar[SourceKind] = SourceKind.LOCATION

    text: str
    correlation_key: str
    source_index: int


@dataclass(frozen=True)
class BuildingSuggestion:
    """A building feature; coordinates are captured up front."""

    source_kind: ClassVar[SourceKind] = SourceKind.BUILDING

    text: str
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class FilterSuggestion:
    """An entry from the static filter table."""

    source_kind: ClassVar[SourceKind] = SourceKind.FILTER

    text: str
    filter: SearchFilter


@dataclass(frozen=True)
class SpaceSuggestion:
    """One distinct space client, with a filter selecting its spaces."""

    source_kind: ClassVar[SourceKind] = SourceKind.SPACE

    text: str
    filter: SearchFilter
    description: str = ""


@dataclass(frozen=True)
class MyLocationSuggestion:
    """The user's own position, resolved through the location capability."""

    source_kind: ClassVar[SourceKind] = SourceKind.MY_LOCATION

    text: str = "My location"


Suggestion = Union[
    LocationSuggestion,
    BuildingSuggestion,
    FilterSuggestion,
    SpaceSuggestion,
    MyLocationSuggestion,
]


@dataclass(frozen=True)
class SearchResult:
    """The fully resolved outcome of a selected suggestion."""

    name: str
    source_kind: SourceKind
    latitude: float | None = None
    longitude: float | None = None
    filter: SearchFilter | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "name": self.name,
            "source_kind": self.source_kind.value,
        }
        if self.latitude is not None:
            result["latitude"] = self.latitude
        if self.longitude is not None:
            result["longitude"] = self.longitude
        if self.filter:
            result["filter"] = self.filter.to_dict()
        return result


def suggestion_to_dict(suggestion: Suggestion) -> dict[str, Any]:
    """Convert any suggestion variant to a JSON-ready dictionary."""
    result: dict[str, Any] = {
        "text": suggestion.text,
        "source_kind": suggestion.source_kind.value,
    }
    if isinstance(suggestion, LocationSuggestion):
        result["correlation_key"] = suggestion.correlation_key
        result["source_index"] = suggestion.source_index
    elif isinstance(suggestion, BuildingSuggestion):
        if suggestion.latitude is not None:
            result["latitude"] = suggestion.latitude
        if suggestion.longitude is not None:
            result["longitude"] = suggestion.longitude
    elif isinstance(suggestion, FilterSuggestion):
        result["filter"] = suggestion.filter.to_dict()
    elif isinstance(suggestion, SpaceSuggestion):
        result["filter"] = suggestion.filter.to_dict()
        if suggestion.description:
            result["description"] = suggestion.description
    return result


def suggestion_from_dict(data: dict[str, Any]) -> Suggestion:
    """
    Rebuild a suggestion from its dictionary form.

    Raises:
        UnsupportedSuggestionError: if the kind is missing or unknown, or a
            field the kind requires is absent.
    """
    try:
        kind = SourceKind(data.get("source_kind"))
    except ValueError:
        raise UnsupportedSuggestionError(
            f"Unsupported suggestion type: {data.get('source_kind')!r}"
        ) from None

    try:
        text = data["text"]
        if kind is SourceKind.LOCATION:
            return LocationSuggestion(
                text=text,
                correlation_key=data["correlation_key"],
                source_index=int(data["source_index"]),
            )
        if kind is SourceKind.BUILDING:
            return BuildingSuggestion(
                text=text,
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
            )
        if kind is SourceKind.FILTER:
            return FilterSuggestion(
                text=text, filter=SearchFilter.from_dict(data["filter"])
            )
        if kind is SourceKind.SPACE:
            return SpaceSuggestion(
                text=text,
                filter=SearchFilter.from_dict(data["filter"]),
                description=data.get("description", ""),
            )
        return MyLocationSuggestion(text=text)
    except (KeyError, TypeError, ValueError) as e:
        raise UnsupportedSuggestionError(
            f"Malformed {kind.value} suggestion: {e}"
        ) from e
