"""Shared pytest fixtures for campus-search tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from campus_search.geocode import GeocodeSuggestion
from campus_search.models import SourceDescriptor
from campus_search.sources import SuggestionSource


class StaticSource(SuggestionSource):
    """A source that returns a fixed list, or raises a fixed error."""

    def __init__(self, name, suggestions=None, error=None):
        self.name = name
        self.suggestions = suggestions or []
        self.error = error
        self.terms = []

    async def suggest(self, term):
        self.terms.append(term)
        if self.error:
            raise self.error
        return list(self.suggestions)


@pytest.fixture
def descriptors():
    """One on-campus and one off-campus locator."""
    return [
        SourceDescriptor(
            identifier="campus",
            display_title="On-campus locations",
            endpoint="https://campus.example.edu/GeocodeServer",
            on_campus=True,
        ),
        SourceDescriptor(
            identifier="world",
            display_title="Off-campus locations",
            endpoint="https://world.example.com/GeocodeServer",
            on_campus=False,
        ),
    ]


@pytest.fixture
def make_geocoder():
    """Build a mock geocoder answering suggest() per locator identifier."""

    def _make(by_identifier=None, candidates=None):
        by_identifier = by_identifier or {}
        geocoder = MagicMock()

        async def suggest(descriptor, text, anchor, radius_meters, max_suggestions=5):
            return [
                GeocodeSuggestion(text=t, magic_key=f"{descriptor.identifier}:{t}")
                for t in by_identifier.get(descriptor.identifier, [])
            ]

        geocoder.suggest = AsyncMock(side_effect=suggest)
        geocoder.find_candidates = AsyncMock(return_value=candidates or [])
        return geocoder

    return _make


@pytest.fixture
def mock_response():
    """Create a mock httpx response."""

    def _make_response(json_data, status_code=200):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data
        response.raise_for_status = MagicMock()
        if status_code >= 400:
            from httpx import HTTPStatusError

            response.raise_for_status.side_effect = HTTPStatusError(
                "Error", request=MagicMock(), response=response
            )
        return response

    return _make_response


@pytest.fixture
def static_source():
    """The StaticSource class, for building fixed-answer sources."""
    return StaticSource
