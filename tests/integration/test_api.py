"""Integration tests for the campus-search JSON API."""

from unittest.mock import AsyncMock, patch

import pytest
from datasette.app import Datasette

from campus_search.errors import TransportError
from campus_search.features import Feature
from campus_search.geocode import GeocodeCandidate, GeocodeSuggestion

PLUGIN_CONFIG = {
    "sources": [
        {
            "identifier": "campus",
            "display_title": "On-campus locations",
            "endpoint": "https://campus.example.edu/GeocodeServer",
            "on_campus": True,
        },
        {
            "identifier": "world",
            "display_title": "Off-campus locations",
            "endpoint": "https://world.example.com/GeocodeServer",
        },
    ],
    "buildings": {"url": "https://maps.example.edu/Buildings/FeatureServer/0"},
    "spaces": {"url": "https://maps.example.edu/Spaces/FeatureServer/0"},
    "location": {"provider": "caller"},
}


@pytest.fixture
def datasette():
    """Create a Datasette instance with the plugin configured."""
    return Datasette(
        memory=True,
        config={"plugins": {"datasette-campus-search": PLUGIN_CONFIG}},
    )


async def fake_geocode_suggest(self, descriptor, text, anchor, radius_meters, max_suggestions=5):
    if descriptor.identifier == "campus":
        return [GeocodeSuggestion("Morrill Science Center", "campus-key")]
    return [GeocodeSuggestion("Morrill St, Amherst", "world-key")]


async def fake_feature_query(self, where, **kwargs):
    if "Buildings" in self.url:
        return [
            Feature(
                attributes={"Building_Name": "Morrill Science Center"},
                geometry={"x": -72.524, "y": 42.389},
            )
        ]
    return []


class TestSuggestRoute:
    """Tests for GET /-/campus-search/suggest."""

    async def test_merged_suggestions(self, datasette):
        with patch(
            "campus_search.geocode.GeocodeClient.suggest", fake_geocode_suggest
        ), patch("campus_search.features.FeatureStoreClient.query", fake_feature_query):
            response = await datasette.client.get("/-/campus-search/suggest?q=Morrill")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert [s["text"] for s in data["suggestions"]] == [
            "Morrill Science Center",
            "Morrill St, Amherst",
        ]
        assert data["suggestions"][0]["source_kind"] == "location"
        assert data["groups"] == [
            {"header": "On-campus locations", "count": 1},
            {"header": "Off-campus locations", "count": 1},
        ]

    async def test_empty_term(self, datasette):
        response = await datasette.client.get("/-/campus-search/suggest?q=")
        assert response.status_code == 200
        assert response.json()["suggestions"] == []

    async def test_transport_failure_is_generic(self, datasette):
        with patch(
            "campus_search.geocode.GeocodeClient.suggest",
            AsyncMock(side_effect=TransportError("secret upstream detail")),
        ), patch("campus_search.features.FeatureStoreClient.query", fake_feature_query):
            response = await datasette.client.get("/-/campus-search/suggest?q=lot")

        assert response.status_code == 502
        assert "try again later" in response.json()["error"]
        assert "secret" not in response.text


class TestSearchRoute:
    """Tests for POST /-/campus-search/search."""

    async def test_resolves_location(self, datasette):
        find = AsyncMock(
            return_value=[GeocodeCandidate("Morrill Science Center", 42.389, -72.524)]
        )
        with patch("campus_search.geocode.GeocodeClient.find_candidates", find):
            response = await datasette.client.post(
                "/-/campus-search/search",
                json={
                    "text": "Morrill Science Center",
                    "source_kind": "location",
                    "correlation_key": "campus-key",
                    "source_index": 0,
                },
            )

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["name"] == "Morrill Science Center"
        assert result["latitude"] == 42.389

    async def test_empty_result_is_404(self, datasette):
        with patch(
            "campus_search.geocode.GeocodeClient.find_candidates",
            AsyncMock(return_value=[]),
        ):
            response = await datasette.client.post(
                "/-/campus-search/search",
                json={
                    "text": "Nowhere",
                    "source_kind": "location",
                    "correlation_key": "gone",
                    "source_index": 1,
                },
            )

        assert response.status_code == 404
        assert "gone" in response.json()["error"]

    async def test_unsupported_kind_is_400(self, datasette):
        response = await datasette.client.post(
            "/-/campus-search/search",
            json={"text": "Rain", "source_kind": "weather"},
        )
        assert response.status_code == 400

    async def test_my_location_uses_caller_coordinates(self, datasette):
        response = await datasette.client.post(
            "/-/campus-search/search?latitude=42.39&longitude=-72.53",
            json={"text": "My location", "source_kind": "my_location"},
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert (result["latitude"], result["longitude"]) == (42.39, -72.53)

    async def test_my_location_without_coordinates(self, datasette):
        response = await datasette.client.post(
            "/-/campus-search/search",
            json={"text": "My location", "source_kind": "my_location"},
        )

        assert response.status_code == 502
        assert "location" in response.json()["error"]

    async def test_filter_passthrough(self, datasette):
        response = await datasette.client.post(
            "/-/campus-search/search",
            json={
                "text": "Visitor parking",
                "source_kind": "filter",
                "filter": {"name": "Visitor parking", "clauses": ["Visitor = 1"]},
            },
        )

        assert response.status_code == 200
        assert response.json()["result"]["filter"]["clauses"] == ["Visitor = 1"]

    async def test_get_not_allowed(self, datasette):
        response = await datasette.client.get("/-/campus-search/search")
        assert response.status_code == 405
