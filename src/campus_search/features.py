"""
ArcGIS feature service client for campus-search.

Queries a single feature layer with an attribute clause.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from .errors import TransportError
from .geocode import raise_for_arcgis_error
from .models import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class Feature:
    """A feature returned from a layer query."""

    attributes: dict[str, Any] = field(default_factory=dict)
    geometry: dict[str, Any] | None = None

    def centroid(self) -> Coordinate | None:
        """
        Approximate center of the feature's geometry.

        Points are returned as-is; polygons use the average of their
        vertices. Assumes the query asked for WGS84 output.
        """
        if not self.geometry:
            return None

        if "x" in self.geometry and "y" in self.geometry:
            return Coordinate(latitude=self.geometry["y"], longitude=self.geometry["x"])

        vertices = [
            point for ring in self.geometry.get("rings", []) for point in ring
        ]
        if not vertices:
            return None
        return Coordinate(
            latitude=sum(p[1] for p in vertices) / len(vertices),
            longitude=sum(p[0] for p in vertices) / len(vertices),
        )


class FeatureStoreClient:
    """Client for one ArcGIS FeatureServer/MapServer layer."""

    def __init__(self, url: str, timeout_seconds: float = 10.0):
        """
        Initialize the feature store client.

        Args:
            url: Layer URL, e.g. ".../FeatureServer/0"
            timeout_seconds: Request timeout in seconds
        """
        self.url = url.rstrip("/")
        self.timeout = timeout_seconds

    async def query(
        self,
        where: str,
        out_fields: tuple[str, ...] = ("*",),
        out_wkid: int | None = None,
        limit: int | None = None,
        return_geometry: bool = False,
        order_by: str | None = None,
    ) -> list[Feature]:
        """
        Query the layer with an attribute clause.

        Args:
            where: Clause built with `campus_search.clauses`
            out_fields: Attribute fields to return
            out_wkid: Spatial reference for returned geometry
            limit: Maximum number of features
            return_geometry: Whether to include geometry
            order_by: Optional orderByFields value

        Returns:
            Matching features in service order
        """
        params: dict[str, Any] = {
            "where": where,
            "outFields": ",".join(out_fields),
            "returnGeometry": "true" if return_geometry else "false",
            "f": "json",
        }
        if out_wkid is not None:
            params["outSR"] = json.dumps({"wkid": out_wkid})
        if limit is not None:
            params["resultRecordCount"] = limit
        if order_by:
            params["orderByFields"] = order_by

        url = f"{self.url}/query"
        logger.debug(f"Querying {url} where {where}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(url, params=params, follow_redirects=True)
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"Feature query failed for {self.url}: {e}")
                raise TransportError(
                    f"Feature query to {self.url} failed: {e}", source=self.url
                ) from e

        raise_for_arcgis_error(data, self.url)
        return self._parse_features(data)

    def _parse_features(self, data: dict[str, Any]) -> list[Feature]:
        """Parse features from API response."""
        return [
            Feature(
                attributes=f.get("attributes") or {},
                geometry=f.get("geometry"),
            )
            for f in data.get("features", [])
        ]
