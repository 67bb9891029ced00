"""
Datasette plugin exposing campus-search as a JSON API.

- GET  /-/campus-search/suggest?q=...   merged, grouped suggestions
- POST /-/campus-search/search          resolve one suggestion
"""

import json
import logging
from typing import Any

from datasette import Response, hookimpl
from datasette.utils.asgi import Request

from campus_search.config import PLUGIN_NAME, CampusSearchConfig
from campus_search.engine import build_aggregator, build_resolver
from campus_search.errors import (
    USER_FACING_MESSAGE,
    EmptyResultError,
    LocationUnavailableError,
    TransportError,
    UnsupportedSuggestionError,
)
from campus_search.location import location_from_config
from campus_search.models import suggestion_from_dict, suggestion_to_dict

logger = logging.getLogger(__name__)

API_PREFIX = "/-/campus-search/"

# -----------------------------------------------------------------------------
# Plugin Configuration
# -----------------------------------------------------------------------------


def get_search_config(datasette) -> CampusSearchConfig:
    """Get campus-search configuration from datasette.yaml."""
    config = datasette.plugin_config(PLUGIN_NAME) or {}
    return CampusSearchConfig.from_dict(config)


def error_response(message: str, status: int) -> Response:
    return Response.json({"ok": False, "error": message}, status=status)


def _float_arg(request: Request, name: str) -> float | None:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return float(value)
    except ValueError:
        return None


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


async def campus_search_suggest(request: Request, datasette) -> Response:
    """Suggestions for the `q` query parameter."""
    term = request.args.get("q", "")
    config = get_search_config(datasette)
    if request.args.get("locations_only") == "1":
        config.search.locations_only = True
    if request.args.get("on_campus_only") == "1":
        config.search.on_campus_locations_only = True

    aggregator = build_aggregator(config)
    try:
        suggestions = await aggregator.suggest(term)
    except TransportError as e:
        logger.warning(f"Suggest failed for {term!r}: {e}")
        return error_response(USER_FACING_MESSAGE, 502)

    groups = [
        {"header": header, "count": len(group)}
        for header, group in aggregator.group_suggestions(suggestions)
    ]
    return Response.json(
        {
            "ok": True,
            "term": term,
            "suggestions": [suggestion_to_dict(s) for s in suggestions],
            "groups": groups,
        }
    )


async def campus_search_search(request: Request, datasette) -> Response:
    """Resolve the suggestion posted as the JSON request body."""
    if request.method != "POST":
        return error_response("POST a suggestion to resolve", 405)

    try:
        data: Any = json.loads(await request.post_body() or b"{}")
    except ValueError:
        return error_response("Request body must be JSON", 400)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)

    config = get_search_config(datasette)
    location = location_from_config(
        config.location,
        latitude=_float_arg(request, "latitude"),
        longitude=_float_arg(request, "longitude"),
    )
    resolver = build_resolver(config, location=location)

    try:
        suggestion = suggestion_from_dict(data)
        result = await resolver.search(suggestion)
    except UnsupportedSuggestionError as e:
        return error_response(str(e), 400)
    except EmptyResultError as e:
        return error_response(str(e), 404)
    except LocationUnavailableError as e:
        return error_response(e.user_message, 502)
    except TransportError as e:
        logger.warning(f"Search failed: {e}")
        return error_response(USER_FACING_MESSAGE, 502)

    return Response.json({"ok": True, "result": result.to_dict()})


@hookimpl
def register_routes():
    """Register plugin routes with Datasette."""
    return [
        (r"^/-/campus-search/suggest$", campus_search_suggest),
        (r"^/-/campus-search/search$", campus_search_search),
    ]


@hookimpl
def skip_csrf(datasette, scope):
    """JSON API routes take no form submissions, so carry no CSRF token."""
    if scope.get("path", "").startswith(API_PREFIX):
        return True
    return None
