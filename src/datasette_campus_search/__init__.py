"""Datasette plugin exposing campus-search suggestions and resolution."""

from datasette_campus_search.plugin import register_routes, skip_csrf

__all__ = [
    "register_routes",
    "skip_csrf",
]
