"""
Exceptions raised by campus-search.
"""

# Shown to users in place of transport/resolution details
USER_FACING_MESSAGE = "Search is unavailable right now. Please try again later."


class SearchError(Exception):
    """Base class for all campus-search errors."""


class TransportError(SearchError):
    """A network or location call failed or timed out."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class LocationUnavailableError(TransportError):
    """The device location was denied, missing, or timed out."""

    def __init__(
        self,
        message: str = "Your location could not be determined.",
        source: str | None = None,
    ):
        super().__init__(message, source=source)
        self.user_message = message


class EmptyResultError(SearchError):
    """A location suggestion resolved to zero candidates."""

    def __init__(self, correlation_key: str):
        super().__init__(
            f"Could not find search result for suggestion with key {correlation_key}"
        )
        self.correlation_key = correlation_key


class UnsupportedSuggestionError(SearchError):
    """The resolver was handed a suggestion it does not know how to resolve."""
