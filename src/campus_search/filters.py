"""
Static filter table lookup.
"""

from .models import SearchFilter


def tokenize(text: str) -> list[str]:
    """Lower-cased whitespace tokens of `text`."""
    return text.lower().split()


class FilterTable:
    """An in-memory list of named filters, matched by tag or name word."""

    def __init__(self, filters: list[SearchFilter]):
        self.filters = list(filters)

    def match(self, term: str, limit: int = 5) -> list[SearchFilter]:
        """
        Filters with a tag (or, without tags, a name word) starting with
        any token of `term`, in table order.
        """
        tokens = tokenize(term)
        if not tokens:
            return []

        matches = []
        for search_filter in self.filters:
            keywords = [t.lower() for t in search_filter.tags] or tokenize(search_filter.name)
            if any(k.startswith(token) for token in tokens for k in keywords):
                matches.append(search_filter)
                if len(matches) >= limit:
                    break
        return matches
