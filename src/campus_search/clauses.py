"""
Attribute-query clause building for ArcGIS feature services.

Feature service `where` parameters use a SQL-92 subset where string literals
are delimited by single quotes. User text must never reach a clause without
going through `escape_literal`.
"""

# Characters some keyboards and autocorrect substitute for an apostrophe
QUOTE_LIKE = ("‘", "’", "‛", "′", "`")


def escape_literal(text: str) -> str:
    """
    Escape text for use inside a single-quoted clause literal.

    Quote-like characters are normalized to an apostrophe, then every
    apostrophe is doubled so the clause grammar reads it as literal text.
    """
    for char in QUOTE_LIKE:
        text = text.replace(char, "'")
    return text.replace("'", "''")


def like_clause(field: str, term: str) -> str:
    """Case-insensitive substring match of `term` against `field`."""
    return f"UPPER({field}) LIKE '%{escape_literal(term.strip().upper())}%'"


def equals_clause(field: str, value: str) -> str:
    """Exact match of `field` against `value`."""
    return f"{field} = '{escape_literal(value)}'"
