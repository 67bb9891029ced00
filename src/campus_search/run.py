"""
CLI for campus-search.

Usage:
    python -m campus_search.run TERM [OPTIONS]

    # Show grouped suggestions
    python -m campus_search.run "morrill"

    # Resolve the suggestion at position 0
    python -m campus_search.run "morrill" --select 0

    # Simulate typing; out-of-order responses are discarded
    python -m campus_search.run "morrill science" --as-you-type
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .aggregator import SuggestionAggregator
from .config import CampusSearchConfig
from .engine import build_engine
from .errors import USER_FACING_MESSAGE, LocationUnavailableError, SearchError
from .guard import StaleResponseGuard
from .models import Suggestion, suggestion_to_dict

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("campus-search")


def format_suggestions(
    aggregator: SuggestionAggregator, suggestions: list[Suggestion]
) -> str:
    """Render suggestions under their group headers, numbered."""
    lines = []
    position = 0
    for header, group in aggregator.group_suggestions(suggestions):
        lines.append(f"{header}:")
        for suggestion in group:
            lines.append(f"  [{position}] {suggestion.text}")
            position += 1
    return "\n".join(lines) if lines else "No suggestions."


async def type_ahead(
    aggregator: SuggestionAggregator,
    term: str,
    keystroke_delay: float = 0.05,
) -> list[Suggestion]:
    """
    Issue a suggest call for each prefix of `term`, as if typed.

    Returns the last batch the guard accepted.

    Raises:
        SearchError: if the latest keystroke to fail came after the last
            accepted batch
    """
    guard = StaleResponseGuard()
    accepted: list[Suggestion] = []
    accepted_keystroke = 0
    failure: Exception | None = None
    failed_keystroke = 0
    pending = []

    for keystroke in range(1, len(term) + 1):
        prefix = term[:keystroke]
        if not prefix.strip():
            continue

        def on_success(suggestions, prefix=prefix, keystroke=keystroke):
            nonlocal accepted, accepted_keystroke
            logger.info(f"Accepted {len(suggestions)} suggestion(s) for {prefix!r}")
            accepted = suggestions
            accepted_keystroke = keystroke

        def on_failure(error, prefix=prefix, keystroke=keystroke):
            nonlocal failure, failed_keystroke
            logger.warning(f"Suggestions for {prefix!r} failed: {error}")
            if keystroke > failed_keystroke:
                failure = error
                failed_keystroke = keystroke

        pending.append(
            guard.track(aggregator.suggest(prefix)).on_complete(on_success, on_failure)
        )
        await asyncio.sleep(keystroke_delay)

    await asyncio.gather(*pending)
    if failure is not None and failed_keystroke > accepted_keystroke:
        raise failure
    return accepted


async def run_search(args: argparse.Namespace, config: CampusSearchConfig) -> int:
    """Suggest, and optionally resolve, for the CLI arguments."""
    aggregator, resolver = build_engine(config)

    if args.as_you_type:
        suggestions = await type_ahead(aggregator, args.term)
    else:
        suggestions = await aggregator.suggest(args.term)

    if args.select is None:
        if args.json:
            print(json.dumps([suggestion_to_dict(s) for s in suggestions], indent=2))
        else:
            print(format_suggestions(aggregator, suggestions))
        return 0

    if not 0 <= args.select < len(suggestions):
        logger.error(f"No suggestion at position {args.select}")
        return 1

    result = await resolver.search(suggestions[args.select])
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        location = ""
        if result.latitude is not None and result.longitude is not None:
            location = f" ({result.latitude:.5f}, {result.longitude:.5f})"
        print(f"{result.name}{location}")
        if result.filter:
            for clause in result.filter.clauses:
                print(f"  where {clause}")
    return 0


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="campus-search: Campus autocomplete and search resolution",
    )

    parser.add_argument("term", help="Text to search for")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("datasette.yaml"),
        help="Path to config file (default: datasette.yaml)",
    )
    parser.add_argument(
        "--select",
        type=int,
        help="Resolve the suggestion at this position",
    )
    parser.add_argument(
        "--as-you-type",
        action="store_true",
        help="Issue a request per keystroke, keeping only in-order responses",
    )
    parser.add_argument(
        "--locations-only",
        action="store_true",
        help="Skip filter and space suggestions",
    )
    parser.add_argument(
        "--on-campus-only",
        action="store_true",
        help="Skip off-campus location suggestions",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print JSON instead of text",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = CampusSearchConfig.from_yaml(args.config)
    if args.locations_only:
        config.search.locations_only = True
    if args.on_campus_only:
        config.search.on_campus_locations_only = True

    try:
        return asyncio.run(run_search(args, config))
    except LocationUnavailableError as e:
        logger.debug("Location lookup failed", exc_info=True)
        print(e.user_message, file=sys.stderr)
        return 1
    except SearchError:
        logger.exception("Search failed")
        print(USER_FACING_MESSAGE, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
