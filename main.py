# main.py

"""Entry point for the protein_match diagnosis CLI."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings
from src.models.preferences import (
    BODY_HINTS,
    BUDGET_TIERS,
    EXERCISE_LEVELS,
    FLAVOR_PREFERENCES,
    GOALS,
    TIMINGS,
)

logger = logging.getLogger("protein_match.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="protein_match",
        description="Protein powder recommendations from a short diagnosis.",
        epilog=f"Available sources: {valid_ids}",
    )
    # Answers are validated by the search service, not argparse
    parser.add_argument("--goal", default=None, help=f"One of: {', '.join(GOALS)}.")
    parser.add_argument(
        "--exercise",
        default=None,
        help=f"One of: {', '.join(EXERCISE_LEVELS)}.",
    )
    parser.add_argument(
        "--body",
        default="",
        help=f"Optional. One of: {', '.join(b for b in BODY_HINTS if b)}.",
    )
    parser.add_argument(
        "--budget",
        default=None,
        help=f"One of: {', '.join(BUDGET_TIERS)}.",
    )
    parser.add_argument(
        "--flavor",
        default=None,
        help=f"One of: {', '.join(FLAVOR_PREFERENCES)}.",
    )
    parser.add_argument(
        "--timing",
        default="",
        help=f"Optional. One of: {', '.join(t for t in TIMINGS if t)}.",
    )
    parser.add_argument(
        "--lactose-intolerant",
        action="store_true",
        default=False,
        dest="lactose_intolerant",
        help="Prefer products without milk-derived protein.",
    )
    parser.add_argument(
        "-s",
        "--sources",
        default=None,
        help="Comma-separated source IDs (default: all).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_false",
        default=True,
        dest="use_cache",
        help="Skip the result cache for this run.",
    )
    featured = parser.add_mutually_exclusive_group()
    featured.add_argument(
        "--featured",
        action="store_true",
        help="Show the cached featured catalog instead of diagnosing.",
    )
    featured.add_argument(
        "--refresh-featured",
        action="store_true",
        help="Re-run the featured category searches, cache and show them.",
    )
    return parser


def _answers_from_args(args: argparse.Namespace) -> dict[str, object]:
    return {
        "goal": args.goal,
        "exercise": args.exercise,
        "body": args.body,
        "budget": args.budget,
        "flavor": args.flavor,
        "timing": args.timing,
        "lactose_intolerant": args.lactose_intolerant,
    }


def main() -> None:
    """Parse the diagnosis flags, run one search and exit."""
    log_file = setup_logging()
    logger.info("protein_match starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    from src.cli.runner import cli_featured, cli_search

    try:
        if args.featured or args.refresh_featured:
            exit_code = asyncio.run(
                cli_featured(
                    refresh=args.refresh_featured,
                    source_csv=args.sources,
                    output_format=args.output_format,
                )
            )
        else:
            exit_code = asyncio.run(
                cli_search(
                    answers=_answers_from_args(args),
                    source_csv=args.sources,
                    output_format=args.output_format,
                    use_cache=args.use_cache,
                )
            )
    except Exception:
        logger.critical("Fatal error during CLI run", exc_info=True)
        raise
    finally:
        logger.info("protein_match shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
