# src/cli/runner.py

"""Headless CLI search runner that drives the async search service."""

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.errors import PreferenceValidationError
from src.models.product import ScoredProduct
from src.services.search_orchestrator import (
    FeaturedResult,
    ProductSearchService,
    SearchResult,
)
from src.storage.cache_store import FileCacheStore

logger = logging.getLogger("protein_match.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def resolve_sources(
    source_csv: str | None,
) -> list[dict[str, str]]:
    """Map a comma-separated list of source IDs to their config dicts.

    Returns all sources when *source_csv* is ``None``.
    Raises ``SystemExit`` on unknown IDs.
    """
    available = {
        s["id"]: s for s in Settings.AVAILABLE_SOURCES
    }
    if source_csv is None:
        return Settings.AVAILABLE_SOURCES

    requested = [
        s.strip() for s in source_csv.split(",") if s.strip()
    ]
    unknown = [r for r in requested if r not in available]
    if unknown:
        valid = ", ".join(sorted(available))
        _err.print(
            f"[red]Unknown source(s): {', '.join(unknown)}[/red]"
        )
        _err.print(f"[dim]Available: {valid}[/dim]")
        raise SystemExit(1)

    return [available[r] for r in requested]


def _print_table(products: list[ScoredProduct]) -> None:
    """Render a Rich table of ranked products to stdout."""
    table = Table(
        title="おすすめプロテイン",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=50)
    table.add_column("Type", style="magenta")
    table.add_column("Protein", justify="right")
    table.add_column("¥/serving", justify="right", style="green")
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Reason", style="dim")

    for sp in products:
        p = sp.product
        table.add_row(
            str(sp.rank),
            f"{p.brand} / {p.name[:44]}",
            p.protein_type.value,
            f"{p.nutrition.protein_grams:g}g",
            f"¥{p.price_per_serving:,}",
            f"{sp.score:.0f}",
            sp.match_reason or "-",
        )

    Console().print(table)


def _report_status(result: SearchResult) -> None:
    """Summarise source health and cache state on stderr."""
    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")
    if result.fallback:
        _err.print("[yellow]All sources failed, showing curated picks.[/yellow]")
    elif result.stale:
        _err.print(
            f"[yellow]All sources failed, showing cached results "
            f"from {result.last_updated}.[/yellow]"
        )
    elif result.from_cache:
        _err.print("[dim]Served from cache.[/dim]")
    elif result.partial:
        _err.print(
            f"[yellow]Partial results: "
            f"{', '.join(result.sources_failed)} unavailable.[/yellow]"
        )


async def cli_search(
    answers: dict[str, Any],
    source_csv: str | None,
    output_format: str,
    use_cache: bool = True,
) -> int:
    """Run a headless diagnosis search and return an exit code (0=ok, 1=fail)."""
    sources = resolve_sources(source_csv)
    service = ProductSearchService(cache=FileCacheStore())

    source_labels = ", ".join(s["label"] for s in sources)
    _err.print(f"[bold]Diagnosing:[/bold] [dim]sources={source_labels}[/dim]")

    try:
        result = await service.search(answers, sources, use_cache=use_cache)
    except PreferenceValidationError as exc:
        logger.warning("Rejected answers: %s", exc)
        for problem in exc.problems:
            _err.print(f"[red]{problem}[/red]")
        return 1

    _report_status(result)

    if not result.products:
        _err.print("[yellow]No products matched.[/yellow]")
        return 1

    _err.print(
        f"[green]✓ {len(result.products)} picks"
        f" of {result.total_found} for '{result.query}'[/green]"
    )

    if output_format == "table":
        _print_table(result.products)
    else:
        json.dump(
            result.to_dict(),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    return 0


def _print_featured(result: FeaturedResult) -> None:
    """One Rich table per featured category."""
    console = Console()
    for shelf in result.categories:
        table = Table(title=shelf.name, title_style="bold cyan")
        table.add_column("Product", max_width=50)
        table.add_column("Type", style="magenta")
        table.add_column("¥/serving", justify="right", style="green")
        table.add_column("Reviews", justify="right")
        for p in shelf.products:
            table.add_row(
                f"{p.brand} / {p.name[:44]}",
                p.protein_type.value,
                f"¥{p.price_per_serving:,}",
                f"{p.review_average:.1f} ({p.review_count:,})",
            )
        console.print(table)


async def cli_featured(
    refresh: bool,
    source_csv: str | None,
    output_format: str,
) -> int:
    """Show (or rebuild, then show) the featured catalog; exit 1 when empty."""
    service = ProductSearchService(cache=FileCacheStore())

    if refresh:
        sources = resolve_sources(source_csv)
        _err.print("[bold]Refreshing featured catalog...[/bold]")
        result = await service.refresh_featured(sources)
        for error_msg in result.errors:
            _err.print(f"[red]Error: {error_msg}[/red]")
    else:
        result = service.featured()

    if result.fallback:
        _err.print("[yellow]Featured catalog unavailable, showing curated picks.[/yellow]")
    elif result.stale:
        _err.print(
            f"[yellow]Featured catalog is stale (updated {result.last_updated}).[/yellow]"
        )

    if not result.total_products:
        _err.print("[yellow]No featured products.[/yellow]")
        return 1

    if output_format == "table":
        _print_featured(result)
    else:
        json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
        sys.stdout.write("\n")
    return 0
