"""Coursework CLI: entry-point for the course scripts.

Usage:
    python cli/main.py --help

Commands:
    scrape            → collect journal replication listings into CSV
    replication-plot  → datasets per year and journal
    elections build   → reshape and join the election workbook
    regress           → one linear model per group
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from coursework.xxx import
# ...` works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import logging
from typing import Optional

import typer

from cli.commands.analysis import regress, replication_plot
from cli.commands.elections import elections_app
from coursework.config import settings
from coursework.errors import CourseworkError

app = typer.Typer(
    name="coursework",
    help="Statistics coursework scripts.",
    no_args_is_help=True,
)
app.add_typer(elections_app, name="elections")
app.command("replication-plot")(replication_plot)
app.command("regress")(regress)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages."),
) -> None:
    """Configure logging for every command."""
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    source: str = typer.Option("all", help="Source label (ajps | apsr | jop) or 'all'."),
    pages: Optional[int] = typer.Option(
        None, min=1, help="Pages per source (defaults to each source's full listing)."
    ),
    output: Optional[Path] = typer.Option(
        None, help="CSV path (defaults to <output_dir>/replication.csv)."
    ),
) -> None:
    """Collect listing pages, label them by journal and write one CSV."""
    from coursework.analysis.replication import combine_collections, write_collection_csv
    from coursework.scraper.sources import SOURCES, collect_all, get_source

    try:
        selected = list(SOURCES.values()) if source == "all" else [get_source(source)]
    except CourseworkError as exc:
        typer.echo(f"[scrape] {exc}")
        raise typer.Exit(1)

    labels = ", ".join(s.label for s in selected)
    typer.echo(f"[scrape] Collecting {labels} …")
    collections = collect_all(selected, page_count=pages)

    for collection in collections:
        typer.echo(
            f"[scrape] {collection.source_label}: {len(collection)} record(s), "
            f"{collection.failed_pages} failed page(s)"
        )

    path = output or settings.output_dir / "replication.csv"
    written = write_collection_csv(combine_collections(collections), path)
    typer.echo(f"[scrape] Wrote {written}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
