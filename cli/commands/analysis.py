"""Analysis commands: replication trend plot and grouped regression."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer

from coursework.analysis.regression import fits_by_group, plot_residuals, tidy
from coursework.analysis.replication import (
    count_by_year,
    plot_counts_by_year,
    read_collection_csv,
)
from coursework.config import settings
from coursework.errors import CourseworkError


def replication_plot(
    input: Path = typer.Option(..., "--input", exists=True, dir_okay=False, help="CSV written by 'scrape'."),
    before: int = typer.Option(2022, help="Keep only years strictly before this one."),
    output: Optional[Path] = typer.Option(
        None, help="PNG path (defaults to <output_dir>/replication_by_year.png)."
    ),
) -> None:
    """Count datasets per year and journal, then plot the trend."""
    try:
        counts = count_by_year(read_collection_csv(input), before=before)
    except CourseworkError as exc:
        typer.echo(f"[replication-plot] {exc}")
        raise typer.Exit(1)

    if counts.empty:
        typer.echo("[replication-plot] No dated rows to plot.")
        raise typer.Exit(1)

    typer.echo(counts.to_string(index=False))
    path = output or settings.output_dir / "replication_by_year.png"
    written = plot_counts_by_year(counts, path)
    typer.echo(f"[replication-plot] Saved {written}")


def regress(
    input: Path = typer.Option(..., "--input", exists=True, dir_okay=False, help="CSV with the model variables."),
    y: str = typer.Option(..., "--y", help="Response column."),
    x: List[str] = typer.Option(..., "--x", help="Predictor column (repeatable)."),
    by: str = typer.Option(..., "--by", help="Column to group by; one model per value."),
    plot: Optional[Path] = typer.Option(None, help="Save residual diagnostics to this PNG."),
) -> None:
    """Fit ``y ~ 1 + x`` within each group and print the coefficient table."""
    frame = pd.read_csv(input)
    try:
        fits = fits_by_group(frame, y, x, by)
    except CourseworkError as exc:
        typer.echo(f"[regress] {exc}")
        raise typer.Exit(1)

    if not fits:
        typer.echo("[regress] No group had enough complete rows to fit.")
        raise typer.Exit(1)

    typer.echo(tidy(fits, by=by).to_string(index=False))
    if plot is not None:
        written = plot_residuals(fits, plot)
        typer.echo(f"[regress] Saved {written}")
