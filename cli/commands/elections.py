"""Election data commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from coursework.analysis.elections import (
    RESULTS_URL,
    build_election_table,
    load_immigration,
    load_population,
    load_unemployment,
    read_results,
    write_election_csv,
)
from coursework.config import settings
from coursework.errors import CourseworkError

elections_app = typer.Typer(help="Presidential election data.", no_args_is_help=True)


@elections_app.command("build")
def elections_build(
    results: str = typer.Option(RESULTS_URL, help="Results workbook path or URL."),
    population: Optional[Path] = typer.Option(None, help="INSEE population workbook."),
    unemployment: Optional[Path] = typer.Option(None, help="INSEE employment workbook."),
    immigration: Optional[Path] = typer.Option(None, help="INSEE immigration workbook."),
    output: Optional[Path] = typer.Option(None, help="CSV path (defaults to <output_dir>/data_pr.csv)."),
) -> None:
    """Reshape candidate results, join census shares and write the analysis CSV."""
    data_dir = settings.data_dir
    population = population or data_dir / "base-cc-evol-struct-pop-2019.xlsx"
    unemployment = unemployment or data_dir / "base-cc-emploi-pop-active-2019.xlsx"
    immigration = immigration or data_dir / "BTX_TD_IMG1A_2019.xlsx"

    for path in (population, unemployment, immigration):
        if not path.exists():
            typer.echo(f"[elections build] Missing input: {path}")
            raise typer.Exit(1)

    typer.echo("[elections build] Reading workbooks …")
    try:
        table = build_election_table(
            read_results(results),
            load_population(population),
            load_immigration(immigration),
            load_unemployment(unemployment),
        )
    except CourseworkError as exc:
        typer.echo(f"[elections build] {exc}")
        raise typer.Exit(1)

    typer.echo(f"[elections build] {len(table)} row(s), {table['candidate'].nunique()} candidate(s)")
    written = write_election_csv(table, output or settings.output_dir / "data_pr.csv")
    typer.echo(f"[elections build] Wrote {written}")
