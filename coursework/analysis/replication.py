"""Tabular summaries of scraped replication archives.

Turns labelled :class:`~coursework.scraper.models.Collection` objects into
pandas frames, counts datasets per year and journal, and draws the trend.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Union

import matplotlib.pyplot as plt
import pandas as pd

from coursework.analysis.plots import save_plot, viridis_colors
from coursework.errors import MissingColumnsError
from coursework.scraper.models import Collection

logger = logging.getLogger(__name__)

COLUMNS = ["title", "raw_date", "year", "source_label"]


def _require(frame: pd.DataFrame, columns: Iterable[str], context: str) -> None:
    missing = [c for c in columns if c not in frame.columns]
    if missing:
        raise MissingColumnsError(missing, context)


def collection_to_frame(collection: Collection) -> pd.DataFrame:
    """Return the rows of *collection* as a frame with :data:`COLUMNS`."""
    frame = pd.DataFrame(collection.rows(), columns=COLUMNS)
    return frame.astype({"title": "string", "raw_date": "string", "year": "string", "source_label": "string"})


def combine_collections(
    items: Iterable[Union[Collection, pd.DataFrame]],
) -> pd.DataFrame:
    """Stack several collections (or frames built from them) into one frame."""
    frames = [
        collection_to_frame(item) if isinstance(item, Collection) else item
        for item in items
    ]
    if not frames:
        return collection_to_frame(Collection())
    for frame in frames:
        _require(frame, COLUMNS, "collection frame")
    return pd.concat([f[COLUMNS] for f in frames], ignore_index=True)


def write_collection_csv(frame: pd.DataFrame, path: Path | str) -> Path:
    """Write *frame* as CSV with a header row; missing years are empty cells."""
    _require(frame, COLUMNS, "collection frame")
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    frame[COLUMNS].to_csv(out_path, index=False)
    logger.info("wrote %d row(s) to %s", len(frame), out_path)
    return out_path


def read_collection_csv(path: Path | str) -> pd.DataFrame:
    frame = pd.read_csv(path, dtype="string", keep_default_na=False, na_values=[""])
    _require(frame, COLUMNS, str(path))
    return frame[COLUMNS]


def count_by_year(frame: pd.DataFrame, before: int | None = 2022) -> pd.DataFrame:
    """Count rows per ``(year, source_label)``.

    Rows without a year are dropped.  When *before* is given only years
    strictly earlier than it are kept (the current year is usually partial).

    Returns:
        A frame with columns ``year`` (int), ``source_label`` and ``n``,
        sorted by year then label.
    """
    _require(frame, ["year", "source_label"], "collection frame")
    dated = frame.dropna(subset=["year"]).copy()
    dated["year"] = dated["year"].astype(int)
    if before is not None:
        dated = dated.loc[dated["year"] < before]
    counts = (
        dated.groupby(["year", "source_label"])
        .size()
        .reset_index(name="n")
        .sort_values(["year", "source_label"], ignore_index=True)
    )
    return counts


def plot_counts_by_year(counts: pd.DataFrame, path: Path | str) -> Path:
    """Draw one point-and-line series per source and save it to *path*."""
    _require(counts, ["year", "source_label", "n"], "count frame")
    labels = sorted(counts["source_label"].unique())
    fig, ax = plt.subplots(figsize=(8, 5))
    for label, color in zip(labels, viridis_colors(len(labels))):
        series = counts.loc[counts["source_label"] == label].sort_values("year")
        ax.plot(series["year"], series["n"], marker="o", color=color, label=label)
    ax.set_xlabel("year")
    ax.set_ylabel("n")
    ax.grid(True, color="0.9")
    ax.legend(title="journal")
    return save_plot(fig, path)
