"""Shared plotting helpers."""

from __future__ import annotations

from pathlib import Path
from typing import List

import matplotlib.pyplot as plt
from matplotlib import colormaps

from coursework.config import settings


def save_plot(fig: plt.Figure, path: Path | str) -> Path:
    """Write *fig* to *path* (creating parent directories) and close it."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, dpi=settings.figure_dpi)
    plt.close(fig)
    return out_path


def viridis_colors(n: int) -> List[tuple]:
    """Return *n* evenly spaced colours from the viridis palette."""
    cmap = colormaps["viridis"]
    if n <= 1:
        return [cmap(0.0)]
    # Stop short of the pale yellow end so lines stay visible on white.
    return [cmap(i / (n - 1) * 0.9) for i in range(n)]
