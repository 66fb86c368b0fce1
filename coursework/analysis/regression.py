"""Split-apply-combine linear regression.

One ordinary least squares model ``y ~ 1 + x1 + ... + xk`` is fitted per
group with numpy, and the coefficients are collected into a tidy frame
(one row per group and term).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from coursework.analysis.plots import save_plot
from coursework.errors import MissingColumnsError

logger = logging.getLogger(__name__)

INTERCEPT = "intercept"


@dataclass
class OlsFit:
    terms: List[str]
    coefficients: np.ndarray
    std_errors: np.ndarray
    fitted: np.ndarray
    residuals: np.ndarray
    r_squared: float
    n: int

    @property
    def t_values(self) -> np.ndarray:
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.coefficients / self.std_errors


def _model_frame(frame: pd.DataFrame, y: str, x: Sequence[str]) -> pd.DataFrame:
    missing = [c for c in [y, *x] if c not in frame.columns]
    if missing:
        raise MissingColumnsError(missing, "regression input")
    data = frame[[y, *x]].apply(pd.to_numeric, errors="coerce")
    return data.dropna()


def fit_ols(frame: pd.DataFrame, y: str, x: Sequence[str]) -> OlsFit:
    """Fit ``y ~ 1 + x`` on the complete rows of *frame*.

    Raises:
        MissingColumnsError: If *y* or any of *x* is not a column.
        ValueError: If there are not more complete rows than parameters.
    """
    x = list(x)
    data = _model_frame(frame, y, x)
    n, p = len(data), len(x) + 1
    if n <= p:
        raise ValueError(f"need more than {p} complete row(s) to fit {p} parameter(s), got {n}")

    design = np.column_stack([np.ones(n), data[x].to_numpy(dtype=float)])
    response = data[y].to_numpy(dtype=float)
    coefficients, *_ = np.linalg.lstsq(design, response, rcond=None)

    fitted = design @ coefficients
    residuals = response - fitted
    ss_res = float(residuals @ residuals)
    centred = response - response.mean()
    ss_tot = float(centred @ centred)

    sigma2 = ss_res / (n - p)
    covariance = sigma2 * np.linalg.pinv(design.T @ design)
    std_errors = np.sqrt(np.clip(np.diag(covariance), 0, None))

    return OlsFit(
        terms=[INTERCEPT, *x],
        coefficients=coefficients,
        std_errors=std_errors,
        fitted=fitted,
        residuals=residuals,
        r_squared=1 - ss_res / ss_tot if ss_tot > 0 else math.nan,
        n=n,
    )


def fits_by_group(
    frame: pd.DataFrame, y: str, x: Sequence[str], by: str
) -> Dict[object, OlsFit]:
    """Fit one model per value of *by*; groups too small to fit are skipped."""
    if by not in frame.columns:
        raise MissingColumnsError([by], "regression input")
    _model_frame(frame, y, x)

    fits: Dict[object, OlsFit] = {}
    for key, group in frame.groupby(by, sort=True):
        try:
            fits[key] = fit_ols(group, y, x)
        except ValueError as exc:
            logger.warning("skipping group %r: %s", key, exc)
    return fits


def tidy(fits: Dict[object, OlsFit], by: str = "group") -> pd.DataFrame:
    """One row per (group, term) with estimate, std_error, t_value, n and r_squared."""
    rows = []
    for key, fit in fits.items():
        for term, est, se, t in zip(fit.terms, fit.coefficients, fit.std_errors, fit.t_values):
            rows.append(
                {
                    by: key,
                    "term": term,
                    "estimate": float(est),
                    "std_error": float(se),
                    "t_value": float(t),
                    "n": fit.n,
                    "r_squared": fit.r_squared,
                }
            )
    return pd.DataFrame(
        rows, columns=[by, "term", "estimate", "std_error", "t_value", "n", "r_squared"]
    )


def fit_by_group(frame: pd.DataFrame, y: str, x: Sequence[str], by: str) -> pd.DataFrame:
    """Nest *frame* by *by*, fit ``y ~ 1 + x`` in each group, return the tidy table."""
    return tidy(fits_by_group(frame, y, x, by), by=by)


def plot_residuals(fits: Dict[object, OlsFit], path: Path | str, ncols: int = 3) -> Path:
    """Residuals-vs-fitted panel for each group, saved to *path*."""
    if not fits:
        raise ValueError("no fitted groups to plot")
    ncols = max(1, min(ncols, len(fits)))
    nrows = math.ceil(len(fits) / ncols)
    fig, axes = plt.subplots(
        nrows, ncols, figsize=(4 * ncols, 3 * nrows), squeeze=False
    )
    flat = axes.ravel()
    for ax, (key, fit) in zip(flat, fits.items()):
        ax.scatter(fit.fitted, fit.residuals, s=8, alpha=0.6)
        ax.axhline(0, color="0.4", linewidth=0.8, linestyle="--")
        ax.set_title(f"{key} (n={fit.n})")
        ax.set_xlabel("fitted")
        ax.set_ylabel("residual")
    for ax in flat[len(fits):]:
        ax.set_visible(False)
    return save_plot(fig, path)
