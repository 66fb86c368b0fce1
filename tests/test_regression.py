"""Tests for grouped OLS fits and residual diagnostics."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from coursework.analysis.regression import (
    INTERCEPT,
    fit_by_group,
    fit_ols,
    fits_by_group,
    plot_residuals,
)
from coursework.errors import MissingColumnsError


@pytest.fixture
def panel() -> pd.DataFrame:
    rng = np.random.default_rng(0)
    x = np.linspace(0, 10, 40)
    frames = [
        pd.DataFrame({"country": "fr", "x": x, "y": 2 + 3 * x + rng.normal(0, 0.1, x.size)}),
        pd.DataFrame({"country": "de", "x": x, "y": -1 + 0.5 * x + rng.normal(0, 0.1, x.size)}),
    ]
    return pd.concat(frames, ignore_index=True)


class TestFitOls:
    def test_recovers_line(self, panel) -> None:
        fr = panel.loc[panel["country"] == "fr"]
        fit = fit_ols(fr, "y", ["x"])

        assert fit.terms == [INTERCEPT, "x"]
        assert fit.coefficients == pytest.approx([2, 3], abs=0.1)
        assert fit.r_squared > 0.99
        assert fit.n == 40
        assert fit.residuals.shape == (40,)

    def test_matches_polyfit(self, panel) -> None:
        de = panel.loc[panel["country"] == "de"]
        slope, intercept = np.polyfit(de["x"], de["y"], 1)
        fit = fit_ols(de, "y", ["x"])
        assert fit.coefficients == pytest.approx([intercept, slope])

    def test_standard_error_of_mean_model(self) -> None:
        frame = pd.DataFrame({"y": [1.0, 2.0, 3.0, 4.0, 5.0], "x": [0.0, 1.0, 0.0, 1.0, 0.0]})
        fit = fit_ols(frame, "y", [])
        assert fit.coefficients == pytest.approx([3.0])
        assert fit.std_errors == pytest.approx([np.std([1, 2, 3, 4, 5], ddof=1) / np.sqrt(5)])

    def test_drops_incomplete_rows(self) -> None:
        frame = pd.DataFrame({"y": [1, 2, 3, None, 5], "x": [1, 2, 3, 4, "n/a"]})
        fit = fit_ols(frame, "y", ["x"])
        assert fit.n == 3

    def test_too_few_rows(self) -> None:
        with pytest.raises(ValueError):
            fit_ols(pd.DataFrame({"y": [1, 2], "x": [1, 2]}), "y", ["x"])

    def test_missing_column(self) -> None:
        with pytest.raises(MissingColumnsError):
            fit_ols(pd.DataFrame({"y": [1, 2, 3]}), "y", ["x"])


class TestFitByGroup:
    def test_one_block_of_terms_per_group(self, panel) -> None:
        table = fit_by_group(panel, "y", ["x"], by="country")

        assert list(table.columns) == ["country", "term", "estimate", "std_error", "t_value", "n", "r_squared"]
        assert table["country"].tolist() == ["de", "de", "fr", "fr"]
        slopes = table.loc[table["term"] == "x"].set_index("country")["estimate"]
        assert slopes["fr"] == pytest.approx(3, abs=0.05)
        assert slopes["de"] == pytest.approx(0.5, abs=0.05)

    def test_small_groups_are_skipped(self, panel, caplog) -> None:
        tiny = pd.DataFrame({"country": ["lu", "lu"], "x": [1.0, 2.0], "y": [1.0, 2.0]})
        frame = pd.concat([panel, tiny], ignore_index=True)
        with caplog.at_level("WARNING", logger="coursework.analysis.regression"):
            fits = fits_by_group(frame, "y", ["x"], by="country")

        assert set(fits) == {"de", "fr"}
        assert "lu" in caplog.text

    def test_unknown_group_column(self, panel) -> None:
        with pytest.raises(MissingColumnsError):
            fit_by_group(panel, "y", ["x"], by="region")


def test_plot_residuals_writes_png(panel, tmp_path):
    fits = fits_by_group(panel, "y", ["x"], by="country")
    path = plot_residuals(fits, tmp_path / "resid.png")
    assert path.exists()


def test_plot_residuals_needs_fits(tmp_path):
    with pytest.raises(ValueError):
        plot_residuals({}, tmp_path / "resid.png")
