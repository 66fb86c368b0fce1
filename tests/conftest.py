"""Shared pytest configuration."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch):
    """Never sleep between page requests in tests."""
    monkeypatch.setattr("coursework.config.settings.rate_limit_delay", 0.0)


@pytest.fixture
def output_dir(tmp_path, monkeypatch):
    """Point ``settings.output_dir`` at a per-test directory."""
    out = tmp_path / "outputs"
    monkeypatch.setattr("coursework.config.settings.output_dir", out)
    return out
