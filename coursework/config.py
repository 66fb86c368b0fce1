"""Centralised settings for the coursework toolkit.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Input / output locations
    # ------------------------------------------------------------------
    data_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("COURSEWORK_DATA_DIR", "data"))
    )
    output_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("COURSEWORK_OUTPUT_DIR", "outputs"))
    )

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "0.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPER_USER_AGENT",
            "Mozilla/5.0 (compatible; stats-coursework/1.0)",
        )
    )

    # ------------------------------------------------------------------
    # Logging / figures
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("COURSEWORK_LOG_LEVEL", "INFO")
    )
    figure_dpi: int = field(
        default_factory=lambda: int(os.environ.get("FIGURE_DPI", "200"))
    )


# Module-level singleton, import this everywhere:
#   from coursework.config import settings
settings = Settings()
