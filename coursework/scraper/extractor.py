"""Item extraction: turns a :class:`RawPage` into :class:`ItemRecord` rows."""

from __future__ import annotations

import re
from typing import List, Optional

from bs4 import BeautifulSoup

from coursework.errors import MalformedPageError
from coursework.scraper.models import ItemRecord, RawPage

# Dataverse search cards: the dataset title block and the muted date line
# that follows the centred thumbnail.
TITLE_SELECTOR = ".card-title-icon-block"
DATE_SELECTOR = ".text-center + .text-muted"

_YEAR_RE = re.compile(r"\d{4}")


def extract_year(raw_date: Optional[str]) -> Optional[str]:
    """Return the first run of four consecutive digits in *raw_date*, or ``None``."""
    if not raw_date:
        return None
    match = _YEAR_RE.search(raw_date)
    return match.group(0) if match else None


def _texts(soup: BeautifulSoup, selector: str) -> List[str]:
    return [el.get_text() for el in soup.select(selector)]


def extract_items(
    raw: RawPage,
    title_selector: str = TITLE_SELECTOR,
    date_selector: str = DATE_SELECTOR,
) -> List[ItemRecord]:
    """Pair the i-th title element with the i-th date element of *raw*.

    Text is kept as displayed (no whitespace normalisation).  A page with no
    matching elements yields an empty list.

    Raises:
        MalformedPageError: If the title and date element counts differ.  The
            whole page is rejected; nothing is paired.
    """
    soup = BeautifulSoup(raw.html, "html.parser")
    titles = _texts(soup, title_selector)
    dates = _texts(soup, date_selector)

    if len(titles) != len(dates):
        raise MalformedPageError(raw.url, len(titles), len(dates))

    return [
        ItemRecord(title=title, raw_date=date, year=extract_year(date))
        for title, date in zip(titles, dates)
    ]
