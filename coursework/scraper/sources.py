"""Configured listing sources: journal replication archives on Dataverse."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import httpx

from coursework.errors import UnknownSourceError
from coursework.scraper.collector import collect
from coursework.scraper.models import Collection

logger = logging.getLogger(__name__)

_DATAVERSE_QUERY = "?q=&types=dataverses%3Adatasets&sort=dateSort&order=desc"


@dataclass(frozen=True)
class ListingSource:
    label: str
    base_endpoint: str
    page_count: int


SOURCES: Dict[str, ListingSource] = {
    "ajps": ListingSource(
        label="ajps",
        base_endpoint="https://dataverse.harvard.edu/dataverse/ajps" + _DATAVERSE_QUERY,
        page_count=65,
    ),
    "apsr": ListingSource(
        label="apsr",
        base_endpoint="https://dataverse.harvard.edu/dataverse/the_review" + _DATAVERSE_QUERY,
        page_count=54,
    ),
    "jop": ListingSource(
        label="jop",
        base_endpoint="https://dataverse.harvard.edu/dataverse/jop" + _DATAVERSE_QUERY,
        page_count=76,
    ),
}


def get_source(label: str) -> ListingSource:
    """Return the configured source named *label*."""
    try:
        return SOURCES[label]
    except KeyError:
        raise UnknownSourceError(label, sorted(SOURCES)) from None


def collect_source(
    source: ListingSource,
    page_count: Optional[int] = None,
    client: Optional[httpx.Client] = None,
) -> Collection:
    """Collect every page of *source* and tag the result with its label.

    *page_count* overrides the source's configured page count (useful for a
    quick partial run).
    """
    pages = source.page_count if page_count is None else page_count
    logger.info("collecting %s (%d page(s))", source.label, pages)
    return collect(source.base_endpoint, pages, client=client).labelled(source.label)


def collect_all(
    sources: Iterable[ListingSource],
    page_count: Optional[int] = None,
    client: Optional[httpx.Client] = None,
) -> List[Collection]:
    """Run :func:`collect_source` for each source, in order."""
    return [collect_source(s, page_count=page_count, client=client) for s in sources]
