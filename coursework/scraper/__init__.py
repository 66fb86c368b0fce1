"""Scraper package: paginated listing collection."""

from coursework.scraper.collector import collect, safely
from coursework.scraper.extractor import extract_items, extract_year
from coursework.scraper.fetcher import fetch_url, page_url
from coursework.scraper.models import (
    Collection,
    ItemRecord,
    PageFailure,
    PageSuccess,
    RawPage,
)
from coursework.scraper.sources import SOURCES, ListingSource, collect_source, get_source

__all__ = [
    "collect",
    "safely",
    "extract_items",
    "extract_year",
    "fetch_url",
    "page_url",
    "Collection",
    "ItemRecord",
    "PageFailure",
    "PageSuccess",
    "RawPage",
    "SOURCES",
    "ListingSource",
    "collect_source",
    "get_source",
]
