"""Paginated collection: fetch every page of a listing, keep what parses.

Each page is processed through :func:`safely`, which turns any exception into
a :class:`PageFailure` instead of letting it unwind the loop.  The page
outcomes are then folded into a single :class:`Collection`: successful
records concatenated in page order, failures kept aside as diagnostics.
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import Callable, Iterable, List, Optional

import httpx

from coursework.config import settings
from coursework.scraper.extractor import DATE_SELECTOR, TITLE_SELECTOR, extract_items
from coursework.scraper.fetcher import fetch_url, make_client, page_url
from coursework.scraper.models import (
    Collection,
    ItemRecord,
    PageFailure,
    PageResult,
    PageSuccess,
)

logger = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    return f"{type(exc).__name__}: {exc}"


def safely(
    func: Callable[..., List[ItemRecord]],
) -> Callable[..., PageResult]:
    """Wrap a page extractor so it returns a :class:`PageResult`, never raises.

    The wrapped callable takes ``(page, url, *args, **kwargs)``; *func* is
    called with ``(url, *args, **kwargs)``.
    """

    @wraps(func)
    def wrapper(page: int, url: str, *args, **kwargs) -> PageResult:
        try:
            records = func(url, *args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            return PageFailure(page=page, url=url, reason=_describe(exc))
        return PageSuccess(page=page, url=url, records=list(records))

    return wrapper


def scrape_page(
    url: str,
    client: httpx.Client,
    title_selector: str = TITLE_SELECTOR,
    date_selector: str = DATE_SELECTOR,
) -> List[ItemRecord]:
    """Fetch *url* and extract its item records."""
    raw = fetch_url(url, client=client)
    return extract_items(raw, title_selector=title_selector, date_selector=date_selector)


def fold_results(results: Iterable[PageResult]) -> Collection:
    """Concatenate successful records in page order; gather failures."""
    ordered = sorted(results, key=lambda r: r.page)
    records: List[ItemRecord] = []
    failures: List[PageFailure] = []
    for result in ordered:
        if isinstance(result, PageFailure):
            failures.append(result)
        else:
            records.extend(result.records)
    return Collection(records=records, failures=failures)


def collect(
    base_endpoint: str,
    page_count: int,
    *,
    client: Optional[httpx.Client] = None,
    title_selector: str = TITLE_SELECTOR,
    date_selector: str = DATE_SELECTOR,
    delay: Optional[float] = None,
) -> Collection:
    """Collect item records from pages 1..*page_count* of *base_endpoint*.

    Pages are requested one at a time in increasing order.  A page that
    fails to fetch or parse contributes no rows and is recorded in
    :attr:`Collection.failures`; the run always returns.

    Args:
        base_endpoint: Listing URL; see :func:`~coursework.scraper.fetcher.page_url`.
        page_count: Number of sequential pages to request, at least 1.
        client: Optional open ``httpx.Client`` to reuse.  One is created
            (and closed) for the run when omitted.
        title_selector: CSS selector for item titles.
        date_selector: CSS selector for item dates.
        delay: Seconds to wait between requests.  Defaults to
            ``settings.rate_limit_delay``.

    Returns:
        An unlabelled :class:`Collection`.

    Raises:
        ValueError: If *page_count* is less than 1.
    """
    if page_count < 1:
        raise ValueError(f"page_count must be >= 1, got {page_count}")

    if client is None:
        with make_client() as own_client:
            return collect(
                base_endpoint,
                page_count,
                client=own_client,
                title_selector=title_selector,
                date_selector=date_selector,
                delay=delay,
            )

    pause = settings.rate_limit_delay if delay is None else delay
    scrape = safely(scrape_page)
    results: List[PageResult] = []

    for page in range(1, page_count + 1):
        if page > 1 and pause > 0:
            time.sleep(pause)
        url = page_url(base_endpoint, page)
        logger.debug("fetching page %d: %s", page, url)
        result = scrape(
            page,
            url,
            client,
            title_selector=title_selector,
            date_selector=date_selector,
        )
        if isinstance(result, PageFailure):
            logger.warning("page %d failed (%s): %s", page, url, result.reason)
        results.append(result)

    collection = fold_results(results)
    logger.info(
        "collected %d record(s) from %d page(s), %d failed",
        len(collection),
        page_count,
        collection.failed_pages,
    )
    return collection
