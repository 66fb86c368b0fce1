"""HTTP fetcher for listing pages."""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx

from coursework.config import settings
from coursework.scraper.models import RawPage


def _default_headers() -> dict[str, str]:
    return {"User-Agent": settings.user_agent}


def make_client() -> httpx.Client:
    """Return an ``httpx.Client`` configured from ``settings``.

    The timeout applies to every request made through the client, so a page
    that never answers fails instead of blocking the run.  httpx applies it
    to each phase (connect, read, write, pool) separately, so a server that
    keeps trickling bytes can take longer than ``request_timeout`` in total.
    """
    return httpx.Client(
        headers=_default_headers(),
        timeout=settings.request_timeout,
        follow_redirects=True,
    )


def page_url(base_endpoint: str, page: int) -> str:
    """Build the address of listing page *page* (1-based).

    A ``{page}`` placeholder in *base_endpoint* is substituted as plain
    text, so other braces in the address are left alone; otherwise the
    ``page`` query parameter is set, replacing any existing value and
    keeping the rest of the query string.
    """
    if "{page}" in base_endpoint:
        return base_endpoint.replace("{page}", str(page))
    parsed = urlparse(base_endpoint)
    params = dict(parse_qsl(parsed.query, keep_blank_values=True))
    params["page"] = str(page)
    return urlunparse(parsed._replace(query=urlencode(params)))


def fetch_url(url: str, client: Optional[httpx.Client] = None) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    When *client* is given it is reused (and left open); otherwise a
    short-lived client is created for this one request.

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
        httpx.TimeoutException: If the request exceeds ``settings.request_timeout``.
    """
    if client is None:
        with make_client() as own_client:
            return fetch_url(url, client=own_client)

    response = client.get(url)
    response.raise_for_status()
    return RawPage(url=url, html=response.text, status_code=response.status_code)
