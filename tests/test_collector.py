"""Tests for paginated collection and per-page failure isolation."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest
import respx

from coursework.errors import UnknownSourceError
from coursework.scraper.collector import collect, fold_results, safely
from coursework.scraper.models import (
    Collection,
    ItemRecord,
    PageFailure,
    PageSuccess,
)
from coursework.scraper.sources import (
    SOURCES,
    ListingSource,
    collect_all,
    collect_source,
    get_source,
)

BASE = "https://example.com/list/{page}"


def _card(title: str, date: str) -> str:
    return (
        f'<div class="card-title-icon-block">{title}</div>'
        '<div class="text-center"></div>'
        f'<div class="text-muted">{date}</div>'
    )


def _page(*pairs: tuple[str, str]) -> str:
    return "<html><body>" + "".join(_card(t, d) for t, d in pairs) + "</body></html>"


def _mock_pages(pages: dict[int, httpx.Response | Exception]) -> None:
    for index, outcome in pages.items():
        route = respx.get(BASE.format(page=index))
        if isinstance(outcome, Exception):
            route.mock(side_effect=outcome)
        else:
            route.mock(return_value=outcome)


# ---------------------------------------------------------------------------
# safely / fold_results
# ---------------------------------------------------------------------------

class TestSafely:
    def test_success_is_wrapped(self) -> None:
        wrapped = safely(lambda url: [ItemRecord("t", "2020", "2020")])
        result = wrapped(1, "https://example.com/1")

        assert isinstance(result, PageSuccess)
        assert result.page == 1
        assert result.records == [ItemRecord("t", "2020", "2020")]

    def test_exception_becomes_failure(self) -> None:
        def boom(url: str) -> list[ItemRecord]:
            raise RuntimeError("parse exploded")

        result = safely(boom)(2, "https://example.com/2")

        assert isinstance(result, PageFailure)
        assert result.page == 2
        assert result.reason == "RuntimeError: parse exploded"

    def test_extra_arguments_are_forwarded(self) -> None:
        seen = {}

        def extractor(url: str, client: object, title_selector: str = "") -> list[ItemRecord]:
            seen.update(url=url, client=client, title_selector=title_selector)
            return []

        safely(extractor)(1, "u", "client", title_selector="h3")
        assert seen == {"url": "u", "client": "client", "title_selector": "h3"}


class TestFoldResults:
    def test_concatenates_successes_in_page_order(self) -> None:
        results = [
            PageSuccess(3, "u3", [ItemRecord("c", "")]),
            PageFailure(2, "u2", "boom"),
            PageSuccess(1, "u1", [ItemRecord("a", ""), ItemRecord("b", "")]),
        ]
        collection = fold_results(results)

        assert [r.title for r in collection.records] == ["a", "b", "c"]
        assert [f.page for f in collection.failures] == [2]
        assert collection.source_label is None


# ---------------------------------------------------------------------------
# collect
# ---------------------------------------------------------------------------

class TestCollect:
    def test_all_pages_succeed(self) -> None:
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=_page(("A", "Dec 2021"), ("B", "Nov 2021"))),
                2: httpx.Response(200, text=_page(("C", "n/a"))),
            })
            collection = collect(BASE, 2)

        assert [r.title for r in collection.records] == ["A", "B", "C"]
        assert [r.year for r in collection.records] == ["2021", "2021", None]
        assert collection.failed_pages == 0

    def test_failed_middle_page_is_isolated(self) -> None:
        """Three pages, page 2 fails, pages 1 and 3 have two pairs each → 4 rows."""
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=_page(("p1-a", "2019"), ("p1-b", "2018"))),
                2: httpx.Response(500, text="server error"),
                3: httpx.Response(200, text=_page(("p3-a", "2017"), ("p3-b", "2016"))),
            })
            collection = collect(BASE, 3)

        assert len(collection) == 4
        assert not any(r.title.startswith("p2") for r in collection.records)
        assert [r.title for r in collection.records] == ["p1-a", "p1-b", "p3-a", "p3-b"]
        assert collection.failed_pages == 1
        failure = collection.failures[0]
        assert failure.page == 2
        assert failure.url == "https://example.com/list/2"
        assert "HTTPStatusError" in failure.reason

    def test_every_page_failing_returns_empty_collection(self) -> None:
        with respx.mock:
            _mock_pages({
                1: httpx.ConnectError("refused"),
                2: httpx.ReadTimeout("too slow"),
            })
            collection = collect(BASE, 2)

        assert len(collection) == 0
        assert collection.records == []
        assert collection.failed_pages == 2

    def test_timeout_is_a_page_failure(self) -> None:
        with respx.mock:
            _mock_pages({
                1: httpx.ConnectTimeout("timed out"),
                2: httpx.Response(200, text=_page(("B", "2020"))),
            })
            collection = collect(BASE, 2)

        assert [r.title for r in collection.records] == ["B"]
        assert "ConnectTimeout" in collection.failures[0].reason

    def test_malformed_page_is_rejected_consistently(self) -> None:
        malformed = (
            "<html><body>"
            + _card("A", "2020")
            + _card("B", "2021")
            + '<div class="card-title-icon-block">C</div>'
            + "</body></html>"
        )
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=malformed),
                2: httpx.Response(200, text=_page(("D", "2022"))),
            })
            first = collect(BASE, 2)
            second = collect(BASE, 2)

        for collection in (first, second):
            assert [r.title for r in collection.records] == ["D"]
            assert collection.failures[0].page == 1
            assert "MalformedPageError" in collection.failures[0].reason

    def test_row_count_bounded_by_pairs(self) -> None:
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=_page(("A", "2020"), ("B", "2020"))),
                2: httpx.Response(404),
                3: httpx.Response(200, text=_page()),
            })
            collection = collect(BASE, 3)

        assert len(collection) <= 2
        assert len(collection) == 2

    def test_repeated_runs_are_identical(self) -> None:
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=_page(("A", "2020"), ("B", "2019"))),
                2: httpx.Response(200, text=_page(("C", "2018"))),
            })
            first = collect(BASE, 2)
            second = collect(BASE, 2)

        assert first.records == second.records

    def test_template_with_literal_braces(self) -> None:
        with respx.mock:
            respx.get(host="example.com", path="/list/1").mock(
                return_value=httpx.Response(200, text=_page(("A", "2020")))
            )
            collection = collect("https://example.com/list/{page}?filter={x}", 1)

        assert [r.title for r in collection.records] == ["A"]
        assert collection.failed_pages == 0

    def test_query_parameter_endpoint(self) -> None:
        with respx.mock:
            respx.get("https://example.com/search", params={"page": "1"}).mock(
                return_value=httpx.Response(200, text=_page(("A", "2020")))
            )
            respx.get("https://example.com/search", params={"page": "2"}).mock(
                return_value=httpx.Response(200, text=_page(("B", "2021")))
            )
            collection = collect("https://example.com/search?q=", 2)

        assert [r.title for r in collection.records] == ["A", "B"]

    def test_requests_are_sequential_in_page_order(self) -> None:
        with respx.mock:
            _mock_pages({i: httpx.Response(200, text=_page()) for i in (1, 2, 3)})
            collect(BASE, 3)
            urls = [str(call.request.url) for call in respx.calls]

        assert urls == [BASE.format(page=i) for i in (1, 2, 3)]

    def test_sleeps_between_pages_only(self) -> None:
        with respx.mock:
            _mock_pages({i: httpx.Response(200, text=_page()) for i in (1, 2, 3)})
            with patch("coursework.scraper.collector.time.sleep") as mock_sleep:
                collect(BASE, 3, delay=0.5)

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.5)

    def test_zero_pages_rejected(self) -> None:
        with pytest.raises(ValueError):
            collect(BASE, 0)

    def test_failures_are_logged(self, caplog) -> None:
        with respx.mock:
            _mock_pages({1: httpx.Response(502)})
            with caplog.at_level("WARNING", logger="coursework.scraper.collector"):
                collect(BASE, 1)

        assert "page 1 failed" in caplog.text


# ---------------------------------------------------------------------------
# Labelling and configured sources
# ---------------------------------------------------------------------------

class TestLabelling:
    def test_labelled_sets_label_on_every_row(self) -> None:
        collection = Collection(records=[ItemRecord("A", "2020", "2020"), ItemRecord("B", "", None)])
        labelled = collection.labelled("ajps")

        assert {row["source_label"] for row in labelled.rows()} == {"ajps"}
        assert collection.source_label is None

    def test_label_is_set_once(self) -> None:
        labelled = Collection().labelled("ajps")
        with pytest.raises(ValueError):
            labelled.labelled("apsr")


class TestSources:
    def test_known_sources(self) -> None:
        assert set(SOURCES) == {"ajps", "apsr", "jop"}
        assert get_source("apsr").page_count == 54
        assert "the_review" in get_source("apsr").base_endpoint

    def test_unknown_source(self) -> None:
        with pytest.raises(UnknownSourceError):
            get_source("qje")

    def test_collect_source_labels_and_respects_page_override(self) -> None:
        source = ListingSource(label="demo", base_endpoint=BASE, page_count=50)
        with respx.mock:
            _mock_pages({
                1: httpx.Response(200, text=_page(("A", "2020"))),
                2: httpx.Response(200, text=_page(("B", "2021"))),
            })
            collection = collect_source(source, page_count=2)

        assert collection.source_label == "demo"
        assert len(collection) == 2

    def test_collect_all_keeps_sources_separate(self) -> None:
        first = ListingSource(label="one", base_endpoint="https://a.example.com/{page}", page_count=1)
        second = ListingSource(label="two", base_endpoint="https://b.example.com/{page}", page_count=1)
        with respx.mock:
            respx.get("https://a.example.com/1").mock(
                return_value=httpx.Response(200, text=_page(("A", "2020")))
            )
            respx.get("https://b.example.com/1").mock(side_effect=httpx.ConnectError("down"))
            collections = collect_all([first, second])

        assert [c.source_label for c in collections] == ["one", "two"]
        assert [len(c) for c in collections] == [1, 0]
        assert collections[1].failed_pages == 1
