"""Data models for the listing scraper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass
class ItemRecord:
    """One entry extracted from a listing page.

    ``year`` is ``None`` when ``raw_date`` holds no four-digit run.
    """

    title: str
    raw_date: str
    year: Optional[str] = None


@dataclass
class PageSuccess:
    page: int
    url: str
    records: List[ItemRecord] = field(default_factory=list)


@dataclass
class PageFailure:
    page: int
    url: str
    reason: str


PageResult = Union[PageSuccess, PageFailure]


@dataclass
class Collection:
    """Records gathered across every page of one listing.

    ``source_label`` stays ``None`` until :meth:`labelled` is called, once,
    after all pages have been processed.  ``failures`` is a diagnostic side
    channel and never contributes rows.
    """

    records: List[ItemRecord] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)
    source_label: Optional[str] = None

    @property
    def failed_pages(self) -> int:
        return len(self.failures)

    def labelled(self, source_label: str) -> "Collection":
        """Return a copy of this collection tagged with *source_label*."""
        if self.source_label is not None:
            raise ValueError(f"collection already labelled {self.source_label!r}")
        return Collection(
            records=list(self.records),
            failures=list(self.failures),
            source_label=source_label,
        )

    def rows(self) -> List[dict]:
        """Flatten to ``title, raw_date, year, source_label`` dicts."""
        return [
            {
                "title": r.title,
                "raw_date": r.raw_date,
                "year": r.year,
                "source_label": self.source_label,
            }
            for r in self.records
        ]

    def __len__(self) -> int:
        return len(self.records)
