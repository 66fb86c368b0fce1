"""Exception types raised by the coursework toolkit."""

from __future__ import annotations


class CourseworkError(Exception):
    """Base class for every error the toolkit raises on purpose."""


class MalformedPageError(CourseworkError):
    """A listing page parsed but its title and date elements do not pair up."""

    def __init__(self, url: str, n_titles: int, n_dates: int) -> None:
        self.url = url
        self.n_titles = n_titles
        self.n_dates = n_dates
        super().__init__(
            f"{url}: found {n_titles} title element(s) but {n_dates} date element(s)"
        )


class MissingColumnsError(CourseworkError):
    """An input table lacks columns an operation needs."""

    def __init__(self, missing: list[str], context: str = "table") -> None:
        self.missing = list(missing)
        super().__init__(f"{context} is missing column(s): {', '.join(self.missing)}")


class UnknownSourceError(CourseworkError):
    """A listing source label that is not configured."""

    def __init__(self, label: str, known: list[str]) -> None:
        self.label = label
        super().__init__(f"unknown source {label!r}; expected one of: {', '.join(known)}")
