"""
Operator page configuration: image page ranges and skip lists.

Both are parsed before any page is processed so that a malformed token fails
the run immediately instead of halfway through a long document.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional


class PageRangeError(ValueError):
    """Raised for malformed page-range or skip-list syntax."""


class PageType(Enum):
    TEXT = "text"
    IMAGE = "image"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PageRange:
    start: int
    end: int

    def __contains__(self, page_number: int) -> bool:
        return self.start <= page_number <= self.end

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


def _parse_int(token: str, what: str) -> int:
    token = token.strip()
    if not (token.isascii() and token.isdigit()):
        raise PageRangeError(f"invalid {what}: {token!r}")
    return int(token)


@dataclass(frozen=True)
class PageRangeSet:
    """A set of page ranges such as ``"1-2,5,10-15,419-420"``."""

    ranges: tuple = ()

    @classmethod
    def parse(cls, range_str: Optional[str]) -> "PageRangeSet":
        if not range_str:
            return cls()

        ranges = []
        for part in range_str.split(","):
            part = part.strip()
            if not part:
                continue

            if "-" in part:
                bounds = part.split("-")
                if len(bounds) != 2:
                    raise PageRangeError(f"invalid range format: {part!r}")
                start = _parse_int(bounds[0], "start page")
                end = _parse_int(bounds[1], "end page")
                if start > end:
                    raise PageRangeError(
                        f"start page ({start}) cannot be greater than end page ({end}) in {part!r}"
                    )
                ranges.append(PageRange(start, end))
            else:
                page = _parse_int(part, "page number")
                ranges.append(PageRange(page, page))

        return cls(tuple(ranges))

    def __contains__(self, page_number: int) -> bool:
        return any(page_number in r for r in self.ranges)

    def __bool__(self) -> bool:
        return bool(self.ranges)

    def count(self) -> int:
        return sum(r.end - r.start + 1 for r in self.ranges)

    def validate_against_total(self, total_pages: int) -> None:
        for r in self.ranges:
            if r.start < 1:
                raise PageRangeError(f"page numbers must be 1 or greater, got: {r}")
            if r.end > total_pages:
                raise PageRangeError(f"page {r.end} exceeds total pages ({total_pages}) in {r}")

    def __str__(self) -> str:
        return ",".join(str(r) for r in self.ranges)


@dataclass(frozen=True)
class SkipList:
    """Page numbers excluded entirely from the conversion."""

    pages: frozenset = frozenset()

    @classmethod
    def parse(cls, skip_str: Optional[str]) -> "SkipList":
        if not skip_str:
            return cls()

        pages = set()
        for token in skip_str.split(","):
            token = token.strip()
            if not token:
                continue
            if not (token.isascii() and token.isdigit()):
                raise PageRangeError(f"invalid page number: {token!r} (must be a positive integer)")
            page = int(token)
            if page <= 0:
                raise PageRangeError(f"page number must be positive: {token!r}")
            pages.add(page)

        return cls(frozenset(pages))

    def __contains__(self, page_number: int) -> bool:
        return page_number in self.pages

    def __bool__(self) -> bool:
        return bool(self.pages)


def get_page_type(page_number: int, image_pages: Optional[PageRangeSet]) -> PageType:
    if image_pages is not None and page_number in image_pages:
        return PageType.IMAGE
    return PageType.TEXT


def format_page_list(pages: Iterable[int]) -> str:
    """Format page numbers the way ``--skip`` expects them."""
    return ",".join(str(p) for p in pages)
