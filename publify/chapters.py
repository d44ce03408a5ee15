"""
Group an ordered page sequence into chapters.

Segmentation is a single left-to-right reduction over the complete page list:
``segment_step`` folds one page into the open chapter and hands back a
finished chapter whenever a break fires. It must run after every page has
been extracted and classified.
"""
import re
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Tuple

from .models import Page

CHAPTER_KEYWORD_PATTERN = re.compile(r"\bchapter\b|\bch\.", re.IGNORECASE)

TIME_SPAN_PATTERNS = (
    re.compile(r"^\d{1,2}(:\d{2})?(-|\s*to\s*)\d{1,2}(:\d{2})?\s*(am|pm)$"),
    re.compile(r"^\d{1,2}(:\d{2})?\s*(am|pm)(-|\s*to\s*)\d{1,2}(:\d{2})?\s*(am|pm)$"),
    re.compile(r"^\d{1,2}\.\d{2}(-|\s*to\s*)\d{1,2}\.\d{2}\s*(am|pm)$"),
)


def is_chapter_keyword(line: str) -> bool:
    """True when ``chapter`` (or ``ch.``) appears as a word anywhere in the line."""
    return bool(CHAPTER_KEYWORD_PATTERN.search(line))


def is_time_span_marker(line: str) -> bool:
    """Match diary-style time blocks such as ``5-6am`` or ``2.30-3.30pm``."""
    line = line.strip().lower()
    return any(p.match(line) for p in TIME_SPAN_PATTERNS)


def is_chapter_marker(line: str) -> bool:
    return is_chapter_keyword(line) or is_time_span_marker(line)


def first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


def detect_chapter_marker(text: str) -> Optional[str]:
    """Return the first non-blank line of ``text`` if it is a chapter marker."""
    line = first_line(text)
    if line and is_chapter_marker(line):
        return line
    return None


@dataclass(frozen=True)
class ChapterLimits:
    max_pages: int = 15
    min_chars: int = 800
    min_pages_for_length_break: int = 3


@dataclass(frozen=True)
class Chapter:
    pages: Tuple[Page, ...]
    break_marker: Optional[str] = None

    def __post_init__(self):
        if not self.pages:
            raise ValueError("a chapter needs at least one page")

    @property
    def text(self) -> str:
        return "\n\n".join(p.final_text.strip() for p in self.pages if p.has_text)

    @property
    def page_numbers(self) -> List[int]:
        return [p.number for p in self.pages]

    @property
    def first_page(self) -> int:
        return self.pages[0].number

    @property
    def last_page(self) -> int:
        return self.pages[-1].number

    @property
    def images(self) -> list:
        return [p.image for p in self.pages if p.image is not None]


class Accumulator(NamedTuple):
    pages: Tuple[Page, ...] = ()
    text_length: int = 0


def segment_step(
    acc: Accumulator, page: Page, limits: ChapterLimits = ChapterLimits()
) -> Tuple[Optional[Chapter], Accumulator]:
    """Fold ``page`` into the open chapter.

    The marker look-ahead happens before the page is appended, but the page
    that triggers a break still belongs to the chapter being closed. A break
    never yields a one-page chapter, which also rules out breaking on the
    first page of the document.
    """
    marker = None
    if page.has_text and acc.pages:
        marker = detect_chapter_marker(page.final_text)

    pages = acc.pages + (page,)
    text_length = acc.text_length + (len(page.final_text) if page.has_text else 0)

    should_break = (
        marker is not None
        or len(pages) >= limits.max_pages
        or (text_length >= limits.min_chars and len(pages) >= limits.min_pages_for_length_break)
    )

    if should_break and len(pages) > 1:
        return Chapter(pages, break_marker=marker), Accumulator()
    return None, Accumulator(pages, text_length)


def group_pages_into_chapters(
    pages: Sequence[Page], limits: ChapterLimits = ChapterLimits()
) -> List[Chapter]:
    if not pages:
        return []

    chapters: List[Chapter] = []
    acc = Accumulator()
    for page in pages:
        chapter, acc = segment_step(acc, page, limits)
        if chapter is not None:
            chapters.append(chapter)

    if acc.pages:
        chapters.append(Chapter(acc.pages))

    if not chapters:
        chapters = [Chapter(tuple(pages))]

    return chapters
