"""
Page text cleanup and conversion to chapter markup.

``clean_text`` turns raw extracted text for one page into normalised prose:
control characters, page numbers and running headers go, whitespace is
collapsed. It is idempotent, so cleaned text can safely be cleaned again.

The remaining helpers render cleaned chapter text for the EPUB: Markdown is
built from the prose and handed to the ``markdown`` package for XHTML.
"""
import html
import re
import unicodedata
from typing import Iterable, List

import markdown

from .chapters import is_chapter_marker

PAGE_NUMBER_PATTERN = re.compile(r"^[\s\-–—.]*\d+[\s\-–—.]*$")
INLINE_WHITESPACE = re.compile(r"[ \t]+")
BLANK_RUNS = re.compile(r"\n{3,}")
MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!])")
SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

HEADER_MAX_LENGTH = 30
HEADER_MAX_WORDS = 3
MARKER_HEADING_MAX_WORDS = 6


def _collapse(line: str) -> str:
    return INLINE_WHITESPACE.sub(" ", line).strip()


def strip_control_characters(text: str) -> str:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return "".join(ch for ch in text if ch in "\n\t" or unicodedata.category(ch) != "Cc")


def is_page_number(line: str) -> bool:
    """``42``, ``42.`` and ``- 42 -`` are page numbers; ``42 pages`` is not."""
    return bool(PAGE_NUMBER_PATTERN.match(line))


def is_running_header(line: str) -> bool:
    """Short ALL-CAPS lines that are not chapter markers, e.g. ``THE LONG HAUL``."""
    return (
        len(line) <= HEADER_MAX_LENGTH
        and line.isupper()
        and len(line.split()) <= HEADER_MAX_WORDS
        and not is_chapter_marker(line)
    )


def _header_key(line: str) -> str:
    return " ".join(line.split()).casefold()


def clean_text(text: str, header_strings: Iterable[str] = ()) -> str:
    """Normalise one page of extracted text.

    Args:
        text: Raw page text.
        header_strings: Recurring book-title or header lines to drop,
            compared case-insensitively.

    Returns:
        Cleaned text; blank-line runs collapsed to a single blank line.
    """
    if not text:
        return ""

    headers = {_header_key(h) for h in header_strings if h.strip()}

    kept = []
    for line in strip_control_characters(text).split("\n"):
        line = _collapse(line)
        if line:
            if is_page_number(line):
                continue
            if headers and _header_key(line) in headers:
                continue
            if is_running_header(line):
                continue
        kept.append(line)

    return BLANK_RUNS.sub("\n\n", "\n".join(kept)).strip()


def is_heading(line: str) -> bool:
    if len(line) > 100:
        return False
    if is_chapter_marker(line) and len(line.split()) <= MARKER_HEADING_MAX_WORDS:
        return True
    return len(line) > 5 and line.isupper()


def _escape(text: str) -> str:
    return MARKDOWN_SPECIAL.sub(r"\\\1", html.escape(text, quote=False))


def _join_lines(lines: List[str]) -> str:
    joined = ""
    for line in lines:
        if not joined:
            joined = line
        elif joined.endswith("-") and joined[-2:-1].isalpha() and line[:1].islower():
            # word hyphenated across a line break
            joined = joined[:-1] + line
        else:
            joined = f"{joined} {line}"
    return joined


def text_to_markdown(text: str) -> str:
    """Render cleaned text as Markdown: headings for markers, reflowed paragraphs."""
    blocks = []
    paragraph: List[str] = []

    def flush():
        if paragraph:
            blocks.append(_escape(_join_lines(paragraph)))
            paragraph.clear()

    for line in text.split("\n"):
        line = line.strip()
        if not line:
            flush()
            continue
        if is_heading(line):
            flush()
            blocks.append(f"## {_escape(line)}")
            continue
        paragraph.append(line)
    flush()

    return "\n\n".join(blocks)


def text_to_html(text: str) -> str:
    return markdown.markdown(text_to_markdown(text), output_format="xhtml")


def _split_sentences(paragraph: str, max_size: int) -> List[str]:
    chunks = []
    current = ""
    for sentence in SENTENCE_END.split(paragraph):
        if current and len(current) + len(sentence) + 1 > max_size:
            chunks.append(current.strip())
            current = sentence
        else:
            current = f"{current} {sentence}" if current else sentence
    if current:
        chunks.append(current.strip())
    return chunks


def split_into_chunks(text: str, max_chunk_size: int) -> List[str]:
    """Split text on paragraph boundaries, falling back to sentences."""
    if len(text) <= max_chunk_size:
        return [text]

    chunks = []
    current = ""
    for paragraph in text.split("\n\n"):
        if len(current) + len(paragraph) + 2 > max_chunk_size:
            if current:
                chunks.append(current.strip())
                current = ""
            if len(paragraph) > max_chunk_size:
                chunks.extend(_split_sentences(paragraph, max_chunk_size))
            else:
                current = paragraph
        else:
            current = f"{current}\n\n{paragraph}" if current else paragraph

    if current:
        chunks.append(current.strip())
    return chunks
