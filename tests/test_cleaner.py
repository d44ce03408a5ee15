"""
Tests for page text cleaning and rendering.
"""
import sys
import os

import pytest

# Add parent directory to path to import publify
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from publify import cleaner
from publify.cleaner import clean_text


SAMPLES = [
    "",
    "Plain prose.",
    "THE LONG HAUL\nShe boarded the plane.\n\n\n\n- 42 -\n",
    "  lots   of\t\tspace  \r\nand windows\rline endings ",
    "Chapter 3\n\nIt began.\n42.\n\n\n",
    "bell\x07 and null\x00 characters\x1b[0m",
    "5-6AM\nThe alarm went off.",
    "\n\n\n",
    "MY BOOK\n\n\nMY BOOK\nText",
]


class TestCleanText:
    """Test class for clean_text."""

    @pytest.mark.parametrize("line", ["42", "42.", "- 42 -", "-- 42 --", "  7  ", "— 118 —", "...3..."])
    def test_page_numbers_removed(self, line):
        """Test page numbers removed."""
        assert clean_text(f"Before\n{line}\nAfter") == "Before\nAfter"

    def test_numbers_inside_prose_kept(self):
        """Test numbers inside prose kept."""
        assert clean_text("42 pages were read") == "42 pages were read"

    def test_running_header_removed(self):
        """Test running header removed."""
        assert clean_text("THE LONG HAUL\nShe boarded the plane.") == "She boarded the plane."

    def test_long_caps_line_kept(self):
        """Test long caps line kept."""
        text = "THIS IS A LONG SHOUTED LINE\nprose"
        assert clean_text(text) == text

    def test_markers_are_not_headers(self):
        """Test markers are not headers."""
        assert clean_text("CHAPTER 1\nText") == "CHAPTER 1\nText"
        assert clean_text("5-6AM\nText") == "5-6AM\nText"
        assert clean_text("THE LAST CHAPTER\nText") == "THE LAST CHAPTER\nText"

    @pytest.mark.parametrize(
        "line, dropped",
        [
            ("A" * 10 + " " + "B" * 10 + " " + "C" * 8, True),
            ("A" * 10 + " " + "B" * 10 + " " + "C" * 9, False),
            ("THE LONG HAUL HOME", False),
            ("SHORT", True),
        ],
    )
    def test_running_header_limits(self, line, dropped):
        """Test the length and word-count limits for caps headers."""
        expected = "Text" if dropped else f"{line}\nText"
        assert clean_text(f"{line}\nText") == expected

    def test_configured_header_strings(self):
        """Test configured header strings."""
        text = "My  Book Title\nThe story starts here.\nmy book title"
        assert clean_text(text, ["my book title"]) == "The story starts here."

    def test_control_characters_removed(self):
        """Test control characters removed."""
        assert clean_text("abc\x00def\x07ghi") == "abcdefghi"

    def test_line_endings_normalised(self):
        """Test line endings normalised."""
        assert clean_text("one\r\ntwo\rthree") == "one\ntwo\nthree"

    def test_whitespace_collapsed(self):
        """Test whitespace collapsed."""
        assert clean_text("  a   b\t\tc  ") == "a b c"

    def test_blank_lines_collapsed(self):
        """Test blank lines collapsed."""
        assert clean_text("\n\na\n\n\n\nb\n\n") == "a\n\nb"

    def test_empty(self):
        """Test empty."""
        assert clean_text("") == ""
        assert clean_text(None) == ""

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        """Test idempotent."""
        once = clean_text(text, ["my book"])
        assert clean_text(once, ["my book"]) == once


class TestRendering:
    """Test class for Markdown and XHTML rendering."""

    def test_heading_detection(self):
        """Test heading detection."""
        assert cleaner.is_heading("Chapter 3")
        assert cleaner.is_heading("THE END OF IT")
        assert not cleaner.is_heading("ABC")
        assert not cleaner.is_heading("Ordinary sentence.")
        assert not cleaner.is_heading("X" * 101)
        assert cleaner.is_heading("The Final Chapter")
        assert not cleaner.is_heading("She put the book down after the chapter ended and slept.")

    def test_markdown_headings_and_dehyphenation(self):
        """Test markdown headings and dehyphenation."""
        md = cleaner.text_to_markdown("Chapter 1\nIt was a dark-\nness that fell")
        assert md == "## Chapter 1\n\nIt was a darkness that fell"

    def test_hyphen_kept_before_capital(self):
        """Test hyphen kept before capital."""
        md = cleaner.text_to_markdown("the north-\nEast wind")
        assert md == "the north\\- East wind"

    def test_html_output(self):
        """Test html output."""
        html = cleaner.text_to_html("Chapter 1\nIt was a dark-\nness that fell.\n\nNext paragraph.")
        assert "<h2>Chapter 1</h2>" in html
        assert "<p>It was a darkness that fell.</p>" in html
        assert "<p>Next paragraph.</p>" in html

    def test_html_escaping(self):
        """Test html escaping."""
        html = cleaner.text_to_html("Tom & Jerry <b>bold</b> *stars*")
        assert "&amp;" in html
        assert "&lt;b&gt;" in html
        assert "<b>" not in html
        assert "<em>" not in html
        assert "*stars*" in html


class TestSplitIntoChunks:
    """Test class for split_into_chunks."""

    def test_short_text_single_chunk(self):
        """Test short text single chunk."""
        assert cleaner.split_into_chunks("short", 100) == ["short"]

    def test_splits_on_paragraphs(self):
        """Test splits on paragraphs."""
        text = "a" * 50 + "\n\n" + "b" * 50
        assert cleaner.split_into_chunks(text, 60) == ["a" * 50, "b" * 50]

    def test_splits_long_paragraph_on_sentences(self):
        """Test splits long paragraph on sentences."""
        assert cleaner.split_into_chunks("One. Two. Three.", 10) == ["One. Two.", "Three."]
