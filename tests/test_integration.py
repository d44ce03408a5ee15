"""
End-to-end tests: mocked PDF in, real EPUB out.
"""
import tempfile
import zipfile
from pathlib import Path
from unittest.mock import patch, MagicMock
from xml.dom import minidom
import sys
import os

# Add parent directory to path to import publify
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import publify


PROSE = (
    "The author presents compelling arguments about human nature and society. "
    "Furthermore the evidence suggests that these conclusions are well founded."
)
CONSONANTS = [
    "xqzj vqxk zqjx wvxq jzqv xkqz qjxv zxqj",
    "bcdf ghjk lmnp qrst vwxz bcdf ghjk lmnp",
    "zxcv bnmq wrtp sdfg hjkl zxcv bnmq wrtp",
    "qwrt pzxc vbnm lkjh gfds qwrt pzxc vbnm",
    "mnbv cxzl kjhg fdsq wrtp mnbv cxzl kjhg",
]


def make_document(texts):
    doc = MagicMock()
    doc.page_count = len(texts)

    def load_page(index):
        page = MagicMock()
        page.get_text.return_value = texts[index]
        return page

    doc.load_page.side_effect = load_page
    return doc


def convert(texts, **kwargs):
    temp_dir = Path(tempfile.mkdtemp())
    pdf = temp_dir / "diary.pdf"
    pdf.write_bytes(b"%PDF-1.4")
    output = temp_dir / "diary.epub"

    with patch("publify.pdf2text.fitz") as mock_fitz:
        mock_fitz.open.return_value = make_document(texts)
        stats = publify.convert_pdf_to_epub(str(pdf), str(output), reader="kobo-bw", **kwargs)
    return output, stats


def nav_titles(output):
    with zipfile.ZipFile(output) as zf:
        ncx = minidom.parseString(zf.read("OPS/toc.ncx"))
    return [t.firstChild.data for t in ncx.getElementsByTagName("text")][1:]


class TestEndToEnd:
    """Test class for full conversions."""

    def test_explicit_chapter_marker(self):
        """Test explicit chapter marker."""
        texts = [PROSE] * 20
        texts[9] = "Chapter 2\n" + PROSE
        output, stats = convert(texts, chapter_limits=publify.ChapterLimits(max_pages=100, min_chars=10**9))

        assert stats.chapter_count == 2
        assert nav_titles(output) == ["Chapter 1", "Chapter 2"]
        with zipfile.ZipFile(output) as zf:
            first = zf.read("OPS/s00000.xhtml").decode("utf-8")
            second = zf.read("OPS/s00001.xhtml").decode("utf-8")
        # the marker page closes the first chapter
        assert "<h2>Chapter 2</h2>" in first
        assert "<h2>Chapter 2</h2>" not in second

    def test_time_span_markers(self):
        """Test time span markers."""
        texts = [PROSE] * 20
        texts[0] = "5-6am\n" + PROSE
        texts[5] = "6-7am\n" + PROSE
        texts[11] = "2.30-3.30pm\n" + PROSE
        output, stats = convert(texts, chapter_limits=publify.ChapterLimits(max_pages=100, min_chars=10**9))

        assert stats.chapter_count == 3
        assert nav_titles(output) == ["Chapter 1", "Chapter 2", "Chapter 3"]

    def test_default_limits(self):
        """Test default limits."""
        output, stats = convert([PROSE] * 20)
        # 147 characters a page reaches 800 characters on the sixth page
        assert stats.chapter_count == 4
        assert stats.text_char_count == len(PROSE) * 20

    def test_all_pages_noise(self):
        """Test all pages noise."""
        temp_dir = Path(tempfile.mkdtemp())
        pdf = temp_dir / "scan.pdf"
        pdf.write_bytes(b"%PDF-1.4")
        options = publify.Options(
            input_path=pdf,
            output_path=temp_dir / "scan.epub",
            profile=publify.get_profile("generic"),
        )
        converter = publify.Converter(options)
        with patch("publify.pdf2text.fitz") as mock_fitz:
            mock_fitz.open.return_value = make_document(CONSONANTS)
            stats = converter.convert()

        assert converter.rejected_pages == [1, 2, 3, 4, 5]
        assert stats.chapter_count == 1
        assert stats.text_char_count == 0
        with zipfile.ZipFile(options.output_path) as zf:
            assert "No text content found" in zf.read("OPS/s00000.xhtml").decode("utf-8")

    def test_skip_and_header_options(self):
        """Test skip and header options."""
        texts = ["THE DIARY\n" + PROSE, "THE DIARY\n" + PROSE, PROSE]
        output, stats = convert(texts, skip_pages="3", header_strings=("The Diary",))
        with zipfile.ZipFile(output) as zf:
            body = zf.read("OPS/s00000.xhtml").decode("utf-8")
        assert "THE DIARY" not in body
        assert stats.processed_pages == 2
        assert stats.text_char_count == len(PROSE) * 2
