"""
Publify: convert PDF files to EPUB e-books optimised for a target e-reader.

Pages are extracted with PyMuPDF (with optional Tesseract OCR), cleaned of
page furniture, checked for bleed-through noise with a character-level
Markov model, grouped into chapters and packed into an EPUB 3 archive.

Main modules:
- markov: bleed-through classifier
- cleaner: page text cleaning and XHTML rendering
- chapters: chapter segmentation
- pdf2text: per-page extraction
- epub: EPUB assembly
- converter: end-to-end conversion

Example usage:
    >>> import publify
    >>> publify.convert_pdf_to_epub("document.pdf", "document.epub", reader="kindle")
"""

from .chapters import Chapter, ChapterLimits, group_pages_into_chapters
from .cleaner import clean_text
from .converter import Converter, ConversionStats, Options
from .markov import is_likely_bleed_through, score_text
from .models import Page
from .pdf2text import add_pdfs_to_queue, get_default_input_dir, get_default_output_dir
from .profiles import get_profile, list_profiles

__version__ = "0.1.0"
__author__ = "alde"

# Public API
__all__ = [
    # Core pipeline
    "score_text",
    "is_likely_bleed_through",
    "clean_text",
    "group_pages_into_chapters",
    "Chapter",
    "ChapterLimits",
    "Page",
    # Conversion
    "Converter",
    "ConversionStats",
    "Options",
    "add_pdfs_to_queue",
    "get_default_input_dir",
    "get_default_output_dir",
    # Reader profiles
    "get_profile",
    "list_profiles",
]


def convert_pdf_to_epub(pdf_path: str, output_path: str, reader: str = "generic", **kwargs) -> ConversionStats:
    """
    Convert a PDF file to an EPUB file.

    Args:
        pdf_path: Path to the input PDF file
        output_path: Path of the EPUB to write
        reader: Reader profile name
        **kwargs: Additional Options fields (enable_ocr, image_pages, skip_pages, ...)
    """
    from pathlib import Path

    options = Options(
        input_path=Path(pdf_path),
        output_path=Path(output_path),
        profile=get_profile(reader),
        **kwargs,
    )
    return Converter(options).convert()
