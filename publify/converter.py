"""
Conversion orchestration: one PDF in, one EPUB out, plus a run summary.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from .chapters import ChapterLimits, group_pages_into_chapters
from .epub import EPUBError, EPUBGenerator, EPUBOptions
from .images import ImageProcessor
from .markov import DEFAULT_THRESHOLD
from .ocr import OCRProcessor, is_ocr_available
from .pagerange import PageRangeSet, SkipList, format_page_list
from .pdf2text import PDFProcessor, get_default_output_dir, rejected_pages
from .profiles import Profile, get_profile

logger = logging.getLogger(__name__)

RULE = "=" * 64


@dataclass
class Options:
    input_path: Path
    output_path: Path
    profile: Profile = field(default_factory=lambda: get_profile("generic"))
    workers: int = 0  # 0 lets the pool pick
    verbose: bool = False
    enable_ocr: bool = False
    ocr_language: str = "eng"
    image_pages: str = ""
    skip_pages: str = ""
    header_strings: Tuple[str, ...] = ()
    noise_threshold: float = DEFAULT_THRESHOLD
    chapter_limits: ChapterLimits = field(default_factory=ChapterLimits)
    title: Optional[str] = None
    author: str = "Unknown Author"
    language: str = "en"


@dataclass
class ConversionStats:
    input_file_size: int = 0
    output_file_size: int = 0
    page_count: int = 0
    processed_pages: int = 0
    chapter_count: int = 0
    text_char_count: int = 0
    image_count: int = 0
    processing_time: float = 0.0
    compression_ratio: float = 0.0


def resolve_output_path(pdf_path: Path, output_path: Optional[Path] = None) -> Path:
    """
    Where the EPUB for ``pdf_path`` goes: an explicit ``.epub`` path is used
    as given, a directory gets ``<stem>.epub`` inside it, and no path at all
    puts the EPUB next to the PDF.
    """
    if output_path is None:
        return get_default_output_dir(pdf_path) / f"{pdf_path.stem}.epub"
    if output_path.suffix.lower() == ".epub":
        return output_path
    return output_path / f"{pdf_path.stem}.epub"


def format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "kB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1000
    return f"{value:.1f} GB"


class Converter:
    def __init__(self, options: Options):
        self.options = options
        self.stats = ConversionStats()
        self.rejected_pages: List[int] = []
        self._cancel_event = threading.Event()

    def cancel(self) -> None:
        self._cancel_event.set()

    def _epub_options(self) -> EPUBOptions:
        input_name = self.options.input_path.name
        return EPUBOptions(
            title=self.options.title or self.options.input_path.stem,
            author=self.options.author,
            language=self.options.language,
            identifier=f"publify-{int(time.time())}",
            description=f"Converted from {input_name} by Publify",
        )

    def _ocr_processor(self) -> Optional[OCRProcessor]:
        if not self.options.enable_ocr:
            return None
        if not is_ocr_available():
            logger.warning("OCR requested but Tesseract is not installed; continuing without OCR")
            return None
        return OCRProcessor(self.options.ocr_language)

    def convert(self) -> ConversionStats:
        opts = self.options
        start = time.monotonic()

        # malformed page ranges fail before any page is touched
        image_pages = PageRangeSet.parse(opts.image_pages)
        skip_pages = SkipList.parse(opts.skip_pages)

        if opts.verbose:
            print(f"Starting conversion of {opts.input_path} to {opts.output_path}")
            print(f"Target reader: {opts.profile.name} ({opts.profile.manufacturer})")

        with PDFProcessor(
            opts.input_path,
            image_pages=image_pages,
            skip_pages=skip_pages,
            ocr=self._ocr_processor(),
            image_processor=ImageProcessor(opts.profile),
            header_strings=opts.header_strings,
            noise_threshold=opts.noise_threshold,
        ) as processor:
            self.stats.input_file_size = processor.file_size
            pages = processor.process_pages(
                workers=opts.workers,
                cancel_event=self._cancel_event,
                show_progress=opts.verbose,
            )

        self.stats.page_count = len(pages)
        self.stats.processed_pages = sum(1 for p in pages if not p.skipped)
        self.rejected_pages = rejected_pages(pages)
        logger.info(f"Processed {len(pages)} pages")

        chapters = group_pages_into_chapters(pages, opts.chapter_limits)
        if not chapters:
            raise EPUBError("no pages to convert")

        generator = EPUBGenerator(opts.profile, self._epub_options())
        for i, chapter in enumerate(chapters, start=1):
            generator.add_chapter(f"Chapter {i}", chapter)
            self.stats.text_char_count += sum(len(p.final_text) for p in chapter.pages)
            self.stats.image_count += len(chapter.images)
        self.stats.chapter_count = len(chapters)

        opts.output_path.parent.mkdir(parents=True, exist_ok=True)
        generator.write(opts.output_path)

        self.stats.output_file_size = opts.output_path.stat().st_size
        if self.stats.input_file_size > 0:
            self.stats.compression_ratio = self.stats.output_file_size / self.stats.input_file_size
        self.stats.processing_time = time.monotonic() - start
        return self.stats

    def display_results(self) -> None:
        opts, stats = self.options, self.stats
        print("\nConversion completed successfully")
        print(RULE)
        print("Conversion Summary")
        print(RULE)
        print(f"Input:         {opts.input_path.name} ({format_bytes(stats.input_file_size)})")
        print(f"Output:        {opts.output_path.name} ({format_bytes(stats.output_file_size)})")
        if stats.compression_ratio < 1.0:
            print(f"Compression:   {(1.0 - stats.compression_ratio) * 100:.1f}% size reduction")
        else:
            print(f"Size change:   {(stats.compression_ratio - 1.0) * 100:.1f}% increase")
        print(f"Pages:         {stats.processed_pages} processed")
        print(f"Chapters:      {stats.chapter_count}")
        print(f"Text content:  {stats.text_char_count:,} characters")
        print(f"Images:        {stats.image_count}")
        print(f"Target reader: {opts.profile.name}")
        print(f"Processing:    {stats.processing_time:.3f}s")

        if self.rejected_pages:
            print("\nValidation Results:")
            print(f"Pages rejected by bleed-through detection: {self.rejected_pages}")
            print(f'Suggestion: Consider adding --skip "{format_page_list(self.rejected_pages)}" for faster processing')

        print(RULE)
        print(f"Ready for your {opts.profile.name}")
