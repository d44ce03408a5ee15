"""
Per-page PDF extraction with OCR fallback and bleed-through rejection.
"""
import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import fitz  # PyMuPDF
from PIL import Image
from tqdm import tqdm

from .cleaner import clean_text
from .images import ImageProcessor
from .markov import DEFAULT_THRESHOLD, TransitionModel, default_model, is_likely_bleed_through
from .models import Page
from .ocr import OCRError, OCRProcessor
from .pagerange import PageRangeSet, PageType, SkipList, get_page_type

logger = logging.getLogger(__name__)

OCR_DPI = 300
OCR_MIN_NATIVE_CHARS = 50


class PageProcessingError(RuntimeError):
    def __init__(self, page_number: int, cause: BaseException):
        super().__init__(f"failed to process page {page_number}: {cause}")
        self.page_number = page_number
        self.cause = cause


class ConversionCancelled(RuntimeError):
    pass


def get_default_output_dir(input_path: Path) -> Path:
    """
    Default output location for a PDF: the directory that contains it.
    """
    return input_path.parent


def get_default_input_dir() -> Path:
    """
    Get default input directory (./input) relative to current working directory.
    Creates it if it doesn't exist.
    """
    input_dir = Path.cwd() / "input"
    input_dir.mkdir(exist_ok=True)
    return input_dir


def add_pdfs_to_queue(input_path: Path) -> List[Path]:
    """
    Collect the PDFs to convert.
    If input_path is a directory, add all PDFs in it.
    If input_path is a file, add just that file.
    """
    if input_path.is_dir():
        return sorted(input_path.glob("*.pdf"))

    if not input_path.is_file():
        raise FileNotFoundError(f"Input file does not exist: {input_path}")
    if input_path.suffix.lower() != ".pdf":
        raise ValueError(f"Input file must be a PDF: {input_path}")
    return [input_path]


def prefer_ocr_text(native: str, ocr: str) -> bool:
    """OCR wins only when it adds substantially more text than the text layer."""
    native, ocr = native.strip(), ocr.strip()
    return len(ocr) > len(native) + 20 or (not native and len(ocr) > 10)


class PDFProcessor:
    """Extracts, cleans and classifies the pages of one PDF."""

    def __init__(
        self,
        pdf_path: Path,
        image_pages: Optional[PageRangeSet] = None,
        skip_pages: Optional[SkipList] = None,
        ocr: Optional[OCRProcessor] = None,
        image_processor: Optional[ImageProcessor] = None,
        header_strings: Iterable[str] = (),
        noise_threshold: float = DEFAULT_THRESHOLD,
        model: Optional[TransitionModel] = None,
    ):
        self.pdf_path = Path(pdf_path)
        self.image_pages = image_pages or PageRangeSet()
        self.skip_pages = skip_pages or SkipList()
        self.ocr = ocr
        self.image_processor = image_processor
        self.header_strings = tuple(header_strings)
        self.noise_threshold = noise_threshold
        self.model = model or default_model()

        # PyMuPDF is not thread-safe; every document access goes through this lock
        self._lock = threading.Lock()
        self._doc = fitz.open(str(self.pdf_path))
        self.page_count = self._doc.page_count

        try:
            self.image_pages.validate_against_total(self.page_count)
        except ValueError:
            self.close()
            raise

    @property
    def file_size(self) -> int:
        return self.pdf_path.stat().st_size

    def close(self) -> None:
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _native_text(self, index: int) -> str:
        with self._lock:
            return self._doc.load_page(index).get_text("text") or ""

    def _render(self, index: int, dpi: int = OCR_DPI) -> Image.Image:
        with self._lock:
            pix = self._doc.load_page(index).get_pixmap(dpi=dpi)
            png = pix.tobytes("png")
        return Image.open(io.BytesIO(png))

    def _is_noise(self, page_number: int, text: str) -> bool:
        noise = is_likely_bleed_through(text, self.model, self.noise_threshold)
        if noise:
            logger.info(f"Page {page_number}: text rejected as bleed-through")
        return noise

    def process_page(self, page_number: int, cancel_event: Optional[threading.Event] = None) -> Page:
        if page_number < 1 or page_number > self.page_count:
            raise ValueError(f"page number {page_number} out of range (1-{self.page_count})")

        page_type = get_page_type(page_number, self.image_pages)
        if page_number in self.skip_pages:
            return Page(number=page_number, skipped=True, page_type=page_type)

        index = page_number - 1

        if page_type is PageType.IMAGE:
            image = None
            if self.image_processor is not None:
                image = self.image_processor.process(self._render(index))
            return Page(number=page_number, page_type=page_type, image=image)

        raw_text = self._native_text(index)
        text = clean_text(raw_text, self.header_strings)
        ocr_text = None
        noise = False

        if self.ocr is not None and len(text.strip()) < OCR_MIN_NATIVE_CHARS:
            if cancel_event is not None and cancel_event.is_set():
                raise ConversionCancelled("conversion cancelled")
            try:
                ocr_text = self.ocr.extract_text(self._render(index))
            except OCRError as e:
                logger.debug(f"Page {page_number}: {e}")
            if ocr_text:
                cleaned_ocr = clean_text(ocr_text, self.header_strings)
                if prefer_ocr_text(text, cleaned_ocr):
                    if self._is_noise(page_number, cleaned_ocr):
                        noise = True
                    else:
                        text = cleaned_ocr

        if text and self._is_noise(page_number, text):
            noise = True
            text = ""

        return Page(
            number=page_number,
            raw_text=raw_text,
            ocr_text=ocr_text,
            final_text=text,
            classified_as_noise=noise,
            page_type=page_type,
        )

    def process_pages(
        self,
        workers: int = 0,
        cancel_event: Optional[threading.Event] = None,
        show_progress: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Page]:
        """Process every page on a bounded thread pool, preserving page order."""
        cancel_event = cancel_event or threading.Event()
        total = self.page_count
        pages: List[Optional[Page]] = [None] * total

        def run(page_number: int) -> Page:
            if cancel_event.is_set():
                raise ConversionCancelled("conversion cancelled")
            try:
                return self.process_page(page_number, cancel_event)
            except ConversionCancelled:
                raise
            except Exception as e:
                raise PageProcessingError(page_number, e) from e

        executor = ThreadPoolExecutor(max_workers=workers or None)
        try:
            futures = {executor.submit(run, n): n for n in range(1, total + 1)}
            done = 0
            for future in tqdm(as_completed(futures), total=total, desc="Pages", unit="page", disable=not show_progress):
                page = future.result()
                pages[page.number - 1] = page
                done += 1
                if progress_callback is not None:
                    progress_callback(done, total)
        except BaseException:
            cancel_event.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        if cancel_event.is_set():
            raise ConversionCancelled("conversion cancelled")
        return pages


def rejected_pages(pages: Iterable[Page]) -> List[int]:
    """Page numbers whose text was classified as noise, in page order."""
    return sorted(p.number for p in pages if p.classified_as_noise)
