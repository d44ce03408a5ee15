"""
OCR fallback through the Tesseract binary (via pytesseract).

OCR is optional: when Tesseract is not installed the converter simply works
from the PDF's own text layer.
"""
import logging
import os
from dataclasses import dataclass

import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

TESSERACT_CMD_ENV = "PUBLIFY_TESSERACT_CMD"


class OCRError(RuntimeError):
    pass


@dataclass(frozen=True)
class OCRResult:
    text: str
    word_count: int
    char_count: int


def configure_tesseract() -> None:
    """Point pytesseract at a custom Tesseract executable, if configured."""
    cmd = os.getenv(TESSERACT_CMD_ENV)
    if cmd:
        pytesseract.pytesseract.tesseract_cmd = cmd


def is_ocr_available() -> bool:
    configure_tesseract()
    try:
        version = pytesseract.get_tesseract_version()
    except (pytesseract.TesseractNotFoundError, OSError) as e:
        logger.debug(f"Tesseract not available: {e}")
        return False
    logger.debug(f"Found Tesseract {version}")
    return True


class OCRProcessor:
    def __init__(self, language: str = "eng"):
        self.language = language
        configure_tesseract()

    def extract_text(self, image: Image.Image) -> str:
        try:
            text = pytesseract.image_to_string(image, lang=self.language)
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
            raise OCRError(f"OCR text extraction failed: {e}") from e
        return text.strip()

    def extract_text_with_stats(self, image: Image.Image) -> OCRResult:
        text = self.extract_text(image)
        return OCRResult(text=text, word_count=len(text.split()), char_count=len(text))
