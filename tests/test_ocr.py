"""
Tests for the OCR wrapper.
"""
from unittest.mock import patch
import sys
import os

import pytest
import pytesseract
from PIL import Image

# Add parent directory to path to import publify
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from publify import ocr


class TestOCRAvailability:
    """Test class for Tesseract detection and configuration."""

    def test_available(self):
        """Test available."""
        with patch("publify.ocr.pytesseract.get_tesseract_version", return_value="5.3.0"):
            assert ocr.is_ocr_available()

    def test_missing_binary_is_not_fatal(self):
        """Test missing binary is not fatal."""
        with patch(
            "publify.ocr.pytesseract.get_tesseract_version",
            side_effect=pytesseract.TesseractNotFoundError(),
        ):
            assert not ocr.is_ocr_available()

    def test_tesseract_cmd_from_environment(self, monkeypatch):
        """Test tesseract cmd from environment."""
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        monkeypatch.setenv(ocr.TESSERACT_CMD_ENV, "/opt/tesseract/bin/tesseract")
        ocr.configure_tesseract()
        assert pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract/bin/tesseract"

    def test_tesseract_cmd_untouched_without_environment(self, monkeypatch):
        """Test tesseract cmd untouched without environment."""
        monkeypatch.setattr(pytesseract.pytesseract, "tesseract_cmd", "tesseract")
        monkeypatch.delenv(ocr.TESSERACT_CMD_ENV, raising=False)
        ocr.configure_tesseract()
        assert pytesseract.pytesseract.tesseract_cmd == "tesseract"


class TestOCRProcessor:
    """Test class for OCRProcessor."""

    def test_extract_text_strips_output(self):
        """Test extract text strips output."""
        image = Image.new("L", (10, 10))
        with patch("publify.ocr.pytesseract.image_to_string", return_value="  Hello world \n\f") as mock_ocr:
            text = ocr.OCRProcessor("deu").extract_text(image)
        assert text == "Hello world"
        mock_ocr.assert_called_once_with(image, lang="deu")

    def test_extract_text_wraps_errors(self):
        """Test extract text wraps errors."""
        with patch(
            "publify.ocr.pytesseract.image_to_string",
            side_effect=pytesseract.TesseractError(1, "bad language"),
        ):
            with pytest.raises(ocr.OCRError, match="OCR text extraction failed"):
                ocr.OCRProcessor().extract_text(Image.new("L", (10, 10)))

    def test_extract_text_with_stats(self):
        """Test extract text with stats."""
        with patch("publify.ocr.pytesseract.image_to_string", return_value="three little words"):
            result = ocr.OCRProcessor().extract_text_with_stats(Image.new("L", (10, 10)))
        assert result == ocr.OCRResult(text="three little words", word_count=3, char_count=18)
