"""
Tests for the command-line interface.
"""
import tempfile
from pathlib import Path
from unittest.mock import patch, MagicMock
import sys
import os

# Add parent directory to path to import publify
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from publify import cli


class TestParser:
    """Test class for argument parsing."""

    def test_defaults(self):
        """Test defaults."""
        args = cli.build_parser().parse_args([])
        assert args.input_path is None
        assert args.reader == "generic"
        assert args.color is False
        assert args.workers == 0
        assert args.ocr is False
        assert args.ocr_lang == "eng"
        assert args.strip_header == []
        assert args.noise_threshold == -3.8
        assert args.max_chapter_pages == 15
        assert args.min_chapter_chars == 800

    def test_repeatable_header(self):
        """Test repeatable header."""
        args = cli.build_parser().parse_args(["--strip-header", "MY BOOK", "--strip-header", "Part One"])
        assert args.strip_header == ["MY BOOK", "Part One"]

    def test_color_flag(self):
        """Test that colour is opt-in."""
        assert cli.build_parser().parse_args(["--color"]).color is True


class TestMain:
    """Test class for cli.main."""

    def test_list_profiles(self, capsys):
        """Test list profiles."""
        assert cli.main(["--list-profiles"]) == 0
        out = capsys.readouterr().out
        assert "Available reader profiles:" in out
        assert "kindle-oasis" in out
        assert "Kobo Libra Colour" in out

    def test_unknown_reader(self):
        """Test unknown reader."""
        assert cli.main(["--reader", "nook", "book.pdf"]) == 2

    def test_missing_input(self):
        """Test missing input."""
        assert cli.main(["/non/existent/book.pdf"]) == 1

    def test_converts_every_pdf_in_directory(self):
        """Test converts every pdf in directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            (temp_path / "a.pdf").write_bytes(b"%PDF")
            (temp_path / "b.pdf").write_bytes(b"%PDF")

            with patch("publify.cli.Converter") as mock_converter:
                result = cli.main(
                    [
                        str(temp_path),
                        "--reader",
                        "kobo",
                        "--skip",
                        "8,10",
                        "--image-pages",
                        "1-2",
                        "--strip-header",
                        "MY BOOK",
                        "--max-chapter-pages",
                        "10",
                        "--ocr",
                    ]
                )

            assert result == 0
            assert mock_converter.call_count == 2
            options = [call.args[0] for call in mock_converter.call_args_list]
            assert [o.input_path.name for o in options] == ["a.pdf", "b.pdf"]
            assert options[0].output_path == temp_path / "a.epub"
            assert options[0].skip_pages == "8,10"
            assert options[0].image_pages == "1-2"
            assert options[0].header_strings == ("MY BOOK",)
            assert options[0].chapter_limits.max_pages == 10
            assert options[0].enable_ocr
            assert not options[0].profile.capabilities.supports_color
            assert mock_converter.return_value.display_results.call_count == 2

    def test_color_kept_when_requested(self):
        """Test that --color keeps colour on a colour reader."""
        with tempfile.TemporaryDirectory() as temp_dir:
            pdf = Path(temp_dir) / "a.pdf"
            pdf.write_bytes(b"%PDF")

            with patch("publify.cli.Converter") as mock_converter:
                cli.main([str(pdf), "--reader", "kobo", "--color"])

            options = mock_converter.call_args.args[0]
            assert options.profile.capabilities.supports_color

    def test_default_reader_is_generic(self):
        """Test that the generic greyscale profile is used by default."""
        with tempfile.TemporaryDirectory() as temp_dir:
            pdf = Path(temp_dir) / "a.pdf"
            pdf.write_bytes(b"%PDF")

            with patch("publify.cli.Converter") as mock_converter:
                cli.main([str(pdf)])

            options = mock_converter.call_args.args[0]
            assert options.profile.name == "Generic E-Reader"
            assert not options.profile.capabilities.supports_color

    def test_output_directory(self):
        """Test output directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            pdf = temp_path / "a.pdf"
            pdf.write_bytes(b"%PDF")

            with patch("publify.cli.Converter") as mock_converter:
                cli.main([str(pdf), str(temp_path / "books")])

            options = mock_converter.call_args.args[0]
            assert options.output_path == temp_path / "books" / "a.epub"

    def test_failed_file_logs_and_continues(self, caplog):
        """Test failed file logs and continues."""
        with tempfile.TemporaryDirectory() as temp_dir:
            temp_path = Path(temp_dir)
            (temp_path / "a.pdf").write_bytes(b"%PDF")
            (temp_path / "b.pdf").write_bytes(b"%PDF")

            failing = MagicMock()
            failing.convert.side_effect = RuntimeError("failed to process page 3: broken")
            working = MagicMock()

            with patch("publify.cli.Converter", side_effect=[failing, working]):
                result = cli.main([str(temp_path)])

            assert result == 1
            assert "Error processing a.pdf: failed to process page 3: broken" in caplog.text
            working.convert.assert_called_once()
            working.display_results.assert_called_once()
            failing.display_results.assert_not_called()

    def test_keyboard_interrupt(self):
        """Test keyboard interrupt."""
        with tempfile.TemporaryDirectory() as temp_dir:
            pdf = Path(temp_dir) / "a.pdf"
            pdf.write_bytes(b"%PDF")

            interrupted = MagicMock()
            interrupted.convert.side_effect = KeyboardInterrupt
            with patch("publify.cli.Converter", return_value=interrupted):
                assert cli.main([str(pdf)]) == 130
            interrupted.display_results.assert_not_called()
