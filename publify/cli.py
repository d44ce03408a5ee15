#!/usr/bin/env python3
"""
Command-line interface for publify.
"""
import argparse
import logging
import sys
from pathlib import Path

from .chapters import ChapterLimits
from .converter import Converter, Options, resolve_output_path
from .markov import DEFAULT_THRESHOLD
from .ocr import configure_tesseract
from .pdf2text import add_pdfs_to_queue, get_default_input_dir
from .profiles import get_profile, list_profiles


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="publify",
        description="Convert PDF files to EPUB e-books optimised for your e-reader",
    )
    parser.add_argument(
        "input_path",
        nargs="?",
        type=str,
        help="Path to input PDF file or directory (default: ./input/*.pdf)",
    )
    parser.add_argument(
        "output_path",
        nargs="?",
        type=str,
        help="Output .epub file or directory (default: <pdf name>.epub next to the PDF)",
    )
    parser.add_argument(
        "--reader",
        type=str,
        default="generic",
        help="Target e-reader profile (see --list-profiles)",
    )
    parser.add_argument(
        "--color",
        action="store_true",
        help="Keep colour for readers that support it (default: greyscale)",
    )
    parser.add_argument(
        "--workers", type=int, default=0, help="Number of worker threads (default: automatic)"
    )
    parser.add_argument(
        "--ocr", action="store_true", help="Run OCR on pages with little or no text layer"
    )
    parser.add_argument("--ocr-lang", type=str, default="eng", help="Tesseract language code")
    parser.add_argument(
        "--image-pages",
        type=str,
        default="",
        help='Pages to embed as images instead of text, e.g. "1-2,5,10-15"',
    )
    parser.add_argument(
        "--skip", type=str, default="", help='Pages to leave out entirely, e.g. "8,10,12"'
    )
    parser.add_argument(
        "--strip-header",
        action="append",
        default=[],
        metavar="TEXT",
        help="Running header text to remove from every page (repeatable)",
    )
    parser.add_argument(
        "--noise-threshold",
        type=float,
        default=DEFAULT_THRESHOLD,
        help="Score below which page text is rejected as bleed-through",
    )
    parser.add_argument(
        "--max-chapter-pages",
        type=int,
        default=ChapterLimits.max_pages,
        help="Maximum pages per chapter",
    )
    parser.add_argument(
        "--min-chapter-chars",
        type=int,
        default=ChapterLimits.min_chars,
        help="Characters after which a chapter may end",
    )
    parser.add_argument("--title", type=str, default=None, help="Book title (default: PDF name)")
    parser.add_argument("--author", type=str, default="Unknown Author", help="Book author")
    parser.add_argument("--language", type=str, default="en", help="Book language code")
    parser.add_argument(
        "--list-profiles", action="store_true", help="List the available reader profiles and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def print_profiles() -> None:
    print("Available reader profiles:")
    for key, profile in sorted(list_profiles().items()):
        caps = profile.capabilities
        colour = "colour" if caps.supports_color else "greyscale"
        print(
            f"  {key:<14} {profile.name} ({caps.screen_width}x{caps.screen_height}, "
            f"{caps.dpi} DPI, {colour}, {caps.preferred_image_format})"
        )


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    if args.list_profiles:
        print_profiles()
        return 0

    try:
        profile = get_profile(args.reader).with_color(args.color)
    except ValueError as e:
        logger.error(str(e))
        return 2

    configure_tesseract()

    input_path = Path(args.input_path) if args.input_path else get_default_input_dir()
    try:
        queue = add_pdfs_to_queue(input_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    logger.info(f"Found {len(queue)} PDF files to process")

    limits = ChapterLimits(max_pages=args.max_chapter_pages, min_chars=args.min_chapter_chars)
    failed = 0
    for pdf_path in queue:
        logger.info(f"Processing: {pdf_path.name}")
        output_path = resolve_output_path(pdf_path, Path(args.output_path) if args.output_path else None)
        options = Options(
            input_path=pdf_path,
            output_path=output_path,
            profile=profile,
            workers=args.workers,
            verbose=args.verbose,
            enable_ocr=args.ocr,
            ocr_language=args.ocr_lang,
            image_pages=args.image_pages,
            skip_pages=args.skip,
            header_strings=tuple(args.strip_header),
            noise_threshold=args.noise_threshold,
            chapter_limits=limits,
            title=args.title,
            author=args.author,
            language=args.language,
        )
        converter = Converter(options)
        try:
            converter.convert()
        except KeyboardInterrupt:
            logger.error("Conversion cancelled")
            return 130
        except Exception as e:
            logger.error(f"Error processing {pdf_path.name}: {str(e)}")
            failed += 1
            continue
        converter.display_results()

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
