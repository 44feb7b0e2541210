"""CLI entrypoint that writes the text of EPUB files to stdout."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from epubtxt._version import __version__
from epubtxt.config import ExtractionOptions
from epubtxt.extraction.orchestrator import EpubTextExtractor


load_dotenv()

LOGGER = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="epub2txt",
        description="Extract readable text from EPUB files in reading order",
    )
    parser.add_argument("files", nargs="+", help="EPUB files to process")
    parser.add_argument("-m", "--meta", action="store_true", default=None, help="Print metadata before the text")
    parser.add_argument("-n", "--notext", action="store_true", default=None, help="Do not print the text")
    parser.add_argument(
        "-c",
        "--calibre",
        action="store_true",
        default=None,
        help="Include Calibre series and title-sort metadata",
    )
    parser.add_argument("-r", "--raw", action="store_true", default=None, help="Do not reflow paragraphs")
    parser.add_argument("-a", "--ascii", action="store_true", default=None, help="Fold output to 7-bit ASCII")
    parser.add_argument("-w", "--width", type=int, default=None, help="Output width; 0 disables reflow")
    parser.add_argument(
        "-s",
        "--section-separator",
        default=None,
        help="Line printed before the text of each spine item",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default=os.environ.get("EPUBTXT_LOG_LEVEL", "WARNING").upper(),
        help="Diagnostic verbosity on stderr",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def _build_options(args: argparse.Namespace) -> ExtractionOptions:
    options = ExtractionOptions.from_env()
    overrides = {
        name: getattr(args, name)
        for name in ("meta", "notext", "calibre", "raw", "ascii", "width", "section_separator")
        if getattr(args, name) is not None
    }
    return replace(options, **overrides)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        options = _build_options(args)
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    extractor = EpubTextExtractor(options)
    failures = 0
    for report in extractor.process_many(Path(name) for name in args.files):
        if report.ok:
            LOGGER.info(
                "%s: %d items rendered, %d skipped",
                report.source_path,
                len(report.rendered),
                len(report.skipped),
            )
        else:
            failures += 1
    return 0 if failures == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
