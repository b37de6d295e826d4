# ============================================================================
# src/claim_packager/cli.py
# ============================================================================
"""
Command line entry point.

Usage:
    claim-packager                       # scans ./patients (or PATIENTS_FOLDER)
    claim-packager D:\\Claims\\March       # scans the given folder
    claim-packager patients --workers 4 --lenient
"""

from pathlib import Path
from typing import List, Optional
import argparse
import logging
import re
import sys

from .config import base_settings, logging_settings
from .core.pipeline import ClaimPipeline
from .utils.exceptions import ConfigurationError, IntakeError
from .utils.logging import LOG_LEVELS, setup_logging

logger = logging.getLogger(__name__)

_CARET_ESCAPE = re.compile(r'\^(.)?', re.DOTALL)


def normalize_folder_argument(words: List[str]) -> Optional[Path]:
    """
    Rebuild a folder path from command line words.

    Paths dragged onto a cmd.exe window arrive split on spaces, with a
    dangling closing quote and `^` escapes in front of special characters.
    """
    if not words:
        return None
    folder = " ".join(words)
    if not folder.startswith('"') and folder.endswith('"'):
        folder = folder[:-1]
    folder = _CARET_ESCAPE.sub(lambda match: match.group(1) or "", folder)
    return Path(folder)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claim-packager",
        description="Package patient folders into claim PDFs and submit them"
    )
    parser.add_argument("folder", nargs="*", help="Patients folder (default: configured PATIENTS_FOLDER)")
    parser.add_argument("--workers", type=int, default=None, help="Cases processed concurrently")
    parser.add_argument("--no-convert", action="store_true",
                        help="Do not write converted PDFs back into patient folders")
    parser.add_argument("--lenient", action="store_true",
                        help="Skip unreadable sources instead of failing the case")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None,
                        help="Logging level (default: configured LOG_LEVEL)")
    parser.add_argument("--log-file", type=Path, default=None, help="Run log file")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    try:
        setup_logging(
            level=args.log_level or logging_settings.LOG_LEVEL,
            log_file=args.log_file or logging_settings.LOG_FILE,
            format_json=args.json_logs or logging_settings.LOG_JSON,
        )
    except ConfigurationError as e:
        parser.error(str(e))

    folder = normalize_folder_argument(args.folder)
    if folder is None:
        folder = base_settings.PATIENTS_FOLDER
        logger.info(f"Folder not given. Using {folder}")

    try:
        pipeline = ClaimPipeline(
            convert_to_pdf=False if args.no_convert else None,
            strict=False if args.lenient else None,
            max_workers=args.workers,
        )
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        pipeline.run(folder)
    except IntakeError as e:
        logger.error(f"Error: Getting list of patients from folder: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
