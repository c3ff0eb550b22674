#!/usr/bin/env python3
"""
tagsort: sort audio files into <root>/<artist>/<album>/<title>.<ext>

Artist, album and title come from the files' ID3v2 tags, falling back to
ID3v1. Files without usable tags still get a place under the
"Unknown Artist" and "Unknown Album" folders.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from utils.logging_config import configure_library_logging, setup_logging
from utils.config_loader import get_config_template, load_config
from pipeline.orchestrator import SortPipeline
from models.schemas import BatchProcessingResult, ProcessingResult, RelocationOutcome
from utils.exceptions import TagSortError

DEFAULT_CONFIG_NAME = "config.yaml"


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser."""
    parser = argparse.ArgumentParser(
        prog="tagsort",
        description="Move audio files into an artist/album/title tree based on their tags",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -t ~/Music ~/Downloads/*.mp3       # Move individual files
  %(prog)s -t ~/Music ~/Downloads             # Walk a directory recursively
  %(prog)s -t ~/Music --keep-source incoming  # Copy, leave the originals
  %(prog)s -t ~/Music --dry-run incoming      # Show where files would go
        """
    )

    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        metavar="PATH",
        help="Audio files or directories to sort"
    )

    parser.add_argument(
        "-t", "--target-directory",
        type=Path,
        metavar="DIRECTORY",
        help="Directory where to put audio files"
    )

    parser.add_argument(
        "-k", "--keep-source",
        action="store_true",
        help="Copy files instead of moving them"
    )

    parser.add_argument(
        "-n", "--dry-run",
        action="store_true",
        help="Report destinations without touching any file"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help=f"Path to config file (default: ./{DEFAULT_CONFIG_NAME} if present)"
    )

    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print a configuration template and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write logs to this file (rotated at 10MB)"
    )

    return parser


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.print_config:
        return args

    if args.target_directory is None:
        parser.error("the following arguments are required: -t/--target-directory")
    if not args.paths:
        parser.error("you must specify at least one file or directory")

    return args


STATUS_STYLES = {
    RelocationOutcome.MOVED: "green",
    RelocationOutcome.COPIED: "green",
    RelocationOutcome.ALREADY_IN_PLACE: "cyan",
    RelocationOutcome.PLANNED: "yellow",
}


def render_status_line(result: ProcessingResult, name_width: int) -> Text:
    """One aligned report line: name, dots, coloured outcome."""
    name = result.original_path.name or str(result.original_path)
    # Even the longest name gets a few dots
    dots = "." * (name_width - len(name) + 10)

    if not result.success:
        status, style = f"Error ({result.error_kind}): {result.error_message}", "red"
    elif result.outcome == RelocationOutcome.ALREADY_IN_PLACE:
        status, style = "Already in place", STATUS_STYLES[result.outcome]
    elif result.outcome == RelocationOutcome.PLANNED:
        status, style = f"Planned -> {result.destination}", STATUS_STYLES[result.outcome]
    else:
        status, style = f"Ok -> {result.destination}", STATUS_STYLES.get(result.outcome, "green")

    line = Text(f"{name}{dots}")
    line.append(status, style=style)
    return line


def format_status_line(result: ProcessingResult, name_width: int) -> str:
    return render_status_line(result, name_width).plain


def print_report(batch: BatchProcessingResult, console: Optional[Console] = None) -> None:
    """Print per-file status lines followed by a summary."""
    # Colours only appear on a terminal; long paths are never re-wrapped
    console = console or Console(highlight=False, soft_wrap=True)

    names = [r.original_path.name or str(r.original_path) for r in batch.results]
    name_width = max((len(n) for n in names), default=1)

    for result in batch.results:
        console.print(render_status_line(result, name_width))

    console.print(f"\nTotal files: {batch.total_files}", markup=False)
    console.print(f"Successful: {batch.processed_successfully}"
                  f" ({batch.already_in_place} already in place)", markup=False)
    console.print(f"Failed: {batch.failed_files}", markup=False,
                  style="red" if batch.failed_files else None)


def resolve_config_path(explicit: Optional[Path]) -> Optional[Path]:
    if explicit:
        return explicit
    candidate = Path.cwd() / DEFAULT_CONFIG_NAME
    return candidate if candidate.exists() else None


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    if args.print_config:
        print(get_config_template(), end="")
        return 0

    try:
        config_path = resolve_config_path(args.config)
        if args.config and not args.config.exists():
            raise TagSortError(f"Config file not found: {args.config}")
        config = load_config(config_path)

        log_level = "DEBUG" if args.verbose else config["logging"]["level"]
        log_file = args.log_file or (
            Path(config["logging"]["file"]).expanduser() if config["logging"].get("file") else None
        )
        logger = setup_logging(log_level, log_file, log_format=config["logging"]["format"])
        configure_library_logging()

        if config_path:
            logger.info(f"Loaded config from: {config_path}")

        pipeline = SortPipeline(
            config=config,
            target_root=args.target_directory,
            keep_source=args.keep_source,
            dry_run=args.dry_run
        )

        batch = pipeline.process_paths(args.paths)
        print_report(batch)

        return 0 if batch.all_succeeded else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        return 1
    except TagSortError as e:
        logging.getLogger("tagsort").debug("Fatal error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
