"""
Moving files to their resolved destinations.

A move never overwrites an existing file and never leaves a moment where
neither the source nor a complete destination exists on disk.
"""

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Tuple

from filesystem.path_resolver import truncate_utf8
from models.schemas import DestinationPath, RelocationOutcome, RelocationResult
from utils.exceptions import RelocateError

logger = logging.getLogger(__name__)

MAX_COLLISION_ATTEMPTS = 1000
PARTIAL_SUFFIX = ".tagsort-part"


class Relocator:
    """Creates missing directories and moves (or copies) files into place."""

    def __init__(self, keep_source: bool = False, dry_run: bool = False,
                 max_name_bytes: int = 255):
        """
        Initialize the relocator.

        Args:
            keep_source: Copy files instead of moving them
            dry_run: Only compute final destinations, touch nothing
            max_name_bytes: Longest file name, in UTF-8 bytes, including
                collision counters and temporary copy names
        """
        self.keep_source = keep_source
        self.dry_run = dry_run
        self.max_name_bytes = max_name_bytes

    def relocate(self, source: Path, destination: DestinationPath) -> RelocationResult:
        """
        Place the source file at its destination.

        Args:
            source: Path of the file to relocate
            destination: Resolved destination

        Returns:
            RelocationResult with the outcome and the path actually used

        Raises:
            RelocateError: If the file cannot be placed
        """
        if not source.is_file():
            raise RelocateError(str(source), str(destination.path), "Source file does not exist")

        target, placed = self._free_destination(source, destination)
        if placed:
            logger.debug(f"Already in place: {source} at {target}")
            return RelocationResult(outcome=RelocationOutcome.ALREADY_IN_PLACE, destination=target)

        if self.dry_run:
            logger.info(f"Dry-run would place {source} -> {target}")
            return RelocationResult(outcome=RelocationOutcome.PLANNED, destination=target)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RelocateError(str(source), str(target), f"Cannot create directory: {e}")

        if self.keep_source:
            self._copy_into_place(source, target)
            logger.info(f"Copied file: {source} -> {target}")
            return RelocationResult(outcome=RelocationOutcome.COPIED, destination=target)

        self._move(source, target)
        logger.info(f"Moved file: {source} -> {target}")
        return RelocationResult(outcome=RelocationOutcome.MOVED, destination=target)

    def _free_destination(self, source: Path, destination: DestinationPath) -> Tuple[Path, bool]:
        """
        Find the first destination name that is free.

        Returns:
            (path, placed) where placed is True when the source already
            occupies the canonical name or one of its numbered variants.
            In copy mode an identical earlier copy counts as placed too.
        """
        stem, suffix = _split_filename(destination.filename)
        candidate = destination.path

        for counter in range(MAX_COLLISION_ATTEMPTS + 1):
            if counter:
                candidate = destination.with_filename(
                    self._numbered_name(stem, suffix, counter)
                ).path

            if not os.path.lexists(candidate):
                if counter:
                    logger.warning(f"Destination exists, using: {candidate}")
                return candidate, False
            if _same_file(source, candidate):
                return candidate, True
            if self.keep_source and _files_are_identical(source, candidate):
                logger.info(f"File already exists and is identical: {candidate}")
                return candidate, True

        raise RelocateError(str(source), str(destination.path), "Too many duplicates")

    def _numbered_name(self, stem: str, suffix: str, counter: int) -> str:
        """'<stem> (N)<suffix>', shortening the stem so the name stays within the limit."""
        marker = f" ({counter})"
        allowed = self.max_name_bytes - len(f"{marker}{suffix}".encode("utf-8"))
        return f"{truncate_utf8(stem, allowed)}{marker}{suffix}"

    def _move(self, source: Path, target: Path) -> None:
        try:
            os.rename(source, target)
            return
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise RelocateError(str(source), str(target), str(e))

        logger.debug(f"Cross-device move, copying {source} -> {target}")
        self._copy_into_place(source, target)

        try:
            source.unlink()
        except OSError as e:
            logger.warning(f"Original file wasn't removed due to error: {source}: {e}")

    def _copy_into_place(self, source: Path, target: Path) -> None:
        """Copy through a temporary sibling so the target is never half-written."""
        partial = self._partial_path(target)
        try:
            shutil.copy2(source, partial)
            os.replace(partial, target)
        except OSError as e:
            try:
                partial.unlink()
            except FileNotFoundError:
                pass
            except OSError as cleanup_error:
                logger.warning(f"Could not remove partial copy {partial}: {cleanup_error}")
            raise RelocateError(str(source), str(target), str(e))

    def _partial_path(self, target: Path) -> Path:
        allowed = self.max_name_bytes - len(f".{PARTIAL_SUFFIX}".encode("utf-8"))
        return target.with_name(f".{truncate_utf8(target.name, allowed)}{PARTIAL_SUFFIX}")


def _split_filename(filename: str):
    path = Path(filename)
    return path.stem, path.suffix


def _same_file(first: Path, second: Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except OSError:
        return False


def _files_are_identical(first: Path, second: Path) -> bool:
    """Same size and modification time; copy2 preserves the latter."""
    try:
        stat1 = first.stat()
        stat2 = second.stat()
    except OSError:
        return False

    if stat1.st_size != stat2.st_size:
        return False
    return abs(stat1.st_mtime - stat2.st_mtime) < 1.0
