"""
Pipeline orchestrator that runs each file through read, resolve and relocate.

Files are handled one at a time. A failure on one file is recorded in its
ProcessingResult and never stops the rest of the batch.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from models.schemas import (
    AudioFile, BatchProcessingResult, ProcessingResult, RelocationOutcome, ResolverPolicy
)
from filesystem.file_ops import FileSystemOperations
from filesystem.metadata_reader import MetadataReader
from filesystem.path_resolver import PathResolver
from filesystem.relocator import Relocator
from utils.exceptions import (
    FilesystemError, MetadataError, RelocateError, TagSortError, UnreadableFileError
)
from utils.logging_config import log_processing_progress

logger = logging.getLogger(__name__)


class SortPipeline:
    """
    Main pipeline orchestrator for sorting audio files by their tags.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        target_root: Path,
        keep_source: bool = False,
        dry_run: bool = False
    ):
        """
        Initialize the sorting pipeline.

        Args:
            config: Configuration dictionary
            target_root: Root directory of the organized library
            keep_source: Copy files instead of moving them
            dry_run: Only report planned destinations
        """
        self.config = config
        self.target_root = Path(target_root).expanduser().resolve()
        self.dry_run = dry_run

        filesystem_config = config['filesystem']
        policy = ResolverPolicy.from_config(config)

        self.filesystem_ops = FileSystemOperations(
            audio_extensions=filesystem_config['audio_extensions'],
            ignored_dirs=filesystem_config['ignored_dirs']
        )
        self.reader = MetadataReader(
            audio_extensions=filesystem_config['audio_extensions'],
            prefer_album_artist=policy.prefer_album_artist
        )
        self.resolver = PathResolver(policy)
        self.relocator = Relocator(
            keep_source=keep_source,
            dry_run=dry_run,
            max_name_bytes=policy.max_segment_bytes
        )

    def process_paths(self, inputs: Iterable[Path]) -> BatchProcessingResult:
        """
        Process every audio file named by, or found under, the given paths.

        Args:
            inputs: Files and directories to sort

        Returns:
            BatchProcessingResult with one entry per file

        Raises:
            TagSortError: If the target root cannot be used at all
        """
        start_time = time.time()
        self._validate_target_root()

        logger.info(f"Sorting into {self.target_root}"
                    + (" (dry run)" if self.dry_run else ""))

        files, results = self.collect_files(inputs)
        logger.info(f"Found {len(files)} files to process")

        for i, file_path in enumerate(files, start=1):
            results.append(self.process_single_file(file_path))
            log_processing_progress(i, len(files), logger)

        batch = self._summarize(results, time.time() - start_time)
        logger.info(f"Processing complete: {batch.processed_successfully} succeeded, "
                    f"{batch.failed_files} failed, {batch.already_in_place} already in place")
        return batch

    def collect_files(self, inputs: Iterable[Path]) -> Tuple[List[Path], List[ProcessingResult]]:
        """
        Expand inputs up front so files moved during the run are never revisited.

        Returns:
            (files to process, failed results for inputs that could not be scanned)
        """
        files: List[Path] = []
        failures: List[ProcessingResult] = []
        seen = set()

        for input_path in inputs:
            input_path = Path(input_path)
            if not input_path.exists():
                error = UnreadableFileError(str(input_path), "Path does not exist")
                logger.error(str(error))
                failures.append(self._failed(input_path, error, 0.0))
                continue

            try:
                candidates = self.filesystem_ops.expand_input(input_path)
            except FilesystemError as e:
                logger.error(str(e))
                failures.append(ProcessingResult(
                    original_path=input_path,
                    success=False,
                    error_kind=UnreadableFileError.kind,
                    error_message=e.reason or str(e)
                ))
                continue

            for candidate in candidates:
                key = candidate.resolve()
                if key in seen:
                    continue
                seen.add(key)
                files.append(candidate)

        return files, failures

    def process_single_file(self, file_path: Path) -> ProcessingResult:
        """
        Process a single audio file through all pipeline stages.

        Args:
            file_path: Path to the audio file

        Returns:
            ProcessingResult with the outcome
        """
        start_time = time.time()
        tag = None

        try:
            logger.debug(f"Processing file: {file_path}")
            audio_file = AudioFile(path=file_path)

            tag = self.reader.read(audio_file.path)

            destination = self.resolver.resolve(
                self.target_root, tag, audio_file.extension, audio_file.stem
            )

            relocation = self.relocator.relocate(audio_file.path, destination)

        except (MetadataError, RelocateError) as e:
            logger.error(f"Failed to process {file_path}: {e}")
            return self._failed(file_path, e, time.time() - start_time, tag)

        return ProcessingResult(
            original_path=file_path,
            success=True,
            tag=tag,
            destination=relocation.destination,
            outcome=relocation.outcome,
            processing_time_seconds=time.time() - start_time
        )

    def _validate_target_root(self) -> None:
        if self.target_root.exists() and not self.target_root.is_dir():
            raise TagSortError(f"Target path is not a directory: {self.target_root}")

    @staticmethod
    def _failed(file_path: Path, error: TagSortError, elapsed: float,
                tag=None) -> ProcessingResult:
        return ProcessingResult(
            original_path=file_path,
            success=False,
            tag=tag,
            error_kind=error.kind,
            error_message=getattr(error, "reason", None) or str(error),
            processing_time_seconds=elapsed
        )

    @staticmethod
    def _summarize(results: List[ProcessingResult], elapsed: float) -> BatchProcessingResult:
        successful = [r for r in results if r.success]
        return BatchProcessingResult(
            total_files=len(results),
            processed_successfully=len(successful),
            failed_files=len(results) - len(successful),
            already_in_place=sum(
                1 for r in successful if r.outcome == RelocationOutcome.ALREADY_IN_PLACE
            ),
            total_processing_time_seconds=elapsed,
            results=results
        )
