"""
Input discovery for tagsort.

Turns the paths given on the command line into an ordered list of
candidate audio files. Explicitly named files are always kept so that the
reader can report on them; directories are walked recursively and only
contribute files with a configured audio extension.
"""

from pathlib import Path
from typing import List
import logging

from utils.exceptions import FilesystemError

logger = logging.getLogger(__name__)


class FileSystemOperations:
    """Handles input discovery with proper error handling."""

    def __init__(self, audio_extensions: List[str], ignored_dirs: List[str]):
        """
        Initialize filesystem operations.

        Args:
            audio_extensions: List of supported audio file extensions (with dots)
            ignored_dirs: List of directory names to ignore during scanning
        """
        self.audio_extensions = {ext.lower() for ext in audio_extensions}
        self.ignored_dirs = {name.lower() for name in ignored_dirs}

    def expand_input(self, path: Path) -> List[Path]:
        """
        Expand a command line path into candidate files.

        Args:
            path: A file or a directory to process

        Returns:
            The file itself, or the audio files found under the directory

        Raises:
            FilesystemError: If a directory cannot be scanned
        """
        if path.is_dir():
            return self.discover_audio_files(path)
        return [path]

    def discover_audio_files(self, root_dir: Path, recursive: bool = True) -> List[Path]:
        """
        Discover audio files in a directory tree.

        Args:
            root_dir: Root directory to scan
            recursive: Whether to scan subdirectories recursively

        Returns:
            Sorted list of discovered audio files

        Raises:
            FilesystemError: If the root directory cannot be accessed
        """
        if not root_dir.exists():
            raise FilesystemError(str(root_dir), "scan", "Directory does not exist")

        if not root_dir.is_dir():
            raise FilesystemError(str(root_dir), "scan", "Path is not a directory")

        found = []
        try:
            pattern = "**/*" if recursive else "*"
            for path in root_dir.glob(pattern):
                if not path.is_file():
                    continue

                if self._should_ignore_parent(path, root_dir):
                    continue

                if path.suffix.lower() in self.audio_extensions:
                    found.append(path)

        except PermissionError as e:
            raise FilesystemError(str(root_dir), "scan", f"Permission denied: {e}")
        except OSError as e:
            raise FilesystemError(str(root_dir), "scan", f"OS error: {e}")

        found.sort()
        logger.debug(f"Found {len(found)} audio files under {root_dir}")
        return found

    def _should_ignore_parent(self, file_path: Path, root_dir: Path) -> bool:
        """Check if any directory between root_dir and the file should be ignored."""
        try:
            relative_parts = file_path.relative_to(root_dir).parts[:-1]
        except ValueError:
            relative_parts = file_path.parent.parts
        return any(part.lower() in self.ignored_dirs for part in relative_parts)

