"""
Tag extraction for audio files.

Two legacy tag schemes are consulted in priority order: the richer
ID3v2 block at the start of the file, then the fixed-layout ID3v1
trailer in its last 128 bytes. Each scheme yields a partial Tag and the
first non-absent value wins per field.
"""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, List, Optional, Tuple

from mutagen import MutagenError
from mutagen.id3 import ID3, ID3NoHeaderError, ID3UnsupportedVersionError, ParseID3v1

from models.schemas import PADDING_CHARACTERS, Tag
from utils.exceptions import CorruptMetadataError, UnreadableFileError, UnsupportedFormatError

logger = logging.getLogger(__name__)

ID3V1_BLOCK_SIZE = 128

Strategy = Callable[[BinaryIO, Path], Optional[Tag]]


class MetadataReader:
    """Reads artist, album and title without ever modifying the file."""

    def __init__(self, audio_extensions: Iterable[str], prefer_album_artist: bool = True):
        """
        Initialize the reader.

        Args:
            audio_extensions: Supported audio file extensions (with dots)
            prefer_album_artist: Use the album artist frame before the track artist
        """
        self.audio_extensions = {ext.lower() for ext in audio_extensions}
        self.prefer_album_artist = prefer_album_artist
        self.strategies: Tuple[Tuple[str, Strategy], ...] = (
            ("ID3v2", self._read_id3v2),
            ("ID3v1", self._read_id3v1),
        )

    def is_supported(self, file_path: Path) -> bool:
        return file_path.suffix.lower() in self.audio_extensions

    def read(self, file_path: Path) -> Tag:
        """
        Extract tags from an audio file.

        Args:
            file_path: Path to the audio file

        Returns:
            Tag with absent fields set to None

        Raises:
            UnsupportedFormatError: If the extension is not a supported audio format
            UnreadableFileError: If the file cannot be opened
            CorruptMetadataError: If a tag block is present but malformed
        """
        if not self.is_supported(file_path):
            raise UnsupportedFormatError(str(file_path), file_path.suffix.lower() or None)

        try:
            fileobj = open(file_path, 'rb')
        except OSError as e:
            raise UnreadableFileError(str(file_path), e.strerror or str(e))

        tag = Tag()
        with fileobj:
            for scheme, strategy in self.strategies:
                partial = strategy(fileobj, file_path)
                if partial is None:
                    logger.debug(f"No usable {scheme} tag in {file_path}")
                    continue

                tag = tag.merge_with(partial)
                if tag.is_complete():
                    break

        if tag.is_empty():
            logger.info(f"No tags found in {file_path}")
        return tag

    def _read_id3v2(self, fileobj: BinaryIO, file_path: Path) -> Optional[Tag]:
        """Read the ID3v2 block, or return None when the file has none."""
        fileobj.seek(0)
        try:
            tags = ID3(fileobj, load_v1=False)
        except ID3NoHeaderError:
            return None
        except ID3UnsupportedVersionError as e:
            logger.warning(f"Ignoring ID3v2 tag of unsupported version in {file_path}: {e}")
            return None
        except (MutagenError, OSError, ValueError, EOFError) as e:
            raise CorruptMetadataError(str(file_path), f"malformed ID3v2 tag: {e}")

        track_artist = self._first_text(tags.getall("TPE1"))
        album_artist = self._first_text(tags.getall("TPE2"))
        if self.prefer_album_artist:
            artist = album_artist or track_artist
        else:
            artist = track_artist or album_artist

        tag = Tag(
            artist=artist,
            album=self._first_text(tags.getall("TALB")),
            title=self._first_text(tags.getall("TIT2")),
        )
        return None if tag.is_empty() else tag

    def _read_id3v1(self, fileobj: BinaryIO, file_path: Path) -> Optional[Tag]:
        """Read the 128-byte ID3v1 trailer, or return None when there is none."""
        size = os.fstat(fileobj.fileno()).st_size
        if size < ID3V1_BLOCK_SIZE:
            return None

        fileobj.seek(size - ID3V1_BLOCK_SIZE)
        frames = ParseID3v1(fileobj.read(ID3V1_BLOCK_SIZE))
        if not frames:
            return None

        tag = Tag(
            artist=self._first_text([frames["TPE1"]] if "TPE1" in frames else []),
            album=self._first_text([frames["TALB"]] if "TALB" in frames else []),
            title=self._first_text([frames["TIT2"]] if "TIT2" in frames else []),
        )
        return None if tag.is_empty() else tag

    @staticmethod
    def _first_text(frames: List) -> Optional[str]:
        """First non-blank text value across the given frames."""
        for frame in frames:
            for value in getattr(frame, "text", []):
                text = str(value).strip(PADDING_CHARACTERS)
                if text:
                    return text
        return None
