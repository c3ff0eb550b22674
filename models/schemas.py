"""
Pydantic schemas shared by the reader, resolver, relocator and driver.

These models describe one file's journey: the tags read from it, the
destination computed for it and the outcome of moving it there.
"""

import string
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ID3v1 pads fixed-width fields with NULs, some taggers with spaces
PADDING_CHARACTERS = string.whitespace + "\x00"

# Not allowed in a file or directory name on common filesystems
FORBIDDEN_CHARACTERS = '<>:"/\\|?*'
CONTROL_CHARACTERS = "".join(chr(code) for code in range(0x20)) + "\x7f"


def is_usable_segment(value: str) -> bool:
    """True when value can stand on its own as a directory or file name."""
    if not value.strip(" .") or value.strip() != value:
        return False
    return not any(c in FORBIDDEN_CHARACTERS or c in CONTROL_CHARACTERS for c in value)


class AudioFile(BaseModel):
    """A candidate input file."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Path to the audio file")

    @property
    def extension(self) -> str:
        """Lower-cased suffix including the dot, '' when there is none."""
        return self.path.suffix.lower()

    @property
    def stem(self) -> str:
        return self.path.stem


class Tag(BaseModel):
    """Artist, album and title read from a file; absent fields are None."""

    model_config = ConfigDict(frozen=True)

    artist: Optional[str] = Field(default=None, description="Artist or album artist")
    album: Optional[str] = Field(default=None, description="Album title")
    title: Optional[str] = Field(default=None, description="Track title")

    @field_validator("artist", "album", "title", mode="before")
    @classmethod
    def _trim(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip(PADDING_CHARACTERS)
        return value or None

    def merge_with(self, other: Optional["Tag"]) -> "Tag":
        """Create a new tag by filling missing fields from other."""
        if other is None:
            return self
        return Tag(
            artist=self.artist or other.artist,
            album=self.album or other.album,
            title=self.title or other.title,
        )

    def is_complete(self) -> bool:
        return all(v is not None for v in (self.artist, self.album, self.title))

    def is_empty(self) -> bool:
        return all(v is None for v in (self.artist, self.album, self.title))


class ResolverPolicy(BaseModel):
    """Placeholders and sanitization rules applied when building paths."""

    model_config = ConfigDict(frozen=True)

    unknown_artist: str = "Unknown Artist"
    unknown_album: str = "Unknown Album"
    unknown_title: str = "Unknown Title"
    replacement: str = "_"
    max_segment_bytes: int = Field(default=255, ge=16)
    prefer_album_artist: bool = True

    @field_validator("unknown_artist", "unknown_album", "unknown_title")
    @classmethod
    def _usable_placeholder(cls, value: str) -> str:
        if not is_usable_segment(value):
            raise ValueError(f"placeholder is not a usable path segment: {value!r}")
        return value

    @field_validator("replacement")
    @classmethod
    def _usable_replacement(cls, value: str) -> str:
        # Empty is allowed and drops unsafe characters instead
        if value and not is_usable_segment(value):
            raise ValueError(f"replacement would produce unsafe names: {value!r}")
        return value

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ResolverPolicy":
        """Build the policy from the ``organize`` section of a loaded config."""
        organize = config.get("organize", {})
        return cls(**{k: v for k, v in organize.items() if k in cls.model_fields})


class DestinationPath(BaseModel):
    """A resolved, sanitized destination: root / artist / album / filename."""

    model_config = ConfigDict(frozen=True)

    root: Path
    artist_segment: str
    album_segment: str
    filename: str

    @field_validator("artist_segment", "album_segment", "filename")
    @classmethod
    def _single_segment(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"not a usable path segment: {value!r}")
        return value

    @property
    def path(self) -> Path:
        return self.root / self.artist_segment / self.album_segment / self.filename

    @property
    def directory(self) -> Path:
        return self.root / self.artist_segment / self.album_segment

    def with_filename(self, filename: str) -> "DestinationPath":
        return self.model_copy(update={"filename": filename})

    def __str__(self) -> str:
        return str(self.path)


class RelocationOutcome(str, Enum):
    """What the relocator did with a file."""

    MOVED = "moved"
    COPIED = "copied"
    ALREADY_IN_PLACE = "already_in_place"
    PLANNED = "planned"


class RelocationResult(BaseModel):
    """Outcome of a relocation and the path the file ended up at."""

    outcome: RelocationOutcome
    destination: Path


class ProcessingResult(BaseModel):
    """Result of processing a single file."""

    original_path: Path
    success: bool
    tag: Optional[Tag] = None
    destination: Optional[Path] = None
    outcome: Optional[RelocationOutcome] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    processing_time_seconds: float = 0.0


class BatchProcessingResult(BaseModel):
    """Result of processing a batch of files."""

    total_files: int
    processed_successfully: int
    failed_files: int
    already_in_place: int
    total_processing_time_seconds: float
    results: List[ProcessingResult]

    @property
    def all_succeeded(self) -> bool:
        return self.failed_files == 0
