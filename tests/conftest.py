"""Shared test fixtures for tagsort tests."""

from pathlib import Path
from typing import Optional

import pytest
from mutagen.id3 import ID3, TALB, TIT2, TPE1, TPE2

from utils.config_loader import load_config

# Stand-in for MPEG audio frames; the tag code never decodes audio
AUDIO_PAYLOAD = b"\xff\xfb\x90\x64" + bytes(range(256)) * 4

# ID3v2.4 header with a size that is not synchsafe
CORRUPT_ID3V2_HEADER = b"ID3\x04\x00\x00\xff\xff\xff\xff"


def id3v1_block(title: str = "", artist: str = "", album: str = "",
                year: str = "", comment: str = "", genre: int = 255,
                pad: bytes = b"\x00") -> bytes:
    """Build a 128-byte ID3v1 trailer."""
    def field(value: str, size: int) -> bytes:
        return value.encode("latin-1")[:size].ljust(size, pad)

    return (b"TAG" + field(title, 30) + field(artist, 30) + field(album, 30)
            + field(year, 4) + field(comment, 30) + bytes([genre]))


def write_id3v2(path: Path, title: Optional[str] = None, artist: Optional[str] = None,
                album: Optional[str] = None, album_artist: Optional[str] = None) -> None:
    """Write an ID3v2.4 tag at the start of an existing file."""
    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=title))
    if artist is not None:
        tags.add(TPE1(encoding=3, text=artist))
    if album is not None:
        tags.add(TALB(encoding=3, text=album))
    if album_artist is not None:
        tags.add(TPE2(encoding=3, text=album_artist))
    tags.save(str(path), v1=0)


@pytest.fixture
def make_audio_file(tmp_path):
    """
    Factory creating audio files under tmp_path/incoming.

    v2 and v1 are dicts of tag fields; v1 is appended after v2 is written
    so the two schemes can disagree.
    """
    incoming = tmp_path / "incoming"

    def _make(name: str, v2: Optional[dict] = None, v1: Optional[dict] = None,
              payload: bytes = AUDIO_PAYLOAD, prefix: bytes = b"") -> Path:
        path = incoming / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(prefix + payload)
        if v2 is not None:
            write_id3v2(path, **v2)
        if v1 is not None:
            with open(path, "ab") as f:
                f.write(id3v1_block(**v1))
        return path

    return _make


@pytest.fixture
def default_config():
    """Default configuration without any file or environment overrides."""
    return load_config(None)


@pytest.fixture
def library(tmp_path):
    """Destination root for relocated files."""
    return tmp_path / "library"
