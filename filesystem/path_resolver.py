"""
Canonical destination paths for tagged audio files.

Layout: <root>/<artist>/<album>/<title><ext>. Resolution is a pure
function of its inputs, so resolving an already organized file yields
the path it already lives at.
"""

import re
from pathlib import Path
from typing import Optional

from models.schemas import (
    CONTROL_CHARACTERS, FORBIDDEN_CHARACTERS, DestinationPath, ResolverPolicy, Tag
)

RESERVED_WINDOWS_NAMES = frozenset(
    ["CON", "PRN", "AUX", "NUL"]
    + [f"COM{i}" for i in range(1, 10)]
    + [f"LPT{i}" for i in range(1, 10)]
)

_UNSAFE_PATTERN = re.compile(
    "[" + re.escape(FORBIDDEN_CHARACTERS + CONTROL_CHARACTERS) + "]"
)


def truncate_utf8(text: str, max_bytes: int) -> str:
    """Cut text to at most max_bytes of UTF-8 without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    truncated = encoded[:max(max_bytes, 0)].decode("utf-8", errors="ignore")
    return truncated.rstrip(". ").strip()


class PathResolver:
    """Turns a Tag into a sanitized DestinationPath under a root directory."""

    def __init__(self, policy: Optional[ResolverPolicy] = None):
        self.policy = policy or ResolverPolicy()

    def resolve(self, root: Path, tag: Tag, original_extension: str,
                original_stem: str = "") -> DestinationPath:
        """
        Compute the destination for a file.

        Args:
            root: Destination root directory
            tag: Tags read from the file
            original_extension: Source extension, with or without the dot
            original_stem: Source file name without extension, used when
                the title is missing

        Returns:
            DestinationPath whose segments are all non-empty and safe
        """
        policy = self.policy
        extension = self.normalize_extension(original_extension)

        artist = self.sanitize_segment(tag.artist, policy.unknown_artist)
        album = self.sanitize_segment(tag.album, policy.unknown_album)

        stem_fallback = self.sanitize_segment(original_stem, policy.unknown_title)
        stem = self.sanitize_segment(tag.title, stem_fallback)

        return DestinationPath(
            root=Path(root),
            artist_segment=artist,
            album_segment=album,
            filename=self.fit_filename(stem, extension),
        )

    def sanitize_segment(self, value: Optional[str], placeholder: str) -> str:
        """
        Make a single path component safe on common filesystems.

        Reserved punctuation and control characters become the policy's
        replacement, surrounding whitespace and trailing dots are removed
        and Windows device names are defused. Anything that ends up empty,
        "." or ".." falls back to the placeholder.
        """
        if value is None:
            return placeholder

        segment = self._clean(value)
        base, dot, rest = segment.partition(".")
        if base.strip().upper() in RESERVED_WINDOWS_NAMES:
            segment = self._clean(f"{self.policy.replacement}{dot}{rest}")

        segment = truncate_utf8(segment, self.policy.max_segment_bytes)
        if not segment or segment in (".", ".."):
            return placeholder
        return segment

    def fit_filename(self, stem: str, extension: str) -> str:
        """Join stem and extension, shortening the stem to the byte limit."""
        allowed = max(self.policy.max_segment_bytes - len(extension.encode("utf-8")), 1)
        stem = (truncate_utf8(stem, allowed)
                or truncate_utf8(self.policy.unknown_title, allowed)
                or self.policy.replacement
                or "_")
        return f"{stem}{extension}"

    @staticmethod
    def normalize_extension(extension: str) -> str:
        extension = _UNSAFE_PATTERN.sub("_", (extension or "").strip().lower())
        if not extension or extension == ".":
            return ""
        if not extension.startswith("."):
            extension = f".{extension}"
        return extension

    def _clean(self, text: str) -> str:
        text = _UNSAFE_PATTERN.sub(self.policy.replacement, text)
        return text.strip().rstrip(". ").strip()
