"""Tests for filesystem/path_resolver.py."""

from pathlib import Path

import pytest

from filesystem.path_resolver import PathResolver
from models.schemas import ResolverPolicy, Tag

ROOT = Path("/music")


@pytest.fixture
def resolver():
    """Resolver with default placeholders."""
    return PathResolver()


class TestResolve:
    """Destination layout."""

    def test_complete_tag(self, resolver):
        """Should build root/artist/album/title.ext."""
        tag = Tag(artist="Radiohead", album="OK Computer", title="Airbag")
        dest = resolver.resolve(ROOT, tag, ".mp3")
        assert dest.path == Path("/music/Radiohead/OK Computer/Airbag.mp3")
        assert dest.directory == Path("/music/Radiohead/OK Computer")
        assert str(dest) == "/music/Radiohead/OK Computer/Airbag.mp3"

    def test_untagged_file_keeps_its_name(self, resolver):
        """Should use placeholders and the original stem when tags are missing."""
        dest = resolver.resolve(ROOT, Tag(), ".mp3", "weird")
        assert dest.path == Path("/music/Unknown Artist/Unknown Album/weird.mp3")

    def test_missing_album_only(self, resolver):
        """Should substitute only the missing field."""
        dest = resolver.resolve(ROOT, Tag(artist="Björk", title="Jóga"), ".mp3", "01")
        assert dest.path == Path("/music/Björk/Unknown Album/Jóga.mp3")

    def test_title_placeholder_without_stem(self, resolver):
        """Should fall back to the title placeholder when no stem is usable."""
        dest = resolver.resolve(ROOT, Tag(artist="A", album="B"), ".mp3", "...")
        assert dest.filename == "Unknown Title.mp3"

    def test_extension_lower_cased(self, resolver):
        """Should normalize the extension to lower case."""
        dest = resolver.resolve(ROOT, Tag(title="Loud"), ".MP3")
        assert dest.filename == "Loud.mp3"

    def test_extension_without_dot(self, resolver):
        """Should accept an extension given without the dot."""
        assert resolver.resolve(ROOT, Tag(title="Loud"), "mp2").filename == "Loud.mp2"

    def test_no_extension(self, resolver):
        """Should produce a bare filename when the source has no extension."""
        assert resolver.resolve(ROOT, Tag(title="Loud"), "").filename == "Loud"

    def test_deterministic(self, resolver):
        """Should return equal destinations for equal inputs."""
        tag = Tag(artist="AC/DC", album="Back in Black", title="Hells Bells")
        assert resolver.resolve(ROOT, tag, ".mp3") == resolver.resolve(ROOT, tag, ".mp3")

    def test_custom_placeholders(self):
        """Should honor placeholders and replacement from the policy."""
        resolver = PathResolver(ResolverPolicy(
            unknown_artist="Various", unknown_album="Singles", replacement="-"
        ))
        dest = resolver.resolve(ROOT, Tag(title="What?"), ".mp3")
        assert dest.path == Path("/music/Various/Singles/What-.mp3")


class TestSanitizeSegment:
    """Single path component rules."""

    @pytest.mark.parametrize("value,expected", [
        ("AC/DC", "AC_DC"),
        ("What?", "What_"),
        ("Live: 1999", "Live_ 1999"),
        ('say "hi"', "say _hi_"),
        ("back\\slash", "back_slash"),
        ("a\tb", "a_b"),
        ("bell\x07", "bell_"),
        ("nul\x00byte", "nul_byte"),
    ])
    def test_reserved_characters_replaced(self, resolver, value, expected):
        """Should replace separators, reserved punctuation and control characters."""
        assert resolver.sanitize_segment(value, "X") == expected

    def test_trailing_dots_and_spaces_removed(self, resolver):
        """Should strip trailing dots and spaces."""
        assert resolver.sanitize_segment("Hello... ", "X") == "Hello"

    @pytest.mark.parametrize("value", [".", "..", "...", "   ", ""])
    def test_unusable_values_use_placeholder(self, resolver, value):
        """Should never return a segment that could traverse or vanish."""
        assert resolver.sanitize_segment(value, "Unknown Album") == "Unknown Album"

    def test_none_uses_placeholder(self, resolver):
        """Should return the placeholder for absent values."""
        assert resolver.sanitize_segment(None, "Unknown Artist") == "Unknown Artist"

    @pytest.mark.parametrize("value,expected", [
        ("CON", "_"),
        ("nul", "_"),
        ("COM1", "_"),
        ("lpt9.live", "_.live"),
    ])
    def test_reserved_device_names(self, resolver, value, expected):
        """Should defuse Windows device names."""
        assert resolver.sanitize_segment(value, "X") == expected

    def test_device_name_prefix_is_kept(self, resolver):
        """Should not touch names that merely start like a device name."""
        assert resolver.sanitize_segment("Console", "X") == "Console"

    def test_unicode_is_preserved(self, resolver):
        """Should leave non-ASCII letters alone."""
        assert resolver.sanitize_segment("Sigur Rós", "X") == "Sigur Rós"


class TestLengthLimits:
    """Byte limits on path components."""

    def test_long_artist_truncated(self, resolver):
        """Should cut directory names at the byte limit."""
        dest = resolver.resolve(ROOT, Tag(artist="a" * 300), ".mp3")
        assert dest.artist_segment == "a" * 255

    def test_long_title_keeps_extension(self, resolver):
        """Should shorten the stem, never the extension."""
        dest = resolver.resolve(ROOT, Tag(title="é" * 200), ".mp3")
        assert dest.filename.endswith(".mp3")
        assert len(dest.filename.encode("utf-8")) <= 255
        assert dest.filename.startswith("é")

    def test_truncation_never_splits_characters(self):
        """Should drop a multi-byte character that does not fit whole."""
        resolver = PathResolver(ResolverPolicy(max_segment_bytes=17))
        segment = resolver.sanitize_segment("é" * 20, "X")
        assert segment == "é" * 8
        assert len(segment.encode("utf-8")) == 16

    def test_small_limit(self):
        """Should respect a lowered limit for every segment."""
        resolver = PathResolver(ResolverPolicy(max_segment_bytes=16))
        tag = Tag(artist="Godspeed You! Black Emperor", album="Lift Your Skinny Fists",
                  title="Storm")
        dest = resolver.resolve(ROOT, tag, ".mp3")
        for segment in (dest.artist_segment, dest.album_segment, dest.filename):
            assert len(segment.encode("utf-8")) <= 16
        assert dest.filename == "Storm.mp3"

    def test_policy_rejects_tiny_limit(self):
        """Should refuse limits too small for a usable name."""
        with pytest.raises(ValueError):
            ResolverPolicy(max_segment_bytes=4)


class TestEmptyReplacement:
    """Dropping unsafe characters instead of substituting them."""

    @pytest.fixture
    def resolver(self):
        return PathResolver(ResolverPolicy(replacement=""))

    def test_characters_dropped(self, resolver):
        assert resolver.sanitize_segment("AC/DC", "X") == "ACDC"

    def test_device_name_falls_back_to_placeholder(self, resolver):
        """Should not leave an empty segment behind a defused device name."""
        assert resolver.sanitize_segment("CON", "Unknown Artist") == "Unknown Artist"
        assert resolver.sanitize_segment("con...", "Unknown Artist") == "Unknown Artist"

    def test_only_unsafe_characters(self, resolver):
        assert resolver.sanitize_segment("?*", "Unknown Album") == "Unknown Album"

    def test_resolve_device_name_artist(self, resolver):
        """Should still produce a valid destination for a CON artist."""
        dest = resolver.resolve(ROOT, Tag(artist="CON", album="B", title="C"), ".mp3")
        assert dest.artist_segment == "Unknown Artist"


class TestUnsafePolicies:
    """Policies that could produce traversing or invalid names."""

    @pytest.mark.parametrize("replacement", [".", "..", "\x01", " ", "/", "a/b"])
    def test_rejected_replacements(self, replacement):
        """Should refuse replacements that would turn CON into '.' or worse."""
        with pytest.raises(ValueError):
            PathResolver(ResolverPolicy(replacement=replacement))

    def test_device_name_with_trailing_dots(self, resolver):
        assert resolver.sanitize_segment("con...", "X") == "_"
