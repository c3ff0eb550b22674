"""Tests for utils/config_loader.py."""

import os

import pytest
import yaml

from utils.config_loader import get_config_template, load_config
from utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep stray TAGSORT_ variables from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("TAGSORT_"):
            monkeypatch.delenv(name)


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    """Configuration without a file."""

    def test_defaults(self):
        config = load_config(None)
        assert config["organize"]["unknown_artist"] == "Unknown Artist"
        assert config["organize"]["unknown_album"] == "Unknown Album"
        assert config["organize"]["max_segment_bytes"] == 255
        assert config["organize"]["prefer_album_artist"] is True
        assert config["filesystem"]["audio_extensions"] == [".mp3", ".mp2", ".mp1"]
        assert config["logging"]["level"] == "INFO"

    def test_missing_file_uses_defaults(self, tmp_path):
        """Should fall back to defaults when the file does not exist."""
        assert load_config(tmp_path / "absent.yaml") == load_config(None)

    def test_template_is_valid(self, tmp_path):
        """Should load the printed template without changes."""
        template = get_config_template()
        assert isinstance(yaml.safe_load(template), dict)
        assert load_config(write_config(tmp_path, template)) == load_config(None)


class TestFileOverrides:
    """Merging a YAML file over the defaults."""

    def test_partial_section_is_merged(self, tmp_path):
        """Should override only the keys present in the file."""
        path = write_config(tmp_path, "organize:\n  unknown_artist: Various\n")
        config = load_config(path)
        assert config["organize"]["unknown_artist"] == "Various"
        assert config["organize"]["unknown_album"] == "Unknown Album"

    def test_empty_file(self, tmp_path):
        assert load_config(write_config(tmp_path, "")) == load_config(None)

    def test_invalid_yaml(self, tmp_path):
        """Should raise ConfigurationError for unparseable YAML."""
        path = write_config(tmp_path, "organize: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(path)


class TestEnvironmentOverrides:
    """TAGSORT_ environment variables."""

    def test_string_override(self, monkeypatch):
        monkeypatch.setenv("TAGSORT_ORGANIZE__UNKNOWN_ALBUM", "Singles")
        assert load_config(None)["organize"]["unknown_album"] == "Singles"

    def test_typed_overrides(self, monkeypatch):
        """Should convert booleans, integers and JSON lists."""
        monkeypatch.setenv("TAGSORT_ORGANIZE__PREFER_ALBUM_ARTIST", "no")
        monkeypatch.setenv("TAGSORT_ORGANIZE__MAX_SEGMENT_BYTES", "100")
        monkeypatch.setenv("TAGSORT_FILESYSTEM__AUDIO_EXTENSIONS", '[".mp3"]')
        config = load_config(None)
        assert config["organize"]["prefer_album_artist"] is False
        assert config["organize"]["max_segment_bytes"] == 100
        assert config["filesystem"]["audio_extensions"] == [".mp3"]

    def test_environment_wins_over_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "logging:\n  level: WARNING\n")
        monkeypatch.setenv("TAGSORT_LOGGING__LEVEL", "DEBUG")
        assert load_config(path)["logging"]["level"] == "DEBUG"


class TestValidation:
    """Rejected values."""

    @pytest.mark.parametrize("text", [
        "organize:\n  unknown_artist: ''\n",
        "organize:\n  unknown_album: 'a/b'\n",
        "organize:\n  unknown_title: '..'\n",
        "organize:\n  replacement: '/'\n",
        "organize:\n  replacement: '.'\n",
        "organize:\n  replacement: '..'\n",
        "organize:\n  replacement: '  '\n",
        "organize:\n  replacement: \"\\x01\"\n",
        "organize:\n  unknown_artist: \"tab\\there\"\n",
        "organize:\n  max_segment_bytes: 8\n",
        "organize:\n  max_segment_bytes: lots\n",
        "organize:\n  prefer_album_artist: maybe\n",
        "filesystem:\n  audio_extensions: []\n",
        "filesystem:\n  audio_extensions: [mp3]\n",
        "filesystem:\n  ignored_dirs: '@eaDir'\n",
        "logging:\n  level: LOUD\n",
    ])
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(ConfigurationError):
            load_config(write_config(tmp_path, text))

    def test_empty_replacement_allowed(self, tmp_path):
        """Should allow dropping reserved characters entirely."""
        path = write_config(tmp_path, "organize:\n  replacement: ''\n")
        assert load_config(path)["organize"]["replacement"] == ""
