"""
Configuration management for tagsort.

This module handles loading and validating configuration from YAML files
with sensible defaults and environment variable support.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import asdict, dataclass, field

from models.schemas import is_usable_segment
from utils.exceptions import ConfigurationError

ENV_PREFIX = "TAGSORT_"

MIN_SEGMENT_BYTES = 16


@dataclass
class OrganizeConfig:
    """Placeholders and sanitization rules for destination paths."""

    unknown_artist: str = "Unknown Artist"
    unknown_album: str = "Unknown Album"
    unknown_title: str = "Unknown Title"
    replacement: str = "_"
    max_segment_bytes: int = 255
    # Use the album artist frame (TPE2) before the track artist (TPE1)
    prefer_album_artist: bool = True


@dataclass
class FilesystemConfig:
    """Which files are picked up when walking input directories."""

    audio_extensions: list = field(default_factory=lambda: ['.mp3', '.mp2', '.mp1'])
    ignored_dirs: list = field(default_factory=lambda: [
        '@eadir', '.trash', '.trashes', '$recycle.bin'
    ])


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class TagSortConfig:
    """Structured configuration class with defaults."""

    organize: OrganizeConfig = field(default_factory=OrganizeConfig)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with defaults and environment variable support.

    Args:
        config_path: Path to configuration file (optional)

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If configuration is invalid
    """
    config_dict = asdict(TagSortConfig())

    if config_path and config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}")

        if file_config:
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file {config_path} must contain a mapping at the top level"
                )
            config_dict = _merge_configs(config_dict, file_config)

    config_dict = _apply_env_overrides(config_dict)

    _validate_config(config_dict)

    return config_dict


def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge override into a copy of base; sections merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _merge_configs(current, value)
        merged[key] = value
    return merged


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply TAGSORT_* environment variables on top of the configuration.

    A double underscore separates the section from the key:

        TAGSORT_ORGANIZE__UNKNOWN_ARTIST="Various"
        TAGSORT_LOGGING__LEVEL=DEBUG
        TAGSORT_FILESYSTEM__AUDIO_EXTENSIONS='[".mp3"]'
    """
    for env_var, raw in sorted(os.environ.items()):
        if not env_var.startswith(ENV_PREFIX):
            continue

        key_path = env_var[len(ENV_PREFIX):].lower().split('__')
        if all(key_path):
            _set_nested_value(config, key_path, _convert_env_value(raw))

    return config


def _convert_env_value(value: str) -> Any:
    """Interpret an environment value as a YAML scalar or flow list."""
    try:
        converted = yaml.safe_load(value)
    except yaml.YAMLError:
        return value

    # Empty strings and plain text that YAML reads as a mapping stay text
    if converted is None or (isinstance(converted, dict) and not value.lstrip().startswith('{')):
        return value
    return converted


def _set_nested_value(config: Dict[str, Any], key_path: list, value: Any):
    section = config
    for key in key_path[:-1]:
        if not isinstance(section.get(key), dict):
            section[key] = {}
        section = section[key]
    section[key_path[-1]] = value


def _validate_config(config: Dict[str, Any]):
    """
    Validate configuration values.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: If configuration is invalid
    """
    organize = config.get('organize', {})

    for key in ('unknown_artist', 'unknown_album', 'unknown_title'):
        value = organize.get(key)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"organize.{key} must be a non-empty string")
        if not is_usable_segment(value):
            raise ConfigurationError(f"organize.{key} must be usable as a path segment")

    replacement = organize.get('replacement')
    if not isinstance(replacement, str) or (replacement and not is_usable_segment(replacement)):
        raise ConfigurationError(
            "organize.replacement must be empty or safe inside a file name "
            "(no reserved or control characters, not only dots or spaces)"
        )

    max_segment_bytes = organize.get('max_segment_bytes')
    if (not isinstance(max_segment_bytes, int) or isinstance(max_segment_bytes, bool)
            or max_segment_bytes < MIN_SEGMENT_BYTES):
        raise ConfigurationError(
            f"organize.max_segment_bytes must be an integer >= {MIN_SEGMENT_BYTES}"
        )

    if not isinstance(organize.get('prefer_album_artist'), bool):
        raise ConfigurationError("organize.prefer_album_artist must be true or false")

    filesystem_config = config.get('filesystem', {})

    audio_extensions = filesystem_config.get('audio_extensions', [])
    if not isinstance(audio_extensions, list) or not audio_extensions:
        raise ConfigurationError("filesystem.audio_extensions must be a non-empty list")
    for ext in audio_extensions:
        if not isinstance(ext, str) or not ext.startswith('.') or len(ext) < 2:
            raise ConfigurationError(
                f"filesystem.audio_extensions entries must look like '.mp3', got {ext!r}"
            )

    if not isinstance(filesystem_config.get('ignored_dirs', []), list):
        raise ConfigurationError("filesystem.ignored_dirs must be a list")

    logging_config = config.get('logging', {})

    log_level = logging_config.get('level', 'INFO')
    valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if not isinstance(log_level, str) or log_level.upper() not in valid_levels:
        raise ConfigurationError(f"logging.level must be one of {valid_levels}")


def get_config_template() -> str:
    """
    Get a YAML template for the configuration file.

    Returns:
        YAML configuration template as string
    """
    return """# Configuration for tagsort
organize:
  unknown_artist: "Unknown Artist"
  unknown_album: "Unknown Album"
  unknown_title: "Unknown Title"   # used only when the original file name is unusable
  replacement: "_"                 # substitute for characters not allowed in paths
  max_segment_bytes: 255           # longest directory or file name, in UTF-8 bytes
  prefer_album_artist: true        # TPE2 before TPE1 when both are tagged

filesystem:
  audio_extensions:
    - .mp3
    - .mp2
    - .mp1

  ignored_dirs:
    - "@eadir"
    - .trash
    - .trashes
    - "$recycle.bin"

logging:
  level: INFO
  format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
  file: null
"""
