"""
Settings for a repack run, optionally loaded from a JSON config file.
"""

import os
import json
import logging
from dataclasses import dataclass, fields, replace
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = os.path.join(os.path.expanduser("~"), ".audiobookrepack_config.json")


@dataclass
class RepackSettings:
    """Tunable settings for the repack pipeline."""
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    batch_size: int = 5
    probe_timeout: float = 120.0
    audio_extension: str = ".m4a"
    output_suffix: str = "_repack"
    keep_temp_files: bool = False
    mark_as_audiobook: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        Check setting values.

        Raises:
            ConfigurationError: If a value is out of range or has the wrong type
        """
        if not isinstance(self.batch_size, int) or isinstance(self.batch_size, bool) or self.batch_size < 1:
            raise ConfigurationError("batch_size must be a positive integer", "batch_size", self.batch_size)
        if not isinstance(self.probe_timeout, (int, float)) or self.probe_timeout <= 0:
            raise ConfigurationError("probe_timeout must be a positive number", "probe_timeout", self.probe_timeout)
        if not isinstance(self.audio_extension, str) or not self.audio_extension.startswith('.'):
            raise ConfigurationError("audio_extension must start with '.'", "audio_extension", self.audio_extension)
        for key in ('ffmpeg_path', 'ffprobe_path', 'output_suffix'):
            if not isinstance(getattr(self, key), str) or not getattr(self, key):
                raise ConfigurationError("value must be a non-empty string", key)

    def with_overrides(self, **overrides) -> "RepackSettings":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def load_settings(path: Optional[str] = None) -> RepackSettings:
    """
    Load settings from a JSON config file.

    Args:
        path: Config file path (default: ~/.audiobookrepack_config.json).
              An explicitly given path must exist; the default may be absent.

    Returns:
        RepackSettings: Loaded settings, or defaults when no file exists

    Raises:
        ConfigurationError: If the file is unreadable, not a JSON object,
            or holds unknown keys or invalid values
    """
    config_path = path or DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        if path:
            raise ConfigurationError(f"Config file does not exist: {path}")
        return RepackSettings()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read config file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a JSON object: {config_path}")

    known = {f.name for f in fields(RepackSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown setting(s) in {config_path}: {', '.join(unknown)}")

    settings = RepackSettings(**data)
    logging.info(f'Loaded settings from {config_path}')
    return settings
