"""Configuration management for resumesync.

Settings are resolved from (lowest to highest precedence) built-in defaults,
the config file ``~/.config/resumesync/config`` and environment variables.
Command line options override the result in :mod:`resumesync.cli`.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import dotenv_values

from .utils import (
    DEFAULT_DESCRIBE_ARGS,
    DEFAULT_JOBS,
    DEFAULT_LIST_ARGS,
    DEFAULT_MKDIR_ARGS,
    DEFAULT_NOT_FOUND_PATTERN,
    DEFAULT_RESUME_ARGS,
    DEFAULT_TOOL,
    split_args,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "RESUMESYNC_"


@dataclass(frozen=True)
class ToolProfile:
    """Argument conventions used to drive the external transfer tool."""

    list_args: tuple[str, ...] = DEFAULT_LIST_ARGS
    """Arguments selecting a recursive remote listing"""

    describe_args: tuple[str, ...] = DEFAULT_DESCRIBE_ARGS
    """Arguments selecting a single-entry remote listing"""

    mkdir_args: tuple[str, ...] = DEFAULT_MKDIR_ARGS
    """Arguments selecting remote directory creation"""

    resume_args: tuple[str, ...] = DEFAULT_RESUME_ARGS
    """Arguments selecting create-or-resume transfer mode"""

    not_found_pattern: str = DEFAULT_NOT_FOUND_PATTERN
    """Regex matched against describe stderr to recognise a missing path"""


class Config:
    """Configuration manager for resumesync."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding the config file. Defaults to
                ~/.config/resumesync
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "resumesync"
        self.config_dir = config_dir
        self._file_values: Optional[dict[str, Optional[str]]] = None

    def get_config_path(self) -> Path:
        """Get the path to the config file."""
        return self.config_dir / "config"

    def _load_file(self) -> dict[str, Optional[str]]:
        if self._file_values is None:
            path = self.get_config_path()
            if path.exists():
                logger.debug("Loading config from %s", path)
                self._file_values = dict(dotenv_values(path))
            else:
                self._file_values = {}
        return self._file_values

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Look up a setting by its short name (e.g. ``"TOOL"``).

        Environment variables win over the config file.
        """
        name = ENV_PREFIX + key
        value = os.environ.get(name)
        if value is None:
            value = self._load_file().get(name)
        return value if value is not None else default

    def reload(self) -> None:
        """Forget cached config file values."""
        self._file_values = None

    @property
    def tool_path(self) -> str:
        """Transfer tool executable."""
        return self.get("TOOL") or DEFAULT_TOOL

    @property
    def jobs(self) -> int:
        """Default number of parallel file transfers."""
        value = self.get("JOBS")
        if not value:
            return DEFAULT_JOBS
        try:
            return max(1, int(value))
        except ValueError:
            logger.warning("Ignoring invalid %sJOBS value: %r", ENV_PREFIX, value)
            return DEFAULT_JOBS

    def tool_profile(self) -> ToolProfile:
        """Build the tool argument conventions from the configuration."""

        def args(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
            value = self.get(key)
            return split_args(value) if value is not None else default

        return ToolProfile(
            list_args=args("LIST_ARGS", DEFAULT_LIST_ARGS),
            describe_args=args("DESCRIBE_ARGS", DEFAULT_DESCRIBE_ARGS),
            mkdir_args=args("MKDIR_ARGS", DEFAULT_MKDIR_ARGS),
            resume_args=args("RESUME_ARGS", DEFAULT_RESUME_ARGS),
            not_found_pattern=self.get("NOT_FOUND_PATTERN")
            or DEFAULT_NOT_FOUND_PATTERN,
        )


# Global config instance
config = Config()
