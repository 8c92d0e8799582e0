"""Configuration data model for project resolution.

This module defines the ResolverConfig dataclass that controls entry file
discovery, auxiliary file handling, worker pool sizes and artifact output.
Configurations can be stored as JSON and loaded back with validation.

Example:
    Loading a configuration file:

    >>> config = load_config(Path("afterorder.json"))
    >>> config.entry_names
    ['Main.fs', 'Module.txt']

    Converting to dictionary for JSON serialization:

    >>> config_dict = ResolverConfig().to_dict()
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from afterorder.utils.logger import get_logger
from afterorder.utils.path_utils import ensure_directory

logger = get_logger("afterorder.core.config")

CONFIG_VERSION = "1.0"

DEFAULT_ENTRY_NAMES = ["Main.fs", "Module.txt"]
DEFAULT_AUXILIARY_EXTENSIONS = [".txt"]

# track: auxiliary files are graph nodes like any other file
# exclude: dependencies on auxiliary files are dropped while building
VALID_AUXILIARY_POLICIES = {"track", "exclude"}


@dataclass
class ResolverConfig:
    """Settings for resolving one or more projects.

    Attributes:
        version: Schema version (currently "1.0")
        entry_names: Recognized entry file names, tried in order
        auxiliary_extensions: Extensions of files that are never compiled;
            they are filtered out of the written artifact
        auxiliary_policy: "track" or "exclude" (see VALID_AUXILIARY_POLICIES)
        max_workers: Graph builder thread pool size, None for the default
        project_workers: Thread pool size for resolving several projects
        artifact_suffix: Extension of the written artifact
        write_artifact: Whether to write the artifact at all
        touch_project: Whether to update the project file's mtime after
            writing the artifact
        color: Whether reports use ANSI colors
    """

    version: str = CONFIG_VERSION
    entry_names: List[str] = field(default_factory=lambda: list(DEFAULT_ENTRY_NAMES))
    auxiliary_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_AUXILIARY_EXTENSIONS))
    auxiliary_policy: str = "track"
    max_workers: Optional[int] = None
    project_workers: Optional[int] = None
    artifact_suffix: str = ".targets"
    write_artifact: bool = True
    touch_project: bool = True
    color: bool = True

    def validate(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If any validation check fails
        """
        if self.version != CONFIG_VERSION:
            raise ValueError(f"Invalid version: {self.version}. Expected '{CONFIG_VERSION}'")

        if not isinstance(self.entry_names, list) or not self.entry_names:
            raise ValueError("Option 'entry_names' must be a non-empty list")
        for name in self.entry_names:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"Invalid entry name: {name!r}")

        if not isinstance(self.auxiliary_extensions, list):
            raise ValueError("Option 'auxiliary_extensions' must be a list")
        for ext in self.auxiliary_extensions:
            if not isinstance(ext, str) or not ext.startswith("."):
                raise ValueError(
                    f"Invalid auxiliary extension: {ext!r}. Extensions must start with '.'"
                )

        if self.auxiliary_policy not in VALID_AUXILIARY_POLICIES:
            raise ValueError(
                f"Invalid auxiliary_policy: {self.auxiliary_policy}. "
                f"Expected one of {sorted(VALID_AUXILIARY_POLICIES)}"
            )

        for option in ("max_workers", "project_workers"):
            value = getattr(self, option)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"Option '{option}' must be a positive integer or None")

        if not isinstance(self.artifact_suffix, str) or not self.artifact_suffix.startswith("."):
            raise ValueError("Option 'artifact_suffix' must be a string starting with '.'")

        for option in ("write_artifact", "touch_project", "color"):
            if not isinstance(getattr(self, option), bool):
                raise ValueError(f"Option '{option}' must be a boolean")

        logger.debug("Configuration validated successfully")

    def is_auxiliary(self, identity: str) -> bool:
        """Return True if ``identity`` names a non-compilable file."""
        lowered = identity.lower()
        return any(lowered.endswith(ext.lower()) for ext in self.auxiliary_extensions)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "entry_names": list(self.entry_names),
            "auxiliary_extensions": list(self.auxiliary_extensions),
            "auxiliary_policy": self.auxiliary_policy,
            "max_workers": self.max_workers,
            "project_workers": self.project_workers,
            "artifact_suffix": self.artifact_suffix,
            "write_artifact": self.write_artifact,
            "touch_project": self.touch_project,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ResolverConfig:
        """Create configuration from dictionary.

        Missing keys take their defaults; unknown keys are rejected.

        Raises:
            ValueError: If data contains unknown keys or fails validation
        """
        known = set(cls().to_dict())
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration option(s): {', '.join(sorted(unknown))}")

        config = cls(**data)
        config.validate()
        return config


def load_config(file_path: Path) -> ResolverConfig:
    """Load and validate a configuration from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or fails validation
    """
    if not file_path.exists():
        logger.error(f"Configuration file not found: {file_path}")
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in configuration file {file_path}: {e}")
        raise ValueError(f"Invalid JSON format in configuration file: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a JSON object: {file_path}")

    try:
        config = ResolverConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.error(f"Validation failed for configuration {file_path}: {e}")
        raise ValueError(f"Configuration validation failed: {e}")

    logger.debug(f"Configuration loaded from {file_path}")
    return config


def save_config(config: ResolverConfig, file_path: Path) -> None:
    """Validate and write a configuration as JSON.

    Raises:
        ValueError: If the configuration is invalid
        OSError: If the file cannot be written
    """
    config.validate()
    ensure_directory(file_path.parent)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
    logger.debug(f"Configuration saved to {file_path}")
