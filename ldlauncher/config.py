"""
Configuration management for LD Launcher.

Settings come from defaults, an optional YAML file (ldlauncher.yaml or the path
in LDLAUNCHER_CONFIG) and LDLAUNCHER_* environment variables, in increasing
order of precedence.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "LDLAUNCHER_"
CONFIG_ENV_VAR = "LDLAUNCHER_CONFIG"
DEFAULT_CONFIG_FILE = "ldlauncher.yaml"

_WINDOWS_EXECUTABLES = [
    "light_designer.exe",
    "lightdesigner.exe",
    "LightDesigner.exe",
    "ld.exe",
    "paradigm.exe",
]


def default_search_roots() -> list[Path]:
    """Return the directories Paradigm is typically installed under."""
    if sys.platform == "win32":
        program_files = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
        return [Path(program_files) / "ETC"]
    return [Path("/opt/ETC")]


def default_executable_names() -> list[str]:
    """Executable names to look for, in priority order, for this platform."""
    if sys.platform == "win32":
        return list(_WINDOWS_EXECUTABLES)
    return [name.removesuffix(".exe") for name in _WINDOWS_EXECUTABLES]


class Settings(BaseSettings):
    """Version engine settings."""

    # Identity: None derives the name from each installation directory
    tool_name: str | None = None

    # Scanning
    search_roots: list[Path] = Field(default_factory=default_search_roots)
    extra_subdirs: list[str] = ["Software", "Programs", "Applications"]

    # Executable resolution (directories are relative to the installation)
    executable_names: list[str] = Field(default_factory=default_executable_names)
    executable_dirs: list[str] = ["LightDesigner", "Light Designer", "bin", "app", "."]

    # Version extraction, tried in order
    version_sources: list[Literal["sidecar", "dirname", "command"]] = [
        "sidecar",
        "dirname",
        "command",
    ]
    sidecar_files: list[str] = ["version.json", "VERSION", "version.txt"]
    version_args: list[str] = ["--version"]
    dir_version_pattern: str = r"Paradigm[_\s]*v?(\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)"

    # Activation
    marker_path: Path | None = None
    marker_kind: Literal["file", "symlink"] = "file"
    rescan_on_stale: bool = True

    model_config = {"env_prefix": ENV_PREFIX}

    @field_validator("dir_version_pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid dir_version_pattern: {e}") from e
        return value

    @field_validator("executable_names", "executable_dirs")
    @classmethod
    def _check_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("list cannot be empty")
        return value


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration values from a YAML file.

    Args:
        config_path: Explicit config file. Defaults to LDLAUNCHER_CONFIG, then
            ./ldlauncher.yaml if it exists.

    Returns:
        Configuration dictionary (empty if no default file exists)

    Raises:
        FileNotFoundError: If an explicitly requested config file is missing
        ValueError: If the file does not contain a YAML mapping
    """
    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    path = Path(explicit) if explicit else Path(DEFAULT_CONFIG_FILE)

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {path}")
        return {}

    with open(path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    logger.debug(f"Loaded config from {path}")
    return config


def get_settings(config_path: Path | None = None) -> Settings:
    """
    Get settings with YAML values applied under environment overrides.

    Returns:
        Settings instance
    """
    config = load_config(config_path)

    env_keys = {key.upper() for key in os.environ}
    file_values = {
        key: value for key, value in config.items() if f"{ENV_PREFIX}{key}".upper() not in env_keys
    }

    return Settings(**file_values)
