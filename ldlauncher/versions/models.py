"""Version record data models.

This module provides the immutable data models exchanged between the version
engine and the presentation layer.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ldlauncher.versions.semver import SemVer, parse_version


@dataclass(frozen=True)
class Candidate:
    """A directory considered, but not yet validated, as an installation.

    Attributes:
        path: Candidate directory
        root: Search root the candidate was found under
    """

    path: Path
    root: Path


@dataclass(frozen=True)
class VersionRecord:
    """One validated installation of a tool.

    Attributes:
        name: Tool name (e.g., "Paradigm")
        version: Parsed semantic version (raw string in version.raw)
        path: Absolute path to the installation directory
        executable_path: Absolute path to the entry point inside path
    """

    name: str
    version: SemVer
    path: Path
    executable_path: Path

    def __post_init__(self):
        """Validate name and path invariants."""
        if not self.name or not self.name.strip():
            raise ValueError("Version record name cannot be empty")
        if not self.path.is_absolute():
            raise ValueError(f"Installation path must be absolute: {self.path}")
        if not self.executable_path.is_absolute():
            raise ValueError(f"Executable path must be absolute: {self.executable_path}")
        if not self.executable_path.is_relative_to(self.path):
            raise ValueError(f"Executable {self.executable_path} is not inside {self.path}")

    @property
    def key(self) -> tuple[str, str]:
        """Registry identity: (name, canonical version string)."""
        return (self.name, str(self.version))

    def to_dict(self) -> dict[str, Any]:
        """Convert record to the dictionary shape used by the UI."""
        return {
            "name": self.name,
            "version": self.version.display,
            "path": str(self.path),
            "executablePath": str(self.executable_path),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VersionRecord":
        """Create record from dictionary.

        Args:
            data: Dictionary with name, version, path and executablePath

        Returns:
            VersionRecord instance

        Raises:
            KeyError: If a field is missing
            ValueError: If the version or paths are invalid
        """
        return cls(
            name=data["name"],
            version=parse_version(data["version"]),
            path=Path(data["path"]),
            executable_path=Path(data["executablePath"]),
        )
