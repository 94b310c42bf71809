"""Installation validation.

This module turns candidate directories into VersionRecords: it resolves the
executable entry point, checks its permissions and extracts a version from a
sidecar file, the directory name or the executable's own version output.
"""

import json
import logging
import os
import re
import subprocess
from collections.abc import Iterable
from pathlib import Path

from ldlauncher.config import Settings
from ldlauncher.versions.errors import (
    NoExecutable,
    NotExecutable,
    ScanCancelled,
    UnparsableVersion,
)
from ldlauncher.versions.models import Candidate, VersionRecord
from ldlauncher.versions.scanner import CancelToken, check_cancelled
from ldlauncher.versions.semver import SemVer, find_version, parse_version

logger = logging.getLogger(__name__)

_SEPARATORS = " _-."
_POLL_INTERVAL = 0.1


def derive_tool_name(dir_name: str) -> str | None:
    """Derive a tool name from an installation directory name.

    Strips the version and the separators before it:
    "paradigm-1.2.0" -> "paradigm", "Paradigm v3.4.2" -> "Paradigm".

    Returns:
        Derived name, or None if nothing but a version is left
    """
    version = find_version(dir_name)
    if version is None:
        return dir_name.strip() or None

    prefix = dir_name[: dir_name.find(version.raw)]
    if prefix[-1:] in ("v", "V") and (len(prefix) == 1 or prefix[-2] in _SEPARATORS):
        prefix = prefix[:-1]
    return prefix.rstrip(_SEPARATORS).strip() or None


def is_executable_file(path: Path) -> bool:
    """Check that path is a regular file with execute permission."""
    return path.is_file() and os.access(path, os.X_OK)


class VersionValidator:
    """Validates candidate installations and builds VersionRecords.

    The validator is stateless: all behavior comes from the configuration
    passed at construction, so one instance can serve concurrent scans.
    """

    def __init__(
        self,
        executable_names: Iterable[str],
        executable_dirs: Iterable[str] = (".",),
        version_sources: Iterable[str] = ("sidecar", "dirname", "command"),
        sidecar_files: Iterable[str] = ("version.json", "VERSION"),
        version_args: Iterable[str] = ("--version",),
        dir_version_pattern: str | None = None,
        tool_name: str | None = None,
    ):
        self.executable_names = tuple(executable_names)
        self.executable_dirs = tuple(d for d in executable_dirs if ".." not in Path(d).parts)
        self.version_sources = tuple(version_sources)
        self.sidecar_files = tuple(sidecar_files)
        self.version_args = tuple(version_args)
        self.dir_version_pattern = (
            re.compile(dir_version_pattern, re.IGNORECASE) if dir_version_pattern else None
        )
        self.tool_name = tool_name

        unknown = set(self.version_sources) - {"sidecar", "dirname", "command"}
        if unknown:
            raise ValueError(f"Unknown version sources: {sorted(unknown)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "VersionValidator":
        return cls(
            executable_names=settings.executable_names,
            executable_dirs=settings.executable_dirs,
            version_sources=settings.version_sources,
            sidecar_files=settings.sidecar_files,
            version_args=settings.version_args,
            dir_version_pattern=settings.dir_version_pattern,
            tool_name=settings.tool_name,
        )

    def find_executable(self, install_dir: Path) -> Path | None:
        """Find the entry point using the deterministic search order.

        Every executable directory is tried in order, and within it every
        executable name in order. The first existing file wins.

        Args:
            install_dir: Installation directory

        Returns:
            Path to the executable, or None if no candidate file exists
        """
        for rel_dir in self.executable_dirs:
            base = install_dir / rel_dir
            for name in self.executable_names:
                path = base / name
                logger.debug(f"Checking for executable at: {path}")
                if path.is_file():
                    return path
        return None

    def validate(self, candidate: Candidate | Path, cancel: CancelToken | None = None) -> VersionRecord:
        """Validate a candidate installation directory.

        Args:
            candidate: Candidate (or plain directory path) to validate
            cancel: Optional cancellation token

        Returns:
            Validated VersionRecord

        Raises:
            NoExecutable: If no executable matches the naming convention
            NotExecutable: If the executable lacks execute permission
            UnparsableVersion: If no version could be extracted
            ScanCancelled: If cancel is set during validation
        """
        directory = Path(candidate.path if isinstance(candidate, Candidate) else candidate)
        check_cancelled(cancel)

        if not directory.is_dir():
            raise NoExecutable(directory, f"Installation directory does not exist: {directory}")

        install_dir = directory.resolve()
        executable = self.find_executable(install_dir)
        if executable is None:
            raise NoExecutable(install_dir, f"No executable found in {install_dir}")
        if not os.access(executable, os.X_OK):
            raise NotExecutable(install_dir, f"File is not executable: {executable}")

        version = self.extract_version(install_dir, executable, install_dir.name, cancel)
        name = self.tool_name or derive_tool_name(install_dir.name) or install_dir.parent.name

        return VersionRecord(
            name=name,
            version=version,
            path=install_dir,
            executable_path=executable,
        )

    def validate_executable(self, executable_path: Path, cancel: CancelToken | None = None) -> VersionRecord:
        """Validate a user-chosen executable as a single-file install.

        The containing directory becomes the installation path. The version is
        looked up in the full directory path, so "C:/ETC/Paradigm 3.4.2/bin/ld.exe"
        resolves to 3.4.2.

        Raises:
            NoExecutable: If the file does not exist
            NotExecutable: If the file lacks execute permission
            UnparsableVersion: If no version could be extracted
        """
        executable_path = Path(executable_path)
        if not executable_path.is_file():
            raise NoExecutable(executable_path, f"Custom executable does not exist: {executable_path}")

        executable = executable_path.resolve()
        install_dir = executable.parent
        if not os.access(executable, os.X_OK):
            raise NotExecutable(install_dir, f"File is not executable: {executable}")

        version = self.extract_version(install_dir, executable, str(install_dir), cancel)

        name = self.tool_name
        if not name:
            versioned = next(
                (p.name for p in (install_dir, *install_dir.parents) if find_version(p.name)),
                None,
            )
            name = derive_tool_name(versioned) if versioned else None
        if not name:
            # No versioned folder: make the file name look nicer
            name = executable.stem.replace("_", " ").title().strip() or install_dir.name
        if not name:
            raise NoExecutable(install_dir, f"Cannot derive a tool name for {executable}")

        return VersionRecord(
            name=name,
            version=version,
            path=install_dir,
            executable_path=executable,
        )

    def is_still_valid(self, record: VersionRecord) -> bool:
        """Check that a record's executable is still present and runnable."""
        return record.path.is_dir() and is_executable_file(record.executable_path)

    def extract_version(
        self,
        install_dir: Path,
        executable: Path,
        label: str,
        cancel: CancelToken | None = None,
    ) -> SemVer:
        """Extract the installation's version from the configured sources.

        Args:
            install_dir: Installation directory (sidecar lookup)
            executable: Entry point (version command)
            label: Text searched by the "dirname" source
            cancel: Optional cancellation token

        Returns:
            First version found, in source order

        Raises:
            UnparsableVersion: If no source yields a well-formed version
        """
        problems: list[str] = []

        for source in self.version_sources:
            check_cancelled(cancel)
            if source == "sidecar":
                version = self._version_from_sidecar(install_dir, problems)
            elif source == "dirname":
                version = self._version_from_label(label, problems)
            else:
                version = self._version_from_command(executable, problems, cancel)

            if version is not None:
                logger.debug(f"Version {version} for {install_dir} from {source}")
                return version

        detail = "; ".join(problems) or "no version source matched"
        raise UnparsableVersion(install_dir, f"Cannot determine version of {install_dir}: {detail}")

    def _version_from_sidecar(self, install_dir: Path, problems: list[str]) -> SemVer | None:
        for file_name in self.sidecar_files:
            sidecar = install_dir / file_name
            if not sidecar.is_file():
                continue
            try:
                text = sidecar.read_text(encoding="utf-8")
                if sidecar.suffix == ".json":
                    data = json.loads(text)
                    raw = data.get("version") if isinstance(data, dict) else None
                    if not isinstance(raw, str):
                        problems.append(f"{file_name} has no version string")
                        continue
                else:
                    raw = text.strip().splitlines()[0] if text.strip() else ""
                return parse_version(raw)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
                problems.append(f"{file_name}: {e}")
        return None

    def _version_from_label(self, label: str, problems: list[str]) -> SemVer | None:
        if self.dir_version_pattern is not None:
            match = self.dir_version_pattern.search(label)
            if match:
                text = match.group(1) if match.groups() else match.group(0)
                try:
                    return parse_version(text)
                except ValueError as e:
                    problems.append(f"directory name: {e}")

        version = find_version(label)
        if version is None:
            problems.append(f"no version in {label!r}")
        return version

    def _version_from_command(
        self,
        executable: Path,
        problems: list[str],
        cancel: CancelToken | None,
    ) -> SemVer | None:
        command = [str(executable), *self.version_args]
        logger.debug(f"Querying version: {command}")
        try:
            proc = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                errors="replace",
            )
        except OSError as e:
            problems.append(f"version command failed: {e}")
            return None

        if cancel is None:
            output, _ = proc.communicate()
        else:
            while True:
                try:
                    output, _ = proc.communicate(timeout=_POLL_INTERVAL)
                    break
                except subprocess.TimeoutExpired:
                    if cancel.is_set():
                        proc.kill()
                        proc.wait()
                        # A grandchild may still hold the pipe open
                        proc.stdout.close()
                        raise ScanCancelled(f"Version query cancelled: {executable}") from None

        version = find_version(output or "")
        if version is None:
            problems.append(f"no version in output of {executable.name} (exit {proc.returncode})")
        return version
