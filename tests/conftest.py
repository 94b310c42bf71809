"""Shared fixtures for ldlauncher tests."""

import json
import os
import stat
from pathlib import Path

import pytest

from ldlauncher.config import Settings
from ldlauncher.versions.validator import VersionValidator


def _make_install(
    root: Path,
    dir_name: str,
    version: str | None = "1.2.0",
    executable: str | None = "bin/paradigm",
    mode: int = 0o755,
    sidecar: str = "version.json",
) -> Path:
    """Create a fake installation directory.

    Args:
        root: Directory to create the installation in
        dir_name: Installation directory name
        version: Version written to the sidecar file (None: no sidecar)
        executable: Executable path relative to the installation (None: none)
        mode: Permission bits of the executable
        sidecar: Sidecar file name ("version.json" or a plain text file)
    """
    install_dir = root / dir_name
    install_dir.mkdir(parents=True)

    if executable is not None:
        exe_path = install_dir / executable
        exe_path.parent.mkdir(parents=True, exist_ok=True)
        exe_path.write_text("#!/bin/sh\necho paradigm\n")
        os.chmod(exe_path, mode)

    if version is not None:
        if sidecar.endswith(".json"):
            (install_dir / sidecar).write_text(json.dumps({"version": version}))
        else:
            (install_dir / sidecar).write_text(version + "\n")

    return install_dir


def _make_version_script(path: Path, output: str) -> Path:
    """Create an executable shell script printing output for --version."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f'#!/bin/sh\nif [ "$1" = "--version" ]; then echo "{output}"; fi\n')
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def settings(tmp_path):
    """Settings for POSIX-style fake installations under tmp_path."""
    return Settings(
        search_roots=[tmp_path / "tools"],
        executable_names=["paradigm", "ld"],
        executable_dirs=["bin", "."],
        version_sources=["sidecar", "dirname"],
        extra_subdirs=["Software"],
    )


@pytest.fixture
def validator(settings):
    return VersionValidator.from_settings(settings)


@pytest.fixture
def tools_root(tmp_path):
    root = tmp_path / "tools"
    root.mkdir()
    return root


@pytest.fixture
def make_install():
    """Factory creating fake installation directories."""
    return _make_install


@pytest.fixture
def make_version_script():
    """Factory creating executables that print a version."""
    return _make_version_script
