"""External "current version" markers.

A marker tells processes outside this one which installation is current.
Both implementations replace the marker atomically with os.replace, so
readers see either the old or the new target.
"""

import json
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Protocol

from ldlauncher.config import Settings
from ldlauncher.versions.models import VersionRecord

logger = logging.getLogger(__name__)


class ActiveMarker(Protocol):
    """Receives the newly activated record."""

    def update(self, record: VersionRecord) -> None: ...


def _temp_sibling(path: Path) -> Path:
    # Unique per call: concurrent writers never share a temp path
    return path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")


class MarkerFile:
    """JSON file holding the active record's dictionary form."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def update(self, record: VersionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(record.to_dict(), f, indent=2)
                f.write("\n")
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        logger.debug(f"Marker file {self.path} -> {record.name} {record.version}")

    def read(self) -> dict[str, Any] | None:
        """Return the marker contents, or None if no marker was written."""
        if not self.path.exists():
            return None
        with open(self.path) as f:
            return json.load(f)


class SymlinkMarker:
    """Symlink pointing at the active installation directory."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def update(self, record: VersionRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = _temp_sibling(self.path)
        os.symlink(record.path, tmp_path, target_is_directory=True)
        try:
            os.replace(tmp_path, self.path)
        except OSError:
            tmp_path.unlink()
            raise
        logger.debug(f"Symlink {self.path} -> {record.path}")


def marker_from_settings(settings: Settings) -> ActiveMarker | None:
    """Build the configured marker (None when no marker_path is set)."""
    if settings.marker_path is None:
        return None
    if settings.marker_kind == "symlink":
        return SymlinkMarker(settings.marker_path)
    return MarkerFile(settings.marker_path)
