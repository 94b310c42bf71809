"""Installation directory scanning.

This module provides the VersionScanner, which walks search roots and lazily
yields candidate installation directories for validation.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Protocol

from ldlauncher.versions.errors import ScanCancelled, ScanWarning
from ldlauncher.versions.models import Candidate

logger = logging.getLogger(__name__)


class CancelToken(Protocol):
    """Anything with is_set(), e.g. threading.Event."""

    def is_set(self) -> bool: ...


def check_cancelled(cancel: CancelToken | None) -> None:
    """Raise ScanCancelled if the caller asked to stop."""
    if cancel is not None and cancel.is_set():
        raise ScanCancelled("Scan cancelled")


class VersionScanner:
    """Enumerates candidate installation directories.

    The scanner keeps no state between calls: every scan() re-reads the
    filesystem from scratch.

    Attributes:
        extra_subdirs: Well-known subdirectories of each root that are scanned
                       as additional roots when present
    """

    def __init__(self, extra_subdirs: Iterable[str] = ()):
        self.extra_subdirs = tuple(extra_subdirs)

    def scan(
        self,
        roots: Iterable[Path],
        warnings: list[ScanWarning] | None = None,
        cancel: CancelToken | None = None,
    ) -> Iterator[Candidate]:
        """Yield candidate directories one level below each root.

        Args:
            roots: Search root directories
            warnings: List that receives a ScanWarning for every root that
                      is missing or unreadable
            cancel: Optional cancellation token checked between entries

        Yields:
            Candidate for every non-empty-named immediate subdirectory

        Raises:
            ScanCancelled: If cancel is set during the scan
        """
        if warnings is None:
            warnings = []

        for root in roots:
            root = Path(root)
            check_cancelled(cancel)

            if not root.exists():
                logger.warning(f"Search root does not exist: {root}")
                warnings.append(ScanWarning(root, "missing-root", "search root does not exist"))
                continue
            if not root.is_dir():
                logger.warning(f"Search root is not a directory: {root}")
                warnings.append(ScanWarning(root, "not-a-directory", "search root is not a directory"))
                continue

            yield from self._scan_root(root, root, warnings, cancel)

            # Common layouts such as ETC/Software/Paradigm 3.4.2
            for subdir in self.extra_subdirs:
                extra_root = root / subdir
                if extra_root.is_dir():
                    yield from self._scan_root(extra_root, root, warnings, cancel)

    def _scan_root(
        self,
        directory: Path,
        root: Path,
        warnings: list[ScanWarning],
        cancel: CancelToken | None,
    ) -> Iterator[Candidate]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Cannot read search root {directory}: {e}")
            warnings.append(ScanWarning(directory, "unreadable-root", str(e)))
            return

        logger.debug(f"Found {len(entries)} items in {directory}")

        skipped = set(self.extra_subdirs) if directory == root else set()

        for entry in entries:
            check_cancelled(cancel)

            if not entry.name.strip() or entry.name in skipped:
                continue
            try:
                is_dir = entry.is_dir()
            except OSError as e:
                logger.debug(f"Cannot stat {entry.path}: {e}")
                continue
            if not is_dir:
                continue

            logger.debug(f"Candidate directory: {entry.path}")
            yield Candidate(path=Path(entry.path), root=root)
