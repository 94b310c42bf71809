"""Version manager facade.

This module provides VersionManager, the entry point used by the presentation
layer. It wires scanner, validator, registry and activation controller
together from Settings.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from ldlauncher.config import Settings, default_search_roots, get_settings
from ldlauncher.versions.activation import ActivationController, ActivationState
from ldlauncher.versions.discovery import ScanReport, discover_versions
from ldlauncher.versions.errors import CandidateRejected, ScanWarning
from ldlauncher.versions.markers import ActiveMarker, marker_from_settings
from ldlauncher.versions.models import VersionRecord
from ldlauncher.versions.registry import VersionRegistry, display_order, unique_records
from ldlauncher.versions.scanner import CancelToken, VersionScanner, check_cancelled
from ldlauncher.versions.semver import SemVer
from ldlauncher.versions.validator import VersionValidator

logger = logging.getLogger(__name__)


class VersionManager:
    """Discovers, lists and activates installed tool versions.

    One instance (and its registry) is meant to be shared by all callers in
    a process; every method is safe to call from multiple threads.

    Attributes:
        settings: Engine configuration
        registry: Shared registry of validated versions
        scanner: Candidate producer
        validator: Candidate validator
        controller: Activation controller
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: VersionRegistry | None = None,
        marker: ActiveMarker | None = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry or VersionRegistry()
        self.scanner = VersionScanner(self.settings.extra_subdirs)
        self.validator = VersionValidator.from_settings(self.settings)
        self.controller = ActivationController(
            registry=self.registry,
            validator=self.validator,
            marker=marker or marker_from_settings(self.settings),
            rescan_on_stale=self.settings.rescan_on_stale,
        )
        # Executables added by hand; re-validated on every rescan
        self._custom_executables: tuple[Path, ...] = ()

    def rescan(
        self,
        roots: Iterable[Path] | None = None,
        cancel: CancelToken | None = None,
    ) -> ScanReport:
        """Rediscover installations and rebuild the registry.

        Args:
            roots: Search roots (default: configured search_roots)
            cancel: Optional cancellation token; a cancelled scan raises
                    ScanCancelled and leaves the registry untouched

        Returns:
            ScanReport with records, warnings and lost active versions
        """
        roots = list(roots) if roots is not None else list(self.settings.search_roots)
        report = discover_versions(roots, self.scanner, self.validator, cancel)

        for executable in self._custom_executables:
            check_cancelled(cancel)
            try:
                report.records.append(self.validator.validate_executable(executable, cancel))
            except CandidateRejected as e:
                logger.warning(f"Custom executable no longer usable: {e}")
                report.warnings.append(ScanWarning(executable, e.reason, str(e)))
        # Same dedup as rebuild, so the report lists exactly what was registered
        report.records = unique_records(display_order(report.records))

        report.lost = self.registry.rebuild(report.records)
        return report

    def list_versions(self, name: str | None = None) -> list[VersionRecord]:
        return self.registry.list(name)

    def get_active_version(self, name: str) -> VersionRecord:
        """Get the active version of a tool.

        Raises:
            NoActiveVersion: If no version of the tool is active
        """
        return self.registry.get_active(name)

    def activation_state(self, name: str) -> ActivationState:
        return self.controller.state(name)

    def activate(
        self,
        name: str,
        version: str | SemVer,
        cancel: CancelToken | None = None,
    ) -> VersionRecord:
        """Activate a version (see ActivationController.activate)."""
        return self.controller.activate(name, version, cancel)

    def add_custom(self, executable_path: Path) -> VersionRecord:
        """Validate a user-chosen executable and add it to the registry.

        The executable is remembered and re-validated on every rescan.

        Raises:
            CandidateRejected: If the executable is unusable or unversioned
        """
        logger.info(f"Adding custom executable: {executable_path}")
        record = self.validator.validate_executable(Path(executable_path))
        self.registry.add(record)
        if record.executable_path not in self._custom_executables:
            self._custom_executables += (record.executable_path,)
        return record

    @staticmethod
    def default_search_roots() -> list[Path]:
        return default_search_roots()
