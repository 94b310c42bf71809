"""Version activation.

This module provides the ActivationController, which switches the active
version of a tool as one logical transaction:

1. look up the record in the registry
2. re-check that its executable still exists and is runnable
3. move the registry's active pointer
4. update the external marker, reporting ActivationPartial on failure

The registry pointer is committed before the marker is written and is never
rolled back; a failed marker update is retried by activating again. Steps 3
and 4 run under one controller lock, so concurrent activations leave the
marker naming the same record as the active pointer.
"""

import logging
import threading
from dataclasses import dataclass

from ldlauncher.versions.errors import (
    ActivationPartial,
    CandidateRejected,
    NoActiveVersion,
    StaleRecord,
)
from ldlauncher.versions.markers import ActiveMarker
from ldlauncher.versions.models import VersionRecord
from ldlauncher.versions.registry import VersionRegistry
from ldlauncher.versions.scanner import CancelToken
from ldlauncher.versions.semver import SemVer
from ldlauncher.versions.validator import VersionValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationState:
    """Activation state of one tool: Unresolved (record is None) or Active."""

    name: str
    record: VersionRecord | None = None

    @property
    def is_active(self) -> bool:
        return self.record is not None

    @property
    def version(self) -> str | None:
        return str(self.record.version) if self.record is not None else None


class ActivationController:
    """Switches the active version of tools in a registry.

    Attributes:
        registry: Registry holding the active pointers
        validator: Used to re-check records at activation time
        marker: Optional external marker updated after each activation
        rescan_on_stale: Re-validate a stale record's directory once before
                         giving up
    """

    def __init__(
        self,
        registry: VersionRegistry,
        validator: VersionValidator,
        marker: ActiveMarker | None = None,
        rescan_on_stale: bool = True,
    ):
        self.registry = registry
        self.validator = validator
        self.marker = marker
        self.rescan_on_stale = rescan_on_stale
        # Held across the pointer commit and the marker write; registry reads
        # do not take it
        self._commit_lock = threading.Lock()

    def state(self, name: str) -> ActivationState:
        try:
            return ActivationState(name=name, record=self.registry.get_active(name))
        except NoActiveVersion:
            return ActivationState(name=name)

    def activate(
        self,
        name: str,
        version: str | SemVer,
        cancel: CancelToken | None = None,
    ) -> VersionRecord:
        """Make (name, version) the active version.

        Args:
            name: Tool name
            version: Version to activate
            cancel: Optional cancellation token for the stale-record rescan

        Returns:
            The newly active record

        Raises:
            NotFound: If the version is not registered
            StaleRecord: If the executable is gone; the active version is
                         left unchanged
            ActivationPartial: If the registry was updated but the external
                               marker was not
        """
        record = self.registry.get(name, version)

        if not self.validator.is_still_valid(record):
            record = self._refresh_stale(record, cancel)

        # The marker must end up naming the same record as the registry pointer
        with self._commit_lock:
            record = self.registry.set_active(record.name, record.version)
            logger.info(f"Activated {record.name} {record.version}: {record.executable_path}")

            if self.marker is not None:
                try:
                    self.marker.update(record)
                except Exception as e:
                    logger.error(f"Marker update failed for {record.name} {record.version}: {e}")
                    raise ActivationPartial(record, e) from e

        return record

    def _refresh_stale(self, record: VersionRecord, cancel: CancelToken | None) -> VersionRecord:
        if not self.rescan_on_stale:
            logger.warning(f"Stale record {record.name} {record.version}: {record.executable_path}")
            raise StaleRecord(record)

        logger.info(f"Executable missing for {record.name} {record.version}, rescanning {record.path}")
        try:
            fresh = self.validator.validate(record.path, cancel)
        except CandidateRejected as e:
            logger.warning(f"Stale record {record.name} {record.version}: {e}")
            raise StaleRecord(record, f"{record.name} {record.version} is no longer usable: {e}") from e

        if fresh.key != record.key:
            raise StaleRecord(
                record,
                f"{record.path} now holds {fresh.name} {fresh.version}, not {record.version}",
            )

        self.registry.replace(record, fresh)
        return fresh
