"""Version discovery.

This module runs one discovery pass: scan the search roots, validate every
candidate and collect the results. It never touches the registry, so a
cancelled or failed pass leaves the registry exactly as it was.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ldlauncher.versions.errors import (
    ActiveVersionLost,
    CandidateRejected,
    ScanWarning,
)
from ldlauncher.versions.models import VersionRecord
from ldlauncher.versions.registry import display_order, unique_records
from ldlauncher.versions.scanner import CancelToken, VersionScanner
from ldlauncher.versions.validator import VersionValidator

logger = logging.getLogger(__name__)


@dataclass
class ScanReport:
    """Result of a discovery pass.

    Attributes:
        records: Validated records in display order, one per (name, version)
        warnings: Skipped roots and rejected candidates
        lost: Active versions cleared when the registry was rebuilt
    """

    records: list[VersionRecord]
    warnings: list[ScanWarning]
    lost: list[ActiveVersionLost] = field(default_factory=list)


def discover_versions(
    roots: Iterable[Path],
    scanner: VersionScanner,
    validator: VersionValidator,
    cancel: CancelToken | None = None,
) -> ScanReport:
    """Discover all valid installations under the given roots.

    Per-root and per-candidate failures become warnings; only cancellation
    stops the pass.

    Args:
        roots: Search root directories
        scanner: Candidate producer
        validator: Candidate validator
        cancel: Optional cancellation token

    Returns:
        ScanReport with records and warnings (lost is left empty)

    Raises:
        ScanCancelled: If cancel is set before the pass completes
    """
    warnings: list[ScanWarning] = []
    records: list[VersionRecord] = []

    for candidate in scanner.scan(roots, warnings, cancel):
        try:
            record = validator.validate(candidate, cancel)
        except CandidateRejected as e:
            logger.warning(f"Skipping {candidate.path}: {e}")
            warnings.append(ScanWarning(candidate.path, e.reason, str(e)))
            continue
        except ValueError as e:
            logger.warning(f"Skipping {candidate.path}: {e}")
            warnings.append(ScanWarning(candidate.path, "invalid-record", str(e)))
            continue

        logger.info(f"Found {record.name} version {record.version} at {record.executable_path}")
        records.append(record)

    logger.info(f"Discovered {len(records)} versions ({len(warnings)} warnings)")
    return ScanReport(records=unique_records(display_order(records)), warnings=warnings)
