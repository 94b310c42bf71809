"""Version engine for LD Launcher.

This module provides discovery, validation, registry and activation of
installed Paradigm versions.
"""

from ldlauncher.versions.activation import ActivationController, ActivationState
from ldlauncher.versions.discovery import ScanReport, discover_versions
from ldlauncher.versions.errors import (
    ActivationPartial,
    ActiveVersionLost,
    CandidateRejected,
    NoActiveVersion,
    NoExecutable,
    NotExecutable,
    NotFound,
    ScanCancelled,
    ScanWarning,
    StaleRecord,
    UnparsableVersion,
    VersionError,
)
from ldlauncher.versions.manager import VersionManager
from ldlauncher.versions.markers import MarkerFile, SymlinkMarker
from ldlauncher.versions.models import Candidate, VersionRecord
from ldlauncher.versions.registry import VersionRegistry
from ldlauncher.versions.scanner import VersionScanner
from ldlauncher.versions.semver import SemVer, compare_versions, find_version, parse_version
from ldlauncher.versions.validator import VersionValidator

__all__ = [
    # Models
    "VersionRecord",
    "Candidate",
    # Versioning
    "SemVer",
    "parse_version",
    "find_version",
    "compare_versions",
    # Discovery
    "VersionScanner",
    "VersionValidator",
    "discover_versions",
    "ScanReport",
    # Registry and activation
    "VersionRegistry",
    "ActivationController",
    "ActivationState",
    "MarkerFile",
    "SymlinkMarker",
    "VersionManager",
    # Errors and events
    "VersionError",
    "CandidateRejected",
    "NoExecutable",
    "NotExecutable",
    "UnparsableVersion",
    "NotFound",
    "NoActiveVersion",
    "StaleRecord",
    "ActivationPartial",
    "ScanCancelled",
    "ScanWarning",
    "ActiveVersionLost",
]
