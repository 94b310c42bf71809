"""Errors and reportable events of the version engine.

Exceptions are raised for failures the immediate caller must handle. Scan
warnings and lost active versions are plain values returned alongside
results, since neither stops the operation that produced them.
"""

from dataclasses import dataclass
from pathlib import Path


class VersionError(Exception):
    """Base class for all version engine errors."""


class CandidateRejected(VersionError):
    """A candidate directory is not a usable installation.

    Attributes:
        path: Candidate directory (or executable for custom installs)
    """

    reason = "rejected"

    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path


class NoExecutable(CandidateRejected):
    """No file matching the executable naming convention was found."""

    reason = "no-executable"


class NotExecutable(CandidateRejected):
    """The entry point exists but lacks execute permission."""

    reason = "not-executable"


class UnparsableVersion(CandidateRejected):
    """No well-formed version could be extracted."""

    reason = "unparsable-version"


class NotFound(VersionError, LookupError):
    """The requested (name, version) is not in the registry."""

    def __init__(self, name: str, version: str):
        super().__init__(f"Version not found: {name} {version}")
        self.name = name
        self.version = version


class NoActiveVersion(VersionError, LookupError):
    """No version is active for the tool."""

    def __init__(self, name: str):
        super().__init__(f"No active version for {name}")
        self.name = name


class StaleRecord(VersionError):
    """A registry entry is no longer backed by a runnable executable."""

    def __init__(self, record, message: str | None = None):
        super().__init__(
            message or f"Executable for {record.name} {record.version} is gone: {record.executable_path}"
        )
        self.record = record


class ActivationPartial(VersionError):
    """The registry pointer moved but the external marker was not updated.

    The registry keeps the new active version; retry the activation once the
    marker problem is fixed.

    Attributes:
        record: The version now active in the registry
        cause: Exception raised by the marker update
    """

    def __init__(self, record, cause: BaseException):
        super().__init__(
            f"Activated {record.name} {record.version} but marker update failed: {cause}"
        )
        self.record = record
        self.cause = cause


class ScanCancelled(VersionError):
    """A scan or validation was cancelled before completion."""


@dataclass(frozen=True)
class ScanWarning:
    """Non-fatal problem found while scanning.

    Attributes:
        path: Root or candidate the warning is about
        reason: Short machine-readable reason (e.g., "missing-root")
        message: Human-readable detail
    """

    path: Path
    reason: str
    message: str = ""

    def __str__(self) -> str:
        return f"{self.path}: {self.message or self.reason}"


@dataclass(frozen=True)
class ActiveVersionLost:
    """An active pointer was cleared because its record disappeared."""

    name: str
    version: str
