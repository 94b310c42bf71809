"""Semantic version parsing and ordering.

This module provides the SemVer value type and functions for parsing and
comparing version strings found on disk or printed by an executable.

Precedence follows Semantic Versioning 2.0.0:

- major, minor and patch are compared numerically
- a release ranks above every pre-release of the same major.minor.patch
  ("2.0.0-beta" < "2.0.0")
- pre-release identifiers are compared left to right; numeric identifiers
  compare numerically and rank below alphanumeric ones, alphanumeric
  identifiers compare in ASCII order, and a shorter identifier list ranks
  lower when all preceding identifiers are equal
- build metadata is ignored for precedence

SemVer instances still need a total order (registry keys, display order), so
versions with equal precedence are finally ordered by build metadata, with
"no build metadata" first. compare_versions() reports precedence only.
"""

import re
from dataclasses import dataclass, field
from functools import total_ordering

_IDENT = r"[0-9A-Za-z\-]+"
_CORE = rf"(\d+)\.(\d+)\.(\d+)(?:-({_IDENT}(?:\.{_IDENT})*))?(?:\+({_IDENT}(?:\.{_IDENT})*))?"

_FULL_RE = re.compile(rf"^[vV]?{_CORE}$")
_SEARCH_RE = re.compile(rf"(?<![\d.])[vV]?{_CORE}(?!\d)")


@total_ordering
@dataclass(frozen=True, eq=True)
class SemVer:
    """Parsed semantic version.

    Attributes:
        major: Major version number
        minor: Minor version number
        patch: Patch version number
        prerelease: Dot-separated pre-release identifiers (empty for releases)
        build: Dot-separated build metadata identifiers
        raw: Original text the version was parsed from, kept for display
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()
    raw: str = field(default="", compare=False)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def precedence_key(self) -> tuple:
        """Sort key implementing semantic-version precedence (build ignored)."""
        if self.prerelease:
            identifiers = tuple(
                (0, int(ident), ident) if ident.isdigit() else (1, 0, ident)
                for ident in self.prerelease
            )
            release_rank = (0, identifiers)
        else:
            release_rank = (1, ())
        return (self.major, self.minor, self.patch, release_rank)

    def _sort_key(self) -> tuple:
        return (self.precedence_key(), ".".join(self.build))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    @property
    def display(self) -> str:
        """Version string as originally found (canonical form if unknown)."""
        return self.raw or str(self)


def _from_match(match: re.Match, raw: str) -> SemVer:
    major, minor, patch, prerelease, build = match.groups()
    return SemVer(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
        raw=raw,
    )


def parse_version(version: str) -> SemVer:
    """Parse a semantic version string.

    A leading "v" or "V" is accepted and dropped from the canonical form.

    Args:
        version: Version string (e.g., "1.2.3", "v1.0.0-alpha.1+build.5")

    Returns:
        Parsed SemVer keeping the stripped input as its raw form

    Raises:
        ValueError: If version doesn't match semantic versioning format
    """
    text = version.strip()
    match = _FULL_RE.match(text)
    if not match:
        raise ValueError(f"Invalid semantic version: {version!r}")
    return _from_match(match, text)


def find_version(text: str) -> SemVer | None:
    """Find the first semantic version embedded in free text.

    Used for command output ("Paradigm 3.4.2 (build 77)") and directory
    names ("paradigm-1.2.0").

    Returns:
        Parsed SemVer, or None if the text contains no version
    """
    match = _SEARCH_RE.search(text)
    if not match:
        return None
    return _from_match(match, match.group(0).lstrip("vV"))


def compare_versions(v1: str | SemVer, v2: str | SemVer) -> int:
    """Compare two versions by semantic-version precedence.

    Args:
        v1: First version (string or SemVer)
        v2: Second version (string or SemVer)

    Returns:
        -1 if v1 < v2, 0 if v1 == v2, 1 if v1 > v2

    Raises:
        ValueError: If either version string is invalid

    Examples:
        >>> compare_versions("2.0.0", "1.0.0")
        1
        >>> compare_versions("1.0.0-alpha", "1.0.0")
        -1
        >>> compare_versions("1.0.0+build1", "1.0.0+build2")
        0
    """
    key1 = (v1 if isinstance(v1, SemVer) else parse_version(v1)).precedence_key()
    key2 = (v2 if isinstance(v2, SemVer) else parse_version(v2)).precedence_key()

    if key1 < key2:
        return -1
    if key1 > key2:
        return 1
    return 0
