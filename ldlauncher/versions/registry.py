"""Version registry for validated installations.

This module provides the VersionRegistry class, the only shared mutable state
of the version engine: validated records keyed by (name, version) plus at most
one active version per tool name.

The whole state lives in an immutable snapshot that mutations replace under a
lock. Readers take the current snapshot reference without locking, so they
always see the state before or after a mutation, never in between.
"""

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ldlauncher.versions.errors import ActiveVersionLost, NoActiveVersion, NotFound
from ldlauncher.versions.models import VersionRecord
from ldlauncher.versions.semver import SemVer, parse_version

logger = logging.getLogger(__name__)

Key = tuple[str, str]


@dataclass(frozen=True)
class _State:
    records: Mapping[Key, VersionRecord] = field(default_factory=lambda: MappingProxyType({}))
    # tool name -> active key; every value is a key of records
    active: Mapping[str, Key] = field(default_factory=lambda: MappingProxyType({}))


def _key(name: str, version: str | SemVer) -> Key:
    if isinstance(version, SemVer):
        return (name, str(version))
    # Accept display forms such as "v1.2.0"
    try:
        return (name, str(parse_version(version)))
    except ValueError:
        return (name, version.strip())


def display_order(records: Iterable[VersionRecord]) -> list[VersionRecord]:
    """Sort records by descending version, ties broken by name ascending."""
    by_name = sorted(records, key=lambda r: r.name)
    return sorted(by_name, key=lambda r: r.version, reverse=True)


def unique_records(records: Iterable[VersionRecord]) -> list[VersionRecord]:
    """Drop records whose (name, version) key was already seen; first one wins."""
    seen: dict[Key, VersionRecord] = {}
    for record in records:
        if record.key in seen:
            logger.debug(f"Duplicate version {record.name} {record.version} at {record.path}")
            continue
        seen[record.key] = record
    return list(seen.values())


class VersionRegistry:
    """Registry of validated tool installations.

    All mutations (rebuild, add, remove, set_active) are serialized.
    Reads never block and return snapshots that later mutations do not change.
    """

    def __init__(self, records: Iterable[VersionRecord] = ()):
        self._lock = threading.Lock()
        self._state = _State()
        if records:
            self.rebuild(records)

    def rebuild(self, records: Iterable[VersionRecord]) -> list[ActiveVersionLost]:
        """Atomically replace all records.

        Duplicates by (name, version) keep the first occurrence. Active
        pointers to keys missing from the new records are cleared.

        Args:
            records: Validated records from a complete scan

        Returns:
            One ActiveVersionLost event per cleared active pointer
        """
        new_records = {record.key: record for record in unique_records(records)}

        with self._lock:
            active: dict[str, Key] = {}
            lost: list[ActiveVersionLost] = []
            for name, key in self._state.active.items():
                if key in new_records:
                    active[name] = key
                else:
                    lost.append(ActiveVersionLost(name=name, version=key[1]))

            self._state = _State(
                records=MappingProxyType(new_records),
                active=MappingProxyType(active),
            )

        for event in lost:
            logger.warning(f"Active version {event.name} {event.version} no longer installed")
        logger.info(f"Registry rebuilt with {len(new_records)} versions")
        return lost

    def add(self, record: VersionRecord) -> None:
        """Insert a record, replacing any record with the same key."""
        with self._lock:
            records = dict(self._state.records)
            records[record.key] = record
            self._state = _State(records=MappingProxyType(records), active=self._state.active)

    def replace(self, old: VersionRecord, new: VersionRecord) -> None:
        """Swap a registered record for a refreshed one with the same key.

        Raises:
            ValueError: If the keys differ
            NotFound: If old is no longer the registered record for its key
        """
        if old.key != new.key:
            raise ValueError(f"Cannot replace {old.key} with {new.key}")
        with self._lock:
            if self._state.records.get(old.key) != old:
                raise NotFound(*old.key)
            records = dict(self._state.records)
            records[new.key] = new
            self._state = _State(records=MappingProxyType(records), active=self._state.active)

    def remove(self, name: str, version: str | SemVer) -> ActiveVersionLost | None:
        """Remove one record.

        Returns:
            ActiveVersionLost if the removed record was the active one

        Raises:
            NotFound: If the record is not registered
        """
        key = _key(name, version)
        with self._lock:
            if key not in self._state.records:
                raise NotFound(name, key[1])

            records = dict(self._state.records)
            del records[key]
            active = dict(self._state.active)
            lost = None
            if active.get(name) == key:
                del active[name]
                lost = ActiveVersionLost(name=name, version=key[1])

            self._state = _State(records=MappingProxyType(records), active=MappingProxyType(active))

        if lost is not None:
            logger.warning(f"Active version {name} {key[1]} removed")
        return lost

    def set_active(self, name: str, version: str | SemVer) -> VersionRecord:
        """Make (name, version) the active version of its tool.

        Raises:
            NotFound: If the record is not registered
        """
        key = _key(name, version)
        with self._lock:
            record = self._state.records.get(key)
            if record is None:
                raise NotFound(name, key[1])

            active = dict(self._state.active)
            active[name] = key
            self._state = _State(records=self._state.records, active=MappingProxyType(active))

        return record

    def get(self, name: str, version: str | SemVer) -> VersionRecord:
        """Get a record by identity.

        Raises:
            NotFound: If the record is not registered
        """
        key = _key(name, version)
        record = self._state.records.get(key)
        if record is None:
            raise NotFound(name, key[1])
        return record

    def get_active(self, name: str) -> VersionRecord:
        """Get the active record of a tool.

        Raises:
            NoActiveVersion: If no version of the tool is active
        """
        state = self._state
        key = state.active.get(name)
        if key is None:
            raise NoActiveVersion(name)
        return state.records[key]

    def list(self, name: str | None = None) -> list[VersionRecord]:
        """List records in display order.

        Args:
            name: Only list versions of this tool (default: all tools)

        Returns:
            New list ordered by descending version, then name ascending
        """
        records = self._state.records.values()
        if name is not None:
            records = [r for r in records if r.name == name]
        return display_order(records)

    def active_keys(self) -> dict[str, Key]:
        """Snapshot of tool name -> active (name, version) key."""
        return dict(self._state.active)

    def has_version(self, name: str, version: str | SemVer) -> bool:
        return _key(name, version) in self._state.records

    def __contains__(self, key: object) -> bool:
        return key in self._state.records

    def __len__(self) -> int:
        return len(self._state.records)
