"""
LD Launcher CLI - inspect and switch installed Paradigm versions.

Usage:
    ldlauncher scan [--root DIR ...] [--json]
        Scans the search roots and prints found versions and warnings.

    ldlauncher list [--name Paradigm] [--json]
        Lists versions, newest first.

    ldlauncher activate NAME VERSION
        Activates a version and updates the configured marker.

    ldlauncher add PATH/TO/EXECUTABLE
        Validates a custom executable and prints its record.

Every command scans the search roots first; the registry lives only for the
duration of the process.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ldlauncher.config import get_settings
from ldlauncher.versions.discovery import ScanReport
from ldlauncher.versions.errors import ActivationPartial, VersionError
from ldlauncher.versions.manager import VersionManager
from ldlauncher.versions.models import VersionRecord

logger = logging.getLogger(__name__)


def _print_records(records: list[VersionRecord], as_json: bool) -> None:
    if as_json:
        print(json.dumps([r.to_dict() for r in records], indent=2))
        return
    if not records:
        print("No versions found")
        return
    for record in records:
        print(f"{record.name:<20} {record.version.display:<16} {record.executable_path}")


def _build_manager(args: argparse.Namespace) -> tuple[VersionManager, ScanReport]:
    settings = get_settings(Path(args.config) if args.config else None)
    manager = VersionManager(settings)
    roots = [Path(r) for r in args.root] if args.root else None
    report = manager.rescan(roots)
    return manager, report


def cmd_scan(args: argparse.Namespace) -> int:
    """Print discovered versions and scan warnings."""
    _, report = _build_manager(args)

    if args.json:
        print(
            json.dumps(
                {
                    "versions": [r.to_dict() for r in report.records],
                    "warnings": [
                        {"path": str(w.path), "reason": w.reason, "message": w.message}
                        for w in report.warnings
                    ],
                },
                indent=2,
            )
        )
        return 0

    _print_records(report.records, as_json=False)
    for warning in report.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    manager, _ = _build_manager(args)
    _print_records(manager.list_versions(args.name), args.json)
    return 0


def cmd_activate(args: argparse.Namespace) -> int:
    manager, _ = _build_manager(args)
    record = manager.activate(args.name, args.version)
    _print_records([record], args.json)
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    manager, _ = _build_manager(args)
    record = manager.add_custom(Path(args.executable))
    _print_records([record], args.json)
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="ldlauncher",
        description="Discover and switch installed Paradigm versions",
    )
    parser.add_argument("--config", type=str, help="Path to ldlauncher.yaml")
    parser.add_argument(
        "--root",
        action="append",
        default=[],
        help="Search root (repeatable; default: configured search_roots)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON records")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Scan search roots")
    scan_parser.set_defaults(func=cmd_scan)

    list_parser = subparsers.add_parser("list", help="List versions, newest first")
    list_parser.add_argument("--name", type=str, default=None, help="Only this tool name")
    list_parser.set_defaults(func=cmd_list)

    activate_parser = subparsers.add_parser("activate", help="Activate a version")
    activate_parser.add_argument("name", help="Tool name (e.g., Paradigm)")
    activate_parser.add_argument("version", help="Version to activate (e.g., 3.4.2)")
    activate_parser.set_defaults(func=cmd_activate)

    add_parser = subparsers.add_parser("add", help="Add a custom executable")
    add_parser.add_argument("executable", help="Path to the executable")
    add_parser.set_defaults(func=cmd_add)

    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        sys.exit(args.func(args))
    except ActivationPartial as e:
        print(f"Error: {e} (retry activation)", file=sys.stderr)
        sys.exit(2)
    except VersionError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
