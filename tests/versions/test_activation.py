"""Tests for version activation."""

import json
import sys
import threading
import time

import pytest

from ldlauncher.versions.activation import ActivationController
from ldlauncher.versions.errors import ActivationPartial, NoActiveVersion, NotFound, StaleRecord
from ldlauncher.versions.markers import MarkerFile, SymlinkMarker
from ldlauncher.versions.registry import VersionRegistry


class FailingMarker:
    """Marker whose update always fails."""

    def __init__(self):
        self.calls = 0

    def update(self, record):
        self.calls += 1
        raise OSError("marker directory is read-only")


class SlowMarker(MarkerFile):
    """Marker file whose 1.0.0 write stalls until the other activation had its chance."""

    def __init__(self, path):
        super().__init__(path)
        self.first_write_started = threading.Event()

    def update(self, record):
        if str(record.version) == "1.0.0":
            self.first_write_started.set()
            time.sleep(0.3)
        super().update(record)


@pytest.fixture
def installs(tools_root, make_install):
    return {
        "1.0.0": make_install(tools_root, "paradigm-1.0.0", version="1.0.0"),
        "2.0.0": make_install(tools_root, "paradigm-2.0.0", version="2.0.0"),
    }


@pytest.fixture
def registry(validator, installs):
    return VersionRegistry(validator.validate(path) for path in installs.values())


@pytest.fixture
def controller(registry, validator):
    return ActivationController(registry, validator)


class TestActivate:
    """Test ActivationController.activate."""

    def test_activate_sets_active_version(self, controller, registry):
        """Test activate followed by get_active returns the same record."""
        record = controller.activate("paradigm", "2.0.0")

        assert registry.get_active("paradigm") == record
        assert record == registry.get("paradigm", "2.0.0")

    def test_switch_between_versions(self, controller):
        controller.activate("paradigm", "1.0.0")
        controller.activate("paradigm", "2.0.0")

        state = controller.state("paradigm")
        assert state.is_active
        assert state.version == "2.0.0"

    def test_unresolved_state(self, controller):
        state = controller.state("paradigm")

        assert state.is_active is False
        assert state.version is None

    def test_activate_unknown_version(self, controller):
        with pytest.raises(NotFound):
            controller.activate("paradigm", "9.9.9")

    def test_stale_record_keeps_previous_active(self, controller, registry, installs):
        """Test activating a version removed from disk fails without switching."""
        controller.activate("paradigm", "2.0.0")
        (installs["1.0.0"] / "bin" / "paradigm").unlink()

        with pytest.raises(StaleRecord) as exc_info:
            controller.activate("paradigm", "1.0.0")

        assert str(exc_info.value.record.version) == "1.0.0"
        assert str(registry.get_active("paradigm").version) == "2.0.0"

    def test_stale_record_without_rescan(self, registry, validator, installs):
        controller = ActivationController(registry, validator, rescan_on_stale=False)
        (installs["1.0.0"] / "bin" / "paradigm").unlink()

        with pytest.raises(StaleRecord):
            controller.activate("paradigm", "1.0.0")

        with pytest.raises(NoActiveVersion):
            registry.get_active("paradigm")

    def test_stale_record_recovered_by_rescan(self, controller, registry, installs):
        """Test an executable that moved within the installation is picked up."""
        install_dir = installs["1.0.0"]
        (install_dir / "bin" / "paradigm").rename(install_dir / "paradigm")

        record = controller.activate("paradigm", "1.0.0")

        assert record.executable_path == install_dir.resolve() / "paradigm"
        assert registry.get("paradigm", "1.0.0").executable_path == record.executable_path

    def test_stale_record_with_different_version_on_disk(self, controller, installs):
        """Test a rescan finding another version does not activate it."""
        (installs["1.0.0"] / "bin" / "paradigm").unlink()
        (installs["1.0.0"] / "paradigm").write_text("#!/bin/sh\n")
        (installs["1.0.0"] / "paradigm").chmod(0o755)
        (installs["1.0.0"] / "version.json").write_text(json.dumps({"version": "1.0.1"}))

        with pytest.raises(StaleRecord, match="now holds"):
            controller.activate("paradigm", "1.0.0")


class TestMarkers:
    """Test external marker updates."""

    def test_marker_file_written_after_activation(self, registry, validator, tmp_path):
        marker_path = tmp_path / "state" / "current.json"
        controller = ActivationController(registry, validator, marker=MarkerFile(marker_path))

        record = controller.activate("paradigm", "1.0.0")

        assert MarkerFile(marker_path).read() == record.to_dict()
        assert list(marker_path.parent.iterdir()) == [marker_path]

    def test_marker_failure_is_partial_activation(self, registry, validator):
        """Test marker failure reports ActivationPartial and keeps the new pointer."""
        marker = FailingMarker()
        controller = ActivationController(registry, validator, marker=marker)

        with pytest.raises(ActivationPartial) as exc_info:
            controller.activate("paradigm", "2.0.0")

        assert isinstance(exc_info.value.cause, OSError)
        assert str(exc_info.value.record.version) == "2.0.0"
        assert str(registry.get_active("paradigm").version) == "2.0.0"
        assert marker.calls == 1

    def test_retry_after_partial_activation(self, registry, validator, tmp_path):
        controller = ActivationController(registry, validator, marker=FailingMarker())
        with pytest.raises(ActivationPartial):
            controller.activate("paradigm", "2.0.0")

        controller.marker = MarkerFile(tmp_path / "current.json")
        record = controller.activate("paradigm", "2.0.0")

        assert controller.marker.read()["version"] == "2.0.0"
        assert registry.get_active("paradigm") == record

    def test_concurrent_marker_writes_use_separate_temp_files(self, registry, tmp_path):
        """Test parallel writers to one marker path never disturb each other."""
        marker_path = tmp_path / "state" / "current.json"
        records = [registry.get("paradigm", "1.0.0"), registry.get("paradigm", "2.0.0")]
        failures: list[Exception] = []

        def writer(record):
            marker = MarkerFile(marker_path)
            try:
                for _ in range(50):
                    marker.update(record)
            except Exception as e:
                failures.append(e)

        threads = [threading.Thread(target=writer, args=(r,)) for r in records]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert failures == []
        assert MarkerFile(marker_path).read()["version"] in {"1.0.0", "2.0.0"}
        assert list(marker_path.parent.iterdir()) == [marker_path]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlink_marker(self, registry, validator, tmp_path, installs):
        link = tmp_path / "current"
        controller = ActivationController(registry, validator, marker=SymlinkMarker(link))

        controller.activate("paradigm", "1.0.0")
        controller.activate("paradigm", "2.0.0")

        assert link.is_symlink()
        assert link.resolve() == installs["2.0.0"].resolve()


class TestConcurrentActivation:
    """Test activations racing each other with a marker configured."""

    def test_marker_matches_active_version(self, registry, validator, tmp_path):
        """Test the last committed activation is also the last marker written."""
        marker = SlowMarker(tmp_path / "current.json")
        controller = ActivationController(registry, validator, marker=marker)
        failures: list[Exception] = []

        def activate(version):
            try:
                controller.activate("paradigm", version)
            except Exception as e:
                failures.append(e)

        first = threading.Thread(target=activate, args=("1.0.0",))
        first.start()
        assert marker.first_write_started.wait(timeout=5)
        second = threading.Thread(target=activate, args=("2.0.0",))
        second.start()
        first.join()
        second.join()

        assert failures == []
        assert str(registry.get_active("paradigm").version) == "2.0.0"
        assert marker.read() == registry.get_active("paradigm").to_dict()
