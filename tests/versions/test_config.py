"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from ldlauncher.config import Settings, get_settings, load_config


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "ldlauncher.yaml"
    path.write_text(
        "tool_name: Paradigm\n"
        "search_roots:\n"
        "  - /srv/etc\n"
        "executable_names: [ld]\n"
        "version_sources: [command]\n"
    )
    return path


class TestLoadConfig:
    """Test load_config function."""

    def test_load_explicit_file(self, config_file):
        config = load_config(config_file)

        assert config["tool_name"] == "Paradigm"
        assert config["search_roots"] == ["/srv/etc"]

    def test_missing_explicit_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_missing_default_file_is_empty(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LDLAUNCHER_CONFIG", raising=False)

        assert load_config() == {}

    def test_config_env_var(self, config_file, monkeypatch):
        monkeypatch.setenv("LDLAUNCHER_CONFIG", str(config_file))

        assert load_config()["executable_names"] == ["ld"]

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestGetSettings:
    """Test get_settings function."""

    def test_file_values_applied(self, config_file):
        settings = get_settings(config_file)

        assert settings.tool_name == "Paradigm"
        assert settings.search_roots == [Path("/srv/etc")]
        assert settings.version_sources == ["command"]

    def test_environment_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("LDLAUNCHER_TOOL_NAME", "LightDesigner")
        monkeypatch.setenv("LDLAUNCHER_EXECUTABLE_NAMES", '["light_designer"]')

        settings = get_settings(config_file)

        assert settings.tool_name == "LightDesigner"
        assert settings.executable_names == ["light_designer"]
        assert settings.search_roots == [Path("/srv/etc")]

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LDLAUNCHER_CONFIG", raising=False)

        settings = get_settings()

        assert settings.tool_name is None
        assert settings.executable_dirs[0] == "LightDesigner"
        assert settings.extra_subdirs == ["Software", "Programs", "Applications"]
        assert settings.rescan_on_stale is True

    def test_unknown_key_rejected(self, tmp_path):
        path = tmp_path / "ldlauncher.yaml"
        path.write_text("search_rootz: [/opt]\n")

        with pytest.raises(ValidationError):
            get_settings(path)

    def test_invalid_pattern_rejected(self):
        with pytest.raises(ValidationError):
            Settings(dir_version_pattern="Paradigm(")

    def test_invalid_version_source_rejected(self):
        with pytest.raises(ValidationError):
            Settings(version_sources=["registry"])
