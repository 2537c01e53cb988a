"""
Tests for settings module.

Tests settings validation and environment variable loading.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from git_stub.errors import BuildEnvironmentError
from git_stub.settings import (
    DEFAULT_DEPENDENCY_FORMAT,
    BuildScriptSettings,
    VcsSettings,
    create_build_settings_from_env,
    create_vcs_settings_from_env,
)


class TestVcsSettings:
    """Test VcsSettings dataclass validation."""

    def test_defaults(self):
        settings = VcsSettings()
        assert settings.git_binary == "git"
        assert settings.jj_binary == "jj"

    def test_empty_binary_rejected(self):
        """Test that an empty executable name fails fast."""
        with pytest.raises(ValueError, match="git_binary must not be empty"):
            VcsSettings(git_binary="")
        with pytest.raises(ValueError, match="jj_binary must not be empty"):
            VcsSettings(jj_binary="")


class TestCreateVcsSettingsFromEnv:
    """Test loading VCS settings from the environment."""

    def test_unset_uses_defaults(self):
        assert create_vcs_settings_from_env({}) == VcsSettings()

    def test_overrides_trimmed(self):
        """Test that override values are trimmed."""
        settings = create_vcs_settings_from_env({"GIT": "  /opt/git/bin/git\n", "JJ": "jj-dev"})
        assert settings.git_binary == "/opt/git/bin/git"
        assert settings.jj_binary == "jj-dev"

    def test_blank_overrides_fall_back(self):
        """Test that empty and whitespace-only values are treated as unset."""
        settings = create_vcs_settings_from_env({"GIT": "", "JJ": "   "})
        assert settings == VcsSettings()

    def test_reads_process_environment(self, monkeypatch):
        """Test that os.environ is used when no mapping is given."""
        monkeypatch.setenv("GIT", "/usr/local/bin/git")
        assert create_vcs_settings_from_env().git_binary == "/usr/local/bin/git"

    def test_fresh_instance_each_call(self, monkeypatch):
        """Test that settings are not cached between calls."""
        monkeypatch.setenv("JJ", "jj-one")
        first = create_vcs_settings_from_env()
        monkeypatch.setenv("JJ", "jj-two")
        second = create_vcs_settings_from_env()
        assert first.jj_binary == "jj-one"
        assert second.jj_binary == "jj-two"


class TestBuildScriptSettings:
    """Test build-script settings."""

    def test_from_env(self, tmp_path):
        env = {"OUT_DIR": str(tmp_path / "out"), "CARGO_MANIFEST_DIR": str(tmp_path / "crate")}
        settings = create_build_settings_from_env(env)
        assert settings.out_dir == tmp_path / "out"
        assert settings.manifest_dir == tmp_path / "crate"
        assert settings.dependency_format == DEFAULT_DEPENDENCY_FORMAT

    def test_dependency_format_override(self):
        env = {
            "OUT_DIR": "/tmp/out",
            "CARGO_MANIFEST_DIR": "/tmp/crate",
            "GIT_STUB_DEPENDENCY_FORMAT": "depends-on {path}",
        }
        assert create_build_settings_from_env(env).dependency_format == "depends-on {path}"

    @pytest.mark.parametrize("env,missing", [
        ({"CARGO_MANIFEST_DIR": "/tmp/crate"}, "OUT_DIR"),
        ({"OUT_DIR": "", "CARGO_MANIFEST_DIR": "/tmp/crate"}, "OUT_DIR"),
        ({"OUT_DIR": "/tmp/out"}, "CARGO_MANIFEST_DIR"),
    ])
    def test_missing_variables(self, env, missing):
        """Test that missing build variables name the variable and the build-script requirement."""
        with pytest.raises(BuildEnvironmentError, match=f"{missing} environment variable is required"):
            create_build_settings_from_env(env)

    def test_format_without_placeholder_rejected(self):
        with pytest.raises(BuildEnvironmentError, match="must contain"):
            BuildScriptSettings(out_dir=Path("/tmp/out"), manifest_dir=Path("/tmp"), dependency_format="rerun")

    @pytest.mark.parametrize("template", [
        "rerun {path} {HOME}",
        "rerun {path} {0}",
        "rerun {path} {",
        "rerun {path:>>>}",
        "rerun {path.nope}",
    ])
    def test_format_with_unknown_fields_rejected(self, template):
        """Test that a template that cannot be filled fails at construction, not at materialize time."""
        with pytest.raises(BuildEnvironmentError, match="not a valid template"):
            BuildScriptSettings(out_dir=Path("/tmp/out"), manifest_dir=Path("/tmp"), dependency_format=template)

    def test_format_with_escaped_braces_allowed(self):
        settings = BuildScriptSettings(
            out_dir=Path("/tmp/out"), manifest_dir=Path("/tmp"), dependency_format="{{dep}} {path}",
        )
        assert settings.dependency_format.format(path="a") == "{dep} a"

    def test_invalid_format_from_env(self):
        env = {
            "OUT_DIR": "/tmp/out",
            "CARGO_MANIFEST_DIR": "/tmp/crate",
            "GIT_STUB_DEPENDENCY_FORMAT": "rerun {path} {HOME}",
        }
        with pytest.raises(BuildEnvironmentError, match="HOME"):
            create_build_settings_from_env(env)
