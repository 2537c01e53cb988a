"""
Settings and configuration for git stubs.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are loaded from environment variables once, at construction time of
the object that uses them, and stored as explicit fields so behavior does not
depend on later changes to the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import BuildEnvironmentError

__all__ = [
    "VcsSettings",
    "BuildScriptSettings",
    "create_vcs_settings_from_env",
    "create_build_settings_from_env",
    "GIT_ENV",
    "JJ_ENV",
    "OUT_DIR_ENV",
    "MANIFEST_DIR_ENV",
    "DEPENDENCY_FORMAT_ENV",
    "DEFAULT_DEPENDENCY_FORMAT",
]

GIT_ENV = "GIT"
JJ_ENV = "JJ"
OUT_DIR_ENV = "OUT_DIR"
MANIFEST_DIR_ENV = "CARGO_MANIFEST_DIR"
DEPENDENCY_FORMAT_ENV = "GIT_STUB_DEPENDENCY_FORMAT"

DEFAULT_DEPENDENCY_FORMAT = "cargo::rerun-if-changed={path}"


@dataclass(frozen=True)
class VcsSettings:
    """
    Executables used to read file contents from history.

    Attributes:
        git_binary: git executable name or path
        jj_binary: jj executable name or path
    """
    git_binary: str = "git"
    jj_binary: str = "jj"

    def __post_init__(self):
        """Validate settings on construction."""
        if not self.git_binary:
            raise ValueError("git_binary must not be empty")
        if not self.jj_binary:
            raise ValueError("jj_binary must not be empty")


@dataclass(frozen=True)
class BuildScriptSettings:
    """
    Build environment for build-script materialization.

    Attributes:
        out_dir: Build output directory
        manifest_dir: Directory containing the build manifest
        dependency_format: Template for the dependency announcement line;
            ``{path}`` is replaced with the stub file path
    """
    out_dir: Path
    manifest_dir: Path
    dependency_format: str = DEFAULT_DEPENDENCY_FORMAT

    def __post_init__(self):
        """Validate settings on construction."""
        if "{path}" not in self.dependency_format:
            raise BuildEnvironmentError(
                f"dependency_format must contain '{{path}}', got {self.dependency_format!r}"
            )
        try:
            self.dependency_format.format(path="stub")
        except (AttributeError, IndexError, KeyError, ValueError) as e:
            raise BuildEnvironmentError(
                f"dependency_format {self.dependency_format!r} is not a valid template "
                f"(only {{path}} may be substituted): {e!r}"
            ) from e


def _read_binary(environ: Mapping[str, str], var: str, default: str) -> str:
    # Unset, empty and whitespace-only values all fall back to the default
    value = environ.get(var, "").strip()
    return value or default


def create_vcs_settings_from_env(environ: Optional[Mapping[str, str]] = None) -> VcsSettings:
    """
    Load VCS settings from environment variables.

    Environment Variables:
        - GIT: git executable (default: "git")
        - JJ: jj executable (default: "jj")

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        VcsSettings with trimmed executable names

    Note:
        Creates a fresh VcsSettings instance every time (no caching).
    """
    if environ is None:
        environ = os.environ
    return VcsSettings(
        git_binary=_read_binary(environ, GIT_ENV, "git"),
        jj_binary=_read_binary(environ, JJ_ENV, "jj"),
    )


def create_build_settings_from_env(environ: Optional[Mapping[str, str]] = None) -> BuildScriptSettings:
    """
    Load build-script settings from environment variables.

    Environment Variables:
        - OUT_DIR (required): build output directory
        - CARGO_MANIFEST_DIR (required): directory containing the build manifest
        - GIT_STUB_DEPENDENCY_FORMAT (optional): announcement template

    Args:
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        BuildScriptSettings

    Raises:
        BuildEnvironmentError: If a required variable is missing or empty
    """
    if environ is None:
        environ = os.environ

    out_dir = environ.get(OUT_DIR_ENV)
    manifest_dir = environ.get(MANIFEST_DIR_ENV)

    if not out_dir:
        raise BuildEnvironmentError(
            f"{OUT_DIR_ENV} environment variable is required (must be called from a build script)"
        )
    if not manifest_dir:
        raise BuildEnvironmentError(
            f"{MANIFEST_DIR_ENV} environment variable is required (must be called from a build script)"
        )

    dependency_format = environ.get(DEPENDENCY_FORMAT_ENV) or DEFAULT_DEPENDENCY_FORMAT

    return BuildScriptSettings(
        out_dir=Path(out_dir),
        manifest_dir=Path(manifest_dir),
        dependency_format=dependency_format,
    )
