"""
Path safety utilities for git stubs.

This module provides shared validation for paths that name files inside a
repository or an output directory, so that neither a stub's target path nor
a materialized output path can escape its root.
"""
from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional

__all__ = ["find_unsafe_component", "is_safe_relpath"]


def find_unsafe_component(path: str) -> Optional[str]:
    """
    Return the first component that keeps ``path`` from being a clean relative path.

    This function enforces the following rules:
    - No absolute paths (starting with '/')
    - No parent directory references ('..' components)
    - No current directory references ('.' components)
    - No empty components ('a//b', trailing '/')

    Segments are checked on the raw text because ``PurePosixPath`` silently
    collapses '.' and repeated separators.

    Args:
        path: POSIX-style path string (backslashes already normalized)

    Returns:
        The offending component, or None if the path is clean

    Examples:
        >>> find_unsafe_component("openapi/api.json") is None
        True

        >>> find_unsafe_component("../secrets.txt")
        '..'

        >>> find_unsafe_component("/etc/passwd")
        '/'
    """
    if PurePosixPath(path).is_absolute():
        return "/"
    for segment in path.split("/"):
        if segment in ("", ".", ".."):
            return segment
    return None


def is_safe_relpath(path: str) -> bool:
    """Return True if ``path`` is a non-empty clean relative POSIX path."""
    return bool(path) and "\\" not in path and find_unsafe_component(path) is None
