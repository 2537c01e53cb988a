"""
Git stubs: pointer files that name a file in version control history.

A git stub (e.g. ``foo.json.gitstub``) contains ``commit:path``. This package
parses stubs, reads the referenced content from git or jj history, and
materializes it into real files.
"""
from .commit import CommitHash, HashAlgorithm
from .errors import (
    GitStubError,
    MaterializeError,
    StubParseError,
    VcsError,
)
from .materialize import Materializer
from .settings import BuildScriptSettings, VcsSettings
from .stub import GitStub
from .vcs import GitBackend, HistoryReader, JjBackend, VcsName

__all__ = [
    "BuildScriptSettings",
    "CommitHash",
    "GitBackend",
    "GitStub",
    "GitStubError",
    "HashAlgorithm",
    "HistoryReader",
    "JjBackend",
    "MaterializeError",
    "Materializer",
    "StubParseError",
    "VcsError",
    "VcsName",
    "VcsSettings",
]
