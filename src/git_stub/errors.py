"""
Git stub error classes.

Provides a clear taxonomy of errors that can occur while parsing stubs,
reading file contents from version control history, and materializing stubs
to disk.

Every class carries a ``kind`` string. The set of kinds is open-ended: new
hash algorithms or backend-specific failures may add kinds later, so callers
should match on the kinds they know and treat the rest opaquely.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class GitStubError(Exception):
    """Base class for all git stub errors."""
    kind: str = "GitStubError"


# ---- Parse errors ----


class StubParseError(GitStubError, ValueError):
    """Base class for errors raised while parsing a commit hash or a stub."""
    kind = "StubParseError"


class InvalidCommitFormat(StubParseError):
    """
    Commit hash text is not a supported hash.

    Raised when:
    - the length is not 40 (SHA-1) or 64 (SHA-256)
    - a character is not a lowercase hexadecimal digit
    """
    kind = "InvalidCommitFormat"

    def __init__(
        self,
        text: str,
        *,
        length: Optional[int] = None,
        char: Optional[str] = None,
        index: Optional[int] = None,
    ):
        if char is not None:
            message = (
                f"invalid commit hash {text!r}: unexpected character {char!r} "
                f"at index {index} (expected lowercase hexadecimal)"
            )
        else:
            message = (
                f"invalid commit hash {text!r}: expected 40 (SHA-1) or 64 (SHA-256) "
                f"hex characters, got {length}"
            )
        super().__init__(message)
        self.text = text
        self.length = length
        self.char = char
        self.index = index


class InvalidEncoding(StubParseError):
    """Stub content is not valid UTF-8."""
    kind = "InvalidEncoding"


class EmptyStub(StubParseError):
    """Stub content is empty or contains only whitespace."""
    kind = "EmptyStub"


class MissingSeparator(StubParseError):
    """Stub content has no ':' between the commit and the path."""
    kind = "MissingSeparator"

    def __init__(self, text: str):
        super().__init__(
            f"invalid git stub format: expected 'commit:path', got {text!r} "
            "(missing ':' separator)"
        )
        self.text = text


class EmptyPath(StubParseError):
    """Stub has nothing after the ':' separator."""
    kind = "EmptyPath"


class NewlineInPath(StubParseError):
    """Stub path spans more than one line."""
    kind = "NewlineInPath"


class UnsafePath(StubParseError):
    """
    Stub path is not a clean relative path.

    Raised for absolute paths and for paths with '..', '.' or empty segments.
    """
    kind = "UnsafePath"

    def __init__(self, path: str, component: str):
        super().__init__(
            f"git stub path {path!r} contains non-normal component {component!r} "
            "(only plain file/directory names are allowed)"
        )
        self.path = path
        self.component = component


class InvalidCommit(StubParseError):
    """The commit segment of a stub failed to parse. Wraps InvalidCommitFormat."""
    kind = "InvalidCommit"

    def __init__(self, error: InvalidCommitFormat):
        super().__init__(f"invalid commit hash in git stub: {error}")
        self.error = error


# ---- VCS errors ----


class VcsError(GitStubError):
    """Base class for errors from detecting or invoking a VCS backend."""
    kind = "VcsError"


class NoVcsDetected(VcsError):
    """Neither a jj nor a git repository was found at the repository root."""
    kind = "NoVcsDetected"

    def __init__(self, repo_root: Path, reason: str = "expected .git or .jj"):
        super().__init__(f"no VCS found at {repo_root} ({reason})")
        self.repo_root = repo_root
        self.reason = reason


class ExecutableNotFound(VcsError):
    """The backend executable could not be resolved."""
    kind = "ExecutableNotFound"

    def __init__(self, vcs_name: str, binary: str, env_var: str):
        super().__init__(
            f"{vcs_name} executable {binary!r} not found "
            f"(install it or set ${env_var} to its path)"
        )
        self.vcs_name = vcs_name
        self.binary = binary
        self.env_var = env_var


class ShallowCloneRejected(VcsError):
    """The repository is a shallow clone and cannot serve arbitrary commits."""
    kind = "ShallowCloneRejected"

    def __init__(self, vcs_name: str, repo_root: Path):
        super().__init__(
            f"shallow clone detected at {repo_root} ({vcs_name}): cannot "
            "dereference git stubs without full history "
            "(run `git fetch --unshallow`)"
        )
        self.vcs_name = vcs_name
        self.repo_root = repo_root


class _ReadError(VcsError):
    """Shared shape for failures of a single backend invocation."""

    def __init__(
        self,
        message: str,
        *,
        vcs_name: str,
        commit: Optional[str] = None,
        path: Optional[str] = None,
        exit_status: Optional[str] = None,
        stderr: str = "",
    ):
        detail = message
        if exit_status is not None:
            detail += f" ({exit_status})"
        if stderr:
            detail += f": {stderr}"
        super().__init__(detail)
        self.vcs_name = vcs_name
        self.commit = commit
        self.path = path
        self.exit_status = exit_status
        self.stderr = stderr


class CommitNotFound(_ReadError):
    """The revision could not be resolved by the backend."""
    kind = "CommitNotFound"


class ObjectNotFound(_ReadError):
    """The commit exists but the path does not exist at that revision."""
    kind = "ObjectNotFound"


class BackendExecutionFailed(_ReadError):
    """The backend could not be run, or failed for an unclassified reason."""
    kind = "BackendExecutionFailed"


# ---- Materialization errors ----


class MaterializeError(GitStubError):
    """Base class for errors raised while materializing a stub."""
    kind = "MaterializeError"

    def __init__(self, message: str, *, path: Path):
        super().__init__(message)
        self.path = path


class NotAStub(MaterializeError):
    """The stub path does not end with '.gitstub'."""
    kind = "NotAStub"

    def __init__(self, path: Path):
        super().__init__(f"path does not end with .gitstub: {path}", path=path)


class InvalidStubPath(MaterializeError):
    """The stub path (or requested output path) would escape its root."""
    kind = "InvalidStubPath"

    def __init__(self, path: Path):
        super().__init__(f"path must be a clean relative path: {path}", path=path)


class StubFileUnreadable(MaterializeError):
    """The stub file could not be read."""
    kind = "StubFileUnreadable"

    def __init__(self, path: Path, error: OSError):
        super().__init__(f"failed to read git stub {path}: {error}", path=path)
        self.error = error


class InvalidStub(MaterializeError):
    """The stub file content failed to parse. Wraps a StubParseError."""
    kind = "InvalidStub"

    def __init__(self, path: Path, error: StubParseError):
        super().__init__(f"invalid git stub format in {path}: {error}", path=path)
        self.error = error


class MaterializationFailed(MaterializeError):
    """Reading the referenced content from history failed. Wraps a VcsError."""
    kind = "MaterializationFailed"

    def __init__(self, path: Path, error: VcsError):
        super().__init__(f"failed to materialize git stub {path}: {error}", path=path)
        self.error = error


class OutputWriteFailed(MaterializeError):
    """Creating the output directory or writing the output file failed."""
    kind = "OutputWriteFailed"

    def __init__(self, path: Path, error: OSError):
        super().__init__(f"failed to write materialized file {path}: {error}", path=path)
        self.error = error


# ---- Filesystem and environment errors ----


class AtomicWriteError(GitStubError, OSError):
    """
    An atomic temp-file-and-rename write failed.

    ``phase`` is "write" when writing the temporary file failed and "rename"
    when creating the temporary file or renaming it into place failed.
    """
    kind = "AtomicWriteError"

    def __init__(self, path: Path, phase: str, error: OSError):
        super().__init__(f"atomic {phase} of {path} failed: {error}")
        self.path = path
        self.phase = phase
        self.error = error


class BuildEnvironmentError(GitStubError, ValueError):
    """A variable required in build-script mode is missing or invalid."""
    kind = "BuildEnvironmentError"


__all__ = [
    "GitStubError",
    "StubParseError",
    "InvalidCommitFormat",
    "InvalidEncoding",
    "EmptyStub",
    "MissingSeparator",
    "EmptyPath",
    "NewlineInPath",
    "UnsafePath",
    "InvalidCommit",
    "VcsError",
    "NoVcsDetected",
    "ExecutableNotFound",
    "ShallowCloneRejected",
    "CommitNotFound",
    "ObjectNotFound",
    "BackendExecutionFailed",
    "MaterializeError",
    "NotAStub",
    "InvalidStubPath",
    "StubFileUnreadable",
    "InvalidStub",
    "MaterializationFailed",
    "OutputWriteFailed",
    "AtomicWriteError",
    "BuildEnvironmentError",
]
