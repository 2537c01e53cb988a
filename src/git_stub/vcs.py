"""
Version control backends for reading file contents from history.

These protocols define the boundary between materialization and the VCS tool
that serves historical content, enabling clean dependency injection and
testing with fakes. Git and Jujutsu (jj) are supported; the backend is
selected once, when a HistoryReader is probed, and never re-detected per read.
"""
from __future__ import annotations

import io
import logging
import os
import shutil
import stat
import subprocess
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from .commit import CommitHash
from .errors import (
    BackendExecutionFailed,
    CommitNotFound,
    ExecutableNotFound,
    NoVcsDetected,
    ObjectNotFound,
    ShallowCloneRejected,
    VcsError,
)
from .settings import GIT_ENV, JJ_ENV, VcsSettings, create_vcs_settings_from_env

__all__ = [
    "VcsName",
    "VcsBackend",
    "GitBackend",
    "JjBackend",
    "HistoryReader",
    "detect_backend",
]

logger = logging.getLogger(__name__)


class VcsName(str, Enum):
    """Name of a supported version control system."""
    GIT = "git"
    JJ = "jj"

    def __str__(self) -> str:
        return self.value


@runtime_checkable
class VcsBackend(Protocol):
    """Protocol for reading historical file contents from a VCS."""

    @property
    def name(self) -> VcsName:
        ...

    @property
    def binary(self) -> str:
        """Executable name or path used to invoke the VCS."""
        ...

    @property
    def env_var(self) -> str:
        """Environment variable that overrides the executable."""
        ...

    def with_binary(self, binary: str) -> VcsBackend:
        """Return a copy of this backend invoking ``binary``."""
        ...

    def is_shallow(self, repo_root: Path) -> bool:
        """
        Check whether the repository is a shallow clone.

        Raises:
            BackendExecutionFailed: If the check could not be run or its
                output could not be interpreted
        """
        ...

    def read_historical_file(self, repo_root: Path, commit: CommitHash, path: str) -> bytes:
        """
        Read ``path`` as it existed at ``commit``.

        Raises:
            CommitNotFound: If the revision cannot be resolved
            ObjectNotFound: If the path does not exist at that revision
            BackendExecutionFailed: If the process could not run or failed
                for another reason
        """
        ...


def _describe_status(returncode: int) -> str:
    if returncode < 0:
        return f"killed by signal {-returncode}"
    return f"exit code {returncode}"


def _run(
    vcs_name: VcsName,
    binary: str,
    args: Sequence[str],
    repo_root: Path,
    *,
    commit: Optional[CommitHash] = None,
    path: Optional[str] = None,
    stdin: Optional[bytes] = None,
) -> subprocess.CompletedProcess:
    """Run one VCS command in ``repo_root``, capturing stdout and stderr as bytes."""
    command: List[str] = [binary, *args]
    logger.debug(f"Running {' '.join(command)} in {repo_root}")
    try:
        return subprocess.run(command, cwd=repo_root, input=stdin, capture_output=True, check=False)
    except OSError as e:
        raise BackendExecutionFailed(
            f"failed to run {vcs_name} at {binary!r} in {repo_root}: {e}",
            vcs_name=str(vcs_name),
            commit=str(commit) if commit is not None else None,
            path=path,
        ) from e


def _stderr_text(result: subprocess.CompletedProcess) -> str:
    return result.stderr.decode("utf-8", errors="replace").strip()


def _read_batch_header(out: io.BytesIO, fields: dict) -> Optional[Tuple[str, int]]:
    """
    Read one ``git cat-file --batch`` header line.

    Returns:
        (object type, size), or None if git reported the object missing
    """
    line = out.readline().rstrip(b"\n").decode("utf-8", errors="replace")
    if line.endswith(" missing"):
        return None
    parts = line.split(" ")
    if len(parts) != 3 or not parts[2].isdigit():
        raise BackendExecutionFailed(f"git returned unexpected batch output: {line!r}", **fields)
    return parts[1], int(parts[2])


def _classify_read_failure(
    vcs_name: VcsName,
    result: subprocess.CompletedProcess,
    commit: CommitHash,
    path: str,
    object_missing: Sequence[str],
    commit_missing: Sequence[str],
) -> VcsError:
    """Map a failed read to CommitNotFound, ObjectNotFound or BackendExecutionFailed."""
    stderr = _stderr_text(result)
    lowered = stderr.lower()
    fields = dict(
        vcs_name=str(vcs_name),
        commit=str(commit),
        path=path,
        exit_status=_describe_status(result.returncode),
        stderr=stderr,
    )
    if any(marker in lowered for marker in object_missing):
        return ObjectNotFound(f"{vcs_name}: path {path!r} not found at {commit}", **fields)
    if any(marker in lowered for marker in commit_missing):
        return CommitNotFound(f"{vcs_name}: commit {commit} not found", **fields)
    return BackendExecutionFailed(f"{vcs_name} failed to read {commit}:{path}", **fields)


@dataclass(frozen=True)
class GitBackend:
    """Reads historical content with ``git cat-file --batch``."""
    binary: str = "git"

    @property
    def name(self) -> VcsName:
        return VcsName.GIT

    @property
    def env_var(self) -> str:
        return GIT_ENV

    def with_binary(self, binary: str) -> GitBackend:
        return replace(self, binary=binary)

    def is_shallow(self, repo_root: Path) -> bool:
        """Runs ``git rev-parse --is-shallow-repository``."""
        result = _run(self.name, self.binary, ["rev-parse", "--is-shallow-repository"], repo_root)
        if result.returncode != 0:
            raise BackendExecutionFailed(
                "git failed to check for shallow clone",
                vcs_name=str(self.name),
                exit_status=_describe_status(result.returncode),
                stderr=_stderr_text(result),
            )
        stdout = result.stdout.decode("utf-8", errors="replace").strip()
        if stdout == "true":
            return True
        if stdout == "false":
            return False
        raise BackendExecutionFailed(
            f"git returned unexpected output for shallow clone check: "
            f"expected \"true\" or \"false\", got {stdout!r}",
            vcs_name=str(self.name),
        )

    def read_historical_file(self, repo_root: Path, commit: CommitHash, path: str) -> bytes:
        """
        Runs ``git cat-file --batch`` with two queries: the commit itself, then
        ``<commit>:<path>``.

        Batch mode reports a missing object on stdout instead of dying, so a
        missing commit and a missing path are told apart in one process.
        """
        queries = f"{commit}^{{commit}}\n{commit}:{path}\n".encode("utf-8")
        result = _run(
            self.name, self.binary, ["cat-file", "--batch"], repo_root,
            commit=commit, path=path, stdin=queries,
        )
        fields = dict(vcs_name=str(self.name), commit=str(commit), path=path)
        if result.returncode != 0 or result.stderr.strip():
            raise BackendExecutionFailed(
                f"git failed to read {commit}:{path}",
                exit_status=_describe_status(result.returncode),
                stderr=_stderr_text(result),
                **fields,
            )

        out = io.BytesIO(result.stdout)
        header = _read_batch_header(out, fields)
        if header is None:
            raise CommitNotFound(f"git: commit {commit} not found", **fields)
        out.seek(header[1] + 1, io.SEEK_CUR)

        header = _read_batch_header(out, fields)
        if header is None:
            raise ObjectNotFound(f"git: path {path!r} not found at {commit}", **fields)
        object_type, size = header
        if object_type != "blob":
            raise ObjectNotFound(f"git: path {path!r} at {commit} is a {object_type}, not a file", **fields)
        content = out.read(size)
        if len(content) != size:
            raise BackendExecutionFailed(
                f"git returned {len(content)} of {size} bytes for {commit}:{path}", **fields
            )
        return content


@dataclass(frozen=True)
class JjBackend:
    """Reads historical content with ``jj file show``."""
    binary: str = "jj"

    @property
    def name(self) -> VcsName:
        return VcsName.JJ

    @property
    def env_var(self) -> str:
        return JJ_ENV

    def with_binary(self, binary: str) -> JjBackend:
        return replace(self, binary=binary)

    def is_shallow(self, repo_root: Path) -> bool:
        """
        Resolves the backing git store with ``jj git root`` and checks for a
        ``shallow`` marker file there.
        """
        result = _run(self.name, self.binary, ["git", "root", "--ignore-working-copy"], repo_root)
        if result.returncode != 0:
            raise BackendExecutionFailed(
                "jj failed to check for shallow clone",
                vcs_name=str(self.name),
                exit_status=_describe_status(result.returncode),
                stderr=_stderr_text(result),
            )
        git_root = result.stdout.decode("utf-8", errors="replace").strip()
        if not git_root:
            raise BackendExecutionFailed(
                "jj returned an empty git root for shallow clone check",
                vcs_name=str(self.name),
            )
        return (repo_root / git_root / "shallow").exists()

    def read_historical_file(self, repo_root: Path, commit: CommitHash, path: str) -> bytes:
        """Runs ``jj file show --ignore-working-copy --revision <commit> -- <path>``."""
        # Skip the working-copy snapshot: reads must not modify repository state
        result = _run(
            self.name, self.binary,
            ["file", "show", "--ignore-working-copy", "--revision", str(commit), "--", path],
            repo_root,
            commit=commit, path=path,
        )
        if result.returncode != 0 or result.stderr.strip():
            raise _classify_read_failure(
                self.name, result, commit, path,
                object_missing=("no such path", "no matching entries"),
                commit_missing=("doesn't exist", "does not exist", "not found"),
            )
        return result.stdout


def detect_backend(repo_root: Path, settings: Optional[VcsSettings] = None) -> VcsBackend:
    """
    Detect the VCS managing ``repo_root``.

    Detection order:
    1. If a ``.jj`` path exists, returns jj (including colocated mode where
       both ``.jj`` and ``.git`` exist).
    2. If a ``.git`` path exists, returns git. (``.git`` may be a directory
       or a file, as in worktrees and submodules.)
    3. Otherwise, raises NoVcsDetected.

    Args:
        repo_root: Repository root
        settings: Executable settings (defaults to loading from environment)

    Raises:
        NoVcsDetected: If repo_root is missing, not a directory, or has
            neither marker
    """
    if settings is None:
        settings = create_vcs_settings_from_env()
    repo_root = Path(repo_root)

    try:
        mode = repo_root.stat().st_mode
    except FileNotFoundError:
        raise NoVcsDetected(repo_root, "path does not exist") from None
    except OSError as e:
        raise NoVcsDetected(repo_root, f"cannot access path: {e}") from e
    if not stat.S_ISDIR(mode):
        raise NoVcsDetected(repo_root, "not a directory")

    if (repo_root / ".jj").exists():
        return JjBackend(binary=settings.jj_binary)
    if (repo_root / ".git").exists():
        return GitBackend(binary=settings.git_binary)
    raise NoVcsDetected(repo_root)


class HistoryReader:
    """
    Reads file contents from the history of one repository.

    A HistoryReader is only handed out by ``probe``, which rejects shallow
    clones, so a constructed reader can serve any commit in the repository.
    Each read spawns exactly one child process; nothing is cached or retried.
    """

    def __init__(self, repo_root: Path, backend: VcsBackend):
        """
        Initialize a reader for a repository already known to be usable.

        Prefer ``probe``, which detects the backend and checks the clone.
        """
        self.repo_root = Path(repo_root)
        self.backend = backend

    @classmethod
    def probe(
        cls,
        repo_root: Path,
        *,
        settings: Optional[VcsSettings] = None,
        backend: Optional[VcsBackend] = None,
    ) -> HistoryReader:
        """
        Detect the backend at ``repo_root`` and verify it can serve history.

        Args:
            repo_root: Repository root
            settings: Executable settings (defaults to loading from environment)
            backend: Backend to use instead of detecting one

        Returns:
            HistoryReader for a non-shallow repository

        Raises:
            NoVcsDetected: If no backend is found
            ExecutableNotFound: If the backend executable cannot be resolved
            ShallowCloneRejected: If the repository is a shallow clone
            BackendExecutionFailed: If the shallow check itself failed
        """
        repo_root = Path(repo_root).absolute()
        if backend is None:
            backend = detect_backend(repo_root, settings)

        resolved = shutil.which(backend.binary)
        if resolved is None:
            raise ExecutableNotFound(str(backend.name), backend.binary, backend.env_var)
        # Commands run with cwd=repo_root, so a relative override must not be re-resolved there
        backend = backend.with_binary(os.path.abspath(resolved))

        if backend.is_shallow(repo_root):
            raise ShallowCloneRejected(str(backend.name), repo_root)

        logger.debug(f"Using {backend.name} at {backend.binary} for {repo_root}")
        return cls(repo_root, backend)

    @property
    def vcs_name(self) -> VcsName:
        return self.backend.name

    def read_historical_file(self, commit: CommitHash, path: str) -> bytes:
        """
        Read ``path`` as it existed at ``commit``.

        Raises:
            CommitNotFound, ObjectNotFound, BackendExecutionFailed
        """
        logger.debug(f"Reading {commit}:{path} with {self.vcs_name}")
        return self.backend.read_historical_file(self.repo_root, commit, path)

    def __repr__(self) -> str:
        return f"HistoryReader(repo_root={str(self.repo_root)!r}, vcs={self.vcs_name})"
