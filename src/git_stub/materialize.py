"""
Git stub materialization.

This module implements the Materializer, which resolves ``.gitstub`` files
into real files: it reads the stub, fetches the referenced content from
version control history, and writes it atomically under an output directory.

Usage outside build scripts::

    materializer = Materializer.standard("../..", "/tmp/output")
    spec_path = materializer.materialize("openapi/my-api/my-api-1.0.0.json.gitstub")

Usage in build scripts (``OUT_DIR`` and ``CARGO_MANIFEST_DIR`` set)::

    materializer = Materializer.for_build_script("../..")
    spec_path = materializer.materialize("openapi/my-api/my-api-1.0.0.json.gitstub")
"""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, TextIO, Union

from .atomic import write_bytes_atomically
from .errors import (
    AtomicWriteError,
    InvalidStub,
    InvalidStubPath,
    MaterializationFailed,
    NotAStub,
    OutputWriteFailed,
    StubFileUnreadable,
    StubParseError,
    VcsError,
)
from .path_safety import is_safe_relpath
from .settings import BuildScriptSettings, VcsSettings, create_build_settings_from_env
from .stub import STUB_SUFFIX, GitStub
from .vcs import HistoryReader, VcsBackend

__all__ = ["Materializer", "DependencyAnnouncer", "BUILD_SCRIPT_SUBDIR"]

logger = logging.getLogger(__name__)

# Subdirectory of the build output directory used in build-script mode
BUILD_SCRIPT_SUBDIR = "git-stub"

# Called with the full stub path before the stub's content is fetched
DependencyAnnouncer = Callable[[Path], None]

PathLike = Union[str, Path]


def _line_announcer(dependency_format: str, stream: Optional[TextIO]) -> DependencyAnnouncer:
    def announce(stub_path: Path) -> None:
        out = stream if stream is not None else sys.stdout
        out.write(dependency_format.format(path=stub_path) + "\n")
        out.flush()
    return announce


def _checked_relpath(path: PathLike) -> PurePosixPath:
    text = str(path)
    if not is_safe_relpath(text):
        raise InvalidStubPath(Path(text))
    return PurePosixPath(text)


@dataclass(frozen=True)
class Materializer:
    """
    Materializes git stubs into actual file content.

    Stateless apart from its configuration: every ``materialize`` call is
    independent and can be repeated safely. Concurrent calls writing the
    same output path never expose a partial file; the last rename wins.
    """
    reader: HistoryReader
    repo_root: Path
    output_dir: Path
    announce: Optional[DependencyAnnouncer] = None

    @classmethod
    def standard(
        cls,
        repo_root: PathLike,
        output_dir: PathLike,
        *,
        settings: Optional[VcsSettings] = None,
        backend: Optional[VcsBackend] = None,
    ) -> Materializer:
        """
        Create a materializer for general use.

        Args:
            repo_root: Repository root, relative to the current working
                directory (or absolute)
            output_dir: Output directory, relative to the current working
                directory (or absolute)
            settings: VCS executable settings (defaults to loading from environment)
            backend: Backend to use instead of detecting one

        Raises:
            VcsError: If no usable, non-shallow repository is found at repo_root
        """
        # Fixed against the current working directory at construction
        repo_root = Path(repo_root).absolute()
        reader = HistoryReader.probe(repo_root, settings=settings, backend=backend)
        return cls(reader=reader, repo_root=repo_root, output_dir=Path(output_dir).absolute())

    @classmethod
    def for_build_script(
        cls,
        repo_root: PathLike,
        *,
        build_settings: Optional[BuildScriptSettings] = None,
        settings: Optional[VcsSettings] = None,
        stream: Optional[TextIO] = None,
        backend: Optional[VcsBackend] = None,
    ) -> Materializer:
        """
        Create a materializer for use in build scripts.

        Files are written to the ``git-stub`` directory within the build output
        directory, and a dependency announcement line is written to ``stream``
        (stdout by default) for each materialized stub, so the build re-runs
        when the stub changes.

        Args:
            repo_root: Repository root, relative to the build manifest directory
            build_settings: Build environment (defaults to loading from environment)
            settings: VCS executable settings (defaults to loading from environment)
            stream: Where dependency announcements are written
            backend: Backend to use instead of detecting one

        Raises:
            BuildEnvironmentError: If the build environment variables are missing
            VcsError: If no usable, non-shallow repository is found at repo_root
        """
        if build_settings is None:
            build_settings = create_build_settings_from_env()
        repo_root = (build_settings.manifest_dir / repo_root).absolute()
        reader = HistoryReader.probe(repo_root, settings=settings, backend=backend)
        return cls(
            reader=reader,
            repo_root=repo_root,
            output_dir=(build_settings.out_dir / BUILD_SCRIPT_SUBDIR).absolute(),
            announce=_line_announcer(build_settings.dependency_format, stream),
        )

    def with_reader(self, reader: HistoryReader) -> Materializer:
        """Return a copy that reads history through ``reader`` (e.g. to force a backend)."""
        return replace(self, reader=reader)

    def materialize(self, stub_path: PathLike) -> Path:
        """
        Materialize a git stub.

        Reads the file at ``stub_path`` (relative to the repository root),
        fetches the referenced content from history, and writes it to the
        output directory, preserving directory structure and stripping the
        ``.gitstub`` suffix.

        Args:
            stub_path: Stub path relative to the repository root

        Returns:
            Path to the materialized file

        Raises:
            NotAStub: If stub_path does not end with .gitstub
            InvalidStubPath: If stub_path is not a clean relative path
            StubFileUnreadable: If the stub cannot be read
            InvalidStub: If the stub content does not parse
            MaterializationFailed: If the content cannot be read from history
            OutputWriteFailed: If the output cannot be written
        """
        rel = self._stub_relpath(stub_path)
        output_path = self.output_dir / rel.parent / rel.name[: -len(STUB_SUFFIX)]
        self._materialize_inner(rel, output_path)
        return output_path

    def materialize_to(self, stub_path: PathLike, output_path: PathLike) -> Path:
        """
        Materialize a git stub to a specific path.

        Like ``materialize``, but writes to ``output_path`` (relative to the
        output directory) instead of deriving the path from the stub name.

        Raises:
            InvalidStubPath: If output_path is not a clean relative path
            Same errors as ``materialize`` otherwise
        """
        rel = self._stub_relpath(stub_path)
        target = self.output_dir / _checked_relpath(output_path)
        self._materialize_inner(rel, target)
        return target

    def _stub_relpath(self, stub_path: PathLike) -> PurePosixPath:
        rel = _checked_relpath(stub_path)
        if not rel.name.endswith(STUB_SUFFIX) or rel.name == STUB_SUFFIX:
            raise NotAStub(Path(stub_path))
        return rel

    def _materialize_inner(self, rel: PurePosixPath, output_path: Path) -> None:
        full_stub_path = self.repo_root / rel

        try:
            raw = full_stub_path.read_bytes()
        except OSError as e:
            raise StubFileUnreadable(full_stub_path, e) from e

        try:
            stub = GitStub.parse(raw)
        except StubParseError as e:
            raise InvalidStub(full_stub_path, e) from e

        if stub.needs_rewrite:
            logger.debug(f"{full_stub_path} is not in canonical form")

        if self.announce is not None:
            self.announce(full_stub_path)

        try:
            content = self.reader.read_historical_file(stub.commit, stub.path)
        except VcsError as e:
            raise MaterializationFailed(full_stub_path, e) from e

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputWriteFailed(output_path.parent, e) from e

        try:
            write_bytes_atomically(output_path, content)
        except AtomicWriteError as e:
            raise OutputWriteFailed(output_path, e) from e

        logger.info(f"Materialized {rel} ({stub.commit.short()}:{stub.path}) to {output_path}")
