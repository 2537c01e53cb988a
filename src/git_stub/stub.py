"""
Git stub parsing and canonicalization.

A git stub (e.g. ``openapi/api-v1.json.gitstub``) is a one-line UTF-8 file
naming a file in version control history:

    <commit-hex>:<relative-path>\\n

Parsing is lenient about layout and strict about meaning: a stub with extra
whitespace, CRLF line endings, a missing trailing newline or backslash
separators still parses, but is flagged with ``needs_rewrite`` so tooling can
rewrite it in canonical form. A stub whose commit or path is wrong never
parses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .atomic import write_bytes_atomically
from .commit import CommitHash
from .errors import (
    EmptyPath,
    EmptyStub,
    InvalidCommit,
    InvalidCommitFormat,
    InvalidEncoding,
    MissingSeparator,
    NewlineInPath,
    UnsafePath,
)
from .path_safety import find_unsafe_component

__all__ = ["GitStub", "STUB_SUFFIX", "read_stub_file", "canonicalize_stub_file"]

STUB_SUFFIX = ".gitstub"


@dataclass(frozen=True)
class GitStub:
    """
    A parsed git stub.

    ``needs_rewrite`` is informational only and does not take part in
    equality: two stubs naming the same commit and path are equal whatever
    the layout of the text they were parsed from.
    """
    commit: CommitHash
    path: str
    needs_rewrite: bool = field(default=False, compare=False)

    @classmethod
    def new(cls, commit: CommitHash, path: str) -> GitStub:
        """
        Create a stub from a commit and a path.

        Backslashes in ``path`` are normalized to forward slashes; the
        resulting stub is flagged ``needs_rewrite`` in that case.

        Raises:
            EmptyPath: If path is empty
            NewlineInPath: If path contains a newline
            UnsafePath: If path is absolute or has '..', '.' or empty segments
        """
        normalized = path.replace("\\", "/")
        if not normalized:
            raise EmptyPath("git stub has empty path (nothing after ':')")
        if "\n" in normalized or "\r" in normalized:
            raise NewlineInPath(f"git stub path {normalized!r} contains a newline character")
        component = find_unsafe_component(normalized)
        if component is not None:
            raise UnsafePath(normalized, component)
        return cls(commit=commit, path=normalized, needs_rewrite=normalized != path)

    @classmethod
    def parse(cls, raw: Union[bytes, str]) -> GitStub:
        """
        Parse stub file contents.

        The path is everything after the first ':'; commit hashes never
        contain colons, paths may.

        Args:
            raw: Stub file bytes (or already-decoded text)

        Returns:
            GitStub with ``needs_rewrite`` set if ``raw`` differs from the
            canonical form

        Raises:
            InvalidEncoding: If bytes are not valid UTF-8
            EmptyStub: If the content is empty or whitespace only
            MissingSeparator: If there is no ':'
            InvalidCommit: If the commit segment is not a valid hash
            EmptyPath, NewlineInPath, UnsafePath: If the path is invalid
        """
        if isinstance(raw, bytes):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidEncoding(f"git stub is not valid UTF-8: {e}") from e
            raw_bytes = raw
        else:
            text = raw
            raw_bytes = raw.encode("utf-8")

        trimmed = text.strip()
        if not trimmed:
            raise EmptyStub("git stub is empty")

        commit_text, sep, path = trimmed.partition(":")
        if not sep:
            raise MissingSeparator(trimmed)

        try:
            commit = CommitHash.parse(commit_text)
        except InvalidCommitFormat as e:
            raise InvalidCommit(e) from e

        stub = cls.new(commit, path)
        needs_rewrite = stub.to_file_contents() != raw_bytes
        if needs_rewrite != stub.needs_rewrite:
            stub = cls(commit=stub.commit, path=stub.path, needs_rewrite=needs_rewrite)
        return stub

    def to_file_contents(self) -> bytes:
        """Canonical file contents: ``commit:path`` plus one trailing newline."""
        return f"{self}\n".encode("utf-8")

    def __str__(self) -> str:
        return f"{self.commit}:{self.path}"


def read_stub_file(stub_path: Path) -> GitStub:
    """
    Read and parse a stub file.

    Raises:
        OSError: If the file cannot be read
        StubParseError: If the content is not a valid stub
    """
    return GitStub.parse(Path(stub_path).read_bytes())


def canonicalize_stub_file(stub_path: Path) -> bool:
    """
    Rewrite a stub file in canonical form if it is not already.

    Args:
        stub_path: Path to the stub file

    Returns:
        True if the file was rewritten, False if it was already canonical

    Raises:
        OSError: If the file cannot be read or written
        StubParseError: If the content is not a valid stub (the file is
            left untouched)
    """
    stub = read_stub_file(stub_path)
    if not stub.needs_rewrite:
        return False
    write_bytes_atomically(Path(stub_path), stub.to_file_contents())
    return True
