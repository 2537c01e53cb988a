"""
Tests for git stub parsing and canonicalization.

Layout problems (whitespace, line endings, backslashes) parse but set
``needs_rewrite``; content problems never parse.
"""
from __future__ import annotations

import pytest

from git_stub.commit import CommitHash, HashAlgorithm
from git_stub.errors import (
    EmptyPath,
    EmptyStub,
    InvalidCommit,
    InvalidEncoding,
    MissingSeparator,
    NewlineInPath,
    StubParseError,
    UnsafePath,
)
from git_stub.stub import GitStub, canonicalize_stub_file, read_stub_file
from tests.helpers import SHA1_HEX, SHA256_HEX

CANONICAL = f"{SHA1_HEX}:openapi/api.json\n".encode()


class TestGitStubParse:
    """Test GitStub.parse on well-formed input."""

    def test_canonical(self):
        """Test that canonical content round-trips without a rewrite flag."""
        stub = GitStub.parse(CANONICAL)
        assert stub.commit == CommitHash.parse(SHA1_HEX)
        assert stub.path == "openapi/api.json"
        assert stub.needs_rewrite is False
        assert stub.to_file_contents() == CANONICAL

    def test_sha256_commit(self):
        """Test stubs naming a SHA-256 commit."""
        stub = GitStub.parse(f"{SHA256_HEX}:data/file.bin\n".encode())
        assert stub.commit.algorithm is HashAlgorithm.SHA256
        assert not stub.needs_rewrite

    def test_str_input(self):
        """Test that already-decoded text is accepted."""
        stub = GitStub.parse(CANONICAL.decode())
        assert stub.path == "openapi/api.json"
        assert not stub.needs_rewrite

    @pytest.mark.parametrize("raw", [
        f"{SHA1_HEX}:openapi/api.json".encode(),
        f"{SHA1_HEX}:openapi/api.json\r\n".encode(),
        f"{SHA1_HEX}:openapi/api.json\n\n".encode(),
        f"  {SHA1_HEX}:openapi/api.json\n".encode(),
        f"{SHA1_HEX}:openapi/api.json  \n".encode(),
        f"\t{SHA1_HEX}:openapi/api.json\t\n".encode(),
    ])
    def test_layout_variants_need_rewrite(self, raw):
        """Test that non-canonical layout parses to the same stub, flagged for rewrite."""
        stub = GitStub.parse(raw)
        assert stub.path == "openapi/api.json"
        assert stub.needs_rewrite is True
        assert stub.to_file_contents() == CANONICAL
        assert stub == GitStub.parse(CANONICAL)

    def test_backslashes_normalized(self):
        """Test that Windows separators are normalized and flagged."""
        stub = GitStub.parse(f"{SHA1_HEX}:openapi\\api.json\n".encode())
        assert stub.path == "openapi/api.json"
        assert stub.needs_rewrite is True
        assert stub.to_file_contents() == CANONICAL

    def test_path_may_contain_colon(self):
        """Test that only the first ':' separates commit from path."""
        stub = GitStub.parse(f"{SHA1_HEX}:dir/a:b.json\n".encode())
        assert stub.path == "dir/a:b.json"
        assert not stub.needs_rewrite

    def test_path_may_contain_spaces(self):
        """Test that interior whitespace belongs to the path."""
        stub = GitStub.parse(f"{SHA1_HEX}:my dir/my file.json\n".encode())
        assert stub.path == "my dir/my file.json"

    def test_str(self):
        """Test display form."""
        assert str(GitStub.parse(CANONICAL)) == f"{SHA1_HEX}:openapi/api.json"


class TestGitStubParseErrors:
    """Test GitStub.parse on malformed input."""

    @pytest.mark.parametrize("raw", [b"", b"\n", b"   \r\n\t"])
    def test_empty(self, raw):
        with pytest.raises(EmptyStub):
            GitStub.parse(raw)

    def test_invalid_utf8(self):
        """Test that undecodable bytes are reported as an encoding error."""
        with pytest.raises(InvalidEncoding):
            GitStub.parse(SHA1_HEX.encode() + b":\xff\xfe.json\n")

    def test_missing_separator(self):
        """Test that content without ':' is rejected."""
        with pytest.raises(MissingSeparator, match="missing ':' separator"):
            GitStub.parse(f"{SHA1_HEX}\n".encode())

    def test_invalid_commit_wraps_format_error(self):
        """Test that a bad commit segment reports the underlying cause."""
        with pytest.raises(InvalidCommit) as exc_info:
            GitStub.parse(b"abc123:openapi/api.json\n")
        assert exc_info.value.error.length == 6

    def test_uppercase_commit_rejected(self):
        """Test that uppercase commit hashes do not parse."""
        with pytest.raises(InvalidCommit) as exc_info:
            GitStub.parse(f"{SHA1_HEX.upper()}:openapi/api.json\n".encode())
        assert exc_info.value.error.char == "A"

    def test_empty_path(self):
        with pytest.raises(EmptyPath):
            GitStub.parse(f"{SHA1_HEX}:\n".encode())

    @pytest.mark.parametrize("path", ["a\nb", "a\rb"])
    def test_newline_in_path(self, path):
        """Test that a path spanning lines is rejected."""
        with pytest.raises(NewlineInPath):
            GitStub.parse(f"{SHA1_HEX}:{path}\n".encode())

    @pytest.mark.parametrize("path,component", [
        ("/etc/passwd", "/"),
        ("../secrets.txt", ".."),
        ("openapi/../../escape.json", ".."),
        ("./openapi/api.json", "."),
        ("openapi//api.json", ""),
        ("openapi/", ""),
        ("..\\secrets.txt", ".."),
    ])
    def test_unsafe_paths(self, path, component):
        """Test that absolute and non-normal paths are rejected with the offending component."""
        with pytest.raises(UnsafePath) as exc_info:
            GitStub.parse(f"{SHA1_HEX}:{path}\n".encode())
        assert exc_info.value.component == component

    def test_errors_carry_kind(self):
        """Test that errors expose a stable kind string."""
        with pytest.raises(StubParseError) as exc_info:
            GitStub.parse(b"")
        assert exc_info.value.kind == "EmptyStub"


class TestGitStubNew:
    """Test GitStub.new."""

    def test_clean_path(self, commit):
        stub = GitStub.new(commit, "openapi/api.json")
        assert stub.path == "openapi/api.json"
        assert not stub.needs_rewrite

    def test_backslash_path_flagged(self, commit):
        """Test that constructing with backslashes normalizes and flags."""
        stub = GitStub.new(commit, "openapi\\api.json")
        assert stub.path == "openapi/api.json"
        assert stub.needs_rewrite

    def test_equality_ignores_rewrite_flag(self, commit):
        """Test that stubs naming the same file are equal however they were written."""
        assert GitStub.new(commit, "openapi\\api.json") == GitStub.new(commit, "openapi/api.json")

    def test_unsafe_path_rejected(self, commit):
        with pytest.raises(UnsafePath):
            GitStub.new(commit, "../escape.json")


class TestStubFiles:
    """Test reading and canonicalizing stub files on disk."""

    def test_read_stub_file(self, tmp_path):
        stub_file = tmp_path / "api.json.gitstub"
        stub_file.write_bytes(CANONICAL)
        assert read_stub_file(stub_file).path == "openapi/api.json"

    def test_read_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_stub_file(tmp_path / "missing.gitstub")

    def test_canonicalize_rewrites_once(self, tmp_path):
        """Test that a non-canonical stub is rewritten, and a second pass is a no-op."""
        stub_file = tmp_path / "api.json.gitstub"
        stub_file.write_bytes(f"  {SHA1_HEX}:openapi\\api.json\r\n".encode())

        assert canonicalize_stub_file(stub_file) is True
        assert stub_file.read_bytes() == CANONICAL
        assert canonicalize_stub_file(stub_file) is False
        assert stub_file.read_bytes() == CANONICAL

    def test_canonicalize_leaves_invalid_stub_untouched(self, tmp_path):
        """Test that a stub that does not parse is not modified."""
        stub_file = tmp_path / "api.json.gitstub"
        stub_file.write_bytes(b"not a stub\n")
        with pytest.raises(MissingSeparator):
            canonicalize_stub_file(stub_file)
        assert stub_file.read_bytes() == b"not a stub\n"
        assert [p.name for p in tmp_path.iterdir()] == ["api.json.gitstub"]
