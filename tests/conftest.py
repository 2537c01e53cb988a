"""Root pytest configuration for git-stub tests."""
import sys
from pathlib import Path

import pytest

from git_stub.commit import CommitHash
from git_stub.settings import (
    DEPENDENCY_FORMAT_ENV,
    GIT_ENV,
    JJ_ENV,
    MANIFEST_DIR_ENV,
    OUT_DIR_ENV,
    VcsSettings,
)
from git_stub.vcs import HistoryReader

from tests.fakes.fake_vcs import FakeVcsBackend
from tests.helpers import SHA1_HEX


# Configure pytest markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires the git executable)"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's VCS and build environment out of the tests."""
    for var in (GIT_ENV, JJ_ENV, OUT_DIR_ENV, MANIFEST_DIR_ENV, DEPENDENCY_FORMAT_ENV):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings():
    """Standard VCS settings."""
    return VcsSettings(git_binary="git", jj_binary="jj")


@pytest.fixture
def commit():
    """A SHA-1 commit hash."""
    return CommitHash.parse(SHA1_HEX)


@pytest.fixture
def fake_backend():
    """Empty in-memory history, probed with an executable that always resolves."""
    return FakeVcsBackend(binary=sys.executable)


@pytest.fixture
def reader(tmp_path: Path, fake_backend):
    """HistoryReader over the fake backend, rooted at tmp_path."""
    return HistoryReader.probe(tmp_path, backend=fake_backend)
