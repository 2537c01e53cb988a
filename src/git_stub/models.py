"""
Data models for stub reports.

These Pydantic models describe the machine-readable output of the ``check``
command, so that CI jobs can consume stub status without parsing human text.
"""
from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, computed_field

from .commit import HashAlgorithm
from .stub import GitStub

__all__ = ["StubCheckResult", "CheckReport"]


class StubCheckResult(BaseModel):
    """Parse result for one stub file."""
    stub_path: str = Field(description="Stub file path as given on the command line")
    commit: str = Field(
        pattern=r"^(?:[a-f0-9]{40}|[a-f0-9]{64})$",
        description="Commit hash the stub points at",
    )
    algorithm: HashAlgorithm = Field(description="Hash algorithm of the commit")
    path: str = Field(description="Path of the referenced file at that commit")
    needs_rewrite: bool = Field(description="True if the file is not in canonical form")
    canonical: str = Field(description="Canonical file contents")

    @classmethod
    def from_stub(cls, stub_path: Path, stub: GitStub) -> StubCheckResult:
        return cls(
            stub_path=str(stub_path),
            commit=stub.commit.hex,
            algorithm=stub.commit.algorithm,
            path=stub.path,
            needs_rewrite=stub.needs_rewrite,
            canonical=stub.to_file_contents().decode("utf-8"),
        )


class CheckReport(BaseModel):
    """Results of checking a set of stub files."""
    results: List[StubCheckResult] = Field(default_factory=list)

    @computed_field
    @property
    def needs_rewrite_count(self) -> int:
        return sum(1 for r in self.results if r.needs_rewrite)
