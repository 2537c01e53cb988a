"""
Commit hash parsing.

A commit hash is the hex form of a git object name. Both SHA-1 and SHA-256
object formats are supported; the supported lengths differ, so the length of
the text alone decides which algorithm it belongs to.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidCommitFormat

__all__ = ["HashAlgorithm", "CommitHash"]

_HEX_DIGITS = frozenset("0123456789abcdef")


class HashAlgorithm(str, Enum):
    """Object hash algorithms, in parse priority order."""
    SHA1 = "sha1"
    SHA256 = "sha256"

    @property
    def hex_length(self) -> int:
        """Number of hex characters in a hash of this algorithm."""
        return _HEX_LENGTHS[self]


_HEX_LENGTHS = {
    HashAlgorithm.SHA1: 40,
    HashAlgorithm.SHA256: 64,
}


@dataclass(frozen=True, order=True)
class CommitHash:
    """
    A validated commit hash.

    Invariants:
    - hex: exactly ``algorithm.hex_length`` lowercase hex characters
    - uppercase hex is rejected, never normalized, so that the canonical form
      of a stub is always the text it was parsed from
    """
    algorithm: HashAlgorithm
    hex: str

    def __post_init__(self) -> None:
        """Validate that hex matches the declared algorithm."""
        _check_hex(self.hex, self.algorithm.hex_length)

    @classmethod
    def parse(cls, text: str) -> CommitHash:
        """
        Parse commit hash text.

        No whitespace trimming is done: surrounding whitespace changes the
        length and is reported as such.

        Args:
            text: Hex text of a commit hash

        Returns:
            CommitHash for the first algorithm whose length matches

        Raises:
            InvalidCommitFormat: If the length is unsupported or a character
                is not lowercase hex

        Examples:
            >>> CommitHash.parse("0123456789abcdef0123456789abcdef01234567").algorithm
            <HashAlgorithm.SHA1: 'sha1'>
        """
        for algorithm in HashAlgorithm:
            if len(text) == algorithm.hex_length:
                return cls(algorithm=algorithm, hex=text)
        raise InvalidCommitFormat(text, length=len(text))

    def short(self, length: int = 12) -> str:
        """Abbreviated hex for log and CLI output."""
        return self.hex[:length]

    def __str__(self) -> str:
        return self.hex


def _check_hex(text: str, expected_length: int) -> None:
    if len(text) != expected_length:
        raise InvalidCommitFormat(text, length=len(text))
    for index, char in enumerate(text):
        if char not in _HEX_DIGITS:
            raise InvalidCommitFormat(text, char=char, index=index)
