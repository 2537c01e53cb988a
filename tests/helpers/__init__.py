"""Shared test helpers."""

# Stable hashes used throughout the unit tests
SHA1_HEX = "0123456789abcdef0123456789abcdef01234567"
SHA256_HEX = "0123456789abcdef" * 4
