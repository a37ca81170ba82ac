"""
Exception types for Umbra account handling.

Validation failures derive from ``ValueError`` so callers that already
catch ``ValueError`` keep working.  Messages carry structural facts only
(counts, lengths, versions) and never phrase text or key material.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for all account errors."""


class ValidationError(AccountError, ValueError):
    """Recoverable input validation failure."""


class InvalidSeedLength(ValidationError):
    def __init__(self, length: int, expected: int):
        super().__init__(f"wrong restore data size: {length}, expected {expected}")
        self.length = length
        self.expected = expected


class InvalidWordCount(ValidationError):
    def __init__(self, count: int):
        super().__init__(f"Invalid seed words count: {count}")
        self.count = count


class MalformedSeedWords(ValidationError):
    """Seed or timestamp words could not be mapped back to binary."""


class ChecksumMismatch(ValidationError):
    def __init__(self):
        super().__init__("seed phrase has invalid checksum, check your words")


class InvalidAddress(ValidationError):
    """Address string could not be parsed or fails validation."""


class MalformedTrackingSeed(ValidationError):
    """Tracking seed string is structurally invalid."""


class AccountStateError(AccountError):
    """Operation is not valid in the account's current state."""


class WatchOnlyError(AccountStateError):
    """Spend-key operation attempted on an account without a spend key."""


class KeyDerivationError(AccountError, RuntimeError):
    """A cryptographic primitive failed on a structurally valid input."""
