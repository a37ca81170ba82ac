"""
Key derivation for Umbra accounts.

A 32-byte seed expands into the spend keypair; the view secret is always
the one-way derivation of the spend secret, so a seed fully determines
both keypairs and the address.  ``AccountKeys`` are only built by the
functions in this module, which keeps the view key tied to the spend key.
"""

from __future__ import annotations

import logging

from umbra_core.address import AccountAddress
from umbra_core.crypto_utils import (
    SECRET_KEY_SIZE,
    derive_dependent_secret,
    random_bytes,
    secret_to_public,
    secure_wipe,
    seed_to_keypair,
)
from umbra_core.errors import (
    InvalidSeedLength,
    KeyDerivationError,
    MalformedTrackingSeed,
)

logger = logging.getLogger("umbra_keys")

SEED_SIZE = 32


class KeyPair:
    """Secret scalar plus public point.  The secret lives in a wipeable buffer."""

    __slots__ = ("_secret", "public")

    def __init__(self, secret: bytes = b"", public: bytes = b""):
        self._secret = bytearray(secret)
        self.public = bytes(public)

    @property
    def secret(self) -> bytes:
        return bytes(self._secret)

    @property
    def has_secret(self) -> bool:
        return len(self._secret) == SECRET_KEY_SIZE

    def secret_view(self) -> memoryview:
        """Read-only view over the secret buffer.  Release it after use."""
        return memoryview(self._secret).toreadonly()

    def wipe_secret(self) -> None:
        secure_wipe(self._secret)

    def wipe(self) -> None:
        self.wipe_secret()
        self.public = b""

    def copy(self) -> KeyPair:
        return KeyPair(self._secret, self.public)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyPair):
            return NotImplemented
        return self._secret == other._secret and self.public == other.public

    def __repr__(self) -> str:
        return f"KeyPair(public={self.public.hex()[:16]}.., secret={'set' if self.has_secret else 'none'})"


class AccountKeys:
    """Spend keypair, view keypair and the address built from them."""

    __slots__ = ("spend", "view", "address")

    def __init__(self, spend: KeyPair, view: KeyPair, address: AccountAddress):
        self.spend = spend
        self.view = view
        self.address = address

    @classmethod
    def null(cls) -> AccountKeys:
        return cls(KeyPair(), KeyPair(), AccountAddress())

    def copy(self) -> AccountKeys:
        return AccountKeys(self.spend.copy(), self.view.copy(), self.address)

    def wipe(self) -> None:
        self.spend.wipe()
        self.view.wipe()
        self.address = AccountAddress()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccountKeys):
            return NotImplemented
        return (
            self.spend == other.spend
            and self.view == other.view
            and self.address == other.address
        )

    def __repr__(self) -> str:
        return f"AccountKeys({self.address!r})"


def _public_or_fatal(secret: bytes, role: str) -> bytes:
    try:
        return secret_to_public(secret)
    except ValueError as exc:
        logger.critical(f"Failed to create public {role} key")
        raise KeyDerivationError(f"Failed to create public {role} key") from exc


def _keys_from_seed(seed: bytes, auditable: bool) -> AccountKeys:
    try:
        spend_secret, spend_public = seed_to_keypair(seed)
    except ValueError as exc:
        logger.critical("Failed to create public spend key")
        raise KeyDerivationError("Failed to create public spend key") from exc
    view_secret = derive_dependent_secret(spend_secret)
    view_public = _public_or_fatal(view_secret, "view")
    address = AccountAddress(spend_public=spend_public, view_public=view_public)
    if auditable:
        address = address.with_auditable()
    return AccountKeys(KeyPair(spend_secret, spend_public), KeyPair(view_secret, view_public), address)


def generate_keys(seed: bytes | None = None, auditable: bool = False) -> tuple[AccountKeys, bytearray]:
    """
    Derive a full key set.  A fresh random seed is drawn when *seed* is None.

    Returns ``(keys, seed_buffer)``; the caller owns and must wipe the buffer.
    """
    if seed is None:
        seed = random_bytes(SEED_SIZE)
    seed_buf = bytearray(seed)
    try:
        keys = _keys_from_seed(bytes(seed_buf), auditable)
    except BaseException:
        secure_wipe(seed_buf)
        raise
    return keys, seed_buf


def restore_keys(seed: bytes, auditable: bool = False) -> AccountKeys:
    """Re-derive the key set of an existing seed.  Deterministic."""
    if len(seed) != SEED_SIZE:
        raise InvalidSeedLength(len(seed), SEED_SIZE)
    return _keys_from_seed(bytes(seed), auditable)


def watch_only_keys(address: AccountAddress, view_secret: bytes) -> AccountKeys:
    """
    Key set for an account that can scan but not spend.

    The view secret must reproduce the address's view public key.
    """
    try:
        view_public = secret_to_public(view_secret)
    except ValueError:
        raise MalformedTrackingSeed("view secret key is not a valid scalar") from None
    if view_public != address.view_public:
        raise MalformedTrackingSeed("view secret key does not match the address")
    return AccountKeys(KeyPair(b"", address.spend_public), KeyPair(view_secret, view_public), address)
