"""
Cryptographic primitives for Umbra accounts.

Thin wrappers around third-party implementations:
  - Keccak-256 (``cn_fast_hash``) from pycryptodome
  - Ed25519 group arithmetic from ecdsa
  - Scalar reduction modulo the Ed25519 group order
  - Seed expansion and one-way dependent key derivation
  - In-place wiping of secret buffers

Scalars and points are little-endian 32-byte strings, points in the
standard compressed Edwards encoding.
"""

from __future__ import annotations

import contextlib
import os
from typing import Iterator

from Crypto.Hash import keccak
from ecdsa.eddsa import curve_ed25519, generator_ed25519
from ecdsa.ellipticcurve import INFINITY, PointEdwards
from ecdsa.errors import MalformedPointError

SECRET_KEY_SIZE = 32
PUBLIC_KEY_SIZE = 32
HASH_SIZE = 32

# Order of the prime subgroup generated by the Ed25519 base point.
GROUP_ORDER: int = generator_ed25519.order()


# ===================================================================
#  Randomness and hashing
# ===================================================================

def random_bytes(n: int) -> bytes:
    """Return *n* bytes from the OS CSPRNG."""
    return os.urandom(n)


def cn_fast_hash(data: bytes) -> bytes:
    """Keccak-256 (original padding, not SHA3) of *data*."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


# ===================================================================
#  Scalars
# ===================================================================

def sc_reduce(data: bytes) -> bytes:
    """Reduce a little-endian integer of any width modulo the group order."""
    value = int.from_bytes(bytes(data), "little") % GROUP_ORDER
    return value.to_bytes(SECRET_KEY_SIZE, "little")


def sc_check(secret: bytes) -> bool:
    """True when *secret* is a canonical 32-byte scalar."""
    if len(secret) != SECRET_KEY_SIZE:
        return False
    return int.from_bytes(bytes(secret), "little") < GROUP_ORDER


# ===================================================================
#  Points
# ===================================================================

def secret_to_public(secret: bytes) -> bytes:
    """
    Multiply the base point by *secret*.

    Raises ``ValueError`` for a non-canonical scalar or when the product
    is the identity.
    """
    if not sc_check(secret):
        raise ValueError("secret key is not a canonical scalar")
    scalar = int.from_bytes(bytes(secret), "little")
    point = generator_ed25519 * scalar
    if point == INFINITY:
        raise ValueError("secret key maps to the identity point")
    return point.to_bytes()


def check_key(public: bytes) -> bool:
    """True when *public* decodes to a point on the curve."""
    if len(public) != PUBLIC_KEY_SIZE:
        return False
    try:
        PointEdwards.from_bytes(curve_ed25519, bytes(public))
    except (MalformedPointError, ValueError):
        return False
    return True


# ===================================================================
#  Key derivation
# ===================================================================

def seed_to_keypair(seed: bytes) -> tuple[bytes, bytes]:
    """
    Expand a seed into ``(secret, public)``.

    The seed fills the low half of a 64-byte buffer, its Keccak-256 digest
    the high half, and the whole buffer is reduced to a scalar.
    """
    if len(seed) > SECRET_KEY_SIZE:
        raise ValueError("seed larger than the expansion buffer")
    buf = bytearray(2 * SECRET_KEY_SIZE)
    try:
        buf[: len(seed)] = seed
        buf[SECRET_KEY_SIZE:] = cn_fast_hash(bytes(buf[:SECRET_KEY_SIZE]))
        secret = sc_reduce(buf)
    finally:
        secure_wipe(buf)
    return secret, secret_to_public(secret)


def derive_dependent_secret(secret: bytes) -> bytes:
    """One-way deterministic derivation of a second secret from *secret*."""
    return sc_reduce(cn_fast_hash(secret))


# ===================================================================
#  Secret buffers
# ===================================================================

def secure_wipe(buf: bytearray) -> None:
    """Overwrite *buf* with random bytes, then truncate it to zero length."""
    if buf:
        buf[:] = random_bytes(len(buf))
    buf.clear()


@contextlib.contextmanager
def wiping(buf: bytearray) -> Iterator[bytearray]:
    """Yield *buf* and wipe it on every exit path."""
    try:
        yield buf
    finally:
        secure_wipe(buf)
