"""
Public address value and its textual form.

An address carries the spend and view public keys plus a flags byte.
Bit 0 of the flags marks an *auditable* address, which also selects a
distinct base58 prefix so the two kinds cannot be confused on sight.

Wire layout before base58:
    varint(prefix) || spend_public(32) || view_public(32) || flags(1) || checksum(4)
where checksum is the first four bytes of Keccak-256 over everything before it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import base58

from umbra_core.crypto_utils import PUBLIC_KEY_SIZE, check_key, cn_fast_hash
from umbra_core.errors import InvalidAddress

ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE = 0x01
KNOWN_FLAGS = ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE

ADDRESS_CHECKSUM_SIZE = 4

# network -> (standard prefix, auditable prefix)
ADDRESS_PREFIXES: dict[str, tuple[int, int]] = {
    "mainnet": (0xC5, 0x98C8),
    "testnet": (0x6C, 0x8D7C),
}


@dataclass(frozen=True)
class AccountAddress:
    """Public half of an account: spend key, view key and flags."""
    spend_public: bytes = bytes(PUBLIC_KEY_SIZE)
    view_public: bytes = bytes(PUBLIC_KEY_SIZE)
    flags: int = 0

    @property
    def is_auditable(self) -> bool:
        return bool(self.flags & ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE)

    @property
    def is_null(self) -> bool:
        return not any(self.spend_public) and not any(self.view_public)

    def with_auditable(self, auditable: bool = True) -> AccountAddress:
        if auditable:
            flags = self.flags | ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE
        else:
            flags = self.flags & ~ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE
        return replace(self, flags=flags)

    def __repr__(self) -> str:
        return f"AccountAddress(spend={self.spend_public.hex()[:16]}.., flags={self.flags})"


# ---- varint ----

def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _decode_varint(data: bytes) -> tuple[int, int]:
    """Return ``(value, bytes_consumed)``."""
    value = 0
    for i, byte in enumerate(data[:10]):
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, i + 1
    raise InvalidAddress("bad address prefix encoding")


def _prefixes(network: str) -> tuple[int, int]:
    try:
        return ADDRESS_PREFIXES[network]
    except KeyError:
        raise ValueError(f"Unknown network: {network!r}") from None


# ---- serialization ----

def address_to_string(addr: AccountAddress, network: str = "mainnet") -> str:
    """Serialize *addr* to its base58 text form."""
    standard, auditable = _prefixes(network)
    prefix = auditable if addr.is_auditable else standard
    payload = (
        _encode_varint(prefix)
        + addr.spend_public
        + addr.view_public
        + bytes([addr.flags & 0xFF])
    )
    checksum = cn_fast_hash(payload)[:ADDRESS_CHECKSUM_SIZE]
    return base58.b58encode(payload + checksum).decode("ascii")


def string_to_address(text: str, network: str = "mainnet") -> AccountAddress:
    """
    Parse an address string.  Raises :class:`InvalidAddress` when the text
    is not valid base58, the checksum or prefix is wrong, or either public
    key is not a curve point.
    """
    standard, auditable = _prefixes(network)
    try:
        raw = base58.b58decode(text.strip())
    except ValueError:
        raise InvalidAddress("address is not valid base58") from None

    if len(raw) <= ADDRESS_CHECKSUM_SIZE:
        raise InvalidAddress("address too short")
    payload, checksum = raw[:-ADDRESS_CHECKSUM_SIZE], raw[-ADDRESS_CHECKSUM_SIZE:]
    if cn_fast_hash(payload)[:ADDRESS_CHECKSUM_SIZE] != checksum:
        raise InvalidAddress("address checksum mismatch")

    prefix, offset = _decode_varint(payload)
    if prefix not in (standard, auditable):
        raise InvalidAddress(f"address prefix {prefix:#x} does not belong to {network}")

    body = payload[offset:]
    if len(body) != 2 * PUBLIC_KEY_SIZE + 1:
        raise InvalidAddress(f"address body has wrong size: {len(body)}")
    spend_public = body[:PUBLIC_KEY_SIZE]
    view_public = body[PUBLIC_KEY_SIZE : 2 * PUBLIC_KEY_SIZE]
    flags = body[-1]

    if flags & ~KNOWN_FLAGS:
        raise InvalidAddress(f"address has unknown flags: {flags:#x}")
    if bool(flags & ACCOUNT_PUBLIC_ADDRESS_FLAG_AUDITABLE) != (prefix == auditable):
        raise InvalidAddress("address flags do not match its prefix")
    if not check_key(spend_public) or not check_key(view_public):
        raise InvalidAddress("address contains an invalid public key")

    return AccountAddress(spend_public=spend_public, view_public=view_public, flags=flags)
