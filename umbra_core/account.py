"""
Account lifecycle for Umbra.

An ``Account`` owns every piece of key material of one wallet identity
and moves between three states:

  - NULL        no keys, no seed, timestamp 0
  - FULL        seed, spend secret and view secret present
  - WATCH_ONLY  view secret and address only; can scan, cannot spend

``set_null()`` is the only way back to NULL.  Whenever a secret buffer is
discarded it is first overwritten with random bytes.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import time
from typing import Iterator

from umbra_core.address import (
    ADDRESS_PREFIXES,
    AccountAddress,
    address_to_string,
    string_to_address,
)
from umbra_core.crypto_utils import SECRET_KEY_SIZE, secure_wipe, wiping
from umbra_core.errors import (
    AccountStateError,
    InvalidAddress,
    KeyDerivationError,
    MalformedTrackingSeed,
    ValidationError,
    WatchOnlyError,
)
from umbra_core.keys import (
    AccountKeys,
    generate_keys,
    restore_keys,
    watch_only_keys,
)
from umbra_core.seed_phrase import decode_seed_phrase, encode_seed_phrase

logger = logging.getLogger("umbra_account")


class AccountState(enum.Enum):
    NULL = "null"
    FULL = "full"
    WATCH_ONLY = "watch_only"


def parse_tracking_seed(
    tracking_seed: str, network: str = "mainnet",
) -> tuple[AccountAddress, bytearray, int]:
    """
    Split ``<address>:<view secret hex>[:<timestamp>]``.

    Returns ``(address, view_secret, creation_timestamp)``; the caller owns
    the secret buffer.  Raises :class:`MalformedTrackingSeed`.
    """
    parts = tracking_seed.strip().split(":")
    if len(parts) not in (2, 3):
        raise MalformedTrackingSeed(f"tracking seed has {len(parts)} fields, expected 2 or 3")

    try:
        address = string_to_address(parts[0], network)
    except InvalidAddress as exc:
        raise MalformedTrackingSeed(f"tracking seed address is invalid: {exc}") from None

    view_hex = parts[1]
    if len(view_hex) != 2 * SECRET_KEY_SIZE:
        raise MalformedTrackingSeed("tracking seed view key has wrong length")
    try:
        view_secret = bytearray.fromhex(view_hex)
    except ValueError:
        raise MalformedTrackingSeed("tracking seed view key is not hex") from None

    creation_timestamp = 0
    try:
        if len(parts) == 3:
            if not (parts[2].isascii() and parts[2].isdigit()):
                raise MalformedTrackingSeed("tracking seed timestamp is not a decimal number")
            creation_timestamp = int(parts[2])
    except BaseException:
        secure_wipe(view_secret)
        raise

    return address, view_secret, creation_timestamp


class Account:
    """One wallet identity: key material, optional seed, creation time."""

    def __init__(self, network: str = "mainnet"):
        if network not in ADDRESS_PREFIXES:
            raise ValueError(f"Unknown network: {network!r}")
        self.network = network
        self._keys = AccountKeys.null()
        self._seed = bytearray()
        self.creation_timestamp: int = 0

    # ---- state ----

    @property
    def state(self) -> AccountState:
        if self._keys.spend.has_secret:
            return AccountState.FULL
        if self._keys.view.has_secret:
            return AccountState.WATCH_ONLY
        return AccountState.NULL

    @property
    def is_watch_only(self) -> bool:
        return self.state is AccountState.WATCH_ONLY

    @property
    def address(self) -> AccountAddress:
        return self._keys.address

    @property
    def keys(self) -> AccountKeys:
        """Snapshot of the key set.  Call ``wipe()`` on it when done."""
        return self._keys.copy()

    def set_null(self) -> None:
        """Wipe all key material and return to the NULL state."""
        try:
            self._keys.spend.wipe_secret()
            self._keys.view.wipe_secret()
        finally:
            secure_wipe(self._seed)
            self._keys = AccountKeys.null()
            self.creation_timestamp = 0

    # ---- creation / restore ----

    def generate(self, auditable: bool = False) -> None:
        """Create a fresh random account."""
        self.set_null()
        self._keys, self._seed = generate_keys(auditable=auditable)
        self.creation_timestamp = int(time.time())
        logger.info(f"Generated new {'auditable ' if auditable else ''}account")

    def restore_keys(self, keys_seed_binary: bytes) -> None:
        """
        Re-derive keys from a raw seed.  Keeps the address flags and the
        creation timestamp as they are.
        """
        keys = restore_keys(keys_seed_binary, auditable=self._keys.address.is_auditable)
        timestamp = self.creation_timestamp
        self.set_null()
        self._keys = keys
        self._seed = bytearray(keys_seed_binary)
        self.creation_timestamp = timestamp

    def restore_from_seed_phrase(self, seed_phrase: str) -> None:
        """Restore a FULL account from a V1 or V2 seed phrase."""
        try:
            decoded = decode_seed_phrase(seed_phrase)
        except ValidationError:
            self.set_null()
            raise
        try:
            keys = restore_keys(decoded.seed, auditable=decoded.auditable)
        except (ValidationError, KeyDerivationError):
            decoded.wipe()
            self.set_null()
            raise
        self.set_null()
        self._keys = keys
        self._seed = decoded.seed
        self.creation_timestamp = decoded.timestamp
        logger.info(f"Restored account from {decoded.version.name} seed phrase")

    def restore_from_tracking_seed(self, tracking_seed: str) -> None:
        """Restore a WATCH_ONLY account from a tracking seed."""
        self.set_null()
        address, view_secret, creation_timestamp = parse_tracking_seed(tracking_seed, self.network)
        with wiping(view_secret):
            self._keys = watch_only_keys(address, bytes(view_secret))
        self.creation_timestamp = creation_timestamp
        logger.info("Restored watch-only account from tracking seed")

    def make_account_watch_only(self) -> None:
        """Drop the spend key and seed, keeping address, view key and timestamp."""
        if self.state is AccountState.NULL:
            raise AccountStateError("cannot make a null account watch-only")
        timestamp = self.creation_timestamp
        address = self._keys.address
        with wiping(bytearray(self._keys.view.secret)) as view_secret:
            self.set_null()
            self._keys = watch_only_keys(address, bytes(view_secret))
        self.creation_timestamp = timestamp
        logger.info("Account converted to watch-only")

    # ---- export ----

    def get_seed_phrase(self) -> str:
        """V2 seed phrase, or an empty string when no seed is held."""
        return encode_seed_phrase(self._seed, self.creation_timestamp, self._keys.address.is_auditable)

    def get_tracking_seed(self) -> str:
        """Watch-only credential: ``address:view_secret_hex[:timestamp]``."""
        if self.state is AccountState.NULL:
            raise AccountStateError("null account has no tracking seed")
        with self.borrow_view_secret() as view_secret:
            tracking_seed = f"{self.get_public_address_str()}:{view_secret.hex()}"
        if self.creation_timestamp:
            tracking_seed += f":{self.creation_timestamp}"
        return tracking_seed

    def get_public_address_str(self) -> str:
        return address_to_string(self._keys.address, self.network)

    # ---- scoped access to secrets ----

    @contextlib.contextmanager
    def borrow_spend_secret(self) -> Iterator[memoryview]:
        """Read-only view of the spend secret for the duration of one operation."""
        if not self._keys.spend.has_secret:
            raise WatchOnlyError(f"{self.state.value} account has no spend key")
        view = self._keys.spend.secret_view()
        try:
            yield view
        finally:
            view.release()

    @contextlib.contextmanager
    def borrow_view_secret(self) -> Iterator[memoryview]:
        """Read-only view of the view secret for the duration of one operation."""
        if not self._keys.view.has_secret:
            raise AccountStateError("null account has no view key")
        view = self._keys.view.secret_view()
        try:
            yield view
        finally:
            view.release()

    # ---- context manager ----

    def __enter__(self) -> Account:
        return self

    def __exit__(self, *exc) -> None:
        self.set_null()

    def __repr__(self) -> str:
        if self.state is AccountState.NULL:
            return "Account(null)"
        return f"Account({self.get_public_address_str()}, {self.state.value})"


def transform_addr_to_str(addr: AccountAddress, network: str = "mainnet") -> str:
    return address_to_string(addr, network)


def transform_str_to_addr(text: str, network: str = "mainnet") -> AccountAddress:
    """Parse *text*, returning an all-zero address when it is not valid."""
    try:
        return string_to_address(text, network)
    except InvalidAddress as exc:
        logger.warning(f"cannot parse address from string: {exc}")
        return AccountAddress()
