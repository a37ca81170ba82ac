"""
Umbra - account identity for a privacy-oriented cryptocurrency wallet.

Key features:
- Spend/view Ed25519 keypairs derived deterministically from a 32-byte seed
- 26-word seed phrases with creation week, auditable flag and checksum
  (25-word phrases from older wallets still restore)
- Watch-only accounts restored from a tracking seed
- Secret buffers overwritten before they are released
"""

__version__ = "1.0.0"
__all__ = [
    "crypto_utils",
    "mnemonic_encoding",
    "address",
    "keys",
    "seed_phrase",
    "account",
    "errors",
    "config",
    "logging_config",
]
