"""
TOML-based configuration for Umbra tools.

Loads settings from a TOML file and/or environment variables.
Environment variables take precedence over file values.

Usage:
    from umbra_core.config import load_config
    cfg = load_config("umbra.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]


@dataclass
class NetworkConfig:
    """Which network's address prefixes to use."""
    name: str = "mainnet"   # "mainnet" or "testnet"


@dataclass
class AccountConfig:
    """Defaults for newly generated accounts."""
    auditable: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class UmbraConfig:
    """Top-level configuration container."""
    network: NetworkConfig = field(default_factory=NetworkConfig)
    account: AccountConfig = field(default_factory=AccountConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: str | None = None) -> UmbraConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        UMBRA_NETWORK    -> network.name
        UMBRA_AUDITABLE  -> account.auditable   (1/true/yes/on)
        UMBRA_LOG_LEVEL  -> logging.level
        UMBRA_LOG_FMT    -> logging.format
        UMBRA_LOG_FILE   -> logging.file
    """
    cfg = UmbraConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("network", cfg.network),
                ("account", cfg.account),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("UMBRA_NETWORK"):
        cfg.network.name = v.strip().lower()
    if v := os.environ.get("UMBRA_AUDITABLE"):
        cfg.account.auditable = _env_bool(v)
    if v := os.environ.get("UMBRA_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("UMBRA_LOG_FMT"):
        cfg.logging.format = v
    if v := os.environ.get("UMBRA_LOG_FILE"):
        cfg.logging.file = v

    return cfg
