#!/usr/bin/env python3
"""
Umbra account tool — create and restore wallet identities:
  - generate   new account; prints seed phrase, address and tracking seed
  - restore    seed phrase (stdin) -> address
  - track      tracking seed (stdin) -> watch-only address
  - watch-only seed phrase (stdin) -> tracking seed

Secrets are read from stdin, never from the command line.

Usage:
    python run_account.py generate --auditable
    python run_account.py restore < phrase.txt
    python run_account.py --config umbra.toml --network testnet track < tracking.txt

Environment variables (alternative to flags):
    UMBRA_NETWORK, UMBRA_AUDITABLE, UMBRA_LOG_LEVEL, UMBRA_LOG_FMT
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timezone

# ---------------------------------------------------------------------------
# Ensure the project root is in sys.path so imports work before pip install
# ---------------------------------------------------------------------------
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from umbra_core.account import Account  # noqa: E402
from umbra_core.config import load_config  # noqa: E402
from umbra_core.errors import AccountError  # noqa: E402
from umbra_core.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger("umbra")


def _read_secret(stream) -> str:
    """First non-empty line of *stream*.  Closes *stream* unless it is stdin."""
    try:
        for line in stream:
            if line.strip():
                return line.strip()
        return ""
    finally:
        if stream is not sys.stdin:
            stream.close()


def _describe(account: Account, out) -> None:
    print(f"address:  {account.get_public_address_str()}", file=out)
    print(f"state:    {account.state.value}", file=out)
    print(f"auditable: {'yes' if account.address.is_auditable else 'no'}", file=out)
    if account.creation_timestamp:
        created = datetime.fromtimestamp(account.creation_timestamp, tz=timezone.utc)
        print(f"created:  {created:%Y-%m-%d}", file=out)


# ===================================================================
#  Commands
# ===================================================================

def cmd_generate(args, cfg, account: Account, out) -> None:
    auditable = args.auditable or cfg.account.auditable
    account.generate(auditable=auditable)
    _describe(account, out)
    print(f"seed phrase:   {account.get_seed_phrase()}", file=out)
    print(f"tracking seed: {account.get_tracking_seed()}", file=out)


def cmd_restore(args, cfg, account: Account, out) -> None:
    account.restore_from_seed_phrase(_read_secret(args.input))
    _describe(account, out)


def cmd_track(args, cfg, account: Account, out) -> None:
    account.restore_from_tracking_seed(_read_secret(args.input))
    _describe(account, out)


def cmd_watch_only(args, cfg, account: Account, out) -> None:
    account.restore_from_seed_phrase(_read_secret(args.input))
    account.make_account_watch_only()
    print(account.get_tracking_seed(), file=out)


COMMANDS = {
    "generate": cmd_generate,
    "restore": cmd_restore,
    "track": cmd_track,
    "watch-only": cmd_watch_only,
}


# ===================================================================
#  Main entry point
# ===================================================================

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Umbra account tool")
    p.add_argument("--config", default=None, help="Path to umbra.toml config file")
    p.add_argument("--network", default=None, choices=["mainnet", "testnet"],
                   help="Address network (default from config)")
    p.add_argument("--log-level", default=None, help="Logging level")
    sub = p.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Create a new random account")
    gen.add_argument("--auditable", action="store_true",
                     help="Create an auditable address")

    for name, help_text in [
        ("restore", "Restore from a seed phrase read from stdin"),
        ("track", "Restore a watch-only account from a tracking seed on stdin"),
        ("watch-only", "Print the tracking seed of a seed phrase read from stdin"),
    ]:
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("input", nargs="?", type=argparse.FileType("r"), default=sys.stdin,
                        help="File to read from (default: stdin)")
    return p.parse_args(argv)


def main(argv=None, out=None) -> int:
    args = parse_args(argv)
    out = out or sys.stdout

    # Load config (TOML + env overrides); CLI flags override config
    cfg = load_config(args.config)
    if args.network:
        cfg.network.name = args.network
    if args.log_level:
        cfg.logging.level = args.log_level
    setup_logging(level=cfg.logging.level, fmt=cfg.logging.format, log_file=cfg.logging.file)

    try:
        with Account(network=cfg.network.name) as account:
            COMMANDS[args.command](args, cfg, account, out)
    except AccountError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except ValueError as e:
        logger.error(f"{args.command} failed: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
