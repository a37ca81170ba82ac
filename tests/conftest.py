"""
Shared pytest fixtures for the Umbra test suite.
"""

import pytest

from umbra_core.account import Account

FIXED_SEED = bytes(range(32))
ZERO_SEED = bytes(32)

# 2024-03-15 12:00:00 UTC
FIXED_TIMESTAMP = 1710504000


@pytest.fixture
def account():
    """Fresh null account."""
    acct = Account()
    yield acct
    acct.set_null()


@pytest.fixture
def full_account():
    """Deterministic full account with a known creation time."""
    acct = Account()
    acct.restore_keys(FIXED_SEED)
    acct.creation_timestamp = FIXED_TIMESTAMP
    yield acct
    acct.set_null()


@pytest.fixture
def generated_account():
    """Fresh random full account."""
    acct = Account()
    acct.generate()
    yield acct
    acct.set_null()
