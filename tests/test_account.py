"""
Test suite for umbra_core.account — the account lifecycle.

Covers:
  - NULL / FULL / WATCH_ONLY transitions
  - generate, restore_keys, restore_from_seed_phrase round-trips
  - make_account_watch_only and spend-key refusal
  - Tracking seed export / import and its validation
  - set_null wiping of secret buffers
  - Address helpers
"""

import time
import unittest
from unittest.mock import patch

from umbra_core.account import (
    Account,
    AccountState,
    parse_tracking_seed,
    transform_addr_to_str,
    transform_str_to_addr,
)
from umbra_core.address import AccountAddress
from umbra_core.errors import (
    AccountStateError,
    ChecksumMismatch,
    InvalidSeedLength,
    InvalidWordCount,
    MalformedTrackingSeed,
    WatchOnlyError,
)
from umbra_core.keys import generate_keys, restore_keys
from umbra_core.mnemonic_encoding import NUMWORDS, index_for_word, word_for_index
from umbra_core.seed_phrase import quantize_timestamp

SEED = bytes(range(32))
TIMESTAMP = 1710504000


def _full_account(seed: bytes = SEED, timestamp: int = TIMESTAMP) -> Account:
    acct = Account()
    acct.restore_keys(seed)
    acct.creation_timestamp = timestamp
    return acct


class TestNullAccount(unittest.TestCase):

    def test_initial_state(self):
        acct = Account()
        self.assertIs(acct.state, AccountState.NULL)
        self.assertEqual(acct.creation_timestamp, 0)
        self.assertTrue(acct.address.is_null)

    def test_no_seed_phrase(self):
        self.assertEqual(Account().get_seed_phrase(), "")

    def test_no_tracking_seed(self):
        with self.assertRaises(AccountStateError):
            Account().get_tracking_seed()

    def test_cannot_make_watch_only(self):
        with self.assertRaises(AccountStateError):
            Account().make_account_watch_only()

    def test_repr(self):
        self.assertEqual(repr(Account()), "Account(null)")

    def test_unknown_network(self):
        with self.assertRaises(ValueError):
            Account(network="moonnet")


class TestGenerate(unittest.TestCase):

    def test_full_state(self):
        acct = Account()
        acct.generate()
        self.assertIs(acct.state, AccountState.FULL)
        self.assertFalse(acct.is_watch_only)

    def test_records_creation_time(self):
        before = int(time.time())
        acct = Account()
        acct.generate()
        self.assertGreaterEqual(acct.creation_timestamp, before)
        self.assertLessEqual(acct.creation_timestamp, int(time.time()))

    def test_auditable(self):
        acct = Account()
        acct.generate(auditable=True)
        self.assertTrue(acct.address.is_auditable)

    def test_regenerate_replaces_keys(self):
        acct = Account()
        acct.generate()
        first = acct.address
        acct.generate()
        self.assertNotEqual(acct.address, first)

    def test_seed_phrase_roundtrip(self):
        a = Account()
        a.generate()
        b = Account()
        b.restore_from_seed_phrase(a.get_seed_phrase())
        self.assertEqual(b.keys.spend.secret, a.keys.spend.secret)
        self.assertEqual(b.keys.view.secret, a.keys.view.secret)
        self.assertEqual(b.address, a.address)
        self.assertEqual(b.creation_timestamp, quantize_timestamp(a.creation_timestamp))
        self.assertIs(b.state, AccountState.FULL)

    def test_auditable_roundtrip(self):
        a = Account()
        a.generate(auditable=True)
        b = Account()
        b.restore_from_seed_phrase(a.get_seed_phrase())
        self.assertTrue(b.address.is_auditable)
        self.assertEqual(b.get_public_address_str(), a.get_public_address_str())


class TestRestoreKeys(unittest.TestCase):

    def test_matches_generate_with_seed(self):
        acct = _full_account()
        keys, _ = generate_keys(SEED)
        self.assertEqual(acct.keys, keys)

    def test_deterministic(self):
        self.assertEqual(_full_account().keys, _full_account().keys)

    def test_keeps_timestamp(self):
        acct = Account()
        acct.creation_timestamp = 12345
        acct.restore_keys(SEED)
        self.assertEqual(acct.creation_timestamp, 12345)

    def test_bad_length(self):
        acct = Account()
        with self.assertRaises(InvalidSeedLength):
            acct.restore_keys(SEED[:16])
        self.assertIs(acct.state, AccountState.NULL)

    def test_zero_seed_scenario(self):
        a = Account()
        a.restore_keys(bytes(32))
        self.assertIs(a.state, AccountState.FULL)
        self.assertEqual(a.keys, restore_keys(bytes(32)))
        b = Account()
        b.restore_from_seed_phrase(a.get_seed_phrase())
        self.assertEqual(b.keys, a.keys)
        self.assertFalse(b.address.is_auditable)

    def test_seed_phrase_available(self):
        self.assertEqual(len(_full_account().get_seed_phrase().split()), 26)


class TestRestoreFromSeedPhrase(unittest.TestCase):

    def setUp(self):
        self.source = _full_account()
        self.phrase = self.source.get_seed_phrase()

    def test_v2(self):
        acct = Account()
        acct.restore_from_seed_phrase(self.phrase)
        self.assertEqual(acct.keys, self.source.keys)
        self.assertEqual(acct.creation_timestamp, quantize_timestamp(TIMESTAMP))

    def test_v1(self):
        acct = Account()
        acct.restore_from_seed_phrase(" ".join(self.phrase.split()[:25]))
        self.assertIs(acct.state, AccountState.FULL)
        self.assertEqual(acct.keys, self.source.keys)
        self.assertEqual(acct.creation_timestamp, quantize_timestamp(TIMESTAMP))

    def test_reencode_is_identical(self):
        acct = Account()
        acct.restore_from_seed_phrase(self.phrase)
        self.assertEqual(acct.get_seed_phrase(), self.phrase)

    def test_wrong_count_leaves_null(self):
        acct = _full_account(bytes(32))
        with self.assertRaises(InvalidWordCount):
            acct.restore_from_seed_phrase("abandon abandon")
        self.assertIs(acct.state, AccountState.NULL)

    def test_bad_checksum_leaves_null(self):
        words = self.phrase.split()
        words[25] = word_for_index((index_for_word(words[25]) + 2) % NUMWORDS)
        acct = _full_account(bytes(32))
        with self.assertRaises(ChecksumMismatch):
            acct.restore_from_seed_phrase(" ".join(words))
        self.assertIs(acct.state, AccountState.NULL)

    def test_replaces_previous_account(self):
        acct = _full_account(bytes(32))
        acct.restore_from_seed_phrase(self.phrase)
        self.assertEqual(acct.keys, self.source.keys)


class TestWatchOnly(unittest.TestCase):

    def setUp(self):
        self.acct = _full_account()
        self.address = self.acct.address
        self.view_secret = self.acct.keys.view.secret
        self.acct.make_account_watch_only()

    def test_state(self):
        self.assertIs(self.acct.state, AccountState.WATCH_ONLY)
        self.assertTrue(self.acct.is_watch_only)

    def test_preserves_public_data(self):
        self.assertEqual(self.acct.address, self.address)
        self.assertEqual(self.acct.keys.view.secret, self.view_secret)
        self.assertEqual(self.acct.creation_timestamp, TIMESTAMP)

    def test_spend_secret_gone(self):
        self.assertEqual(self.acct.keys.spend.secret, b"")
        self.assertEqual(self.acct.keys.spend.public, self.address.spend_public)

    def test_no_seed_phrase(self):
        self.assertEqual(self.acct.get_seed_phrase(), "")

    def test_tracking_seed_still_works(self):
        self.assertTrue(self.acct.get_tracking_seed().startswith(self.acct.get_public_address_str()))

    def test_spend_key_refused(self):
        with self.assertRaises(WatchOnlyError):
            with self.acct.borrow_spend_secret():
                pass

    def test_idempotent(self):
        self.acct.make_account_watch_only()
        self.assertIs(self.acct.state, AccountState.WATCH_ONLY)
        self.assertEqual(self.acct.keys.view.secret, self.view_secret)

    def test_wipes_old_buffers(self):
        acct = _full_account()
        seed_buf = acct._seed
        spend_buf = acct._keys.spend._secret
        acct.make_account_watch_only()
        self.assertEqual(len(seed_buf), 0)
        self.assertEqual(len(spend_buf), 0)


class TestTrackingSeed(unittest.TestCase):

    def setUp(self):
        self.acct = _full_account()

    def test_format(self):
        parts = self.acct.get_tracking_seed().split(":")
        self.assertEqual(len(parts), 3)
        self.assertEqual(parts[0], self.acct.get_public_address_str())
        self.assertEqual(bytes.fromhex(parts[1]), self.acct.keys.view.secret)
        self.assertEqual(parts[2], str(TIMESTAMP))

    def test_no_timestamp_field_when_zero(self):
        acct = _full_account(timestamp=0)
        self.assertEqual(len(acct.get_tracking_seed().split(":")), 2)

    def test_roundtrip(self):
        b = Account()
        b.restore_from_tracking_seed(self.acct.get_tracking_seed())
        self.assertIs(b.state, AccountState.WATCH_ONLY)
        self.assertEqual(b.address, self.acct.address)
        self.assertEqual(b.keys.view.secret, self.acct.keys.view.secret)
        self.assertEqual(b.creation_timestamp, TIMESTAMP)
        self.assertEqual(b.get_tracking_seed(), self.acct.get_tracking_seed())

    def test_roundtrip_auditable(self):
        a = Account()
        a.generate(auditable=True)
        b = Account()
        b.restore_from_tracking_seed(a.get_tracking_seed())
        self.assertTrue(b.address.is_auditable)

    def test_roundtrip_testnet(self):
        a = Account(network="testnet")
        a.restore_keys(SEED)
        b = Account(network="testnet")
        b.restore_from_tracking_seed(a.get_tracking_seed())
        self.assertEqual(b.address, a.address)

    def test_restore_clears_previous_full_account(self):
        b = _full_account(bytes(32))
        b.restore_from_tracking_seed(self.acct.get_tracking_seed())
        self.assertEqual(b.get_seed_phrase(), "")
        self.assertIs(b.state, AccountState.WATCH_ONLY)

    def test_parse(self):
        address, view_secret, ts = parse_tracking_seed(self.acct.get_tracking_seed())
        self.assertEqual(address, self.acct.address)
        self.assertEqual(bytes(view_secret), self.acct.keys.view.secret)
        self.assertEqual(ts, TIMESTAMP)


class TestMalformedTrackingSeed(unittest.TestCase):

    def setUp(self):
        source = _full_account()
        self.address = source.get_public_address_str()
        self.view_hex = source.keys.view.secret.hex()
        self.other_view_hex = _full_account(bytes(32)).keys.view.secret.hex()

    def _assert_rejected(self, text):
        acct = _full_account(bytes(32))
        with self.assertRaises(MalformedTrackingSeed):
            acct.restore_from_tracking_seed(text)
        self.assertIs(acct.state, AccountState.NULL)

    def test_empty(self):
        self._assert_rejected("")

    def test_single_field(self):
        self._assert_rejected(self.address)

    def test_too_many_fields(self):
        self._assert_rejected(f"{self.address}:{self.view_hex}:1:2")

    def test_bad_address(self):
        self._assert_rejected(f"notanaddress:{self.view_hex}")

    def test_short_view_key(self):
        self._assert_rejected(f"{self.address}:{self.view_hex[:-2]}")

    def test_non_hex_view_key(self):
        self._assert_rejected(f"{self.address}:{'zz' * 32}")

    def test_foreign_view_key(self):
        self._assert_rejected(f"{self.address}:{self.other_view_hex}")

    def test_bad_timestamp(self):
        self._assert_rejected(f"{self.address}:{self.view_hex}:soon")

    def test_negative_timestamp(self):
        self._assert_rejected(f"{self.address}:{self.view_hex}:-5")

    def test_non_ascii_digit_timestamp(self):
        self._assert_rejected(f"{self.address}:{self.view_hex}:\u00b2")

    def test_rejected_timestamp_wipes_view_secret(self):
        wiped = []
        with patch("umbra_core.account.secure_wipe", side_effect=wiped.append):
            with self.assertRaises(MalformedTrackingSeed):
                parse_tracking_seed(f"{self.address}:{self.view_hex}:\u00b2")
        self.assertEqual(len(wiped), 1)
        self.assertEqual(bytes(wiped[0]), bytes.fromhex(self.view_hex))

    def test_message_has_no_secret(self):
        with self.assertRaises(MalformedTrackingSeed) as cm:
            Account().restore_from_tracking_seed(f"{self.address}:{self.other_view_hex}")
        self.assertNotIn(self.other_view_hex, str(cm.exception))


class TestSetNull(unittest.TestCase):

    def test_returns_to_null(self):
        acct = _full_account()
        acct.set_null()
        self.assertIs(acct.state, AccountState.NULL)
        self.assertEqual(acct.creation_timestamp, 0)
        self.assertEqual(acct.get_seed_phrase(), "")
        self.assertTrue(acct.address.is_null)

    def test_clears_buffers_in_place(self):
        acct = _full_account()
        seed_buf = acct._seed
        spend_buf = acct._keys.spend._secret
        view_buf = acct._keys.view._secret
        acct.set_null()
        self.assertEqual(len(seed_buf), 0)
        self.assertEqual(len(spend_buf), 0)
        self.assertEqual(len(view_buf), 0)

    def test_overwrites_with_random_bytes(self):
        acct = _full_account()
        with patch("umbra_core.crypto_utils.random_bytes", side_effect=lambda n: b"\x00" * n) as rnd:
            acct.set_null()
        self.assertEqual([c.args[0] for c in rnd.call_args_list], [32, 32, 32])

    def test_null_from_null(self):
        acct = Account()
        acct.set_null()
        self.assertIs(acct.state, AccountState.NULL)

    def test_context_manager(self):
        with Account() as acct:
            acct.restore_keys(SEED)
            seed_buf = acct._seed
        self.assertIs(acct.state, AccountState.NULL)
        self.assertEqual(len(seed_buf), 0)


class TestBorrow(unittest.TestCase):

    def test_spend_secret(self):
        acct = _full_account()
        with acct.borrow_spend_secret() as view:
            self.assertTrue(view.readonly)
            self.assertEqual(bytes(view), acct.keys.spend.secret)
        with self.assertRaises(ValueError):
            bytes(view)

    def test_null_account_refuses_spend(self):
        with self.assertRaises(WatchOnlyError):
            with Account().borrow_spend_secret():
                pass

    def test_view_secret(self):
        acct = _full_account()
        with acct.borrow_view_secret() as view:
            self.assertEqual(bytes(view), acct.keys.view.secret)

    def test_keys_is_a_snapshot(self):
        acct = _full_account()
        snapshot = acct.keys
        snapshot.wipe()
        self.assertIs(acct.state, AccountState.FULL)


class TestAddressHelpers(unittest.TestCase):

    def test_transform_roundtrip(self):
        addr = restore_keys(SEED).address
        self.assertEqual(transform_str_to_addr(transform_addr_to_str(addr)), addr)

    def test_transform_invalid(self):
        with self.assertLogs("umbra_account", level="WARNING") as logs:
            addr = transform_str_to_addr("garbage-address")
        self.assertEqual(addr, AccountAddress())
        self.assertFalse(any("garbage-address" in line for line in logs.output))

    def test_repr_shows_address(self):
        acct = _full_account()
        self.assertIn(acct.get_public_address_str(), repr(acct))
        self.assertNotIn(acct.keys.spend.secret.hex(), repr(acct))


# ═══════════════════════════════════════════════════════════════════
#  Fixture-based scenarios
# ═══════════════════════════════════════════════════════════════════

def test_fixture_account_is_null(account):
    assert account.state is AccountState.NULL


def test_full_to_watch_only_to_null(full_account):
    tracking_seed = full_account.get_tracking_seed()
    full_account.make_account_watch_only()
    assert full_account.get_tracking_seed() == tracking_seed
    full_account.set_null()
    assert full_account.state is AccountState.NULL


def test_generated_phrase_restores_same_tracking_seed(generated_account, account):
    account.restore_from_seed_phrase(generated_account.get_seed_phrase())
    quantized = quantize_timestamp(generated_account.creation_timestamp)
    expected = generated_account.get_tracking_seed().rsplit(":", 1)[0]
    assert account.get_tracking_seed() == f"{expected}:{quantized}"
