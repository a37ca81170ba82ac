"""
Seed-phrase codec.

A seed phrase is the 24-word encoding of the 32-byte seed, followed by a
word for the (week-quantized) creation time and, since V2, a word packing
the auditable flag with a checksum over seed and creation time:

  V1 (25 words): seed words, timestamp word
  V2 (26 words): seed words, timestamp word, flag/checksum word

Only V2 is produced.  V1 predates the checksum word, so V1 phrases decode
without any checksum verification.

Nothing here logs or raises with phrase text in it.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from umbra_core import mnemonic_encoding
from umbra_core.crypto_utils import cn_fast_hash, secure_wipe
from umbra_core.errors import ChecksumMismatch, InvalidWordCount, MalformedSeedWords
from umbra_core.keys import SEED_SIZE

logger = logging.getLogger("umbra_seed_phrase")

SEED_WORDS_COUNT = SEED_SIZE // mnemonic_encoding.CHUNK_SIZE * mnemonic_encoding.WORDS_PER_CHUNK
SEED_PHRASE_V1_WORDS_COUNT = SEED_WORDS_COUNT + 1
SEED_PHRASE_V2_WORDS_COUNT = SEED_WORDS_COUNT + 2

BRAIN_DATE_OFFSET = 1543622400   # 2018-12-01 00:00:00 UTC
BRAIN_DATE_QUANTUM = 604800      # one week

CHECKSUM_MAX = mnemonic_encoding.NUMWORDS >> 1


class PhraseVersion(enum.Enum):
    V1 = SEED_PHRASE_V1_WORDS_COUNT
    V2 = SEED_PHRASE_V2_WORDS_COUNT

    @property
    def word_count(self) -> int:
        return self.value

    @property
    def has_checksum(self) -> bool:
        return self is PhraseVersion.V2

    @classmethod
    def for_word_count(cls, count: int) -> PhraseVersion:
        try:
            return cls(count)
        except ValueError:
            raise InvalidWordCount(count) from None


@dataclass
class DecodedSeedPhrase:
    """Result of decoding a phrase.  The caller owns (and wipes) ``seed``."""
    seed: bytearray = field(repr=False)
    timestamp: int
    auditable: bool
    version: PhraseVersion

    def wipe(self) -> None:
        secure_wipe(self.seed)


# ===================================================================
#  Timestamp word
# ===================================================================

def get_word_from_timestamp(timestamp: int) -> str:
    """Encode *timestamp* as the word of its week since BRAIN_DATE_OFFSET."""
    date_offset = timestamp - BRAIN_DATE_OFFSET if timestamp > BRAIN_DATE_OFFSET else 0
    weeks = date_offset // BRAIN_DATE_QUANTUM
    if weeks >= mnemonic_encoding.NUMWORDS:
        raise ValueError(f"creation timestamp is {weeks} weeks past the epoch, beyond the dictionary")
    return mnemonic_encoding.word_for_index(weeks)


def get_timestamp_from_word(word: str) -> int:
    """Inverse of :func:`get_word_from_timestamp`, floored to the week."""
    return mnemonic_encoding.index_for_word(word) * BRAIN_DATE_QUANTUM + BRAIN_DATE_OFFSET


def quantize_timestamp(timestamp: int) -> int:
    """The timestamp a phrase will carry after encoding *timestamp*."""
    return get_timestamp_from_word(get_word_from_timestamp(timestamp))


# ===================================================================
#  Checksum
# ===================================================================

def compute_checksum(seed: bytes, quantized_timestamp: int) -> int:
    """
    Bind seed and quantized creation time into a value in ``[0, CHECKSUM_MAX]``.

    The first eight bytes of Keccak(seed) are replaced with the timestamp
    (uint64 LE), the result is hashed again and its first eight bytes,
    read as uint64 LE, are reduced modulo ``CHECKSUM_MAX + 1``.
    """
    h = bytearray(cn_fast_hash(seed))
    h[0:8] = quantized_timestamp.to_bytes(8, "little")
    h = cn_fast_hash(h)
    return int.from_bytes(h[0:8], "little") % (CHECKSUM_MAX + 1)


def pack_flag_and_checksum(auditable: bool, checksum: int) -> int:
    return (1 if auditable else 0) | (checksum << 1)


def _flag_and_checksum_index(auditable: bool, checksum: int) -> int:
    # NUMWORDS is even, so the reduction keeps bit 0 (the flag) intact.
    return pack_flag_and_checksum(auditable, checksum) % mnemonic_encoding.NUMWORDS


# ===================================================================
#  Encode / decode
# ===================================================================

def encode_seed_phrase(seed: bytes, timestamp: int, auditable: bool) -> str:
    """Encode a seed as a V2 phrase.  An empty seed gives an empty phrase."""
    if not seed:
        return ""
    keys_seed_text = mnemonic_encoding.binary_to_words(bytes(seed))
    timestamp_word = get_word_from_timestamp(timestamp)
    # floor creation time to the quantum so the checksum is stable
    rounded = get_timestamp_from_word(timestamp_word)
    checksum = compute_checksum(seed, rounded)
    checksum_word = mnemonic_encoding.word_for_index(_flag_and_checksum_index(auditable, checksum))
    return f"{keys_seed_text} {timestamp_word} {checksum_word}"


def decode_seed_phrase(seed_phrase: str) -> DecodedSeedPhrase:
    """
    Parse a V1 or V2 phrase.

    Raises :class:`InvalidWordCount`, :class:`MalformedSeedWords` or
    :class:`ChecksumMismatch`.
    """
    words = seed_phrase.split()
    try:
        version = PhraseVersion.for_word_count(len(words))
    except InvalidWordCount:
        logger.error(f"Invalid seed words count: {len(words)}")
        raise

    keys_seed_words = words[:SEED_WORDS_COUNT]
    timestamp_word = words[SEED_WORDS_COUNT]
    checksum_word = words[SEED_WORDS_COUNT + 1] if version.has_checksum else None

    try:
        seed = bytearray(mnemonic_encoding.words_to_binary(" ".join(keys_seed_words)))
    except ValueError:
        # V2: dictionary words whose triple overflows 32 bits fail as a checksum error
        if version.has_checksum and all(map(mnemonic_encoding.is_dictionary_word, keys_seed_words)):
            logger.error("seed phrase has invalid checksum")
            raise ChecksumMismatch() from None
        # never print the words themselves
        logger.error("text2binary failed to convert the given text")
        raise MalformedSeedWords("seed words could not be decoded") from None

    try:
        try:
            timestamp = get_timestamp_from_word(timestamp_word)
        except ValueError:
            raise MalformedSeedWords("timestamp word could not be decoded") from None

        auditable = False
        if checksum_word is not None:
            try:
                index = mnemonic_encoding.index_for_word(checksum_word)
            except ValueError:
                raise MalformedSeedWords("checksum word could not be decoded") from None
            auditable = bool(index & 1)
            expected = _flag_and_checksum_index(auditable, compute_checksum(seed, timestamp))
            if index != expected:
                logger.error("seed phrase has invalid checksum")
                raise ChecksumMismatch()
    except BaseException:
        secure_wipe(seed)
        raise

    logger.debug(f"Decoded {version.name} seed phrase")
    return DecodedSeedPhrase(seed=seed, timestamp=timestamp, auditable=auditable, version=version)
