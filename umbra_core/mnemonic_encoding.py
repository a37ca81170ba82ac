"""
Dictionary codec for Umbra seed phrases.

Maps binary data to words of the BIP-39 English list (2048 words, loaded
from the ``mnemonic`` package) and back.  Every 4-byte little-endian chunk
becomes three words, so a 32-byte seed becomes 24 words.  Single integers
in ``[0, NUMWORDS)`` map to single words for the timestamp and checksum
words.

Errors raise ``ValueError`` without echoing the offending text: the input
is usually secret.
"""

from __future__ import annotations

from mnemonic import Mnemonic

NUMWORDS = 2048
CHUNK_SIZE = 4
WORDS_PER_CHUNK = 3

_WORDLIST: list[str] | None = None
_WORD_INDEX: dict[str, int] | None = None


def _get_wordlist() -> list[str]:
    global _WORDLIST, _WORD_INDEX
    if _WORDLIST is None:
        words = list(Mnemonic("english").wordlist)
        if len(words) != NUMWORDS:
            raise RuntimeError(f"unexpected dictionary size {len(words)}")
        _WORDLIST = words
        _WORD_INDEX = {w: i for i, w in enumerate(words)}
    return _WORDLIST


def _get_word_index() -> dict[str, int]:
    _get_wordlist()
    assert _WORD_INDEX is not None
    return _WORD_INDEX


def word_for_index(n: int) -> str:
    """Return the dictionary word at index *n*."""
    if not 0 <= n < NUMWORDS:
        raise ValueError(f"word index out of range: {n}")
    return _get_wordlist()[n]


def index_for_word(word: str) -> int:
    """Return the dictionary index of *word* (case-insensitive)."""
    try:
        return _get_word_index()[word.strip().lower()]
    except KeyError:
        raise ValueError("word is not in the dictionary") from None


def is_dictionary_word(word: str) -> bool:
    return word.strip().lower() in _get_word_index()


def binary_to_words(data: bytes) -> str:
    """Encode *data* (a multiple of 4 bytes) as space-separated words."""
    if len(data) % CHUNK_SIZE:
        raise ValueError(f"data length {len(data)} is not a multiple of {CHUNK_SIZE}")
    wordlist = _get_wordlist()
    n = NUMWORDS
    words: list[str] = []
    for offset in range(0, len(data), CHUNK_SIZE):
        val = int.from_bytes(data[offset : offset + CHUNK_SIZE], "little")
        w1 = val % n
        w2 = (val // n + w1) % n
        w3 = (val // n // n + w2) % n
        words.extend((wordlist[w1], wordlist[w2], wordlist[w3]))
    return " ".join(words)


def words_to_binary(text: str) -> bytes:
    """Decode words produced by :func:`binary_to_words`."""
    words = text.split()
    if not words or len(words) % WORDS_PER_CHUNK:
        raise ValueError(f"word count {len(words)} is not a multiple of {WORDS_PER_CHUNK}")
    n = NUMWORDS
    out = bytearray()
    for i in range(0, len(words), WORDS_PER_CHUNK):
        w1, w2, w3 = (index_for_word(w) for w in words[i : i + WORDS_PER_CHUNK])
        val = w1 + n * ((w2 - w1) % n) + n * n * ((w3 - w2) % n)
        if val >= 1 << (8 * CHUNK_SIZE):
            raise ValueError("word triple does not encode a 32-bit chunk")
        out += val.to_bytes(CHUNK_SIZE, "little")
    return bytes(out)
