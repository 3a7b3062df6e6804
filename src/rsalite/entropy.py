"""Entropy sources consumed by key generation and padding.

The engine never produces randomness itself, it asks an `EntropySource` for bytes. The default is the system CSPRNG;
a phrase-derived deterministic stream is available for reproducible keys, but it is only as secret as the phrase.

Typical usage example:

    src = PhraseEntropy("correct horse battery staple")
    candidate = random_bits(src, 512)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import hashlib
import logging
import secrets
import typing
import unicodedata
import warnings

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

PHRASE_SALT: bytes = b"mnemonic"
PHRASE_ITERATIONS: int = 2048
_BLOCK_COUNTER_LEN: int = 8

logger = logging.getLogger(__name__)


class EntropySource(typing.Protocol):
    """Anything able to fill a buffer with `count` pseudo-random bytes."""

    def random_bytes(self, count: int) -> bytes:
        ...


class SystemEntropy:
    """Operating system CSPRNG, via `secrets`."""

    def random_bytes(self, count: int) -> bytes:
        if count < 0:
            raise ValueError("count must be >= 0")
        return secrets.token_bytes(count)


class PhraseEntropy:
    """Deterministic byte stream expanded from a human-memorable phrase.

    The phrase is normalized (whitespace collapsed, NFKD) and stretched with PBKDF2-HMAC-SHA512 into a 64-byte seed.
    Output blocks are SHA-512(seed || counter), consumed strictly in order, so the stream does not depend on how the
    reads are chunked.

    Warning! Unsecure! Anyone who knows or guesses the phrase can recreate every key and padding string drawn from it.

    Attributes:
        iterations: PBKDF2 iteration count used for the seed.
    """

    def __init__(self, phrase: str, salt: bytes = PHRASE_SALT, iterations: int = PHRASE_ITERATIONS) -> None:
        normalized = unicodedata.normalize("NFKD", " ".join(phrase.split()))
        if not normalized:
            raise ValueError("Phrase must not be empty.")
        warnings.warn("Phrase-derived entropy is unsecure! Please use with care.", RuntimeWarning, stacklevel=2)
        kdf = PBKDF2HMAC(algorithm=hashes.SHA512(), length=64, salt=salt, iterations=iterations)
        self.iterations = iterations
        self._seed = kdf.derive(normalized.encode("utf-8"))
        self._counter = 0
        self._pool = b""
        logger.debug("Phrase entropy seeded with %d PBKDF2 iterations.", iterations)

    def random_bytes(self, count: int) -> bytes:
        if count < 0:
            raise ValueError("count must be >= 0")
        while len(self._pool) < count:
            block = self._counter.to_bytes(_BLOCK_COUNTER_LEN, byteorder="big")
            self._pool += hashlib.sha512(self._seed + block).digest()
            self._counter += 1
        out, self._pool = self._pool[:count], self._pool[count:]
        return out


def random_bits(source: EntropySource, bits: int) -> int:
    """Draw a non-negative integer of at most `bits` bits from the source.

    Args:
        source: The entropy source to draw from.
        bits: Number of random bits wanted. Must be > 0.

    Returns:
        An integer in `[0, 2**bits)`.
    """
    if bits <= 0:
        raise ValueError("bits must be > 0")
    nbytes = (bits + 7) // 8
    raw = int.from_bytes(source.random_bytes(nbytes), byteorder="big", signed=False)
    return raw >> (nbytes * 8 - bits)
