"""Core Key Generation Utility, mainly focusing on the generation of random large primes.

This module is responsible for generating RSA key pairs from a caller supplied entropy source. Candidates are drawn
from the source, screened by trial division against a cached table of small primes and then by a Miller-Rabin test
with a configurable number of rounds. The prime pair is retried as a whole until it yields a usable totient.

Typical usage example:

    get_pre_primes(12000)
    p, q = generate_primes(2048)
    (n, e), (n, d, p, q, dmp1, dmq1, coeff) = generate_key_pair(2048, source=PhraseEntropy("some words"))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import math
import secrets

from rsalite import entropy
from rsalite.errors import GenerationExhausted

DEFAULT_PUBLIC_EXPONENT: int = 65537
DEFAULT_MAX_ATTEMPTS: int = 100
MINIMUM_KEY_SIZE: int = 32

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0
_MINIMUM_PRIME_SEPARATION: int = 100

logger = logging.getLogger(__name__)


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Only odd numbers are stored and sieving stops at the root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes, automatically generating if necessary.

    `_SMALL_PRIMES` serves as a process-wide cache. It is rebuilt when the requested range is larger than what is
    cached, when `change` forces it or when the cache is empty.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order, covering at least everything up to `n` unless `change` is True.

    Raises:
        ValueError: If `n` is negative.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Args:
         no: The number to check. Must be a non-negative integer.
         n: Bound of the small-prime table, passed to `get_pre_primes()`.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime**2 > no:
            return True
        if no % prime == 0:
            return False
    return True


def _miller_rabin(w: int, rounds: int) -> bool:
    """Perform the Miller-Rabin primality test.

    Witnesses come from the system CSPRNG regardless of the entropy source used for candidates, so a composite cannot
    be steered past the test by a predictable source.

    Args:
        w: Odd integer to be tested.
        rounds: Number of Miller-Rabin iterations to perform.

    Returns:
        True if `w` is probably prime, False otherwise.
    """
    if w <= 3:
        return w in (2, 3)
    tw = w - 1
    a = (tw & -tw).bit_length() - 1
    m = tw >> a
    for _ in range(rounds):
        b = secrets.randbelow(w - 3) + 2
        z = pow(b, m, w)
        if z in (1, w - 1):
            continue
        for _ in range(1, a):
            z = pow(z, 2, w)
            if z == w - 1:
                break
            if z == 1:
                return False
        else:
            return False
    return True


def default_rounds(bits: int) -> int:
    """Miller-Rabin rounds for a candidate of `bits` bits, per FIPS 186-5 Appendix C.1."""
    if bits <= 512:
        return 40
    if bits <= 1024:
        return 56
    if bits <= 1536:
        return 64
    if bits <= 2048:
        return 70
    return 74


def check_prime(candidate: int, rounds: int | None = None, n: int = 10000) -> bool:
    """Performs a composite primality test: trial division first, Miller-Rabin afterwards.

    Args:
        candidate: The candidate prime to test.
        rounds: Number of Miller-Rabin iterations to perform. Each round at least quarters the chance of a composite
            slipping through. If not provided, uses `default_rounds()`.
        n: Bound of the small-prime table used for trial division. Defaults to 10000.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if rounds is None:
        rounds = default_rounds(candidate.bit_length())
    return _miller_rabin(candidate, rounds)


def _generate_probable_prime(size: int,
                             pub: int,
                             source: entropy.EntropySource,
                             rounds: int | None = None) -> int:
    """Generate a probable prime number of the specified bit size.

    Args:
        size: The size of the prime to generate in bits.
        pub: The public exponent the prime has to be compatible with.
        source: Where candidates are drawn from.
        rounds: Miller-Rabin rounds, passed to `check_prime()`.

    Returns:
        A probable prime `p` of exactly `size` bits with `gcd(p - 1, pub) == 1`.

    Raises:
        GenerationExhausted: If generation loops way beyond a reasonable time and a bit.
    """
    rep_cap = size * 5
    # Top two bits force the product of two such primes to the full key length, the low bit makes it odd.
    msk = (1 << size - 1) | (1 << size - 2) | 1
    for _ in range(rep_cap):
        candidate = entropy.random_bits(source, size) | msk
        if math.gcd(candidate - 1, pub) == 1 and check_prime(candidate, rounds):
            return candidate
    raise GenerationExhausted(
        f"Run an improbable {rep_cap} amount of loops with no prime found. Check the entropy source.")


def _validate(size: int, pub: int) -> None:
    if size < MINIMUM_KEY_SIZE:
        raise ValueError(f"Size must be at least {MINIMUM_KEY_SIZE}.")
    if pub % 2 == 0 or not 2 < pub < 2**256:
        raise ValueError("Public exponent does not meet requirements.")


def generate_primes(size: int,
                    pub: int = DEFAULT_PUBLIC_EXPONENT,
                    source: entropy.EntropySource | None = None,
                    rounds: int | None = None,
                    max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> tuple[int, int]:
    """Generates an RSA-suitable pair of prime numbers, `p > q`.

    `p` receives `size - size // 2` bits and `q` receives `size // 2`. Whenever the pair is unusable (equal, too
    close together or with a totient sharing a factor with `pub`) both primes are discarded and drawn again. A prime
    search that runs out of candidates costs one attempt as well.

    Args:
        size: The key size to generate the prime pair for.
        pub: The public exponent. Defaults (and recommended) to 65537. Has to be odd and in range `(2, 2**256)`.
        source: Entropy source for the candidates. Defaults to the system CSPRNG.
        rounds: Miller-Rabin rounds per candidate. Defaults to the FIPS 186-5 table.
        max_attempts: How many prime pairs may be discarded before giving up.

    Returns:
        A pair of primes `(p, q)` with `p > q`.

    Raises:
        ValueError: If `size` is too small or `pub` does not meet requirements.
        GenerationExhausted: If no usable pair was found within `max_attempts`.
    """
    _validate(size, pub)
    if source is None:
        source = entropy.SystemEntropy()
    qs = size // 2
    for attempt in range(1, max_attempts + 1):
        try:
            p = _generate_probable_prime(size - qs, pub, source, rounds)
            q = _generate_probable_prime(qs, pub, source, rounds)
        except GenerationExhausted:
            logger.debug("Attempt %d: prime search ran dry, retrying the pair.", attempt)
            continue
        if p == q:  # (Un)Likely story.
            continue
        if p < q:
            p, q = q, p
        if qs > _MINIMUM_PRIME_SEPARATION and p - q <= (1 << (qs - _MINIMUM_PRIME_SEPARATION)):
            logger.debug("Attempt %d: primes too close together, retrying the pair.", attempt)
            continue
        if math.gcd((p - 1) * (q - 1), pub) != 1:
            logger.debug("Attempt %d: totient not coprime to the public exponent, retrying the pair.", attempt)
            continue
        logger.debug("Prime pair accepted after %d attempt(s).", attempt)
        return p, q
    raise GenerationExhausted(f"No usable prime pair found in {max_attempts} attempts.")


def generate_key_pair(
    size: int,
    pub: int = DEFAULT_PUBLIC_EXPONENT,
    source: entropy.EntropySource | None = None,
    rounds: int | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> tuple[tuple[int, int], tuple[int, int, int, int, int, int, int]]:
    """Generates an RSA key pair with its complete private parameter set.

    Args:
        size: The key size in bits.
        pub: The public exponent. Defaults (and recommended) to 65537.
        source: Entropy source for the prime candidates. Defaults to the system CSPRNG.
        rounds: Miller-Rabin rounds per candidate.
        max_attempts: Prime pair retry budget, see `generate_primes()`.

    Returns:
        A tuple of (public, private) sub-tuples: `(n, e)` and `(n, d, p, q, dmp1, dmq1, coeff)`.
    """
    p, q = generate_primes(size, pub, source, rounds, max_attempts)
    n = p * q
    phi = (p - 1) * (q - 1)
    d = pow(pub, -1, phi)
    dmp1 = d % (p - 1)
    dmq1 = d % (q - 1)
    coeff = pow(q, -1, p)
    logger.info("Generated a %d-bit RSA key pair.", n.bit_length())
    return (n, pub), (n, d, p, q, dmp1, dmq1, coeff)
