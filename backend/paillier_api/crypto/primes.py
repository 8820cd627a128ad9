from typing import Optional

from paillier_api.crypto.arith import mod_pow
from paillier_api.crypto.errors import AttemptsExhaustedError, RangeError
from paillier_api.crypto.randomness import RandomSource, default_random

DEFAULT_ROUNDS = 16


def is_probable_prime(n: int, rounds: int = DEFAULT_ROUNDS, rng: Optional[RandomSource] = None) -> bool:
    """Miller-Rabin test. A composite passes with probability <= 4**-rounds."""
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    if rng is None:
        rng = default_random()

    d = n - 1
    r = 0
    while d % 2 == 0:
        d //= 2
        r += 1

    for _ in range(rounds):
        a = rng.random_between(2, n - 2)
        x = mod_pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(r - 1):
            x = mod_pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def generate_prime(
    bit_length: int,
    rounds: Optional[int] = None,
    rng: Optional[RandomSource] = None,
    max_attempts: Optional[int] = None,
) -> int:
    """Return a probable prime with exactly `bit_length` bits.

    `max_attempts=None` loops until a prime is found.
    """
    if bit_length < 2:
        raise RangeError("prime bit length must be at least 2")
    if rng is None:
        rng = default_random()
    if rounds is None:
        rounds = DEFAULT_ROUNDS

    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        candidate = rng.random_bits(bit_length) | 1
        if is_probable_prime(candidate, rounds, rng):
            return candidate
    raise AttemptsExhaustedError(f"no {bit_length}-bit prime found in {max_attempts} attempts")
