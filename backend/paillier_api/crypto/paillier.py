import enum
import logging
from dataclasses import dataclass, field
from functools import reduce
from typing import Iterable, Iterator, Optional, Union

from paillier_api.crypto.arith import gcd, l_function, lcm, mod_inverse, mod_pow
from paillier_api.crypto.errors import AlgebraicError, AttemptsExhaustedError, RangeError
from paillier_api.crypto.primes import generate_prime
from paillier_api.crypto.randomness import RandomSource, default_random

logger = logging.getLogger(__name__)

# below this the ceil/floor split can leave no valid (p, q) pair at all
MIN_KEY_BITS = 8


class GeneratorStrategy(str, enum.Enum):
    """How `g` is chosen during key generation."""

    SIMPLE = "simple"
    RANDOM = "random"


@dataclass(frozen=True)
class PublicKey:
    n: int
    g: int
    n2: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "n2", self.n * self.n)


@dataclass(frozen=True)
class PrivateKey:
    lam: int
    mu: int
    # the factors are optional and never part of key identity
    p: Optional[int] = field(default=None, compare=False, repr=False)
    q: Optional[int] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Keypair:
    public_key: PublicKey
    private_key: PrivateKey

    def __iter__(self) -> Iterator[Union[PublicKey, PrivateKey]]:
        yield self.public_key
        yield self.private_key


def split_bits(bits: int) -> tuple[int, int]:
    """Prime sizes for a `bits`-bit modulus: (ceil(bits/2), floor(bits/2))."""
    return bits - bits // 2, bits // 2


def _choose_generator(
    n: int, n2: int, lam: int, strategy: GeneratorStrategy, rng: RandomSource, max_attempts: Optional[int]
) -> tuple[int, int]:
    if strategy is GeneratorStrategy.SIMPLE:
        g = n + 1
        return g, mod_inverse(l_function(mod_pow(g, lam, n2), n), n)

    attempts = 0
    while max_attempts is None or attempts < max_attempts:
        attempts += 1
        g = rng.random_between(2, n2 - 1)
        if gcd(g, n) != 1:
            continue
        try:
            mu = mod_inverse(l_function(mod_pow(g, lam, n2), n), n)
        except AlgebraicError:
            continue
        return g, mu
    raise AttemptsExhaustedError(f"no valid generator found in {max_attempts} attempts")


def generate_keypair(
    bits: int = 1024,
    strategy: GeneratorStrategy = GeneratorStrategy.SIMPLE,
    rng: Optional[RandomSource] = None,
    rounds: Optional[int] = None,
    max_attempts: Optional[int] = None,
) -> Keypair:
    """Generate a Paillier keypair whose modulus has exactly `bits` bits.

    The (p, q) pair is redrawn when the primes collide, when their product
    falls one bit short, or when gcd(n, (p-1)(q-1)) != 1. `max_attempts` bounds that loop, each prime search
    and the generator search; None leaves them unbounded.
    """
    if bits < MIN_KEY_BITS:
        raise RangeError(f"key size must be at least {MIN_KEY_BITS} bits")
    if rng is None:
        rng = default_random()
    strategy = GeneratorStrategy(strategy)
    p_bits, q_bits = split_bits(bits)

    attempts = 0
    while True:
        if max_attempts is not None and attempts >= max_attempts:
            raise AttemptsExhaustedError(f"no {bits}-bit modulus found in {max_attempts} attempts")
        attempts += 1
        p = generate_prime(p_bits, rounds=rounds, rng=rng, max_attempts=max_attempts)
        q = generate_prime(q_bits, rounds=rounds, rng=rng, max_attempts=max_attempts)
        if p == q:
            continue
        n = p * q
        if n.bit_length() != bits:
            continue
        # only reachable for toy sizes, e.g. p = 2q + 1
        if gcd(n, (p - 1) * (q - 1)) == 1:
            break

    n2 = n * n
    lam = lcm(p - 1, q - 1)
    g, mu = _choose_generator(n, n2, lam, strategy, rng, max_attempts)
    logger.debug("generated %d-bit keypair (g=%s) after %d attempt(s)", bits, strategy.value, attempts)
    return Keypair(PublicKey(n=n, g=g), PrivateKey(lam=lam, mu=mu, p=p, q=q))


def encrypt(pub: PublicKey, m: int, r: Optional[int] = None, rng: Optional[RandomSource] = None) -> int:
    """Encrypt `m` in [0, n). Each call blinds with a fresh `r` unless one is given."""
    if not 0 <= m < pub.n:
        raise RangeError("message out of range")
    if r is None:
        if rng is None:
            rng = default_random()
        while True:
            r = rng.random_between(1, pub.n - 1)
            if gcd(r, pub.n) == 1:
                break
    elif not (1 <= r < pub.n and gcd(r, pub.n) == 1):
        raise RangeError("blinding factor must be a unit modulo n")
    c1 = mod_pow(pub.g, m, pub.n2)
    c2 = mod_pow(r, pub.n, pub.n2)
    return (c1 * c2) % pub.n2


def decrypt(pub: PublicKey, priv: PrivateKey, c: int) -> int:
    """Recover the plaintext of `c`.

    `c` is not validated: a value that was not produced under `pub` decrypts
    to an arbitrary plaintext instead of failing.
    """
    x = mod_pow(c, priv.lam, pub.n2)
    l_val = l_function(x, pub.n)
    return (l_val * priv.mu) % pub.n


# The homomorphic operations below assume every ciphertext was produced under
# `pub`; mixing ciphertexts from different keys yields garbage.


def add(pub: PublicKey, c1: int, c2: int) -> int:
    return (c1 * c2) % pub.n2


def add_plain(pub: PublicKey, c: int, m: int) -> int:
    return (c * mod_pow(pub.g, m, pub.n2)) % pub.n2


def scalar_mul(pub: PublicKey, c: int, k: int) -> int:
    return mod_pow(c, k, pub.n2)


def aggregate(pub: PublicKey, ciphertexts: Iterable[int]) -> int:
    """Homomorphic sum of `ciphertexts`; the empty sum is 1, an encryption of 0."""
    return reduce(lambda acc, c: add(pub, acc, c), ciphertexts, 1)
