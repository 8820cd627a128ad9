"""Secure random integers drawn from an injectable entropy source."""

import secrets
from typing import Optional, Protocol

from paillier_api.crypto.errors import EntropyError, RangeError


class EntropySource(Protocol):
    def fill_random_bytes(self, buffer: bytearray) -> None:
        ...


class SystemEntropy:
    """Entropy from the operating system CSPRNG."""

    def fill_random_bytes(self, buffer: bytearray) -> None:
        try:
            buffer[:] = secrets.token_bytes(len(buffer))
        except (OSError, NotImplementedError) as exc:
            raise EntropyError("secure randomness source unavailable") from exc


class RandomSource:
    """Uniform big integers built on top of an `EntropySource`.

    Every draw goes through `fill_random_bytes`, so swapping the entropy for a
    seeded double makes key generation and encryption reproducible in tests.
    """

    def __init__(self, entropy: Optional[EntropySource] = None):
        self.entropy = entropy if entropy is not None else SystemEntropy()

    def _draw(self, bit_length: int) -> int:
        n_bytes = (bit_length + 7) // 8
        buffer = bytearray(n_bytes)
        self.entropy.fill_random_bytes(buffer)
        # keep the high-order bits of the draw
        return int.from_bytes(buffer, "big") >> (n_bytes * 8 - bit_length)

    def random_bits(self, bit_length: int) -> int:
        """Return a random integer whose bit length is exactly `bit_length`."""
        if bit_length < 1:
            raise RangeError("bit length must be positive")
        return self._draw(bit_length) | (1 << (bit_length - 1))

    def random_below(self, bound: int) -> int:
        """Return a uniform integer in [0, bound], bound inclusive."""
        if bound < 0:
            raise RangeError("bound must be non-negative")
        if bound == 0:
            return 0
        bits = bound.bit_length()
        while True:
            candidate = self._draw(bits)
            if candidate <= bound:
                return candidate

    def random_between(self, lo: int, hi: int) -> int:
        """Return a uniform integer in [lo, hi]."""
        if hi < lo:
            raise RangeError("invalid range")
        return lo + self.random_below(hi - lo)


_DEFAULT = RandomSource()


def default_random() -> RandomSource:
    return _DEFAULT
