import math

from paillier_api.crypto.errors import AlgebraicError, RangeError


def mod_pow(base: int, exponent: int, modulus: int) -> int:
    """Square-and-multiply exponentiation; the built-in pow does the work."""
    if modulus < 1:
        raise RangeError("modulus must be positive")
    if exponent < 0:
        raise RangeError("exponent must be non-negative")
    if modulus == 1:
        return 0
    return pow(base % modulus, exponent, modulus)


def gcd(a: int, b: int) -> int:
    return math.gcd(a, b)


def lcm(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return abs(a * b) // gcd(a, b)


def mod_inverse(a: int, m: int) -> int:
    """Return x in [0, m) with a*x == 1 (mod m).

    Iterative extended Euclidean algorithm. Raises AlgebraicError when
    gcd(a, m) != 1.
    """
    if m < 1:
        raise RangeError("modulus must be positive")
    old_r, r = a % m, m
    old_s, s = 1, 0
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_s, s = s, old_s - q * s
    if old_r != 1:
        raise AlgebraicError("no inverse exists")
    return old_s % m


def l_function(u: int, n: int) -> int:
    """L(u) = (u - 1) / n, exact for u == 1 (mod n)."""
    return (u - 1) // n
