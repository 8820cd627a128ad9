import pytest

from conftest import ScriptedEntropy
from paillier_api.crypto.errors import AttemptsExhaustedError, RangeError
from paillier_api.crypto.primes import generate_prime, is_probable_prime
from paillier_api.crypto.randomness import RandomSource


@pytest.mark.parametrize("n", [2, 3, 5, 97, 7919, 65537, 2**61 - 1, 2**127 - 1])
def test_known_primes(n):
    assert is_probable_prime(n)


@pytest.mark.parametrize("n", [-7, 0, 1, 4, 9, 15, 7917, 2**61 + 1, (2**31 - 1) * (2**61 - 1)])
def test_known_composites(n):
    assert not is_probable_prime(n)


@pytest.mark.parametrize("n", [561, 1105, 1729, 2465, 2821, 6601, 8911, 41041])
def test_carmichael_numbers_are_composite(n):
    assert not is_probable_prime(n)


def test_rounds_are_configurable(seeded_rng):
    assert is_probable_prime(7919, rounds=1, rng=seeded_rng)
    assert is_probable_prime(7919, rounds=64, rng=seeded_rng)


@pytest.mark.parametrize("bits", [2, 3, 8, 17, 64, 256])
def test_generate_prime_has_exact_bit_length(bits, seeded_rng):
    for _ in range(5):
        p = generate_prime(bits, rng=seeded_rng)
        assert p.bit_length() == bits
        assert is_probable_prime(p)


def test_generate_prime_terminates_for_realistic_sizes():
    p = generate_prime(512, max_attempts=20_000)
    assert p.bit_length() == 512


def test_generate_prime_gives_up_after_max_attempts():
    # all-zero entropy always proposes 0b10000001 = 129 = 3 * 43
    rng = RandomSource(ScriptedEntropy())
    with pytest.raises(AttemptsExhaustedError):
        generate_prime(8, rng=rng, max_attempts=5)


def test_generate_prime_rejects_tiny_sizes():
    with pytest.raises(RangeError):
        generate_prime(1)
