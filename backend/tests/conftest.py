"""Shared pytest fixtures for the Paillier test suite."""

import random

import pytest
from httpx import ASGITransport, AsyncClient

from paillier_api.crypto.paillier import generate_keypair
from paillier_api.crypto.randomness import RandomSource
from paillier_api.main import app


class SeededEntropy:
    """Reproducible stand-in for the OS entropy source."""

    def __init__(self, seed: int):
        self._rng = random.Random(seed)

    def fill_random_bytes(self, buffer: bytearray) -> None:
        buffer[:] = self._rng.randbytes(len(buffer))


class ScriptedEntropy:
    """Serves pre-recorded byte strings, then zeros."""

    def __init__(self, *chunks: bytes):
        self._chunks = list(chunks)
        self.calls = 0

    def fill_random_bytes(self, buffer: bytearray) -> None:
        self.calls += 1
        chunk = self._chunks.pop(0) if self._chunks else bytes(len(buffer))
        assert len(chunk) == len(buffer)
        buffer[:] = chunk


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def seeded_rng():
    return RandomSource(SeededEntropy(1234))


@pytest.fixture(scope="session")
def keypair():
    """A 512-bit keypair shared by the whole session."""
    return generate_keypair(512)


@pytest.fixture(scope="session")
def small_keypair():
    return generate_keypair(128)


@pytest.fixture()
async def client():
    """Provide an async HTTP test client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
