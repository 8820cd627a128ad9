"""
Service configuration read from the environment, plus logging setup.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from paillier_api.crypto.paillier import GeneratorStrategy


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


# ── Key generation ──────────────────────────────────
DEFAULT_BITS = int(os.getenv("PAILLIER_DEFAULT_BITS", "1024"))
MR_ROUNDS = int(os.getenv("PAILLIER_MR_ROUNDS", "16"))
G_STRATEGY = GeneratorStrategy(os.getenv("PAILLIER_G_STRATEGY", "simple").lower())
MAX_ATTEMPTS = _optional_int("PAILLIER_MAX_ATTEMPTS")  # unset = unbounded

# ── HTTP surface ───────────────────────────────────
MIN_BITS = int(os.getenv("PAILLIER_MIN_BITS", "16"))
MAX_BITS = int(os.getenv("PAILLIER_MAX_BITS", "4096"))
EXECUTOR = os.getenv("PAILLIER_EXECUTOR", "thread").lower()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("PAILLIER_CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("PAILLIER_LOG_LEVEL", "INFO").upper()


@dataclass(frozen=True)
class Settings:
    default_bits: int = DEFAULT_BITS
    mr_rounds: int = MR_ROUNDS
    g_strategy: GeneratorStrategy = G_STRATEGY
    max_attempts: Optional[int] = MAX_ATTEMPTS
    min_bits: int = MIN_BITS
    max_bits: int = MAX_BITS
    executor: str = EXECUTOR


def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """Attach a console handler to the package logger. Safe to call twice."""
    logger = logging.getLogger("paillier_api")
    logger.setLevel(level)
    logger.handlers = []

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    return logger
