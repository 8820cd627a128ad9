"""
Request/response message contract around the Paillier engine.

A request is a mapping with an ``op`` name and its parameters; the reply is
``{"ok": True, "result": ...}`` or ``{"ok": False, "error": "..."}``. The same
dispatcher backs direct calls, the background runner and the HTTP API.
"""

import logging
from typing import Any, Callable, Mapping, Optional

import anyio.to_process
import anyio.to_thread

from paillier_api.config import Settings, get_settings
from paillier_api.crypto.errors import ConversionError, PaillierError, ProtocolError, RangeError
from paillier_api.crypto.paillier import (
    GeneratorStrategy,
    PrivateKey,
    PublicKey,
    add,
    add_plain,
    aggregate,
    decrypt,
    encrypt,
    generate_keypair,
    scalar_mul,
)
from paillier_api.crypto.randomness import RandomSource
from paillier_api.crypto.serialization import deserialize_private_key, deserialize_public_key, to_int

logger = logging.getLogger(__name__)

EXECUTORS = ("thread", "process")


def _param(request: Mapping[str, Any], name: str) -> Any:
    try:
        return request[name]
    except KeyError as exc:
        raise ConversionError(f"missing parameter {name!r}") from exc


def _public_key(value: Any) -> PublicKey:
    if isinstance(value, PublicKey):
        return value
    if isinstance(value, Mapping):
        return deserialize_public_key(value)
    raise ConversionError("publicKey must be a key object or a hex mapping")


def _private_key(value: Any) -> PrivateKey:
    if isinstance(value, PrivateKey):
        return value
    if isinstance(value, Mapping):
        return deserialize_private_key(value)
    raise ConversionError("privateKey must be a key object or a hex mapping")


def _strategy(value: Any, default: GeneratorStrategy) -> GeneratorStrategy:
    if value is None:
        return default
    try:
        return GeneratorStrategy(str(value).lower())
    except ValueError as exc:
        raise ConversionError(f"unknown generator strategy {value!r}") from exc


def _generate(request, settings, rng):
    raw = request.get("bits")
    bits = settings.default_bits if raw is None else to_int(raw)
    if not settings.min_bits <= bits <= settings.max_bits:
        raise RangeError(f"bits must be between {settings.min_bits} and {settings.max_bits}")
    keypair = generate_keypair(
        bits,
        strategy=_strategy(request.get("strategy"), settings.g_strategy),
        rng=rng,
        rounds=settings.mr_rounds,
        max_attempts=settings.max_attempts,
    )
    return {"publicKey": keypair.public_key, "privateKey": keypair.private_key}


def _encrypt(request, settings, rng):
    return encrypt(_public_key(_param(request, "publicKey")), to_int(_param(request, "m")), rng=rng)


def _decrypt(request, settings, rng):
    return decrypt(
        _public_key(_param(request, "publicKey")),
        _private_key(_param(request, "privateKey")),
        to_int(_param(request, "c")),
    )


def _add(request, settings, rng):
    return add(_public_key(_param(request, "publicKey")), to_int(_param(request, "c1")), to_int(_param(request, "c2")))


def _add_plain(request, settings, rng):
    return add_plain(_public_key(_param(request, "publicKey")), to_int(_param(request, "c")), to_int(_param(request, "m")))


def _scalar_mul(request, settings, rng):
    return scalar_mul(_public_key(_param(request, "publicKey")), to_int(_param(request, "c")), to_int(_param(request, "k")))


def _aggregate(request, settings, rng):
    ciphertexts = _param(request, "ciphertexts")
    if isinstance(ciphertexts, (str, bytes)) or not hasattr(ciphertexts, "__iter__"):
        raise ConversionError("ciphertexts must be a list")
    return aggregate(_public_key(_param(request, "publicKey")), [to_int(c) for c in ciphertexts])


OPERATIONS: dict[str, Callable[[Mapping[str, Any], Settings, Optional[RandomSource]], Any]] = {
    "generate": _generate,
    "encrypt": _encrypt,
    "decrypt": _decrypt,
    "add": _add,
    "addPlain": _add_plain,
    "scalarMul": _scalar_mul,
    "aggregate": _aggregate,
}


def dispatch(
    request: Mapping[str, Any], settings: Optional[Settings] = None, rng: Optional[RandomSource] = None
) -> Any:
    """Run one request and return its raw result. Raises PaillierError on failure."""
    if not isinstance(request, Mapping):
        raise ConversionError("request must be a mapping")
    if settings is None:
        settings = get_settings()
    # requests without an op predate the contract and mean "generate"
    op = request.get("op") or "generate"
    handler = OPERATIONS.get(op) if isinstance(op, str) else None
    if handler is None:
        raise ProtocolError("unknown op")
    return handler(request, settings, rng)


def failure(exc: BaseException) -> dict:
    return {"ok": False, "error": str(exc) or type(exc).__name__}


def unexpected_failure(exc: BaseException, request: Any) -> dict:
    """Envelope for an error outside the PaillierError taxonomy, logged with its traceback."""
    op = request.get("op") if isinstance(request, Mapping) else None
    logger.error("unexpected failure handling %r", op, exc_info=exc)
    return failure(exc)


def handle_message(
    request: Mapping[str, Any], settings: Optional[Settings] = None, rng: Optional[RandomSource] = None
) -> dict:
    """Synchronous message handler: never raises, always returns an envelope."""
    try:
        return {"ok": True, "result": dispatch(request, settings, rng)}
    except PaillierError as exc:
        return failure(exc)
    except Exception as exc:
        return unexpected_failure(exc, request)


async def run_in_background(
    request: Mapping[str, Any], executor: Optional[str] = None, settings: Optional[Settings] = None
) -> Any:
    """Run `dispatch` off the event loop, in a worker thread or a worker process.

    Each call gets its own execution context and shares no state with other
    requests. There is no cancellation: once started a computation runs to
    completion and a cancelled caller resumes only after it finishes.
    """
    if settings is None:
        settings = get_settings()
    executor = (executor or settings.executor).lower()
    if executor == "thread":
        return await anyio.to_thread.run_sync(dispatch, request, settings)
    if executor == "process":
        return await anyio.to_process.run_sync(dispatch, request, settings)
    raise ValueError(f"executor must be one of {EXECUTORS}, got {executor!r}")


async def submit(
    request: Mapping[str, Any], executor: Optional[str] = None, settings: Optional[Settings] = None
) -> dict:
    """Background counterpart of `handle_message`."""
    try:
        return {"ok": True, "result": await run_in_background(request, executor, settings)}
    except PaillierError as exc:
        return failure(exc)
    except Exception as exc:
        return unexpected_failure(exc, request)
