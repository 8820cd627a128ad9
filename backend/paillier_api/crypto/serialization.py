"""Hex transport form for keys and coercion of integer-like inputs."""

import re
from typing import Any, Mapping

from paillier_api.crypto.errors import ConversionError
from paillier_api.crypto.paillier import PrivateKey, PublicKey

# ASCII only: int() alone would also take "1_000" and full-width digits
_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"[0-9a-fA-F]+")


def to_int(value: Any) -> int:
    """Normalise an int, decimal string, or hex string (with or without 0x)."""
    if isinstance(value, bool):
        raise ConversionError("cannot convert bool to integer")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ConversionError(f"cannot convert {type(value).__name__} to integer")
    text = value.strip()
    if text[:1] in ("+", "-"):
        sign, body = text[0], text[1:]
    else:
        sign, body = "", text
    if body[:2].lower() == "0x":
        digits, base = body[2:], 16
    elif _DECIMAL.fullmatch(body):
        digits, base = body, 10
    else:
        digits, base = body, 16
    if not _HEX.fullmatch(digits):
        raise ConversionError(f"cannot convert {value!r} to integer")
    return int(sign + digits, base)


def _from_hex(data: Mapping[str, Any], name: str) -> int:
    try:
        raw = data[name]
    except KeyError as exc:
        raise ConversionError(f"missing key field {name!r}") from exc
    if not isinstance(raw, str):
        raise ConversionError(f"key field {name!r} must be a hex string")
    text = raw.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    if not _HEX.fullmatch(text):
        raise ConversionError(f"key field {name!r} is not valid hex")
    return int(text, 16)


def serialize_public_key(pub: PublicKey) -> dict[str, str]:
    return {"n": format(pub.n, "x"), "g": format(pub.g, "x"), "n2": format(pub.n2, "x")}


def deserialize_public_key(data: Mapping[str, Any]) -> PublicKey:
    pub = PublicKey(n=_from_hex(data, "n"), g=_from_hex(data, "g"))
    if pub.n < 2:
        raise ConversionError("n must be at least 2")
    if not 1 <= pub.g < pub.n2:
        raise ConversionError("g must lie in [1, n^2)")
    if data.get("n2") is not None and _from_hex(data, "n2") != pub.n2:
        raise ConversionError("n2 does not match n * n")
    return pub


def serialize_private_key(priv: PrivateKey) -> dict[str, str]:
    # p and q stay private to the process that generated them
    return {"lambda": format(priv.lam, "x"), "mu": format(priv.mu, "x")}


def deserialize_private_key(data: Mapping[str, Any]) -> PrivateKey:
    return PrivateKey(lam=_from_hex(data, "lambda"), mu=_from_hex(data, "mu"))
