import logging

import pytest

import paillier_api.worker as worker_module
from paillier_api.config import Settings
from paillier_api.crypto.errors import ConversionError, ProtocolError
from paillier_api.crypto.paillier import PrivateKey, PublicKey, decrypt, encrypt
from paillier_api.crypto.serialization import serialize_private_key, serialize_public_key
from paillier_api.worker import dispatch, handle_message, run_in_background, submit

SMALL = Settings(default_bits=128, mr_rounds=16, min_bits=16, max_bits=1024)


def test_generate_with_explicit_bits():
    reply = handle_message({"op": "generate", "bits": 96}, SMALL)
    assert reply["ok"] is True
    pub, priv = reply["result"]["publicKey"], reply["result"]["privateKey"]
    assert isinstance(pub, PublicKey) and isinstance(priv, PrivateKey)
    assert pub.n.bit_length() == 96


def test_missing_op_means_generate():
    reply = handle_message({}, SMALL)
    assert reply["ok"] is True
    assert reply["result"]["publicKey"].n.bit_length() == SMALL.default_bits


def test_generate_random_strategy():
    reply = handle_message({"op": "generate", "bits": "64", "strategy": "RANDOM"}, SMALL)
    assert reply["ok"] is True
    pub = reply["result"]["publicKey"]
    assert pub.g != pub.n + 1


def test_generate_rejects_unknown_strategy_and_bad_sizes():
    assert handle_message({"op": "generate", "bits": 64, "strategy": "fancy"}, SMALL)["ok"] is False
    too_big = handle_message({"op": "generate", "bits": 4096}, SMALL)
    assert too_big == {"ok": False, "error": "bits must be between 16 and 1024"}


def test_full_message_flow_with_serialized_keys(small_keypair):
    pub, priv = small_keypair
    pub_hex, priv_hex = serialize_public_key(pub), serialize_private_key(priv)

    c1 = handle_message({"op": "encrypt", "publicKey": pub_hex, "m": 123})["result"]
    c2 = handle_message({"op": "encrypt", "publicKey": pub_hex, "m": "456"})["result"]
    total = handle_message({"op": "add", "publicKey": pub_hex, "c1": str(c1), "c2": hex(c2)})["result"]
    reply = handle_message({"op": "decrypt", "publicKey": pub_hex, "privateKey": priv_hex, "c": total})
    assert reply == {"ok": True, "result": 579}


def test_scalar_mul_add_plain_and_aggregate(small_keypair):
    pub, priv = small_keypair
    c = encrypt(pub, 10)

    scaled = handle_message({"op": "scalarMul", "publicKey": pub, "c": c, "k": "5"})["result"]
    assert decrypt(pub, priv, scaled) == 50

    shifted = handle_message({"op": "addPlain", "publicKey": pub, "c": c, "m": 7})["result"]
    assert decrypt(pub, priv, shifted) == 17

    summed = handle_message({"op": "aggregate", "publicKey": pub, "ciphertexts": [c, str(c), hex(c)]})["result"]
    assert decrypt(pub, priv, summed) == 30


def test_unknown_op():
    assert handle_message({"op": "factor"}) == {"ok": False, "error": "unknown op"}
    with pytest.raises(ProtocolError):
        dispatch({"op": "factor"})


@pytest.mark.parametrize(
    "request_",
    [
        {"op": "encrypt", "m": 1},
        {"op": "encrypt", "publicKey": "abc", "m": 1},
        {"op": "add", "publicKey": {"n": "23", "g": "24"}, "c1": "not a number!", "c2": 1},
        {"op": "aggregate", "publicKey": {"n": "23", "g": "24"}, "ciphertexts": "123"},
    ],
)
def test_conversion_errors_become_failures(request_):
    reply = handle_message(request_)
    assert reply["ok"] is False
    assert reply["error"]
    with pytest.raises(ConversionError):
        dispatch(request_)


def test_range_error_becomes_failure(small_keypair):
    pub, _ = small_keypair
    reply = handle_message({"op": "encrypt", "publicKey": pub, "m": pub.n})
    assert reply == {"ok": False, "error": "message out of range"}


def test_non_mapping_request():
    assert handle_message(["generate"])["ok"] is False


def test_unexpected_errors_are_logged(monkeypatch, caplog, small_keypair):
    def boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setitem(worker_module.OPERATIONS, "add", boom)
    with caplog.at_level(logging.ERROR, logger="paillier_api.worker"):
        reply = handle_message({"op": "add"})
    assert reply == {"ok": False, "error": "boom"}
    assert "unexpected failure" in caplog.text


@pytest.mark.anyio
async def test_generate_in_background_thread():
    result = await run_in_background({"op": "generate", "bits": 64}, executor="thread", settings=SMALL)
    assert result["publicKey"].n.bit_length() == 64


@pytest.mark.anyio
async def test_submit_wraps_failures():
    reply = await submit({"op": "nope"}, executor="thread", settings=SMALL)
    assert reply == {"ok": False, "error": "unknown op"}


@pytest.mark.anyio
async def test_unknown_executor():
    with pytest.raises(ValueError):
        await run_in_background({"op": "generate"}, executor="gpu", settings=SMALL)


def test_zero_bits_is_not_the_default_size():
    reply = handle_message({"op": "generate", "bits": 0}, SMALL)
    assert reply == {"ok": False, "error": "bits must be between 16 and 1024"}


def test_degenerate_key_is_a_conversion_failure():
    request = {"op": "add", "publicKey": {"n": "0", "g": "1"}, "c1": "1", "c2": "1"}
    assert handle_message(request) == {"ok": False, "error": "n must be at least 2"}


@pytest.mark.anyio
async def test_generate_in_background_process():
    result = await run_in_background({"op": "generate", "bits": 64}, executor="process", settings=SMALL)
    pub, priv = result["publicKey"], result["privateKey"]
    assert pub.n.bit_length() == 64
    assert decrypt(pub, priv, encrypt(pub, 42)) == 42


@pytest.mark.anyio
async def test_submit_wraps_failures_from_a_process():
    reply = await submit({"op": "nope"}, executor="process", settings=SMALL)
    assert reply == {"ok": False, "error": "unknown op"}


@pytest.mark.anyio
async def test_submit_wraps_unexpected_errors(monkeypatch, caplog):
    def boom(*args, **kwargs):
        raise ZeroDivisionError("integer modulo by zero")

    monkeypatch.setitem(worker_module.OPERATIONS, "add", boom)
    with caplog.at_level(logging.ERROR, logger="paillier_api.worker"):
        reply = await submit({"op": "add"}, executor="thread", settings=SMALL)
    assert reply == {"ok": False, "error": "integer modulo by zero"}
    assert "unexpected failure" in caplog.text
