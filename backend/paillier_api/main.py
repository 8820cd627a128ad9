import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from paillier_api.config import CORS_ORIGINS, DEFAULT_BITS, MAX_BITS, MIN_BITS, setup_logging
from paillier_api.crypto.errors import AttemptsExhaustedError, EntropyError, PaillierError
from paillier_api.crypto.paillier import GeneratorStrategy, PrivateKey, PublicKey
from paillier_api.crypto.serialization import serialize_private_key, serialize_public_key
from paillier_api.worker import dispatch, failure, run_in_background, unexpected_failure

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("paillier api ready (default key size %d bits)", DEFAULT_BITS)
    yield


app = FastAPI(
    title="Paillier API",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Security: CORS ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


# ── Security: HTTP headers ───────────────────────────────────
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    # responses may carry private keys
    response.headers["Cache-Control"] = "no-store"
    return response


IntegerLike = Union[int, str]


class PublicKeyModel(BaseModel):
    n: str = Field(min_length=1, description="hex, optional 0x prefix")
    g: str = Field(min_length=1)
    n2: Optional[str] = None


class PrivateKeyModel(BaseModel):
    lam: str = Field(alias="lambda", min_length=1)
    mu: str = Field(min_length=1)


class KeygenRequest(BaseModel):
    bits: int = Field(default=DEFAULT_BITS, ge=MIN_BITS, le=MAX_BITS)
    strategy: Optional[GeneratorStrategy] = None


class EncryptRequest(BaseModel):
    public_key: PublicKeyModel
    m: IntegerLike


class DecryptRequest(BaseModel):
    public_key: PublicKeyModel
    private_key: PrivateKeyModel
    c: IntegerLike


class AddRequest(BaseModel):
    public_key: PublicKeyModel
    c1: IntegerLike
    c2: IntegerLike


class ScalarMulRequest(BaseModel):
    public_key: PublicKeyModel
    c: IntegerLike
    k: IntegerLike


class AggregateRequest(BaseModel):
    public_key: PublicKeyModel
    ciphertexts: list[IntegerLike]


def _status_for(exc: PaillierError) -> int:
    if isinstance(exc, (EntropyError, AttemptsExhaustedError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


def to_wire(value: Any) -> Any:
    """JSON form of a dispatcher result: keys as hex, integers as decimal strings."""
    if isinstance(value, PublicKey):
        return serialize_public_key(value)
    if isinstance(value, PrivateKey):
        return serialize_private_key(value)
    if isinstance(value, dict):
        return {k: to_wire(v) for k, v in value.items()}
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


async def _call(message: dict, background: bool = False) -> Any:
    try:
        if background:
            return await run_in_background(message)
        return dispatch(message)
    except PaillierError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("unexpected failure handling %r", message.get("op"))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="internal error") from exc


@app.get("/health")
async def health() -> dict:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/rpc")
async def rpc(payload: dict):
    """Message-contract endpoint: ``{"op": ..., ...}`` in, ``{"ok": ...}`` out."""
    try:
        result = await run_in_background(payload)
    except PaillierError as exc:
        return JSONResponse(status_code=_status_for(exc), content=failure(exc))
    except Exception as exc:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=unexpected_failure(exc, payload)
        )
    return {"ok": True, "result": to_wire(result)}


@app.post("/keys", status_code=status.HTTP_201_CREATED)
async def create_keypair(payload: KeygenRequest):
    """Generate a keypair off the event loop. The private key is returned once and not stored."""
    message = {"op": "generate", "bits": payload.bits}
    if payload.strategy is not None:
        message["strategy"] = payload.strategy.value
    result = await _call(message, background=True)
    return {
        "bits": payload.bits,
        "public_key": to_wire(result["publicKey"]),
        "private_key": to_wire(result["privateKey"]),
    }


@app.post("/crypto/encrypt")
async def encrypt_value(payload: EncryptRequest):
    ciphertext = await _call({"op": "encrypt", "publicKey": payload.public_key.model_dump(), "m": payload.m})
    return {"ciphertext": str(ciphertext)}


@app.post("/crypto/decrypt")
async def decrypt_value(payload: DecryptRequest):
    plaintext = await _call(
        {
            "op": "decrypt",
            "publicKey": payload.public_key.model_dump(),
            "privateKey": payload.private_key.model_dump(by_alias=True),
            "c": payload.c,
        }
    )
    return {"plaintext": str(plaintext)}


@app.post("/crypto/add")
async def add_ciphertexts(payload: AddRequest):
    ciphertext = await _call(
        {"op": "add", "publicKey": payload.public_key.model_dump(), "c1": payload.c1, "c2": payload.c2}
    )
    return {"ciphertext": str(ciphertext)}


@app.post("/crypto/scalar-mul")
async def scalar_multiply(payload: ScalarMulRequest):
    ciphertext = await _call(
        {"op": "scalarMul", "publicKey": payload.public_key.model_dump(), "c": payload.c, "k": payload.k}
    )
    return {"ciphertext": str(ciphertext)}


@app.post("/crypto/aggregate")
async def aggregate_ciphertexts(payload: AggregateRequest):
    """Homomorphic sum of a batch of ciphertexts, e.g. encrypted votes."""
    ciphertext = await _call(
        {"op": "aggregate", "publicKey": payload.public_key.model_dump(), "ciphertexts": payload.ciphertexts}
    )
    return {"count": len(payload.ciphertexts), "ciphertext": str(ciphertext)}


@app.get("/demo", response_class=HTMLResponse)
async def demo_page() -> HTMLResponse:
        """Lightweight HTML page that runs the 123 + 456 scenario through the API."""
        html = """
        <!DOCTYPE html>
        <html lang="en">
        <head>
            <meta charset="UTF-8" />
            <meta name="viewport" content="width=device-width, initial-scale=1.0" />
            <title>Paillier API Demo</title>
            <style>
                :root { --bg: #0f172a; --panel: #111827; --text: #e5e7eb; --muted: #94a3b8; }
                * { box-sizing: border-box; }
                body { margin: 0; padding: 32px; font-family: "Segoe UI", system-ui, -apple-system, sans-serif; background: var(--bg); color: var(--text); }
                h1 { margin: 0 0 24px; font-size: 26px; }
                .card { background: var(--panel); border: 1px solid #1f2937; border-radius: 12px; padding: 16px; margin-bottom: 16px; }
                label { display: block; margin: 8px 0 4px; font-size: 13px; color: var(--muted); }
                input, button { width: 100%; padding: 10px; border-radius: 8px; border: 1px solid #1f2937; background: #0b1324; color: var(--text); font-size: 14px; }
                button { cursor: pointer; border: none; background: linear-gradient(120deg, #22c55e, #16a34a); color: #0b1324; font-weight: 700; margin-top: 12px; }
                pre { background: #0b1324; border: 1px solid #1f2937; border-radius: 8px; padding: 10px; color: #d1d5db; font-size: 13px; overflow-x: auto; white-space: pre-wrap; word-break: break-all; }
                .row { display: flex; gap: 8px; }
                .row > * { flex: 1; }
            </style>
        </head>
        <body>
            <h1>Paillier API Demo</h1>
            <div class="card">
                <p>Generate a keypair, encrypt two values, add them under encryption, decrypt the sum.</p>
                <div class="row">
                    <div><label>bits</label><input id="bits" value="512" type="number" min="16" /></div>
                    <div><label>m1</label><input id="m1" value="123" /></div>
                    <div><label>m2</label><input id="m2" value="456" /></div>
                </div>
                <button onclick="runScenario()">Run</button>
            </div>
            <div class="card">
                <pre id="output">Ready.</pre>
            </div>

            <script>
                const base = window.location.origin;
                const output = document.getElementById('output');

                function log(line) { output.textContent += '\\n' + line; }

                async function post(path, body) {
                    const res = await fetch(base + path, {
                        method: 'POST',
                        headers: { 'Content-Type': 'application/json' },
                        body: JSON.stringify(body),
                    });
                    const data = await res.json();
                    if (!res.ok) { throw new Error(JSON.stringify(data)); }
                    return data;
                }

                async function runScenario() {
                    output.textContent = 'Generating key...';
                    try {
                        const bits = parseInt(document.getElementById('bits').value, 10);
                        const keys = await post('/keys', { bits });
                        log('n = ' + keys.public_key.n);
                        const public_key = keys.public_key;
                        const c1 = (await post('/crypto/encrypt', { public_key, m: document.getElementById('m1').value })).ciphertext;
                        const c2 = (await post('/crypto/encrypt', { public_key, m: document.getElementById('m2').value })).ciphertext;
                        log('c1 = ' + c1);
                        log('c2 = ' + c2);
                        const sum = (await post('/crypto/add', { public_key, c1, c2 })).ciphertext;
                        log('c1 * c2 mod n^2 = ' + sum);
                        const plain = await post('/crypto/decrypt', { public_key, private_key: keys.private_key, c: sum });
                        log('decrypted sum = ' + plain.plaintext);
                    } catch (err) {
                        log('Error: ' + err.message);
                    }
                }
            </script>
        </body>
        </html>
        """
        return HTMLResponse(content=html)
