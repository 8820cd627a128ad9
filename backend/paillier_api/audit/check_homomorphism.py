"""Exercises encryption round-trips and both homomorphic operations on a keypair."""

import sys

from paillier_api.crypto.paillier import (
    PrivateKey,
    PublicKey,
    add,
    aggregate,
    decrypt,
    encrypt,
    generate_keypair,
    scalar_mul,
)

SAMPLES = [0, 1, 123, 456]
SCALARS = [0, 1, 5]


def check(pub: PublicKey, priv: PrivateKey) -> dict:
    violations = []
    samples = sorted({m % pub.n for m in SAMPLES + [pub.n - 1]})
    ciphertexts = {m: encrypt(pub, m) for m in samples}

    for m, c in ciphertexts.items():
        if decrypt(pub, priv, c) != m:
            violations.append({"operation": "roundtrip", "m": m})

    for m1 in samples:
        for m2 in samples:
            got = decrypt(pub, priv, add(pub, ciphertexts[m1], ciphertexts[m2]))
            if got != (m1 + m2) % pub.n:
                violations.append({"operation": "add", "m1": m1, "m2": m2})

    for m in samples:
        for k in SCALARS:
            if decrypt(pub, priv, scalar_mul(pub, ciphertexts[m], k)) != (k * m) % pub.n:
                violations.append({"operation": "scalar_mul", "m": m, "k": k})

    if decrypt(pub, priv, aggregate(pub, ciphertexts.values())) != sum(samples) % pub.n:
        violations.append({"operation": "aggregate"})

    return {
        "check": "homomorphism",
        "samples": len(samples),
        "violations": violations,
        "passed": len(violations) == 0,
    }


if __name__ == "__main__":
    pub, priv = generate_keypair(int(sys.argv[1]) if len(sys.argv) > 1 else 512)
    result = check(pub, priv)
    status = "PASS" if result["passed"] else "FAIL"
    print(f"{status} - homomorphism: {result['samples']} samples, {len(result['violations'])} violation(s)")
    for v in result["violations"]:
        print(f"  - {v}")
    sys.exit(0 if result["passed"] else 1)
