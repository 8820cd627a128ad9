"""Checks the algebraic invariants tying a public key to its private key."""

import sys

from paillier_api.crypto.arith import l_function, lcm, mod_pow
from paillier_api.crypto.paillier import PrivateKey, PublicKey, generate_keypair


def check(pub: PublicKey, priv: PrivateKey) -> dict:
    violations = []

    if pub.n2 != pub.n * pub.n:
        violations.append("n2 != n * n")
    if not 0 < pub.g < pub.n2:
        violations.append("g outside [1, n2)")
    elif (l_function(mod_pow(pub.g, priv.lam, pub.n2), pub.n) * priv.mu) % pub.n != 1:
        violations.append("mu is not the inverse of L(g^lambda mod n2) modulo n")

    if priv.p is not None and priv.q is not None:
        if priv.p * priv.q != pub.n:
            violations.append("n != p * q")
        if priv.lam != lcm(priv.p - 1, priv.q - 1):
            violations.append("lambda != lcm(p-1, q-1)")

    return {
        "check": "keypair_invariants",
        "bits": pub.n.bit_length(),
        "violations": violations,
        "passed": len(violations) == 0,
    }


if __name__ == "__main__":
    pub, priv = generate_keypair(int(sys.argv[1]) if len(sys.argv) > 1 else 512)
    result = check(pub, priv)
    status = "PASS" if result["passed"] else "FAIL"
    print(f"{status} - keypair invariants: {result['bits']} bits, {len(result['violations'])} violation(s)")
    for v in result["violations"]:
        print(f"  - {v}")
    sys.exit(0 if result["passed"] else 1)
