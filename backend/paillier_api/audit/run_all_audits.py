"""Generates a keypair, runs every audit on it and writes a consolidated report."""

import json
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from paillier_api.audit.check_homomorphism import check as check_homomorphism
from paillier_api.audit.check_keypair import check as check_keypair
from paillier_api.config import DEFAULT_BITS, G_STRATEGY, MR_ROUNDS
from paillier_api.crypto.paillier import generate_keypair

CHECKS = [
    check_keypair,
    check_homomorphism,
]


def run_checks(pub, priv) -> list[dict]:
    return [fn(pub, priv) for fn in CHECKS]


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    bits = int(argv[0]) if argv else DEFAULT_BITS
    report_path = argv[1] if len(argv) > 1 else "audit_report.json"

    print("=" * 60)
    print("  PAILLIER KEYPAIR AUDIT")
    print(f"  {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}")
    print("=" * 60)
    print()

    started = time.perf_counter()
    pub, priv = generate_keypair(bits, strategy=G_STRATEGY, rounds=MR_ROUNDS)
    print(f"  keypair: {bits} bits, g={G_STRATEGY.value}, {time.perf_counter() - started:.2f}s")
    print()

    results = run_checks(pub, priv)

    passed = 0
    failed = 0
    for r in results:
        violations = r["violations"]
        if r["passed"]:
            passed += 1
            print(f"  [ok]   {r['check']}")
        else:
            failed += 1
            print(f"  [FAIL] {r['check']} ({len(violations)} violation(s))")
            for v in violations:
                print(f"         {json.dumps(v) if isinstance(v, dict) else v}")

    print()
    print("-" * 60)
    total = passed + failed
    print(f"  Result: {passed}/{total} checks passed")

    report = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "bits": bits,
        "summary": {"total": total, "passed": passed, "failed": failed},
        "checks": results,
    }
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2, default=str)
    print(f"  JSON report: {report_path}")
    print("=" * 60)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
