import argparse
import statistics
import time

from clubauthz import Authorizer, Identity, Record
from clubauthz.store import InMemoryRecordStore


def gen_store(n: int) -> InMemoryRecordStore:
    """``n`` players, each with a profile, one payment and one payment application."""
    store = InMemoryRecordStore()
    store.put("users", "u-admin", {"role": "admin", "status": "approved"})
    for i in range(n):
        store.put("users", f"u{i}", {"role": "player", "status": "approved"}, {"playerProfile": f"pp{i}"})
        store.put("playerProfiles", f"pp{i}", {"category": "sub12"}, {"user": f"u{i}"})
        store.put("payments", f"pay{i}", {"amount": "10.00"}, {"playerProfile": f"pp{i}"})
        store.put("paymentApplications", f"app{i}", {"amount": "10.00"}, {"payment": f"pay{i}"})
    return store


# (entity, target prefix) by ownership path length
CASES = {
    "literal": ("categories", None),
    "role": ("paymentConcepts", None),
    "owner-2hop": ("payments", "pay"),
    "owner-3hop": ("paymentApplications", "app"),
}


def run(case: str, size: int, iters: int):
    entity, prefix = CASES[case]
    store = gen_store(size)
    az = Authorizer(store=store)
    i = size // 2
    target = store.get(entity, f"{prefix}{i}") if prefix else Record(entity, "x")
    ident = Identity(f"u{i}") if prefix else Identity("u-admin")
    lat = []
    for _ in range(iters):
        t0 = time.perf_counter()
        d = az.authorize(entity, "view", ident, target)
        lat.append((time.perf_counter() - t0) * 1000.0)
    return {
        "p50": statistics.median(lat),
        "avg": sum(lat) / len(lat),
        "p90": percentile(lat, 90),
        "allowed": d.allowed,
    }


def percentile(arr, p):
    arr2 = sorted(arr)
    k = int(round((p / 100.0) * (len(arr2) - 1)))
    return arr2[k]


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--cases", nargs="+", choices=sorted(CASES), default=list(CASES))
    ap.add_argument("--size", type=int, default=1000)
    ap.add_argument("--iters", type=int, default=200)
    args = ap.parse_args()
    print("case,avg_ms,p50_ms,p90_ms,allowed")
    for c in args.cases:
        r = run(c, args.size, args.iters)
        print(f"{c},{r['avg']:.3f},{r['p50']:.3f},{r['p90']:.3f},{r['allowed']}")


if __name__ == "__main__":
    main()
