"""Benchmark override-resolution overhead on the native fast path and with competing overrides."""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable

import jax.numpy as jnp

from ufunc_override import add, resolve
from _bench_utils import (
    block_until_ready,
    calibrate_repeats,
    configure_cpu_affinity_from_env,
    host_metadata,
    sample_adaptive_us,
    summarize_us,
)


PROFILE_CONFIG: dict[str, dict[str, float | int]] = {
    "quick": {"samples": 3, "warmup": 1, "target_sample_ms": 10.0, "min_repeats": 50, "cv_target_pct": 25.0, "max_samples": 7},
    "full": {"samples": 7, "warmup": 3, "target_sample_ms": 40.0, "min_repeats": 200, "cv_target_pct": 15.0, "max_samples": 15},
}


class Accepts:
    def __jax_ufunc__(self, ufunc, method, i, inputs, **kwargs):
        return i


class Declines:
    def __jax_ufunc__(self, ufunc, method, i, inputs, **kwargs):
        return NotImplemented


class DeclinesMore(Declines):
    pass


@dataclass(frozen=True)
class BenchCase:
    section: str
    name: str
    fn: Callable[[], object]


@dataclass(frozen=True)
class BenchRow:
    section: str
    name: str
    n: int
    status: str
    mean_us: float | None
    p50_us: float | None
    p95_us: float | None
    cv_pct: float | None
    repeats: int
    samples: int
    error: str | None


def _cases(n: int, operands: int) -> list[BenchCase]:
    x = jnp.arange(n, dtype=jnp.float32)
    y = x + 1.0
    decliners = tuple(Declines() for _ in range(operands))
    chain = tuple(DeclinesMore() if i % 2 else Declines() for i in range(operands))

    return [
        BenchCase("fast_path", "jnp_add", lambda: jnp.add(x, y)),
        BenchCase("fast_path", "ufunc_add", lambda: add(x, y)),
        BenchCase("fast_path", "resolve_native", lambda: resolve(add, "__call__", (x, y), None, 2)),
        BenchCase("override", "single_accept", lambda: resolve(add, "__call__", (x, Accepts()), None, 2)),
        BenchCase("override", "decline_chain", lambda: resolve(add, "__call__", decliners + (Accepts(),), None, operands + 1)),
        BenchCase("override", "subclass_chain", lambda: resolve(add, "__call__", chain + (Accepts(),), None, operands + 1)),
        BenchCase("override", "out_normalization", lambda: resolve(add, "__call__", (x, Accepts(), y), {"dtype": None}, 2)),
    ]


def _run_case(case: BenchCase, n: int, profile: dict[str, float | int]) -> BenchRow:
    try:
        block_until_ready(case.fn())
        repeats = calibrate_repeats(
            case.fn,
            target_sample_ms=float(profile["target_sample_ms"]),
            min_repeats=int(profile["min_repeats"]),
        )
        per_call = sample_adaptive_us(
            case.fn,
            repeats=repeats,
            warmup=int(profile["warmup"]),
            samples=int(profile["samples"]),
            cv_target_pct=float(profile["cv_target_pct"]),
            max_samples=int(profile["max_samples"]),
        )
        stats = summarize_us(per_call)
        return BenchRow(
            section=case.section,
            name=case.name,
            n=n,
            status="ok",
            mean_us=stats["mean_us"],
            p50_us=stats["p50_us"],
            p95_us=stats["p95_us"],
            cv_pct=stats["cv_pct"],
            repeats=repeats,
            samples=len(per_call),
            error=None,
        )
    except Exception as err:  # pragma: no cover - benchmark resilience
        return BenchRow(
            section=case.section,
            name=case.name,
            n=n,
            status="error",
            mean_us=None,
            p50_us=None,
            p95_us=None,
            cv_pct=None,
            repeats=0,
            samples=0,
            error=str(err),
        )


def _print_summary(rows: list[BenchRow]) -> None:
    print("dispatch benchmark summary")
    print("section     case                 n        mean(us)   p95(us)   cv(%)   status")
    print("---------   ------------------  -------  ---------  --------  ------  ------")
    for row in rows:
        mean_text = "-" if row.mean_us is None else f"{row.mean_us:9.3f}"
        p95_text = "-" if row.p95_us is None else f"{row.p95_us:8.3f}"
        cv_text = "-" if row.cv_pct is None else f"{row.cv_pct:6.2f}"
        print(f"{row.section:10} {row.name:18} {row.n:7d}  {mean_text:>9}  {p95_text:>8}  {cv_text:>6}  {row.status}")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=sorted(PROFILE_CONFIG), default="quick", help="fixed benchmark profile presets")
    parser.add_argument("--ns", default="10,10000", help="comma-separated array sizes")
    parser.add_argument("--operands", type=int, default=8, help="competing overrides in the chain cases")
    parser.add_argument("--json-out", default="", help="optional path for machine-readable output")
    args = parser.parse_args()
    affinity_info = configure_cpu_affinity_from_env()

    ns = tuple(int(part) for part in args.ns.split(",") if part.strip())
    if not ns:
        raise SystemExit("at least one size must be provided")
    profile = PROFILE_CONFIG[args.profile]

    print(f"sizes: {ns}, operands: {args.operands}, profile: {args.profile}")
    print(f"host: affinity={affinity_info.get('active')}")
    print()

    rows: list[BenchRow] = []
    for n in ns:
        for case in _cases(n, args.operands):
            rows.append(_run_case(case, n, profile))
        print(f"completed n={n}")
    print()
    _print_summary(rows)

    if args.json_out:
        outpath = Path(args.json_out)
        outpath.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "generated_at": datetime.now(UTC).isoformat(),
            "profile": args.profile,
            "host": host_metadata(),
            "rows": [asdict(row) for row in rows],
        }
        outpath.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"wrote {outpath}")


if __name__ == "__main__":
    main()
