"""Shared timing and host-metadata helpers for the dispatch benchmarks."""

from __future__ import annotations

import math
import os
import platform
import time
from typing import Any, Callable

import jax

from ufunc_override import MAX_ARGS, OVERRIDE_ATTRIBUTE


def configure_cpu_affinity_from_env() -> dict[str, Any]:
    requested = os.environ.get("UFUNC_OVERRIDE_BENCH_CPU_AFFINITY", "").strip()
    info: dict[str, Any] = {"requested": requested or None, "applied": False, "active": None}
    if not requested or not hasattr(os, "sched_setaffinity"):
        return info

    cpus: set[int] = set()
    for part in requested.split(","):
        token = part.strip()
        if not token:
            continue
        if "-" in token:
            lo_raw, hi_raw = token.split("-", 1)
            lo, hi = sorted((int(lo_raw), int(hi_raw)))
            cpus.update(range(lo, hi + 1))
        else:
            cpus.add(int(token))
    if not cpus:
        return info
    try:
        os.sched_setaffinity(0, cpus)
    except OSError:
        return info
    info["applied"] = True
    info["active"] = sorted(int(cpu) for cpu in os.sched_getaffinity(0))
    return info


def host_metadata() -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax": getattr(jax, "__version__", "unknown"),
        "backend": jax.default_backend(),
        "cpu_count": os.cpu_count(),
        "override_attribute": OVERRIDE_ATTRIBUTE,
        "max_args": MAX_ARGS,
    }


def block_until_ready(value: object) -> None:
    if hasattr(value, "block_until_ready"):
        value.block_until_ready()
    elif isinstance(value, (tuple, list)):
        for item in value:
            block_until_ready(item)


def _percentile(ordered: list[float], q: float) -> float:
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = int(math.floor(pos))
    hi = int(math.ceil(pos))
    alpha = pos - lo
    return ordered[lo] * (1.0 - alpha) + ordered[hi] * alpha


def summarize_us(samples: list[float]) -> dict[str, float]:
    """Mean, spread and percentiles of per-call timings in microseconds."""
    ordered = sorted(samples)
    m = sum(ordered) / len(ordered)
    sd = 0.0
    if len(ordered) > 1:
        sd = math.sqrt(sum((v - m) ** 2 for v in ordered) / (len(ordered) - 1))
    return {
        "mean_us": m,
        "stdev_us": sd,
        "cv_pct": (sd / m) * 100.0 if m > 0 else 0.0,
        "p50_us": _percentile(ordered, 0.50),
        "p95_us": _percentile(ordered, 0.95),
        "min_us": ordered[0],
        "max_us": ordered[-1],
    }


def calibrate_repeats(fn: Callable[[], object], *, target_sample_ms: float, min_repeats: int, max_repeats: int = 500_000) -> int:
    trial = max(4, min_repeats // 4)
    start_ns = time.perf_counter_ns()
    for _ in range(trial):
        block_until_ready(fn())
    per_call_ns = max((time.perf_counter_ns() - start_ns) / trial, 100.0)
    dynamic = int(math.ceil(max(target_sample_ms, 1.0) * 1e6 / per_call_ns))
    return int(max(min_repeats, min(dynamic, max_repeats)))


def sample_adaptive_us(
    fn: Callable[[], object],
    *,
    repeats: int,
    warmup: int,
    samples: int,
    cv_target_pct: float,
    max_samples: int,
) -> list[float]:
    for _ in range(max(0, warmup)):
        block_until_ready(fn())

    rows: list[float] = []

    def _once() -> None:
        start_ns = time.perf_counter_ns()
        for _ in range(repeats):
            block_until_ready(fn())
        rows.append((time.perf_counter_ns() - start_ns) / repeats / 1e3)

    for _ in range(samples):
        _once()
    while len(rows) < max_samples and summarize_us(rows)["cv_pct"] > cv_target_pct:
        _once()
    return rows
