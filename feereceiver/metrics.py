from __future__ import annotations

"""
Prometheus metrics for the fee receiver.

We expose counters and histograms covering:
- distributions: completed convert-and-transfer cycles by result
- failures: aborted calls by error code and reason
- amounts: settlement tokens distributed to payees, trigger cuts, and the
  rounding leftover retained by the receiver
- transfers: individual payout transfers
- latency: wall time of a whole convert-and-transfer call

Amounts are observed in the settlement token's smallest unit.
"""


import time
from contextlib import contextmanager
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from .errors import FeeReceiverError

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   result: "ok" | "failed"
#   code:   FeeReceiverError.code ("AUTHORIZATION" | "VALIDATION" | "STATE" |
#           "EXTERNAL_CALL") or "INTERNAL" for anything else
#   reason: the error's reason string (e.g. "INSUFFICIENT_STAKE")
# ────────────────────────────────────────────────────────────────────────────────

DISTRIBUTIONS = Counter(
    "feereceiver_distributions_total",
    "Total convert-and-transfer calls by result.",
    labelnames=("result",),
    registry=REGISTRY,
)

FAILURES = Counter(
    "feereceiver_failures_total",
    "Total aborted calls by error code and reason.",
    labelnames=("code", "reason"),
    registry=REGISTRY,
)

PAYOUT_TRANSFERS = Counter(
    "feereceiver_payout_transfers_total",
    "Total non-zero payout transfers made to payees.",
    registry=REGISTRY,
)

SETTLEMENT_DISTRIBUTED = Counter(
    "feereceiver_settlement_distributed_total",
    "Settlement token units paid out to payees.",
    registry=REGISTRY,
)

TRIGGER_PAID = Counter(
    "feereceiver_trigger_paid_total",
    "Settlement token units paid to callers as trigger incentive.",
    registry=REGISTRY,
)

RETAINED_DUST = Counter(
    "feereceiver_retained_dust_total",
    "Settlement token units left with the receiver by floor rounding.",
    registry=REGISTRY,
)

_LATENCY_BUCKETS = (
    0.0005,
    0.001,
    0.005,
    0.01,
    0.05,
    0.1,
    0.5,
    1.0,
    5.0,
    30.0,
)

DISTRIBUTION_SECONDS = Histogram(
    "feereceiver_distribution_seconds",
    "Wall time of a convert-and-transfer call, successful or not.",
    buckets=_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_distribution(distributed: int, trigger_cut: int, retained: int, transfers: int) -> None:
    """Record one successful convert-and-transfer cycle."""
    DISTRIBUTIONS.labels(result="ok").inc()
    if distributed > 0:
        SETTLEMENT_DISTRIBUTED.inc(distributed)
    if trigger_cut > 0:
        TRIGGER_PAID.inc(trigger_cut)
    if retained > 0:
        RETAINED_DUST.inc(retained)
    if transfers > 0:
        PAYOUT_TRANSFERS.inc(transfers)


def record_failure(err: BaseException) -> None:
    """Record an aborted convert-and-transfer call."""
    DISTRIBUTIONS.labels(result="failed").inc()
    if isinstance(err, FeeReceiverError):
        FAILURES.labels(code=err.code, reason=err.reason).inc()
    else:
        FAILURES.labels(code="INTERNAL", reason=type(err).__name__).inc()


@contextmanager
def timer():
    """Context manager to observe the latency of one convert-and-transfer call."""
    start = time.perf_counter()
    try:
        yield
    finally:
        DISTRIBUTION_SECONDS.observe(time.perf_counter() - start)


def render_latest(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of `registry` (defaults to ours)."""
    return generate_latest(registry or REGISTRY)


__all__ = [
    "REGISTRY",
    "DISTRIBUTIONS",
    "FAILURES",
    "PAYOUT_TRANSFERS",
    "SETTLEMENT_DISTRIBUTED",
    "TRIGGER_PAID",
    "RETAINED_DUST",
    "DISTRIBUTION_SECONDS",
    "record_distribution",
    "record_failure",
    "timer",
    "render_latest",
]
