from __future__ import annotations

from prometheus_client import Counter

BUCKET_INCREMENTS = Counter(
    "ratelimit_bucket_increments_total",
    "Bucket increments by the store path that served them",
    ("path",),
)

WINDOW_CHECKS = Counter(
    "ratelimit_window_checks_total",
    "Trailing window checks by outcome",
    ("result",),
)

LIMITER_DECISIONS = Counter(
    "ratelimit_limiter_decisions_total",
    "Rate limiter allow/block decisions",
    ("decision",),
)

__all__ = [
    "BUCKET_INCREMENTS",
    "LIMITER_DECISIONS",
    "WINDOW_CHECKS",
]
