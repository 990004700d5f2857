from __future__ import annotations

from collections import Counter
from typing import Dict

from prometheus_client import Counter as PromCounter

# Named counters (health probes, operation outcomes) for the JSON snapshot
_NAMED = Counter()

GITHUB_CALLS_TOTAL = PromCounter(
    "mediator_github_calls_total",
    "Outbound Git provider API calls",
    ["method", "endpoint", "status"],
)

OPERATIONS_TOTAL = PromCounter(
    "mediator_operations_total",
    "Dispatched repository operations by outcome",
    ["operation", "outcome"],
)


def reset_metrics() -> None:
    """
    Test helper: clears the named counters to avoid cross-test leakage.
    Prometheus collectors are process-global and are not reset.
    """
    _NAMED.clear()


def inc_named(name: str, value: int = 1) -> None:
    if not name:
        return
    _NAMED[name] += int(value)


def inc_github_call(method: str, endpoint: str, status: str) -> None:
    GITHUB_CALLS_TOTAL.labels(method=(method or "GET").upper(), endpoint=endpoint, status=status).inc()


def inc_operation(operation: str, outcome: str) -> None:
    OPERATIONS_TOTAL.labels(operation=operation, outcome=outcome).inc()
    inc_named(f"operation_{operation}_{outcome}")


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
