"""Prometheus collectors exported on ``/metrics``."""

from __future__ import annotations

from prometheus_client import Counter

RECORD_OPERATIONS = Counter(
    "records_operations_total",
    "Tenant-scoped record operations by kind, operation and outcome.",
    ["kind", "operation", "outcome"],
)
