"""Prometheus metrics for the Seed Extension Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "seed_extension_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "seed_extension_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "seed_extension_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# Chart rendering metrics
render_total = Counter(
    "seed_extension_operator_render_total",
    "Total number of chart renderings",
    ["result"],
)

render_duration_seconds = Histogram(
    "seed_extension_operator_render_duration_seconds",
    "Duration of chart renderings in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Deletion pipeline metrics
deletion_step_total = Counter(
    "seed_extension_operator_deletion_step_total",
    "Outcomes of deletion steps",
    ["step", "result"],
)

# API call metrics
api_call_total = Counter(
    "seed_extension_operator_api_call_total",
    "Total number of API calls",
    ["cluster", "operation", "result"],
)
