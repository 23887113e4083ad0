"""Prometheus metrics for ledger activity, balance drift, health scores and webhook performance"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_mutation_counter = Counter(
    "cashflow_ledger_mutations_total",
    "Ledger mutations applied",
    ["operation"],  # complete | skip | partial | create | delete
)

balance_drift_counter = Counter(
    "cashflow_balance_drift_total",
    "Balance syncs where the cached balance disagreed with the computed one",
)

# Scoring
health_score_histogram = Histogram(
    "cashflow_health_score",
    "Overall financial health scores served",
    buckets=[20, 40, 60, 70, 80, 90, 100],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "cashflow_balance_webhook_latency_seconds",
    "Balance webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "cashflow_balance_webhook_failures_total",
    "Failed balance webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_mutation(operation: str) -> None:
    ledger_mutation_counter.labels(operation=operation).inc()


def record_health_score(score: float) -> None:
    health_score_histogram.observe(score)
