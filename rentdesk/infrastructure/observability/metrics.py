"""Prometheus metrics for payments, voids and backend health"""

from prometheus_client import Counter, Histogram

# Billing metrics
payment_counter = Counter(
    "rentdesk_payments_total",
    "Payments recorded through the admin service",
    ["kind", "source"],  # kind: rent | water | repair_contrib | other
)

payment_amount_bucket_counter = Counter(
    "rentdesk_payment_amount_bucket",
    "Payments recorded by amount bucket",
    ["bucket"],  # <100k, 100k-500k, 500k-2M, 2M+
)

void_counter = Counter(
    "rentdesk_voids_total",
    "Payments voided",
    ["source"],  # dashboard_undo | payments | detail
)

audit_failure_counter = Counter(
    "rentdesk_audit_failures_total",
    "Failed audit log writes",
)

# Backend metrics
backend_latency_histogram = Histogram(
    "backend_request_latency_seconds",
    "Hosted backend response time",
    ["operation"],  # select | insert | update | upsert | rpc | auth
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

backend_failure_counter = Counter(
    "backend_failures_total",
    "Failed hosted backend calls",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(kind: str, amount: float, source: str) -> None:
    """Record payment metrics for monitoring collection volume"""
    payment_counter.labels(kind=kind, source=source).inc()

    if amount < 100_000:
        bucket = "<100k"
    elif amount <= 500_000:
        bucket = "100k-500k"
    elif amount <= 2_000_000:
        bucket = "500k-2M"
    else:
        bucket = "2M+"

    payment_amount_bucket_counter.labels(bucket=bucket).inc()
