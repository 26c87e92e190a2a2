"""Prometheus metrics for webhook delivery."""

from prometheus_client import Counter, Histogram

WEBHOOK_DELIVERIES = Counter(
    "cms_webhook_deliveries_total",
    "Webhook delivery attempts by outcome",
    labelnames=["event", "kind", "outcome"],
)

WEBHOOK_DELIVERY_LATENCY = Histogram(
    "cms_webhook_delivery_latency_seconds",
    "Wall-clock duration of webhook HTTP requests",
    labelnames=["event"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

WEBHOOK_DISPATCH_FANOUT = Histogram(
    "cms_webhook_dispatch_fanout",
    "Number of matched webhooks per dispatched event",
    labelnames=["event"],
    buckets=(0, 1, 2, 3, 5, 10, 20, 50),
)

WEBHOOK_RETRIES = Counter(
    "cms_webhook_retries_total",
    "Explicit retries of logged deliveries",
    labelnames=["outcome"],
)

WEBHOOK_LOGS_PURGED = Counter(
    "cms_webhook_logs_purged_total",
    "Delivery log entries removed by retention cleanup",
)

WEBHOOK_OUTBOX_DRAINED = Counter(
    "cms_webhook_outbox_drained_total",
    "Outbox events processed by the drain job",
    labelnames=["outcome"],
)
