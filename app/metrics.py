"""
Prometheus metrics for the bot server.

This module provides:
- HTTP request counter (method, path, status)
- Request latency histogram (method, path)
- Order-flow reply counter (step)
- WhatsApp webhook outcome and category counters

Metrics are stored in-memory using prometheus-client.
"""

from typing import Optional

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST


# =============================================================================
# Metric Definitions
# =============================================================================

# HTTP request counter with labels for method, path, and status code
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    labelnames=["method", "path", "status"]
)

# Request latency histogram in seconds
request_latency_seconds = Histogram(
    "request_latency_seconds",
    "Request latency in seconds",
    labelnames=["method", "path"]
)

# step: invalid, greeting, pack_1l, pack_5l, summary, confirmation, fallback
order_flow_replies_total = Counter(
    "order_flow_replies_total",
    "Replies produced by the order flow",
    labelnames=["step"]
)

# result: ignored, replied, send_failed
webhook_requests_total = Counter(
    "webhook_requests_total",
    "Total WhatsApp webhook processing outcomes",
    labelnames=["result"]
)

# category: order, other
webhook_category_total = Counter(
    "webhook_category_total",
    "Classified inbound WhatsApp text messages",
    labelnames=["category"]
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_http_request(method: str, path: str, status: int, latency_seconds: float) -> None:
    """
    Record an HTTP request in metrics.

    Args:
        method: HTTP method (GET, POST, etc.)
        path: Request path
        status: HTTP status code
        latency_seconds: Request processing time in seconds
    """
    # Normalize path to avoid high-cardinality labels
    normalized_path = path.split("?")[0]

    http_requests_total.labels(
        method=method,
        path=normalized_path,
        status=str(status)
    ).inc()

    request_latency_seconds.labels(
        method=method,
        path=normalized_path
    ).observe(latency_seconds)


def record_order_flow_step(step: str) -> None:
    """Record which order-flow reply was produced."""
    order_flow_replies_total.labels(step=step).inc()


def record_webhook_outcome(result: str, category: Optional[str] = None) -> None:
    """
    Record a webhook processing outcome.

    Args:
        result: Processing result - one of:
            - "ignored": no text message in the payload
            - "replied": reply sent through the send-message API
            - "send_failed": outbound send raised
        category: Message category when a text message was classified
    """
    webhook_requests_total.labels(result=result).inc()
    if category is not None:
        webhook_category_total.labels(category=category).inc()


def get_metrics() -> bytes:
    """
    Generate Prometheus exposition format metrics.

    Returns:
        Metrics in Prometheus text format as bytes
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """Content type string for Prometheus exposition format."""
    return CONTENT_TYPE_LATEST
