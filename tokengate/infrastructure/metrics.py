"""Prometheus metrics"""

from prometheus_client import (
    Counter, Histogram, Info,
    REGISTRY, generate_latest, CONTENT_TYPE_LATEST
)

from tokengate.core.config import settings

metrics_registry = REGISTRY

service_info = Info(
    "tokengate_service",
    "TokenGate service information",
    registry=metrics_registry
)

service_info.info({
    "version": settings.app_version,
    "environment": settings.environment,
    "service": "tokengate"
})

# result is "authorized" or a denial reason code
token_validations_total = Counter(
    "tokengate_validations_total",
    "Token validations by outcome",
    ["result"],
    registry=metrics_registry
)

content_served_total = Counter(
    "tokengate_content_served_total",
    "Protected pages served by outcome",
    ["outcome"],
    registry=metrics_registry
)

http_request_duration_seconds = Histogram(
    "tokengate_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=metrics_registry
)


def record_validation(result: str) -> None:
    token_validations_total.labels(result=result).inc()


def record_content(outcome: str) -> None:
    content_served_total.labels(outcome=outcome).inc()


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(metrics_registry), CONTENT_TYPE_LATEST
