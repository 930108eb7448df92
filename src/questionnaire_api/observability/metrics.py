"""Prometheus metrics for monitoring and observability."""

import re
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)
from starlette.requests import Request
from starlette.responses import Response


class MetricsRegistry:
    """Central registry for application metrics."""

    def __init__(self):
        self._setup_metrics()

    def _setup_metrics(self) -> None:
        """Initialize Prometheus metrics."""

        self.app_info = Info(
            "questionnaire_api_app", "Questionnaire API application information"
        )

        # HTTP request metrics
        self.http_requests_total = Counter(
            "questionnaire_api_http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
        )

        self.http_request_duration_seconds = Histogram(
            "questionnaire_api_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
        )

        # Submission metrics
        self.submissions_total = Counter(
            "questionnaire_api_submissions_total",
            "Questionnaire submissions",
            ["status"],  # accepted, rejected, failed
        )

        # Database metrics
        self.database_operations_total = Counter(
            "questionnaire_api_database_operations_total",
            "Total database operations",
            ["operation", "table", "status"],
        )

        self.database_operation_duration_seconds = Histogram(
            "questionnaire_api_database_operation_duration_seconds",
            "Database operation duration in seconds",
            ["operation", "table"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status_code: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics."""
        self.http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code),
        ).inc()

        self.http_request_duration_seconds.labels(
            method=method, endpoint=endpoint
        ).observe(duration)

    def record_submission(self, status: str) -> None:
        self.submissions_total.labels(status=status).inc()

    def record_database_operation(
        self, operation: str, table: str, status: str, duration: float
    ) -> None:
        """Record database operation metrics."""
        self.database_operations_total.labels(
            operation=operation, table=table, status=status
        ).inc()

        self.database_operation_duration_seconds.labels(
            operation=operation, table=table
        ).observe(duration)


# Global metrics registry
metrics_registry = MetricsRegistry()


def setup_metrics(app_name: str, version: str) -> None:
    """Set up application info metrics."""
    metrics_registry.app_info.info({"app_name": app_name, "version": version})


class MetricsMiddleware:
    """Middleware to automatically collect HTTP request metrics."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        status_code = 500

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            metrics_registry.record_http_request(
                method=scope.get("method", "UNKNOWN"),
                endpoint=normalize_path(scope.get("path", "/unknown")),
                status_code=status_code,
                duration=time.time() - start_time,
            )


def normalize_path(path: str) -> str:
    """Normalize path for metrics (collapse numeric IDs)."""
    return re.sub(r"/\d+(?=/|$)", "/{id}", path)


def metrics_endpoint(request: Request) -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
