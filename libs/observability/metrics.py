"""Prometheus metrics for the query service."""

import structlog
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info

from .config import MetricsConfig, get_observability_config

logger = structlog.get_logger(__name__)


class HTTPMetrics:
    """Request-level metrics."""

    def __init__(self, prefix: str = "http", registry: CollectorRegistry | None = None):
        self.requests_total = Counter(
            f"{prefix}_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=registry,
        )

        self.request_duration = Histogram(
            f"{prefix}_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=registry,
        )


class QueryMetrics:
    """Query execution and result cache metrics."""

    def __init__(
        self, prefix: str = "olap_query", registry: CollectorRegistry | None = None
    ):
        self.executions_total = Counter(
            f"{prefix}_executions_total",
            "Total MDX query executions",
            ["connection", "status"],
            registry=registry,
        )

        self.execution_duration = Histogram(
            f"{prefix}_execution_duration_seconds",
            "MDX query execution duration in seconds",
            ["connection"],
            registry=registry,
        )

        self.cache_lookups_total = Counter(
            f"{prefix}_cache_lookups_total",
            "Result cache lookups",
            ["result"],
            registry=registry,
        )

        self.cache_flushes_total = Counter(
            f"{prefix}_cache_flushes_total",
            "Result cache flushes",
            registry=registry,
        )

        self.cache_entries = Gauge(
            f"{prefix}_cache_entries",
            "Entries held by the result cache",
            registry=registry,
        )

        self.connection_not_found_total = Counter(
            f"{prefix}_connection_not_found_total",
            "Requests naming an unknown connection",
            registry=registry,
        )


class MetricsCollector:
    """Central metrics collector and manager."""

    def __init__(
        self, config: MetricsConfig, registry: CollectorRegistry | None = None
    ):
        self.config = config
        # Unset means the default registry served by /metrics
        registry = registry if registry is not None else REGISTRY
        self.registry = registry
        self.http = HTTPMetrics(registry=registry)
        self.query = QueryMetrics(registry=registry)

        self.app_info = Info("app_info", "Application information", registry=registry)

        logger.info("metrics_collector_initialized")

    def set_app_info(self, **info: str) -> None:
        """Set application information metrics."""
        self.app_info.info(info)

    def record_http_request(
        self, method: str, endpoint: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics."""
        self.http.requests_total.labels(
            method=method, endpoint=endpoint, status_code=str(status_code)
        ).inc()

        self.http.request_duration.labels(method=method, endpoint=endpoint).observe(
            duration
        )

    def record_query_execution(
        self, connection: str, success: bool, duration: float
    ) -> None:
        """Record one engine execution."""
        status = "success" if success else "error"
        self.query.executions_total.labels(connection=connection, status=status).inc()
        self.query.execution_duration.labels(connection=connection).observe(duration)

    def record_cache_lookup(self, hit: bool) -> None:
        self.query.cache_lookups_total.labels(result="hit" if hit else "miss").inc()

    def record_cache_flush(self) -> None:
        self.query.cache_flushes_total.inc()

    def update_cache_entries(self, count: int) -> None:
        self.query.cache_entries.set(count)

    def record_connection_not_found(self) -> None:
        self.query.connection_not_found_total.inc()

_metrics_collector: MetricsCollector | None = None


def create_metrics_collector(
    config: MetricsConfig,
    registry: CollectorRegistry | None = None,
    service_name: str = "olap-rest-api",
    service_version: str = "1.0.0",
    environment: str = "development",
) -> MetricsCollector:
    """Create and configure a metrics collector."""
    collector = MetricsCollector(config, registry=registry)
    collector.set_app_info(
        service=service_name, version=service_version, environment=environment
    )
    return collector


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide collector bound to the default registry."""
    global _metrics_collector

    if _metrics_collector is None:
        obs_config = get_observability_config()
        _metrics_collector = create_metrics_collector(
            obs_config.metrics,
            service_name=obs_config.service_name,
            service_version=obs_config.service_version,
            environment=obs_config.environment,
        )

    return _metrics_collector
