"""Logging, metrics and request middleware for the query service."""

from .config import (
    LoggingConfig,
    MetricsConfig,
    ObservabilityConfig,
    get_observability_config,
)
from .logging import (
    configure_structured_logging,
    get_correlation_id,
    set_correlation_id,
)
from .metrics import (
    HTTPMetrics,
    MetricsCollector,
    QueryMetrics,
    create_metrics_collector,
    get_metrics_collector,
)
from .middleware import ObservabilityMiddleware

__all__ = [
    "LoggingConfig",
    "MetricsConfig",
    "ObservabilityConfig",
    "get_observability_config",
    "configure_structured_logging",
    "get_correlation_id",
    "set_correlation_id",
    "HTTPMetrics",
    "MetricsCollector",
    "QueryMetrics",
    "create_metrics_collector",
    "get_metrics_collector",
    "ObservabilityMiddleware",
]
