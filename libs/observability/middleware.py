"""FastAPI middleware for observability integration."""

import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import set_correlation_id
from .metrics import MetricsCollector, get_metrics_collector

logger = structlog.get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Correlation IDs, request logging and HTTP metrics."""

    def __init__(
        self,
        app: Any,
        service_name: str = "olap-rest-api",
        metrics_collector: MetricsCollector | None = None,
    ):
        super().__init__(app)
        self.service_name = service_name
        self.metrics_collector = metrics_collector

    def _record_request(
        self, request: Request, status_code: int, duration: float
    ) -> None:
        collector = self.metrics_collector or get_metrics_collector()
        if not collector.config.enabled:
            return
        collector.record_http_request(
            method=request.method,
            endpoint=self._get_route_pattern(request),
            status_code=status_code,
            duration=duration,
        )

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or str(
            uuid.uuid4()
        )
        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            self._record_request(request, 500, duration)
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
                correlation_id=correlation_id,
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        self._record_request(request, response.status_code, duration)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        response.headers["X-Request-Duration-Ms"] = str(round(duration * 1000, 2))

        logger.info(
            "request_completed",
            service=self.service_name,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            correlation_id=correlation_id,
        )

        return response

    def _get_route_pattern(self, request: Request) -> str:
        """Extract the route pattern from the request."""
        route = request.scope.get("route")
        if route is not None and hasattr(route, "path"):
            return route.path

        return request.url.path
