import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from libs.api_common.response_models import HealthStatus, StandardResponse
from libs.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    get_metrics_collector,
    get_observability_config,
)
from libs.olap_query.config import get_olap_query_settings
from libs.olap_query.dependencies import (
    OlapQueryManager,
    get_olap_query_manager,
    olap_query_lifespan,
)
from services.olap_rest_api.routes import olap


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management."""
    obs_config = get_observability_config()
    configure_structured_logging(obs_config.logging)

    settings = get_olap_query_settings()
    metrics = get_metrics_collector() if obs_config.metrics.enabled else None
    manager = OlapQueryManager(settings, metrics=metrics)

    async with olap_query_lifespan(manager):
        app.state.start_time = time.time()
        yield


observability_config = get_observability_config()

app = FastAPI(
    title="OLAP REST API",
    description="Execute MDX queries against named OLAP connections with result caching and tidy output",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    ObservabilityMiddleware, service_name=observability_config.service_name
)

app.include_router(olap.router)


@app.get("/health", response_model=StandardResponse[HealthStatus], tags=["Health"])
async def health_check(request: Request) -> StandardResponse[HealthStatus]:
    """Basic health check with connection and cache status."""
    uptime = (
        time.time() - app.state.start_time if hasattr(app.state, "start_time") else None
    )
    manager = get_olap_query_manager()

    health_data = HealthStatus(
        status="healthy",
        connections=len(manager.registry.list_connections()),
        cache=manager.cache.get_stats(),
        version=app.version,
        uptime=uptime,
    )

    return StandardResponse(
        success=True, data=health_data, message="Service is healthy"
    )


async def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


if observability_config.metrics.enabled:
    app.add_api_route(
        observability_config.metrics.prometheus_endpoint,
        metrics_endpoint,
        methods=["GET"],
        include_in_schema=False,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
