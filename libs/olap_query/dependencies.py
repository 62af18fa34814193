"""
Dependency injection for query service components.

Holds the process-wide connection registry and result cache and exposes
them to FastAPI through ``get_query_service``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from libs.observability.metrics import MetricsCollector

from .cache import ResultCache
from .config import OlapQuerySettings, get_olap_query_settings
from .connections.registry import ConnectionRegistry
from .service import QueryService


class OlapQueryManager:
    """Owns the registry, cache and service for one application."""

    def __init__(
        self,
        settings: OlapQuerySettings | None = None,
        registry: ConnectionRegistry | None = None,
        cache: ResultCache | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.logger = structlog.get_logger(__name__)
        self.settings = settings or get_olap_query_settings()
        self.registry = registry or ConnectionRegistry(
            remove_demo_connections=self.settings.remove_demo_connections
        )
        self.cache = cache or ResultCache(self.settings.get_cache_config())
        self.service = QueryService(self.registry, self.cache, metrics=metrics)

    async def load_connections(self) -> int:
        """Load connection files from the configured path."""
        return await self.registry.load_from_path(self.settings.connections_path)

    async def cleanup(self) -> None:
        """Close sessions and drop cached results."""
        self.logger.info(
            "cleaning_up_connections",
            count=len(self.registry.list_connections()),
        )
        await self.registry.close()
        self.cache.clear()


_manager_instance: OlapQueryManager | None = None


def get_olap_query_manager() -> OlapQueryManager:
    """Get the global manager instance."""
    global _manager_instance
    if _manager_instance is None:
        _manager_instance = OlapQueryManager()
    return _manager_instance


def set_olap_query_manager(manager: OlapQueryManager | None) -> None:
    """Replace the global manager (for application startup and tests)."""
    global _manager_instance
    _manager_instance = manager


def get_query_service() -> QueryService:
    """FastAPI dependency providing the query service."""
    return get_olap_query_manager().service


@asynccontextmanager
async def olap_query_lifespan(
    manager: OlapQueryManager | None = None,
) -> AsyncGenerator[OlapQueryManager, None]:
    """
    Load connections on entry and release them on exit.

    Yields:
        OlapQueryManager: The active manager
    """
    if manager is not None:
        set_olap_query_manager(manager)
    manager = get_olap_query_manager()
    await manager.load_connections()
    try:
        yield manager
    finally:
        await manager.cleanup()
