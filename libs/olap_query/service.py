"""
Request orchestration for MDX queries.

Resolves the connection, consults the result cache, falls back to the
executor, stores fresh results and renders the requested output shape.
Identical requests for one cache key are not coalesced: concurrent misses
each execute and the last write to the cache wins.
"""

import hashlib
import json
import time
from typing import Any

import structlog

from libs.observability.metrics import MetricsCollector

from .cache import ResultCache
from .cellset import CellSet
from .connections.base import OlapSession
from .connections.registry import ConnectionRegistry
from .executor import QueryExecutionError, QueryExecutor, classify_failure
from .models import CACHED_RESULT_HEADER, ErrorPayload, QueryRequest, QueryResponse
from .transform import select_transformer

CACHE_KEY_BITS = 63


def derive_cache_key(connection_name: str, query: str) -> int:
    """
    Derive a stable fingerprint for requests that omit ``cacheKey``.

    Only leading and trailing whitespace is ignored; whitespace inside the
    query can be significant (bracketed identifiers, string literals).
    """
    content = f"{connection_name}|{query.strip()}"
    digest = hashlib.sha256(content.encode()).digest()
    return int.from_bytes(digest[:8], "big") >> (64 - CACHE_KEY_BITS)


def render_json(data: Any) -> bytes:
    """Serialize deterministically as pretty-printed JSON."""
    return json.dumps(data, indent=2, default=str).encode("utf-8")


class QueryService:
    """
    Handles query, schema, connection listing and cache flush requests.

    The registry and cache are injected so each can be shared process-wide
    or replaced in tests.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        cache: ResultCache,
        executor: QueryExecutor | None = None,
        metrics: MetricsCollector | None = None,
    ):
        self.logger = structlog.get_logger(__name__)
        self.registry = registry
        self.cache = cache
        self.executor = executor or QueryExecutor()
        self.metrics = metrics

    async def handle(self, request: QueryRequest) -> QueryResponse:
        """
        Execute (or serve from cache) a query request.

        Args:
            request: Query request

        Returns:
            QueryResponse: 200 with the transformed result, 404 with an empty
            body for an unknown connection, or 500 with an ErrorPayload
        """
        connection = self.registry.get(request.connection_name)
        if connection is None:
            self.logger.warning(
                "connection_not_found",
                connection_name=request.connection_name,
                operation="query",
            )
            if self.metrics:
                self.metrics.record_connection_not_found()
            return QueryResponse(status=404)

        tidy, simplify_names, translation_map = self._effective_tidy_flags(request)

        cache_key = request.cache_key
        if cache_key is None:
            cache_key = derive_cache_key(request.connection_name, request.query)

        log = self.logger.bind(
            connection_name=request.connection_name,
            cache_key=cache_key,
            tidy=tidy,
        )
        log.info("executing_query", query=request.query)

        headers: dict[str, str] = {}
        cell_set = self._lookup(cache_key)
        if cell_set is not None:
            headers[CACHED_RESULT_HEADER] = "true"
            log.info("query_cache_hit")
        else:
            log.info("query_cache_miss")
            try:
                cell_set = await self._execute(
                    connection.name, connection.session, request.query
                )
            except QueryExecutionError as e:
                return self._error_response(e, headers)

            self.cache.put(cache_key, cell_set)
            if self.metrics:
                self.metrics.update_cache_entries(len(self.cache))

        transformer = select_transformer(tidy, simplify_names, translation_map)
        try:
            output = transformer.transform(cell_set)
            payload = render_json(output)
        except Exception as e:
            log.warning(
                "result_transformation_failed",
                transformer=transformer.get_transformer_name(),
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._error_response(classify_failure(e), headers)

        return QueryResponse(payload=payload, headers=headers, status=200)

    def _effective_tidy_flags(
        self, request: QueryRequest
    ) -> tuple[bool, bool, dict[str, str]]:
        tidy_config = request.tidy
        if tidy_config is None:
            return False, False, {}

        if tidy_config.simplify_names and not tidy_config.enabled:
            self.logger.warning(
                "simplify_names_without_tidy",
                connection_name=request.connection_name,
                detail="No simplification is performed on raw cell set output",
            )

        if not tidy_config.enabled:
            return False, False, {}
        return True, tidy_config.simplify_names, tidy_config.level_name_translation_map

    def _lookup(self, cache_key: int) -> CellSet | None:
        """Read the cache, treating an entry evicted after the key check as a miss."""
        cell_set = None
        if self.cache.contains_key(cache_key):
            cell_set = self.cache.get(cache_key)
        if self.metrics:
            self.metrics.record_cache_lookup(hit=cell_set is not None)
        return cell_set

    async def _execute(
        self, connection_name: str, session: OlapSession, query: str
    ) -> CellSet:
        start_time = time.time()
        try:
            cell_set = await self.executor.execute(session, query)
        except QueryExecutionError:
            if self.metrics:
                self.metrics.record_query_execution(
                    connection_name, success=False, duration=time.time() - start_time
                )
            raise

        if self.metrics:
            self.metrics.record_query_execution(
                connection_name, success=True, duration=time.time() - start_time
            )
        return cell_set

    @staticmethod
    def _error_response(
        error: QueryExecutionError, headers: dict[str, str]
    ) -> QueryResponse:
        body = ErrorPayload(
            reason=error.reason,
            root_cause_reason=error.root_cause_reason,
            sql_state=error.error_code,
        )
        return QueryResponse(
            payload=render_json(body.model_dump(by_alias=True)),
            headers=headers,
            status=500,
        )

    def get_connections(self) -> bytes:
        """List connections without their schema documents."""
        connections = {
            name: definition.public_view()
            for name, definition in self.registry.list_connections().items()
        }
        return render_json(connections)

    def get_schema(self, connection_name: str) -> QueryResponse:
        """
        Get the schema document of a connection.

        Literal ``\\n`` sequences in the stored document are expanded to
        newlines.
        """
        connection = self.registry.get(connection_name)
        if connection is None:
            self.logger.warning(
                "connection_not_found",
                connection_name=connection_name,
                operation="schema",
            )
            if self.metrics:
                self.metrics.record_connection_not_found()
            return QueryResponse(status=404, media_type="application/xml")

        self.logger.info("retrieving_schema", connection_name=connection_name)
        schema_content = connection.schema_content or ""
        return QueryResponse(
            payload=schema_content.replace("\\n", "\n").encode("utf-8"),
            media_type="application/xml",
        )

    def flush_cache(self) -> None:
        """Drop every cached result."""
        self.cache.clear()
        if self.metrics:
            self.metrics.record_cache_flush()
            self.metrics.update_cache_entries(0)
        self.logger.info("query_cache_flushed")
