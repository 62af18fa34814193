"""
OLAP query endpoints.

This module exposes connection listing, schema retrieval, cache flushing
and MDX query execution.
"""

from fastapi import APIRouter, Depends, Query, Response

from libs.olap_query.dependencies import get_query_service
from libs.olap_query.models import QueryRequest
from libs.olap_query.service import QueryService

router = APIRouter(tags=["OLAP"])


@router.get("/getConnections", response_class=Response)
async def get_connections(
    service: QueryService = Depends(get_query_service),
) -> Response:
    """List available connections (schema documents are never included)."""
    return Response(content=service.get_connections(), media_type="application/json")


@router.get("/getSchema", response_class=Response)
async def get_schema(
    connection_name: str = Query(alias="connectionName"),
    service: QueryService = Depends(get_query_service),
) -> Response:
    """Get the schema document of a connection."""
    result = service.get_schema(connection_name)
    return Response(
        content=result.payload,
        status_code=result.status,
        media_type=result.media_type,
    )


@router.get("/flushCache", response_class=Response)
async def flush_cache(service: QueryService = Depends(get_query_service)) -> Response:
    """Flush the query result cache."""
    service.flush_cache()
    return Response(status_code=200)


@router.post("/query", response_class=Response)
async def query(
    request: QueryRequest,
    service: QueryService = Depends(get_query_service),
) -> Response:
    """Execute an MDX query, optionally reshaped into tidy rows."""
    result = await service.handle(request)
    return Response(
        content=result.payload,
        status_code=result.status,
        headers=result.headers,
        media_type=result.media_type,
    )
