"""
OLAP Query Library

Executes MDX queries against named OLAP connections and shapes the
results for REST clients.

Features:
- Connection registry loaded from JSON/YAML connection files
- Single-shot query execution with root-cause error classification
- Thread-safe result cache keyed by request fingerprint
- Raw cell set projection and tidy one-row-per-cell output
"""

from .cache import CacheConfig, ResultCache
from .cellset import Axis, AxisName, Cell, CellSet, Level, Member, MemberType, Position
from .connections import (
    ConnectionDefinition,
    ConnectionHandle,
    ConnectionRegistry,
    OlapError,
    OlapSession,
)
from .executor import QueryExecutionError, QueryExecutor, classify_failure
from .models import ErrorPayload, QueryRequest, QueryResponse, TidyConfig
from .service import QueryService, derive_cache_key

__all__ = [
    "Axis",
    "AxisName",
    "CacheConfig",
    "Cell",
    "CellSet",
    "ConnectionDefinition",
    "ConnectionHandle",
    "ConnectionRegistry",
    "ErrorPayload",
    "Level",
    "Member",
    "MemberType",
    "OlapError",
    "OlapSession",
    "Position",
    "QueryExecutionError",
    "QueryExecutor",
    "QueryRequest",
    "QueryResponse",
    "QueryService",
    "ResultCache",
    "TidyConfig",
    "classify_failure",
    "derive_cache_key",
]
