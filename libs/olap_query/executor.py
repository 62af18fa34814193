"""
Query execution and failure classification.

Queries run exactly once per call; a failure is classified into the
diagnostic fields clients receive and reported upward without retrying,
since most failures are syntax or schema errors that a retry cannot fix.
"""

import time

import structlog

from .cellset import CellSet
from .connections.base import OlapError, OlapSession

logger = structlog.get_logger(__name__)


class QueryExecutionError(Exception):
    """A classified query failure."""

    def __init__(self, reason: str, root_cause_reason: str, error_code: str = ""):
        super().__init__(reason)
        self.reason = reason
        self.root_cause_reason = root_cause_reason
        self.error_code = error_code


def _next_cause(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def iter_cause_chain(exc: BaseException) -> list[BaseException]:
    """Get an exception followed by each cause it wraps, stopping on cycles."""
    chain = [exc]
    seen = {id(exc)}
    cause = _next_cause(exc)
    while cause is not None and id(cause) not in seen:
        chain.append(cause)
        seen.add(id(cause))
        cause = _next_cause(cause)
    return chain


def find_root_cause(exc: BaseException) -> BaseException:
    """Get the innermost exception of a chain of wrapped failures."""
    return iter_cause_chain(exc)[-1]


def _message(exc: BaseException) -> str:
    if isinstance(exc, OlapError):
        return exc.message
    return str(exc) or type(exc).__name__


def classify_failure(exc: BaseException) -> QueryExecutionError:
    """
    Classify an engine failure.

    Args:
        exc: Exception raised while executing or transforming a query

    Returns:
        QueryExecutionError: Top-level message, root cause message and the
        first engine error code found on the chain ("" if none)
    """
    if isinstance(exc, QueryExecutionError):
        return exc

    chain = iter_cause_chain(exc)
    error_code = next(
        (
            e.sql_state
            for e in chain
            if isinstance(e, OlapError) and e.sql_state is not None
        ),
        "",
    )
    return QueryExecutionError(
        reason=_message(exc),
        root_cause_reason=_message(chain[-1]),
        error_code=error_code,
    )


class QueryExecutor:
    """Runs MDX queries against OLAP sessions."""

    async def execute(self, session: OlapSession, query: str) -> CellSet:
        """
        Execute a query once.

        Args:
            session: Session of the resolved connection
            query: MDX query text

        Returns:
            CellSet: Query result

        Raises:
            QueryExecutionError: If the engine fails the query
        """
        start_time = time.time()
        try:
            cell_set = await session.execute_olap_query(query)
        except Exception as e:
            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.warning(
                "query_execution_failed",
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            logger.debug("query_execution_stack_trace", exc_info=e)
            failure = classify_failure(e)
            logger.warning("query_root_cause", root_cause=failure.root_cause_reason)
            raise failure from e

        logger.info(
            "query_succeeded",
            cell_count=cell_set.cell_count,
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return cell_set
