"""
Base OLAP session interface and connection data structures.

This module defines the abstract session every OLAP engine adapter must
implement, the connection definition read from connection files, and the
handle the registry hands out per request.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..cellset import CellSet

SCHEMA_CONTENT_FIELD = "schema_content"


class ConnectionDefinition(BaseModel):
    """Definition of a named OLAP connection."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="Name")
    driver: str = Field(alias="Driver")
    description: str | None = Field(default=None, alias="Description")
    connection_string: str | None = Field(default=None, alias="ConnectionString")
    schema_path: str | None = Field(default=None, alias="SchemaUrl")
    schema_content: str | None = Field(default=None, alias="MondrianSchemaContent")
    is_demo: bool = Field(default=False, alias="IsDemo")
    options: dict[str, Any] = Field(default_factory=dict, alias="Options")

    def public_view(self) -> dict[str, Any]:
        """Serialize for clients, never exposing the schema document."""
        return self.model_dump(by_alias=True, exclude={SCHEMA_CONTENT_FIELD})


class OlapSession(ABC):
    """
    Abstract base class for OLAP engine sessions.

    A session turns MDX text into a ``CellSet``. Implementations wrap a
    concrete engine and must raise ``OlapError`` (chained to the engine's
    own exception) when a query fails.
    """

    def __init__(self, definition: ConnectionDefinition):
        self.definition = definition

    @abstractmethod
    async def execute_olap_query(self, query: str) -> CellSet:
        """
        Execute an MDX query.

        Args:
            query: MDX query text

        Returns:
            CellSet: Query result

        Raises:
            OlapError: If the engine rejects or fails the query
        """
        pass

    async def close(self) -> None:
        """Release engine resources held by the session."""
        return None


class ConnectionHandle(BaseModel):
    """A resolved connection: its definition plus a live session."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    definition: ConnectionDefinition
    session: OlapSession

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def schema_content(self) -> str | None:
        return self.definition.schema_content


class OlapError(Exception):
    """Exception raised by an OLAP engine for a failed query."""

    def __init__(self, message: str, sql_state: str | None = None):
        super().__init__(message)
        self.message = message
        self.sql_state = sql_state
