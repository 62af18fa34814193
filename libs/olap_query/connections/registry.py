"""
Registry resolving connection names to live OLAP sessions.

Connection files are JSON or YAML mappings of connection name to
definition, e.g.::

    FoodMart:
      Driver: xmla
      Description: FoodMart demo cube
      ConnectionString: http://localhost:8080/xmla
      SchemaUrl: FoodMart.xml
      IsDemo: true

Drivers are registered by name with a factory that builds an
``OlapSession`` from a ``ConnectionDefinition``.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import aiofiles
import structlog
import yaml
from pydantic import ValidationError

from .base import ConnectionDefinition, ConnectionHandle, OlapSession

SessionFactory = Callable[[ConnectionDefinition], OlapSession]

CONNECTION_FILE_SUFFIXES = (".json", ".yaml", ".yml")


class ConnectionRegistry:
    """Registry of named OLAP connections."""

    def __init__(self, remove_demo_connections: bool = False):
        self.logger = structlog.get_logger(__name__)
        self.remove_demo_connections = remove_demo_connections
        self._drivers: dict[str, SessionFactory] = {}
        self._connections: dict[str, ConnectionHandle] = {}
        # Handles replaced by a later definition; closed with the rest
        self._superseded: list[ConnectionHandle] = []

    def register_driver(self, name: str, factory: SessionFactory) -> None:
        """
        Register a session factory for a driver name.

        Args:
            name: Driver name used in connection definitions
            factory: Callable building a session from a definition
        """
        self._drivers[name.lower()] = factory
        self.logger.info("olap_driver_registered", driver=name)

    def get_supported_drivers(self) -> list[str]:
        """Get names of all registered drivers."""
        return list(self._drivers.keys())

    def register(self, definition: ConnectionDefinition) -> ConnectionHandle:
        """
        Create a session for a definition and register it under its name.

        Args:
            definition: Connection definition

        Returns:
            ConnectionHandle: The registered handle

        Raises:
            ValueError: If the definition names an unregistered driver
        """
        factory = self._drivers.get(definition.driver.lower())
        if factory is None:
            supported = ", ".join(self._drivers) or "none"
            raise ValueError(
                f"Unsupported OLAP driver: {definition.driver}. "
                f"Supported drivers: {supported}"
            )

        previous = self._connections.get(definition.name)
        if previous is not None:
            self.logger.warning(
                "connection_definition_replaced", connection_name=definition.name
            )
            self._superseded.append(previous)

        handle = ConnectionHandle(definition=definition, session=factory(definition))
        self._connections[definition.name] = handle

        self.logger.info(
            "connection_registered",
            connection_name=definition.name,
            driver=definition.driver,
            has_schema=definition.schema_content is not None,
        )
        return handle

    def get(self, name: str) -> ConnectionHandle | None:
        """Resolve a connection name, or None if it is not registered."""
        return self._connections.get(name)

    def list_connections(self) -> dict[str, ConnectionDefinition]:
        """Get all registered definitions keyed by name."""
        return {
            name: handle.definition for name, handle in self._connections.items()
        }

    async def load_from_path(self, path: str | Path) -> int:
        """
        Load connection definitions from a file or a directory of files.

        Unreadable files, invalid definitions and unknown drivers are
        logged and skipped.

        Args:
            path: Connection file, or directory containing connection files

        Returns:
            int: Number of connections registered
        """
        root = Path(path)
        if root.is_dir():
            files = sorted(
                p
                for p in root.iterdir()
                if p.is_file() and p.suffix.lower() in CONNECTION_FILE_SUFFIXES
            )
        elif root.is_file():
            files = [root]
        else:
            self.logger.warning("connections_path_not_found", path=str(root))
            return 0

        registered = 0
        for connection_file in files:
            for definition in await self._read_connection_file(connection_file):
                if self.remove_demo_connections and definition.is_demo:
                    self.logger.info(
                        "demo_connection_removed", connection_name=definition.name
                    )
                    continue
                try:
                    self.register(definition)
                except ValueError as e:
                    self.logger.warning(
                        "connection_skipped",
                        connection_name=definition.name,
                        config_path=str(connection_file),
                        error=str(e),
                    )
                    continue
                registered += 1

        await self._close_superseded()

        self.logger.info(
            "connections_loaded", path=str(root), files=len(files), count=registered
        )
        return registered

    async def _read_connection_file(
        self, connection_file: Path
    ) -> list[ConnectionDefinition]:
        """Parse one connection file into definitions."""
        try:
            async with aiofiles.open(connection_file, encoding="utf-8") as f:
                content = await f.read()
            if connection_file.suffix.lower() == ".json":
                raw = json.loads(content)
            else:
                raw = yaml.safe_load(content) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            self.logger.warning(
                "connection_file_parse_failed",
                config_path=str(connection_file),
                error=str(e),
                error_type=type(e).__name__,
            )
            return []
        except OSError as e:
            self.logger.warning(
                "connection_file_read_failed",
                config_path=str(connection_file),
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        if not isinstance(raw, dict):
            self.logger.warning(
                "connection_file_not_a_mapping", config_path=str(connection_file)
            )
            return []

        definitions = []
        for name, params in raw.items():
            if not isinstance(params, dict):
                self.logger.warning(
                    "invalid_connection_definition",
                    connection_name=name,
                    config_path=str(connection_file),
                )
                continue

            data: dict[str, Any] = {**params, "Name": name}
            if data.get("SchemaUrl") and data.get("MondrianSchemaContent") is None:
                data["MondrianSchemaContent"] = await self._read_schema(
                    connection_file.parent / data["SchemaUrl"]
                )

            try:
                definitions.append(ConnectionDefinition.model_validate(data))
            except ValidationError as e:
                self.logger.warning(
                    "invalid_connection_definition",
                    connection_name=name,
                    config_path=str(connection_file),
                    error=str(e),
                )
        return definitions

    async def _read_schema(self, schema_file: Path) -> str | None:
        try:
            async with aiofiles.open(schema_file, encoding="utf-8") as f:
                return await f.read()
        except OSError as e:
            self.logger.warning(
                "schema_file_read_failed",
                schema_path=str(schema_file),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def close(self) -> None:
        """Close all sessions, including replaced ones, and forget connections."""
        await self._close_superseded()
        await self._close_sessions(list(self._connections.values()))
        self._connections.clear()

    async def _close_superseded(self) -> None:
        superseded, self._superseded = self._superseded, []
        await self._close_sessions(superseded)

    async def _close_sessions(self, handles: list[ConnectionHandle]) -> None:
        for handle in handles:
            try:
                await handle.session.close()
            except Exception as e:
                self.logger.warning(
                    "session_close_failed", connection_name=handle.name, error=str(e)
                )
