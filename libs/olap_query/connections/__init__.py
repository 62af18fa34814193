"""OLAP connection definitions, sessions and the connection registry."""

from .base import ConnectionDefinition, ConnectionHandle, OlapError, OlapSession
from .registry import ConnectionRegistry, SessionFactory

__all__ = [
    "ConnectionDefinition",
    "ConnectionHandle",
    "ConnectionRegistry",
    "OlapError",
    "OlapSession",
    "SessionFactory",
]
