"""OLAP REST API route modules."""

from . import olap

__all__ = ["olap"]
