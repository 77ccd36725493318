"""Persistence layer - sources and SQL rendering."""

from modelforge.persistence.config import DatabaseConfig, create_source, open_source
from modelforge.persistence.source import Join, Source

__all__ = ["DatabaseConfig", "Join", "Source", "create_source", "open_source"]
