"""Application configuration helpers."""

from __future__ import annotations

from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging
from .relationships import (
    RelationshipEntry,
    RelationshipsConfig,
    load_relationships,
    parse_relationships,
)
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RelationshipEntry",
    "RelationshipsConfig",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_storage_config",
    "get_sync_config",
    "load_relationships",
    "parse_relationships",
]
