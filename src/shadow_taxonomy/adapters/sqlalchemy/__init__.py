"""SQLAlchemy adapter package for the shadow taxonomy store."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyNodeRepository,
    SqlAlchemyRecordRepository,
    SqlAlchemyTaxonomyRepository,
)
from .store import SqlAlchemyRecordStore
from .unit_of_work import (
    SqlAlchemyMirrorUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyMirrorUnitOfWork",
    "SqlAlchemyNodeRepository",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRecordStore",
    "SqlAlchemyTaxonomyRepository",
    "StartupError",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
