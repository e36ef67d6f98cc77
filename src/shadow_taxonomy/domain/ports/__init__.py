"""Domain port definitions for adapters."""

from __future__ import annotations

from .events import RecordEventHandler, RecordEventSource
from .persistence import (
    MetadataStore,
    NodeRepository,
    RecordRepository,
    TaxonomyRepository,
)
from .unit_of_work import (
    MirrorRepositories,
    MirrorUnitOfWork,
    MirrorUnitOfWorkFactory,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "MetadataStore",
    "MirrorRepositories",
    "MirrorUnitOfWork",
    "MirrorUnitOfWorkFactory",
    "NodeRepository",
    "RecordEventHandler",
    "RecordEventSource",
    "RecordRepository",
    "RepositoryCollection",
    "TaxonomyRepository",
    "UnitOfWork",
]
