"""Public domain model surface."""

from __future__ import annotations

from shadow_taxonomy.domain.model.content import Node, Record, Taxonomy
from shadow_taxonomy.domain.model.entity import Entity
from shadow_taxonomy.domain.model.enums import PointerType, RecordEvent, RecordStatus
from shadow_taxonomy.domain.model.relationship import RelationshipDefinition

__all__ = [  # noqa: RUF022
    # base
    "Entity",
    # content
    "Record",
    "Node",
    "Taxonomy",
    # configuration
    "RelationshipDefinition",
    # enums
    "PointerType",
    "RecordEvent",
    "RecordStatus",
]
