"""Content entities: records, the taxonomy nodes mirroring them, and taxonomies.

Records are owned by the store. This package only reads them and writes the
pointer metadata attached to them; nodes are created and deleted exclusively
as side effects of record changes or reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shadow_taxonomy.domain.model.entity import Entity
from shadow_taxonomy.domain.model.enums import RecordStatus


@dataclass(eq=False, kw_only=True)
class Record(Entity):
    kind: str
    title: str = ""
    slug: str = ""
    status: RecordStatus = RecordStatus.DRAFT

    @property
    def is_placeholder(self) -> bool:
        return self.status is RecordStatus.AUTO_DRAFT


@dataclass(eq=False, kw_only=True)
class Node(Entity):
    taxonomy: str
    name: str
    slug: str = ""


@dataclass(eq=False, kw_only=True)
class Taxonomy:
    """A registered mirror namespace.

    ``object_kinds`` are the record kinds that may be classified under the
    taxonomy's nodes (the consumers of the relationship index).
    """

    name: str
    object_kinds: tuple[str, ...] = ()
    options: dict[str, Any] = field(default_factory=dict[str, Any])

    def accepts(self, kind: str) -> bool:
        return kind in self.object_kinds
