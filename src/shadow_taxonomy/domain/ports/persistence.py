"""Ports for reading and mutating the record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from shadow_taxonomy.domain.model import Node, Record, RecordStatus, Taxonomy


@runtime_checkable
class MetadataStore(Protocol):
    """Key-value metadata attached to an entity id.

    Values are stored as strings; a missing key reads as ``None``.
    """

    def get_meta(self, entity_id: int, key: str) -> str | None: ...

    def set_meta(self, entity_id: int, key: str, value: str | int) -> None: ...

    def delete_meta(self, entity_id: int, key: str) -> None: ...


@runtime_checkable
class RecordRepository(MetadataStore, Protocol):
    """Persistence contract for records."""

    def add(self, record: Record) -> None: ...

    def get(self, record_id: int) -> Record | None: ...

    def remove(self, record: Record) -> None: ...

    def find_missing_meta(
        self,
        kind: str,
        key: str,
        *,
        status: RecordStatus | None = None,
        after_id: int = 0,
        limit: int = 100,
    ) -> Sequence[Record]:
        """Return records of ``kind`` lacking ``key``, ordered by id, after ``after_id``."""
        ...

    def find_by_node(
        self,
        node_id: int,
        *,
        kind: str,
        status: RecordStatus | None = None,
        limit: int = 1,
    ) -> Sequence[Record]:
        """Return records of ``kind`` classified under ``node_id`` (native membership)."""
        ...


@runtime_checkable
class NodeRepository(MetadataStore, Protocol):
    """Persistence contract for taxonomy nodes."""

    def create(self, taxonomy: str, name: str, *, slug: str = "") -> Node:
        """Insert a node, raising ``MutationFailure`` when the store rejects it."""
        ...

    def update(self, node: Node, *, name: str, slug: str) -> Node:
        """Rename a node, raising ``MutationFailure`` when the store rejects it."""
        ...

    def delete(self, node: Node) -> None: ...

    def get(self, node_id: int, taxonomy: str) -> Node | None: ...

    def get_by_slug(self, taxonomy: str, slug: str) -> Node | None: ...

    def page(self, taxonomy: str, *, after_id: int = 0, limit: int = 100) -> Sequence[Node]:
        """Return nodes of ``taxonomy`` ordered by id, after ``after_id``."""
        ...

    def for_record(self, record_id: int, taxonomy: str) -> Sequence[Node]:
        """Return the nodes ``record_id`` is classified under, ordered by id."""
        ...

    def attach(self, node: Node, record_id: int) -> None:
        """Classify ``record_id`` under ``node``; attaching twice is a no-op."""
        ...

    def detach(self, node: Node, record_id: int) -> None: ...


@runtime_checkable
class TaxonomyRepository(Protocol):
    """Registry of mirror namespaces known to the store."""

    def register(
        self,
        name: str,
        object_kinds: Iterable[str],
        options: Mapping[str, Any] | None = None,
    ) -> Taxonomy: ...

    def get(self, name: str) -> Taxonomy | None: ...

    def exists(self, name: str) -> bool: ...
