"""Read-only lookups between records and their mirror nodes.

Relationships are stored as two metadata pointers, one on each side. Nothing
in this module mutates the store, and a missing or dangling pointer yields
``None`` rather than an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shadow_taxonomy.domain.keys import build_meta_key
from shadow_taxonomy.domain.model import PointerType, Record

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import Node
    from shadow_taxonomy.domain.ports import MirrorRepositories

log = logging.getLogger(__name__)


def parse_pointer(value: str | None) -> int | None:
    """Convert a stored pointer value into an id, or ``None`` when absent."""

    if value is None:
        return None
    stripped = value.strip()
    if not stripped:
        return None
    try:
        pointer = int(stripped)
    except ValueError:
        log.debug("Ignoring non-numeric pointer value %r", value)
        return None
    return pointer if pointer > 0 else None


def get_associated_node_id(
    repositories: MirrorRepositories,
    record: Record | int,
    mirror_kind: str,
) -> int | None:
    """Return the node id stored on ``record`` for ``mirror_kind``, if any."""

    record_id = record.id if isinstance(record, Record) else record
    if record_id is None:
        return None
    key = build_meta_key(mirror_kind, PointerType.TERM_ID)
    return parse_pointer(repositories.records.get_meta(record_id, key))


def get_associated_node(
    repositories: MirrorRepositories,
    record: Record | int,
    mirror_kind: str,
) -> Node | None:
    """Resolve the live node mirroring ``record`` in ``mirror_kind``."""

    if not isinstance(record, Record):
        loaded = repositories.records.get(record)
        if loaded is None:
            return None
        record = loaded
    node_id = get_associated_node_id(repositories, record, mirror_kind)
    if node_id is None:
        return None
    return repositories.nodes.get(node_id, mirror_kind)


def get_associated_record_id(repositories: MirrorRepositories, node: Node) -> int | None:
    """Return the record id stored on ``node``, if any."""

    if node.id is None:
        return None
    key = build_meta_key(node.taxonomy, PointerType.POST_ID)
    return parse_pointer(repositories.nodes.get_meta(node.id, key))


def get_associated_record(
    repositories: MirrorRepositories,
    node: Node | None,
    record_kind: str,
) -> Record | None:
    """Resolve the live record of ``record_kind`` that ``node`` points back to."""

    if node is None:
        return None
    record_id = get_associated_record_id(repositories, node)
    if record_id is None:
        return None
    record = repositories.records.get(record_id)
    if record is None or record.kind != record_kind:
        return None
    return record


def fields_in_sync(node: Node, record: Record) -> bool:
    """Return whether the node's name and slug mirror the record's title and slug.

    The slug comparison is skipped when either side has no slug.
    """

    if node.slug and record.slug:
        return node.name == record.title and node.slug == record.slug
    return node.name == record.title


def get_related_records(
    repositories: MirrorRepositories,
    record_id: int,
    mirror_kind: str,
    source_kind: str,
) -> tuple[Record, ...]:
    """Return the source records related to ``record_id`` through ``mirror_kind``.

    Every node the record is classified under is translated back into the
    record it mirrors; nodes without a resolvable record are skipped.
    """

    related: list[Record] = []
    for node in repositories.nodes.for_record(record_id, mirror_kind):
        associated = get_associated_record(repositories, node, source_kind)
        if associated is not None and associated.id != record_id:
            related.append(associated)
    return tuple(related)
