"""Incremental mirroring of single record changes into taxonomy nodes.

A ``MirrorSyncHandler`` is bound to one relationship definition and reacts to
the store's record events:

- saved: create the node when missing, rename it when out of sync
- deleting: remove the node paired with the record

Every branch re-reads the record and node inside a fresh unit of work before
mutating, so a handler racing a reconciliation pass acts on current state.
Store rejections never propagate to the write that triggered the event; the
record simply stays without a node until the next reconciliation pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from shadow_taxonomy.domain.associations import (
    fields_in_sync,
    get_associated_node,
    get_associated_record,
)
from shadow_taxonomy.domain.errors import MutationFailure
from shadow_taxonomy.domain.keys import build_meta_key
from shadow_taxonomy.domain.model import PointerType
from shadow_taxonomy.domain.notifications import NodeCreated, NodeDeleted, NodeUpdated

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import Node, Record, RelationshipDefinition
    from shadow_taxonomy.domain.notifications import MirrorNotification, MirrorNotifier
    from shadow_taxonomy.domain.ports import MirrorRepositories, MirrorUnitOfWorkFactory

log = logging.getLogger(__name__)


class SyncOutcome(StrEnum):
    """Branch taken by the incremental handler for one event."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    IN_SYNC = "in_sync"
    SKIPPED = "skipped"
    STALE = "stale"
    FAILED = "failed"


def create_mirror_node(
    repositories: MirrorRepositories,
    record: Record,
    mirror_kind: str,
) -> Node:
    """Create the node for ``record`` and write both pointers.

    The caller owns the transaction: all writes land in the current unit of
    work, so committing it publishes the node and both pointers together.
    """

    record_id = record.persisted_id
    node = repositories.nodes.create(mirror_kind, record.title, slug=record.slug)
    node_id = node.persisted_id
    repositories.nodes.set_meta(
        node_id, build_meta_key(mirror_kind, PointerType.POST_ID), record_id
    )
    repositories.records.set_meta(
        record_id, build_meta_key(mirror_kind, PointerType.TERM_ID), node_id
    )
    repositories.nodes.attach(node, record_id)
    return node


def update_mirror_node(repositories: MirrorRepositories, node: Node, record: Record) -> Node:
    """Copy the record's title and slug onto ``node``."""

    return repositories.nodes.update(node, name=record.title, slug=record.slug)


def delete_mirror_node(repositories: MirrorRepositories, node: Node) -> None:
    """Delete ``node`` together with its metadata and memberships."""

    repositories.nodes.delete(node)


@dataclass(slots=True)
class MirrorSyncHandler:
    """Event handler keeping one relationship's nodes in step with its records."""

    definition: RelationshipDefinition
    unit_of_work_factory: MirrorUnitOfWorkFactory
    notifier: MirrorNotifier | None = None

    @property
    def mirror_kind(self) -> str:
        return self.definition.mirror_kind

    def on_saved(self, record_id: int) -> SyncOutcome:
        """Create or update the node mirroring ``record_id``."""

        mirror_kind = self.mirror_kind
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = repositories.records.get(record_id)
            if record is None or not self.definition.qualifies(record.kind):
                return SyncOutcome.SKIPPED
            if record.is_placeholder:
                return SyncOutcome.SKIPPED

            node = get_associated_node(repositories, record, mirror_kind)
            if node is None:
                try:
                    node = create_mirror_node(repositories, record, mirror_kind)
                    uow.commit()
                except MutationFailure as exc:
                    uow.rollback()
                    log.warning(
                        "Could not create %s node for record %s (%r): %s",
                        mirror_kind,
                        record_id,
                        record.title,
                        exc,
                    )
                    return SyncOutcome.FAILED
                log.info("Created %s node %s for record %s", mirror_kind, node.id, record_id)
                self._emit(NodeCreated(node=node, record_id=record_id, mirror_kind=mirror_kind))
                return SyncOutcome.CREATED

            associated = get_associated_record(repositories, node, record.kind)
            if associated is None or associated.id != record.id:
                log.warning(
                    "Node %s in %s does not point back to record %s; leaving it for reconciliation",
                    node.id,
                    mirror_kind,
                    record_id,
                )
                return SyncOutcome.STALE

            if fields_in_sync(node, record):
                return SyncOutcome.IN_SYNC

            try:
                node = update_mirror_node(repositories, node, record)
                uow.commit()
            except MutationFailure as exc:
                uow.rollback()
                log.warning(
                    "Could not update %s node %s for record %s: %s",
                    mirror_kind,
                    node.id,
                    record_id,
                    exc,
                )
                return SyncOutcome.FAILED
            log.info("Updated %s node %s from record %s", mirror_kind, node.id, record_id)
            self._emit(NodeUpdated(node=node, record=record, mirror_kind=mirror_kind))
            return SyncOutcome.UPDATED

    def on_deleting(self, record_id: int) -> SyncOutcome:
        """Delete the node paired with ``record_id`` before the record goes away."""

        mirror_kind = self.mirror_kind
        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = repositories.records.get(record_id)
            if record is not None and not self.definition.qualifies(record.kind):
                return SyncOutcome.SKIPPED
            node = get_associated_node(repositories, record_id, mirror_kind)
            if node is None:
                return SyncOutcome.SKIPPED
            delete_mirror_node(repositories, node)
            uow.commit()
        log.info("Deleted %s node %s for record %s", mirror_kind, node.id, record_id)
        self._emit(NodeDeleted(node=node, record_id=record_id, mirror_kind=mirror_kind))
        return SyncOutcome.DELETED

    def _emit(self, notification: MirrorNotification) -> None:
        if self.notifier is not None:
            self.notifier.emit(notification)
