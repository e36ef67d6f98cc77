"""Record store facade: record writes that fire lifecycle events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from shadow_taxonomy.adapters.events import RecordEventDispatcher
from shadow_taxonomy.domain.model import RecordEvent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from shadow_taxonomy.domain.model import Record
    from shadow_taxonomy.domain.ports import MirrorUnitOfWorkFactory, RecordEventHandler

log = logging.getLogger(__name__)


class SqlAlchemyRecordStore:
    """Persist records and notify subscribers around each write.

    ``SAVED`` fires after the record is committed; ``DELETING`` fires before
    the record is removed, while its metadata is still readable. Handlers
    always run outside the write's transaction.
    """

    def __init__(
        self,
        unit_of_work_factory: MirrorUnitOfWorkFactory,
        dispatcher: RecordEventDispatcher | None = None,
    ) -> None:
        self.unit_of_work_factory = unit_of_work_factory
        self.dispatcher = dispatcher or RecordEventDispatcher()

    def subscribe(self, event: RecordEvent, record_kind: str, handler: RecordEventHandler) -> None:
        self.dispatcher.subscribe(event, record_kind, handler)

    def save_record(self, record: Record) -> Record:
        """Insert or update ``record`` and fire ``SAVED``."""

        with self.unit_of_work_factory() as uow:
            records = uow.repositories.records
            if record.id is None:
                records.add(record)
            else:
                stored = records.get(record.id)
                if stored is None:
                    records.add(record)
                else:
                    stored.kind = record.kind
                    stored.title = record.title
                    stored.slug = record.slug
                    stored.status = record.status
            uow.commit()
        record_id = record.persisted_id
        log.debug("Saved %s record %s", record.kind, record_id)
        self.dispatcher.dispatch(RecordEvent.SAVED, record.kind, record_id)
        return record

    def delete_record(self, record_id: int) -> bool:
        """Fire ``DELETING`` and remove the record with its metadata and memberships."""

        with self.unit_of_work_factory() as uow:
            record = uow.repositories.records.get(record_id)
            kind = record.kind if record is not None else None
        if kind is None:
            log.debug("Record %s not found; nothing to delete", record_id)
            return False

        self.dispatcher.dispatch(RecordEvent.DELETING, kind, record_id)

        with self.unit_of_work_factory() as uow:
            record = uow.repositories.records.get(record_id)
            if record is None:
                return False
            uow.repositories.records.remove(record)
            uow.commit()
        log.debug("Deleted %s record %s", kind, record_id)
        return True

    def assign_nodes(self, record_id: int, node_ids: Iterable[int], taxonomy: str) -> int:
        """Classify ``record_id`` under the given nodes of ``taxonomy``.

        Unknown node ids are ignored. Returns the number of nodes attached.
        """

        attached = 0
        with self.unit_of_work_factory() as uow:
            nodes = uow.repositories.nodes
            for node_id in node_ids:
                node = nodes.get(node_id, taxonomy)
                if node is None:
                    log.warning("Ignoring unknown %s node %s", taxonomy, node_id)
                    continue
                nodes.attach(node, record_id)
                attached += 1
            uow.commit()
        return attached


if TYPE_CHECKING:
    from typing import cast

    from shadow_taxonomy.domain.ports import RecordEventSource

    _store_check: RecordEventSource = SqlAlchemyRecordStore(
        cast("MirrorUnitOfWorkFactory", object())
    )
