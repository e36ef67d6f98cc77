"""Registration of record-kind to taxonomy mirror relationships."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from shadow_taxonomy.domain.model import RecordEvent, RelationshipDefinition
from shadow_taxonomy.domain.sync import MirrorSyncHandler

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from shadow_taxonomy.domain.notifications import MirrorNotifier
    from shadow_taxonomy.domain.ports import MirrorUnitOfWorkFactory, RecordEventSource

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RelationshipRegistry:
    """Wire relationship definitions to a store's record events.

    Repeated registration for the same taxonomy adds another source kind;
    registering the exact same pair twice subscribes a second handler, as
    the store's own subscription API decides about duplicates.
    """

    events: RecordEventSource
    unit_of_work_factory: MirrorUnitOfWorkFactory
    notifier: MirrorNotifier | None = None
    _definitions: list[RelationshipDefinition] = field(
        default_factory=list["RelationshipDefinition"]
    )
    _handlers: list[MirrorSyncHandler] = field(default_factory=list["MirrorSyncHandler"])

    @property
    def definitions(self) -> tuple[RelationshipDefinition, ...]:
        return tuple(self._definitions)

    @property
    def handlers(self) -> tuple[MirrorSyncHandler, ...]:
        return tuple(self._handlers)

    def register_relationship(
        self,
        source_kinds: Iterable[str],
        mirror_kind: str,
        taxonomy_options: Mapping[str, Any] | None = None,
        *,
        consumer_kinds: Iterable[str] = (),
    ) -> tuple[RelationshipDefinition, ...]:
        """Register ``mirror_kind`` with the store and mirror every source kind into it."""

        consumers = tuple(consumer_kinds)
        with self.unit_of_work_factory() as uow:
            uow.repositories.taxonomies.register(mirror_kind, consumers, taxonomy_options)
            uow.commit()
        log.info("Registered taxonomy %s for %s", mirror_kind, ", ".join(consumers) or "-")

        return tuple(
            self.create_relationship(kind, mirror_kind, consumer_kinds=consumers)
            for kind in source_kinds
        )

    def create_relationship(
        self,
        source_kind: str,
        mirror_kind: str,
        *,
        consumer_kinds: Iterable[str] = (),
    ) -> RelationshipDefinition:
        """Subscribe a sync handler for ``source_kind`` to the store's record events."""

        definition = RelationshipDefinition(
            source_kind=source_kind,
            mirror_kind=mirror_kind,
            consumer_kinds=tuple(consumer_kinds),
        )
        handler = MirrorSyncHandler(
            definition=definition,
            unit_of_work_factory=self.unit_of_work_factory,
            notifier=self.notifier,
        )
        self.events.subscribe(RecordEvent.SAVED, source_kind, handler.on_saved)
        self.events.subscribe(RecordEvent.DELETING, source_kind, handler.on_deleting)
        self._definitions.append(definition)
        self._handlers.append(handler)
        log.info("Mirroring %s records into %s", source_kind, mirror_kind)
        return definition

    def definition_for(self, source_kind: str, mirror_kind: str) -> RelationshipDefinition | None:
        for definition in self._definitions:
            if definition.source_kind == source_kind and definition.mirror_kind == mirror_kind:
                return definition
        return None

    def has_record_kind(self, kind: str) -> bool:
        return any(
            definition.source_kind == kind or kind in definition.consumer_kinds
            for definition in self._definitions
        )

    def has_mirror_kind(self, mirror_kind: str) -> bool:
        return any(definition.mirror_kind == mirror_kind for definition in self._definitions)
