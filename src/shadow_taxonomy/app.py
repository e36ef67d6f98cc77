"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from shadow_taxonomy.adapters.sqlalchemy import (
    SqlAlchemyMirrorUnitOfWork,
    SqlAlchemyRecordStore,
    is_started,
    startup,
)
from shadow_taxonomy.config import SyncConfig, get_sync_config, load_relationships
from shadow_taxonomy.domain.errors import ValidationError
from shadow_taxonomy.domain.notifications import MirrorNotifier
from shadow_taxonomy.domain.reconciliation import (
    CheckResult,
    CheckTarget,
    ReconcileMode,
    ReconcileReport,
    ReconciliationEngine,
    check_pair,
)
from shadow_taxonomy.domain.registry import RelationshipRegistry

if TYPE_CHECKING:
    from pathlib import Path

    from shadow_taxonomy.config import RelationshipsConfig
    from shadow_taxonomy.domain.ports import MirrorUnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class MirrorApplication:
    """Wired store, registry, and configuration for one process."""

    unit_of_work_factory: MirrorUnitOfWorkFactory
    store: SqlAlchemyRecordStore
    registry: RelationshipRegistry
    notifier: MirrorNotifier
    sync_config: SyncConfig


def bootstrap(
    *,
    relationships: RelationshipsConfig | None = None,
    config_path: Path | str | None = None,
    unit_of_work_factory: MirrorUnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> MirrorApplication:
    """Start the store and register every configured relationship."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyMirrorUnitOfWork

    effective_relationships = (
        relationships if relationships is not None else load_relationships(config_path)
    )
    notifier = MirrorNotifier()
    store = SqlAlchemyRecordStore(unit_of_work_factory)
    registry = RelationshipRegistry(
        events=store,
        unit_of_work_factory=unit_of_work_factory,
        notifier=notifier,
    )
    for entry in effective_relationships.relationships:
        registry.register_relationship(
            entry.source_kinds,
            entry.mirror_kind,
            entry.taxonomy_options,
            consumer_kinds=entry.consumer_kinds,
        )

    return MirrorApplication(
        unit_of_work_factory=unit_of_work_factory,
        store=store,
        registry=registry,
        notifier=notifier,
        sync_config=sync_config or get_sync_config(),
    )


def _require_taxonomy(app: MirrorApplication, mirror_kind: str) -> None:
    with app.unit_of_work_factory() as uow:
        if not uow.repositories.taxonomies.exists(mirror_kind):
            raise ValidationError("The Taxonomy you provided does not exist.")


def validate_relationship(app: MirrorApplication, source_kind: str, mirror_kind: str) -> None:
    """Reject unknown record kinds, taxonomies and unrelated pairs before any mutation starts.

    Consumer kinds are known record kinds but never sources: reconciling one
    against the taxonomy would mirror it and delete the real source's nodes.
    """

    if not app.registry.has_record_kind(source_kind):
        raise ValidationError("The Post Type you provided does not exist.")
    _require_taxonomy(app, mirror_kind)
    if app.registry.definition_for(source_kind, mirror_kind) is None:
        raise ValidationError(
            f"The Post Type {source_kind!r} is not mirrored into the Taxonomy {mirror_kind!r}."
        )


def reconcile(
    app: MirrorApplication,
    mode: ReconcileMode | str,
    *,
    source_kind: str,
    mirror_kind: str,
    dry_run: bool = False,
    verbose: bool = False,
) -> ReconcileReport:
    """Validate the relationship and run one reconciliation pass."""

    resolved_mode = ReconcileMode(mode)
    validate_relationship(app, source_kind, mirror_kind)
    engine = ReconciliationEngine(
        unit_of_work_factory=app.unit_of_work_factory,
        batch_size=app.sync_config.batch_size,
        candidate_status=app.sync_config.candidate_status,
    )
    report = engine.run(
        resolved_mode,
        source_kind=source_kind,
        mirror_kind=mirror_kind,
        dry_run=dry_run,
        verbose=verbose,
    )
    log.info(
        "Finished %s for %s -> %s: %s action(s)%s",
        resolved_mode.value,
        source_kind,
        mirror_kind,
        report.total,
        " (dry run)" if dry_run else "",
    )
    return report


def check_association(
    app: MirrorApplication,
    target: CheckTarget | str,
    object_id: int,
    mirror_kind: str,
) -> CheckResult:
    """Check one record/node pair from either side."""

    _require_taxonomy(app, mirror_kind)
    with app.unit_of_work_factory() as uow:
        return check_pair(uow.repositories, target, object_id, mirror_kind)
