"""Batch reconciliation between a record kind and its mirror taxonomy.

Three modes share one paginated scan:

- ``sync``: create nodes for records without a resolvable node, delete nodes
  whose record pointer does not resolve
- ``sync-terms``: like ``sync`` but consults native membership first, so a
  record or node that only lost its pointer metadata is repaired in place
  instead of being recreated or deleted
- ``deep-sync``: creation only, skipping records whose slug is already taken
  by an existing node

Candidate records are those of the source kind (and candidate status) that
lack the term pointer; candidate nodes are all nodes of the taxonomy. Both
are read in keyset pages ordered by id, so mutations applied to one page
never shift the next one. Each page is read in its own unit of work and each
mutation is committed on its own: a rejected mutation rolls back only that
item, which stays eligible for the next pass.

Before applying, every planned action is classified again against freshly
loaded state; if the classification changed in the meantime (for example a
live edit created the node) the action is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from shadow_taxonomy.domain.associations import (
    get_associated_node,
    get_associated_node_id,
    get_associated_record,
    get_associated_record_id,
)
from shadow_taxonomy.domain.errors import MutationFailure
from shadow_taxonomy.domain.keys import build_meta_key, slugify
from shadow_taxonomy.domain.model import PointerType, RecordStatus
from shadow_taxonomy.domain.sync import create_mirror_node, delete_mirror_node

from .plan import PlannedAction, ReconcileAction, ReconcileMode, ReconcileReport

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import Node, Record
    from shadow_taxonomy.domain.ports import (
        MirrorRepositories,
        MirrorUnitOfWork,
        MirrorUnitOfWorkFactory,
    )

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE: Final = 100
# Source records classified under one node; normally just its own record
_MEMBER_SCAN_LIMIT: Final = 100

type RecordClassifier = Callable[[MirrorRepositories, Record, _Pass], PlannedAction | None]
type NodeClassifier = Callable[[MirrorRepositories, Node, _Pass], PlannedAction | None]


@dataclass(frozen=True, slots=True)
class _Pass:
    source_kind: str
    mirror_kind: str
    dry_run: bool
    verbose: bool


@dataclass(slots=True)
class ReconciliationEngine:
    """Converge a record kind and its mirror taxonomy."""

    unit_of_work_factory: MirrorUnitOfWorkFactory
    batch_size: int = DEFAULT_BATCH_SIZE
    candidate_status: RecordStatus | None = RecordStatus.PUBLISH

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be positive")

    def run(
        self,
        mode: ReconcileMode,
        *,
        source_kind: str,
        mirror_kind: str,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> ReconcileReport:
        """Run the reconciliation ``mode`` for one relationship."""

        runners = {
            ReconcileMode.SYNC: self.sync,
            ReconcileMode.SYNC_TERMS: self.sync_terms,
            ReconcileMode.DEEP_SYNC: self.deep_sync,
        }
        return runners[mode](
            source_kind=source_kind,
            mirror_kind=mirror_kind,
            dry_run=dry_run,
            verbose=verbose,
        )

    def sync(
        self,
        *,
        source_kind: str,
        mirror_kind: str,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> ReconcileReport:
        """Create missing nodes and delete orphan nodes."""

        current = _Pass(source_kind, mirror_kind, dry_run, verbose)
        report = self._new_report(ReconcileMode.SYNC, current)
        self._scan_records(report, current, _classify_record_basic)
        self._scan_nodes(report, current, _classify_node_basic)
        return self._finish(report)

    def sync_terms(
        self,
        *,
        source_kind: str,
        mirror_kind: str,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> ReconcileReport:
        """Create, delete, and repair pointer metadata using native membership."""

        current = _Pass(source_kind, mirror_kind, dry_run, verbose)
        report = self._new_report(ReconcileMode.SYNC_TERMS, current)
        self._scan_records(report, current, _classify_record_membership)
        self._scan_nodes(report, current, _classify_node_membership)
        return self._finish(report)

    def deep_sync(
        self,
        *,
        source_kind: str,
        mirror_kind: str,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> ReconcileReport:
        """Create nodes for records that have neither a pointer nor a slug match."""

        current = _Pass(source_kind, mirror_kind, dry_run, verbose)
        report = self._new_report(ReconcileMode.DEEP_SYNC, current)
        self._scan_records(report, current, _classify_record_slug)
        return self._finish(report)

    # scanning -------------------------------------------------------------

    def _scan_records(
        self,
        report: ReconcileReport,
        current: _Pass,
        classify: RecordClassifier,
    ) -> None:
        key = build_meta_key(current.mirror_kind, PointerType.TERM_ID)
        after_id = 0
        while True:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                page = repositories.records.find_missing_meta(
                    current.source_kind,
                    key,
                    status=self.candidate_status,
                    after_id=after_id,
                    limit=self.batch_size,
                )
                page_size = len(page)
                if page:
                    after_id = page[-1].persisted_id
                log.debug(
                    "Scanned %s %s records missing %s (next after id %s)",
                    page_size,
                    current.source_kind,
                    key,
                    after_id,
                )
                planned_page = _plan_page(
                    report, [classify(repositories, item, current) for item in page]
                )
                if not current.dry_run:
                    _log_processing(planned_page)
                    for planned in planned_page:
                        self._apply_record_action(uow, planned, current, classify, report)
            if page_size < self.batch_size:
                return

    def _scan_nodes(
        self,
        report: ReconcileReport,
        current: _Pass,
        classify: NodeClassifier,
    ) -> None:
        after_id = 0
        while True:
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                page = repositories.nodes.page(
                    current.mirror_kind,
                    after_id=after_id,
                    limit=self.batch_size,
                )
                page_size = len(page)
                if page:
                    after_id = page[-1].persisted_id
                log.debug(
                    "Scanned %s %s nodes (next after id %s)",
                    page_size,
                    current.mirror_kind,
                    after_id,
                )
                planned_page = _plan_page(
                    report, [classify(repositories, item, current) for item in page]
                )
                if not current.dry_run:
                    _log_processing(planned_page)
                    for planned in planned_page:
                        self._apply_node_action(uow, planned, current, classify, report)
            if page_size < self.batch_size:
                return

    # applying -------------------------------------------------------------

    def _apply_record_action(
        self,
        uow: MirrorUnitOfWork,
        planned: PlannedAction,
        current: _Pass,
        classify: RecordClassifier,
        report: ReconcileReport,
    ) -> None:
        repositories = uow.repositories
        record = repositories.records.get(planned.record_id) if planned.record_id else None
        fresh = classify(repositories, record, current) if record is not None else None
        self._apply(uow, planned, fresh, current, report)

    def _apply_node_action(
        self,
        uow: MirrorUnitOfWork,
        planned: PlannedAction,
        current: _Pass,
        classify: NodeClassifier,
        report: ReconcileReport,
    ) -> None:
        repositories = uow.repositories
        node = (
            repositories.nodes.get(planned.node_id, current.mirror_kind)
            if planned.node_id
            else None
        )
        fresh = classify(repositories, node, current) if node is not None else None
        self._apply(uow, planned, fresh, current, report)

    def _apply(
        self,
        uow: MirrorUnitOfWork,
        planned: PlannedAction,
        fresh: PlannedAction | None,
        current: _Pass,
        report: ReconcileReport,
    ) -> None:
        if fresh is None or fresh.action is not planned.action:
            log.debug("Skipping %s: state changed since classification", planned.describe())
            report.record_skipped(planned)
            return
        try:
            message = _execute(uow.repositories, fresh, current)
            uow.commit()
        except MutationFailure as exc:
            uow.rollback()
            log.warning("Failed to apply %s: %s", fresh.describe(), exc)
            report.record_failed(planned)
            return
        report.record_applied(planned)
        log.log(logging.INFO if current.verbose else logging.DEBUG, message)

    # reporting ------------------------------------------------------------

    def _new_report(self, mode: ReconcileMode, current: _Pass) -> ReconcileReport:
        log.info(
            "Starting %s: source_kind=%s, mirror_kind=%s, dry_run=%s, batch_size=%s",
            mode.value,
            current.source_kind,
            current.mirror_kind,
            current.dry_run,
            self.batch_size,
        )
        return ReconcileReport(
            mode=mode,
            source_kind=current.source_kind,
            mirror_kind=current.mirror_kind,
            dry_run=current.dry_run,
        )

    def _finish(self, report: ReconcileReport) -> ReconcileReport:
        log.info(
            "Finished %s: planned=%s, applied=%s, skipped=%s, failed=%s",
            report.mode.value,
            report.total,
            report.applied_total,
            len(report.skipped),
            len(report.failed),
        )
        return report


def _plan_page(
    report: ReconcileReport, classified: list[PlannedAction | None]
) -> list[PlannedAction]:
    planned_page = [planned for planned in classified if planned is not None]
    for planned in planned_page:
        report.record_planned(planned)
    return planned_page


def _log_processing(planned_page: list[PlannedAction]) -> None:
    if planned_page:
        log.info("Processing %s items...", len(planned_page))


def _execute(repositories: MirrorRepositories, planned: PlannedAction, current: _Pass) -> str:
    mirror_kind = current.mirror_kind
    match planned.action:
        case ReconcileAction.CREATE:
            record = repositories.records.get(planned.record_id or 0)
            if record is None:
                raise MutationFailure(f"Record {planned.record_id} disappeared before create")
            node = create_mirror_node(repositories, record, mirror_kind)
            return f"Created Term: {record.title} (node {node.id})"
        case ReconcileAction.DELETE:
            node = repositories.nodes.get(planned.node_id or 0, mirror_kind)
            if node is None:
                raise MutationFailure(f"Node {planned.node_id} disappeared before delete")
            delete_mirror_node(repositories, node)
            return f"Deleting Orphan Term: {node.name}"
        case ReconcileAction.MISSING_TERM_META:
            repositories.nodes.set_meta(
                planned.node_id or 0,
                build_meta_key(mirror_kind, PointerType.POST_ID),
                planned.record_id or 0,
            )
            return f"Repaired term meta for term ID: {planned.node_id}"
        case ReconcileAction.MISSING_POST_META:
            repositories.records.set_meta(
                planned.record_id or 0,
                build_meta_key(mirror_kind, PointerType.TERM_ID),
                planned.node_id or 0,
            )
            return f"Repaired post meta for post ID: {planned.record_id}"


# classifiers --------------------------------------------------------------


def _classify_record_basic(
    repositories: MirrorRepositories, record: Record, current: _Pass
) -> PlannedAction | None:
    if get_associated_node(repositories, record, current.mirror_kind) is not None:
        return None
    return PlannedAction(action=ReconcileAction.CREATE, record_id=record.id, label=record.title)


def _classify_node_basic(
    repositories: MirrorRepositories, node: Node, current: _Pass
) -> PlannedAction | None:
    if get_associated_record(repositories, node, current.source_kind) is not None:
        return None
    return PlannedAction(
        action=ReconcileAction.DELETE,
        node_id=node.id,
        record_id=get_associated_record_id(repositories, node),
        label=node.name,
    )


def _classify_record_membership(
    repositories: MirrorRepositories, record: Record, current: _Pass
) -> PlannedAction | None:
    record_id = record.persisted_id
    classified_under = repositories.nodes.for_record(record_id, current.mirror_kind)
    if not classified_under:
        return PlannedAction(action=ReconcileAction.CREATE, record_id=record_id, label=record.title)
    if get_associated_node_id(repositories, record, current.mirror_kind) is None:
        return PlannedAction(
            action=ReconcileAction.MISSING_POST_META,
            record_id=record_id,
            node_id=_own_node(repositories, classified_under, record_id).id,
            label=record.title,
        )
    return None


def _classify_node_membership(
    repositories: MirrorRepositories, node: Node, current: _Pass
) -> PlannedAction | None:
    node_id = node.persisted_id
    members = repositories.records.find_by_node(
        node_id, kind=current.source_kind, limit=_MEMBER_SCAN_LIMIT
    )
    if not members:
        return PlannedAction(action=ReconcileAction.DELETE, node_id=node_id, label=node.name)
    if get_associated_record_id(repositories, node) is None:
        return PlannedAction(
            action=ReconcileAction.MISSING_TERM_META,
            node_id=node_id,
            record_id=_own_record(repositories, members, node_id, current.mirror_kind).id,
            label=node.name,
        )
    return None


def _own_node(repositories: MirrorRepositories, nodes: list[Node], record_id: int) -> Node:
    """Pick the node paired with ``record_id`` among the nodes it is classified under.

    A source record may also be classified under other records' nodes; the
    node pointing back at it wins, then a node pointing at no record.
    """

    unclaimed: Node | None = None
    for node in nodes:
        back_pointer = get_associated_record_id(repositories, node)
        if back_pointer == record_id:
            return node
        if back_pointer is None and unclaimed is None:
            unclaimed = node
    return unclaimed or nodes[0]


def _own_record(
    repositories: MirrorRepositories, members: list[Record], node_id: int, mirror_kind: str
) -> Record:
    """Pick the member paired with ``node_id``: the one pointing at it, then one pointing nowhere."""

    unclaimed: Record | None = None
    for record in members:
        pointer = get_associated_node_id(repositories, record, mirror_kind)
        if pointer == node_id:
            return record
        if pointer is None and unclaimed is None:
            unclaimed = record
    return unclaimed or members[0]


def _classify_record_slug(
    repositories: MirrorRepositories, record: Record, current: _Pass
) -> PlannedAction | None:
    if get_associated_node_id(repositories, record, current.mirror_kind) is not None:
        return None
    slug = record.slug or slugify(record.title)
    if repositories.nodes.get_by_slug(current.mirror_kind, slug) is not None:
        return None
    return PlannedAction(action=ReconcileAction.CREATE, record_id=record.id, label=record.title)
