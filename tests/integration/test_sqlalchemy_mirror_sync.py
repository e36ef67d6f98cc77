from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from shadow_taxonomy.app import MirrorApplication, bootstrap, check_association, reconcile
from shadow_taxonomy.config import SyncConfig, parse_relationships
from shadow_taxonomy.domain.associations import get_associated_node, get_related_records
from shadow_taxonomy.domain.errors import ValidationError
from shadow_taxonomy.domain.model import Record, RecordStatus
from shadow_taxonomy.domain.reconciliation import CheckTarget, ReconcileAction, ReconcileMode

if TYPE_CHECKING:
    from collections.abc import Callable

    from shadow_taxonomy.adapters.sqlalchemy.unit_of_work import SqlAlchemyMirrorUnitOfWork

    UnitOfWorkFactory = Callable[[], SqlAlchemyMirrorUnitOfWork]

MIRROR = "_actor"
TERM_KEY = "shadow__actor_term_id"
POST_KEY = "shadow__actor_post_id"


@pytest.fixture
def app(sqlite_unit_of_work: UnitOfWorkFactory) -> MirrorApplication:
    relationships = parse_relationships(
        {
            "relationship": [
                {
                    "mirror_kind": MIRROR,
                    "source_kinds": ["actor"],
                    "consumer_kinds": ["movie"],
                    "taxonomy_options": {"label": "Actors"},
                }
            ]
        }
    )
    return bootstrap(
        relationships=relationships,
        unit_of_work_factory=sqlite_unit_of_work,
        sync_config=SyncConfig(batch_size=2),
    )


def _insert_record(app: MirrorApplication, kind: str, title: str) -> int:
    """Insert a record without firing store events."""
    with app.unit_of_work_factory() as uow:
        record = Record(
            kind=kind,
            title=title,
            slug=title.lower().replace(" ", "-"),
            status=RecordStatus.PUBLISH,
        )
        uow.repositories.records.add(record)
        uow.commit()
        return record.persisted_id


def _node_for(app: MirrorApplication, record_id: int) -> int | None:
    with app.unit_of_work_factory() as uow:
        node = get_associated_node(uow.repositories, record_id, MIRROR)
        return node.id if node is not None else None


@pytest.mark.integration
def test_saving_a_record_mirrors_it_into_a_node(app: MirrorApplication) -> None:
    record = app.store.save_record(
        Record(kind="actor", title="Jane Doe", slug="jane-doe", status=RecordStatus.PUBLISH)
    )

    with app.unit_of_work_factory() as uow:
        node = get_associated_node(uow.repositories, record, MIRROR)
        assert node is not None
        assert (node.name, node.slug) == ("Jane Doe", "jane-doe")
        assert uow.repositories.nodes.get_meta(node.persisted_id, POST_KEY) == str(record.id)

    result = check_association(app, CheckTarget.POST_TYPE, record.persisted_id, MIRROR)
    assert result.passed


@pytest.mark.integration
def test_renaming_and_deleting_follow_the_record(app: MirrorApplication) -> None:
    record = app.store.save_record(
        Record(kind="actor", title="Jane Doe", slug="jane-doe", status=RecordStatus.PUBLISH)
    )
    node_id = _node_for(app, record.persisted_id)
    assert node_id is not None

    record.title = "Jane A. Doe"
    record.slug = "jane-a-doe"
    app.store.save_record(record)

    with app.unit_of_work_factory() as uow:
        node = uow.repositories.nodes.get(node_id, MIRROR)
        assert node is not None
        assert (node.name, node.slug) == ("Jane A. Doe", "jane-a-doe")

    app.store.delete_record(record.persisted_id)

    with app.unit_of_work_factory() as uow:
        assert uow.repositories.nodes.get(node_id, MIRROR) is None


@pytest.mark.integration
def test_placeholder_records_are_not_mirrored(app: MirrorApplication) -> None:
    record = app.store.save_record(Record(kind="actor", status=RecordStatus.AUTO_DRAFT))

    assert _node_for(app, record.persisted_id) is None


@pytest.mark.integration
def test_consumers_resolve_related_records(app: MirrorApplication) -> None:
    jane = app.store.save_record(
        Record(kind="actor", title="Jane Doe", slug="jane-doe", status=RecordStatus.PUBLISH)
    )
    movie = app.store.save_record(
        Record(kind="movie", title="Heat", slug="heat", status=RecordStatus.PUBLISH)
    )
    node_id = _node_for(app, jane.persisted_id)
    assert node_id is not None
    app.store.assign_nodes(movie.persisted_id, [node_id], MIRROR)

    with app.unit_of_work_factory() as uow:
        related = get_related_records(uow.repositories, movie.persisted_id, MIRROR, "actor")
        taxonomy = uow.repositories.taxonomies.get(MIRROR)

    assert [record.id for record in related] == [jane.id]
    assert taxonomy is not None
    assert taxonomy.accepts("movie")


@pytest.mark.integration
def test_sync_backfills_and_converges(app: MirrorApplication) -> None:
    record_ids = [_insert_record(app, "actor", f"Actor {i}") for i in range(5)]
    with app.unit_of_work_factory() as uow:
        uow.repositories.nodes.create(MIRROR, "Nobody")
        uow.commit()

    dry_run = reconcile(
        app, ReconcileMode.SYNC, source_kind="actor", mirror_kind=MIRROR, dry_run=True
    )
    report = reconcile(app, ReconcileMode.SYNC, source_kind="actor", mirror_kind=MIRROR)
    second = reconcile(app, ReconcileMode.SYNC, source_kind="actor", mirror_kind=MIRROR)

    assert dry_run.count(ReconcileAction.CREATE) == 5
    assert dry_run.count(ReconcileAction.DELETE) == 1
    assert dry_run.applied_total == 0
    assert report.applied_total == 6
    assert second.in_sync
    assert all(_node_for(app, record_id) is not None for record_id in record_ids)


@pytest.mark.integration
def test_sync_terms_repairs_lost_pointer(app: MirrorApplication) -> None:
    record = app.store.save_record(
        Record(kind="actor", title="Jane Doe", slug="jane-doe", status=RecordStatus.PUBLISH)
    )
    node_id = _node_for(app, record.persisted_id)
    with app.unit_of_work_factory() as uow:
        uow.repositories.records.delete_meta(record.persisted_id, TERM_KEY)
        uow.commit()

    report = reconcile(app, ReconcileMode.SYNC_TERMS, source_kind="actor", mirror_kind=MIRROR)

    assert report.count(ReconcileAction.MISSING_POST_META) == 1
    assert report.count(ReconcileAction.CREATE) == 0
    assert _node_for(app, record.persisted_id) == node_id
    assert check_association(app, "taxonomy", node_id or 0, MIRROR).passed


@pytest.mark.integration
def test_deep_sync_skips_taken_slugs(app: MirrorApplication) -> None:
    with app.unit_of_work_factory() as uow:
        uow.repositories.nodes.create(MIRROR, "Jane Doe")
        uow.commit()
    taken = _insert_record(app, "actor", "Jane Doe")
    free = _insert_record(app, "actor", "John Roe")

    report = reconcile(app, ReconcileMode.DEEP_SYNC, source_kind="actor", mirror_kind=MIRROR)

    assert report.count(ReconcileAction.CREATE) == 1
    assert _node_for(app, taken) is None
    assert _node_for(app, free) is not None


@pytest.mark.integration
def test_reconcile_validates_kinds_before_mutating(app: MirrorApplication) -> None:
    _insert_record(app, "actor", "Jane Doe")

    with pytest.raises(ValidationError, match="Post Type"):
        reconcile(app, ReconcileMode.SYNC, source_kind="director", mirror_kind=MIRROR)
    with pytest.raises(ValidationError, match="Taxonomy"):
        reconcile(app, ReconcileMode.SYNC, source_kind="actor", mirror_kind="_director")

    with app.unit_of_work_factory() as uow:
        assert uow.repositories.nodes.page(MIRROR) == []


@pytest.mark.integration
def test_reconcile_rejects_consumer_kind_as_source(app: MirrorApplication) -> None:
    jane = app.store.save_record(
        Record(kind="actor", title="Jane Doe", slug="jane-doe", status=RecordStatus.PUBLISH)
    )
    _insert_record(app, "movie", "Heat")
    node_id = _node_for(app, jane.persisted_id)

    with pytest.raises(ValidationError, match="not mirrored"):
        reconcile(app, ReconcileMode.SYNC, source_kind="movie", mirror_kind=MIRROR)

    with app.unit_of_work_factory() as uow:
        assert [node.id for node in uow.repositories.nodes.page(MIRROR)] == [node_id]
