from __future__ import annotations

import logging

import pytest

from shadow_taxonomy.domain.associations import get_associated_node, get_associated_record
from shadow_taxonomy.domain.model import RecordStatus, RelationshipDefinition
from shadow_taxonomy.domain.notifications import (
    MirrorNotification,
    MirrorNotifier,
    NodeCreated,
    NodeDeleted,
    NodeUpdated,
)
from shadow_taxonomy.domain.sync import MirrorSyncHandler, SyncOutcome
from tests.helpers.store import FakeMirrorStore

MIRROR = "_actor"


@pytest.fixture
def notifications() -> list[MirrorNotification]:
    return []


@pytest.fixture
def handler(
    fake_store: FakeMirrorStore, notifications: list[MirrorNotification]
) -> MirrorSyncHandler:
    notifier = MirrorNotifier()
    for kind in (NodeCreated, NodeUpdated, NodeDeleted):
        notifier.connect(kind, notifications.append)
    fake_store.seed_taxonomy(MIRROR, ("movie",))
    return MirrorSyncHandler(
        definition=RelationshipDefinition(source_kind="actor", mirror_kind=MIRROR),
        unit_of_work_factory=fake_store.unit_of_work,
        notifier=notifier,
    )


def test_saving_new_record_creates_node_with_both_pointers(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42, slug="jane-doe")

    outcome = handler.on_saved(42)

    assert outcome is SyncOutcome.CREATED
    node = fake_store.node_named(MIRROR, "Jane Doe")
    assert node is not None
    assert node.slug == "jane-doe"
    assert fake_store.record_meta(42, "shadow__actor_term_id") == str(node.id)
    assert fake_store.node_meta(node.persisted_id, "shadow__actor_post_id") == "42"
    assert len(notifications) == 1
    created = notifications[0]
    assert isinstance(created, NodeCreated)
    assert created.record_id == 42
    assert created.mirror_kind == MIRROR


def test_created_node_round_trips(fake_store: FakeMirrorStore, handler: MirrorSyncHandler) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)
    handler.on_saved(42)

    with fake_store.unit_of_work() as uow:
        node = get_associated_node(uow.repositories, 42, MIRROR)
        assert node is not None
        record = get_associated_record(uow.repositories, node, "actor")
        assert record is not None
        assert record.id == 42


def test_created_node_classifies_its_own_record(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)
    handler.on_saved(42)

    node = fake_store.node_named(MIRROR, "Jane Doe")
    assert node is not None
    assert (42, node.id) in fake_store.state.memberships


def test_title_change_updates_node_name_and_keeps_pointers(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42, slug="jane-doe")
    handler.on_saved(42)
    node = fake_store.node_named(MIRROR, "Jane Doe")
    assert node is not None

    fake_store.state.records[42].title = "Jane A. Doe"
    outcome = handler.on_saved(42)

    assert outcome is SyncOutcome.UPDATED
    updated = fake_store.state.nodes[node.persisted_id]
    assert updated.name == "Jane A. Doe"
    assert updated.slug == "jane-doe"
    assert fake_store.record_meta(42, "shadow__actor_term_id") == str(node.id)
    assert fake_store.node_meta(node.persisted_id, "shadow__actor_post_id") == "42"
    assert isinstance(notifications[-1], NodeUpdated)
    assert notifications[-1].record.title == "Jane A. Doe"


def test_rejected_update_leaves_node_untouched(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
    caplog: pytest.LogCaptureFixture,
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42, slug="jane-doe")
    fake_store.seed_record("actor", "John Roe", record_id=43, slug="john-roe")
    handler.on_saved(42)
    handler.on_saved(43)
    jane = fake_store.node_named(MIRROR, "Jane Doe")
    assert jane is not None
    rollbacks = fake_store.rollbacks
    emitted = len(notifications)

    fake_store.state.records[42].slug = "john-roe"
    with caplog.at_level(logging.WARNING, logger="shadow_taxonomy.domain.sync"):
        outcome = handler.on_saved(42)

    assert outcome is SyncOutcome.FAILED
    stored = fake_store.state.nodes[jane.persisted_id]
    assert (stored.name, stored.slug) == ("Jane Doe", "jane-doe")
    assert fake_store.rollbacks == rollbacks + 1
    assert len(notifications) == emitted
    assert not any(isinstance(item, NodeUpdated) for item in notifications)
    assert "Could not update" in caplog.text


def test_saving_in_sync_record_is_a_no_op(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)
    handler.on_saved(42)
    commits = fake_store.commits

    assert handler.on_saved(42) is SyncOutcome.IN_SYNC
    assert fake_store.commits == commits
    assert len(notifications) == 1


def test_repeated_saves_never_duplicate_nodes(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)

    for _ in range(3):
        handler.on_saved(42)

    assert len(fake_store.nodes_in(MIRROR)) == 1


def test_deleting_record_removes_node(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)
    handler.on_saved(42)
    node = fake_store.node_named(MIRROR, "Jane Doe")
    assert node is not None

    outcome = handler.on_deleting(42)

    assert outcome is SyncOutcome.DELETED
    assert fake_store.nodes_in(MIRROR) == []
    assert isinstance(notifications[-1], NodeDeleted)
    assert notifications[-1].record_id == 42


def test_deleting_record_without_node_is_a_no_op(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)

    assert handler.on_deleting(42) is SyncOutcome.SKIPPED


def test_placeholder_records_are_ignored(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_record("actor", "Auto Draft", record_id=7, status=RecordStatus.AUTO_DRAFT)

    assert handler.on_saved(7) is SyncOutcome.SKIPPED
    assert fake_store.nodes_in(MIRROR) == []


def test_other_record_kinds_are_ignored(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_record("movie", "Heat", record_id=8)

    assert handler.on_saved(8) is SyncOutcome.SKIPPED
    assert handler.on_deleting(8) is SyncOutcome.SKIPPED
    assert fake_store.nodes_in(MIRROR) == []


def test_missing_record_is_skipped(handler: MirrorSyncHandler) -> None:
    assert handler.on_saved(404) is SyncOutcome.SKIPPED


def test_rejected_create_leaves_no_metadata(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    notifications: list[MirrorNotification],
    caplog: pytest.LogCaptureFixture,
) -> None:
    fake_store.seed_record("actor", "Jane Doe", record_id=42)
    fake_store.reject_node_name("Jane Doe")

    with caplog.at_level(logging.WARNING):
        outcome = handler.on_saved(42)

    assert outcome is SyncOutcome.FAILED
    assert fake_store.nodes_in(MIRROR) == []
    assert fake_store.record_meta(42, "shadow__actor_term_id") is None
    assert notifications == []
    assert "Could not create" in caplog.text


def test_slug_collision_on_create_is_reported_as_failure(
    fake_store: FakeMirrorStore, handler: MirrorSyncHandler
) -> None:
    fake_store.seed_node(MIRROR, "Someone Else", slug="jane-doe")
    fake_store.seed_record("actor", "Jane Doe", record_id=42, slug="jane-doe")

    assert handler.on_saved(42) is SyncOutcome.FAILED
    assert len(fake_store.nodes_in(MIRROR)) == 1
    assert fake_store.record_meta(42, "shadow__actor_term_id") is None


def test_stale_back_pointer_is_left_alone(
    fake_store: FakeMirrorStore,
    handler: MirrorSyncHandler,
    caplog: pytest.LogCaptureFixture,
) -> None:
    jane = fake_store.seed_record("actor", "Jane Doe", record_id=42)
    other = fake_store.seed_record("actor", "John Roe", record_id=43)
    node = fake_store.seed_node(MIRROR, "John Roe")
    fake_store.link(jane, node, node_side=False)
    fake_store.link(other, node, record_side=False)

    with caplog.at_level(logging.WARNING):
        outcome = handler.on_saved(42)

    assert outcome is SyncOutcome.STALE
    assert fake_store.state.nodes[node.persisted_id].name == "John Roe"
    assert "does not point back" in caplog.text


def test_failing_listener_does_not_break_sync(fake_store: FakeMirrorStore) -> None:
    notifier = MirrorNotifier()

    def explode(_: MirrorNotification) -> None:
        raise RuntimeError("listener failed")

    notifier.connect(NodeCreated, explode)
    handler = MirrorSyncHandler(
        definition=RelationshipDefinition(source_kind="actor", mirror_kind=MIRROR),
        unit_of_work_factory=fake_store.unit_of_work,
        notifier=notifier,
    )
    fake_store.seed_record("actor", "Jane Doe", record_id=42)

    assert handler.on_saved(42) is SyncOutcome.CREATED
    assert fake_store.node_named(MIRROR, "Jane Doe") is not None
