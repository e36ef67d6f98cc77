"""Single-pair consistency checks. Read-only."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from shadow_taxonomy.domain.associations import (
    fields_in_sync,
    get_associated_node_id,
    get_associated_record_id,
)
from shadow_taxonomy.domain.errors import ValidationError

if TYPE_CHECKING:
    from shadow_taxonomy.domain.ports import MirrorRepositories


class CheckTarget(StrEnum):
    POST_TYPE = "post_type"
    TAXONOMY = "taxonomy"


class CheckStatus(StrEnum):
    IN_SYNC = "in_sync"
    MISSING_POINTER = "missing_pointer"
    DANGLING_POINTER = "dangling_pointer"
    POINTER_MISMATCH = "pointer_mismatch"
    FIELDS_OUT_OF_SYNC = "fields_out_of_sync"


@dataclass(frozen=True, slots=True, kw_only=True)
class CheckResult:
    status: CheckStatus
    message: str
    record_id: int | None = None
    node_id: int | None = None

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.IN_SYNC


def check_record(
    repositories: MirrorRepositories,
    record_id: int,
    mirror_kind: str,
) -> CheckResult:
    """Check the pair starting from the record side."""

    record = repositories.records.get(record_id)
    if record is None:
        raise ValidationError(f"Record with ID {record_id} not found.")

    node_id = get_associated_node_id(repositories, record, mirror_kind)
    if node_id is None:
        return CheckResult(
            status=CheckStatus.MISSING_POINTER,
            message="Associated shadow term not found.",
            record_id=record_id,
        )
    node = repositories.nodes.get(node_id, mirror_kind)
    if node is None:
        return CheckResult(
            status=CheckStatus.DANGLING_POINTER,
            message=f"Record points to term {node_id}, which does not exist in {mirror_kind}.",
            record_id=record_id,
            node_id=node_id,
        )
    back_pointer = get_associated_record_id(repositories, node)
    if back_pointer != record_id:
        return CheckResult(
            status=CheckStatus.POINTER_MISMATCH,
            message=f"Term {node_id} points back to record {back_pointer}, not {record_id}.",
            record_id=record_id,
            node_id=node_id,
        )
    if not fields_in_sync(node, record):
        return CheckResult(
            status=CheckStatus.FIELDS_OUT_OF_SYNC,
            message=f"Term {node_id} name/slug differ from record {record_id} title/slug.",
            record_id=record_id,
            node_id=node_id,
        )
    return CheckResult(
        status=CheckStatus.IN_SYNC,
        message="Shadow Taxonomy is in Sync.",
        record_id=record_id,
        node_id=node_id,
    )


def check_node(
    repositories: MirrorRepositories,
    node_id: int,
    mirror_kind: str,
) -> CheckResult:
    """Check the pair starting from the node side."""

    node = repositories.nodes.get(node_id, mirror_kind)
    if node is None:
        raise ValidationError(f"Term with ID {node_id} not found.")

    record_id = get_associated_record_id(repositories, node)
    if record_id is None:
        return CheckResult(
            status=CheckStatus.MISSING_POINTER,
            message="Associated shadow post not found.",
            node_id=node_id,
        )
    record = repositories.records.get(record_id)
    if record is None:
        return CheckResult(
            status=CheckStatus.DANGLING_POINTER,
            message=f"Term points to record {record_id}, which does not exist.",
            record_id=record_id,
            node_id=node_id,
        )
    back_pointer = get_associated_node_id(repositories, record, mirror_kind)
    if back_pointer != node_id:
        return CheckResult(
            status=CheckStatus.POINTER_MISMATCH,
            message=f"Record {record_id} points to term {back_pointer}, not {node_id}.",
            record_id=record_id,
            node_id=node_id,
        )
    if not fields_in_sync(node, record):
        return CheckResult(
            status=CheckStatus.FIELDS_OUT_OF_SYNC,
            message=f"Term {node_id} name/slug differ from record {record_id} title/slug.",
            record_id=record_id,
            node_id=node_id,
        )
    return CheckResult(
        status=CheckStatus.IN_SYNC,
        message="Shadow Taxonomy is in Sync.",
        record_id=record_id,
        node_id=node_id,
    )


def check_pair(
    repositories: MirrorRepositories,
    target: CheckTarget | str,
    object_id: int,
    mirror_kind: str,
) -> CheckResult:
    """Dispatch to the record- or node-side check."""

    try:
        resolved = CheckTarget(target)
    except ValueError as exc:
        raise ValidationError("Type should be either post_type or taxonomy.") from exc
    if resolved is CheckTarget.POST_TYPE:
        return check_record(repositories, object_id, mirror_kind)
    return check_node(repositories, object_id, mirror_kind)
