"""Plan and report types shared by the reconciliation modes.

A reconciliation pass first classifies every scanned record and node into at
most one planned action, then (outside dry-run) applies it. The report keeps
both sides so a dry-run and a live run over the same store produce identical
``planned`` counts.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final


class ReconcileMode(StrEnum):
    """Reconciliation strategies, in escalating order of repair."""

    SYNC = "sync"
    SYNC_TERMS = "sync-terms"
    DEEP_SYNC = "deep-sync"


class ReconcileAction(StrEnum):
    CREATE = "Create"
    DELETE = "Delete"
    MISSING_TERM_META = "Missing Term Meta"
    MISSING_POST_META = "Missing Post Meta"


ACTIONS_BY_MODE: Final[dict[ReconcileMode, tuple[ReconcileAction, ...]]] = {
    ReconcileMode.SYNC: (ReconcileAction.CREATE, ReconcileAction.DELETE),
    ReconcileMode.SYNC_TERMS: (
        ReconcileAction.CREATE,
        ReconcileAction.DELETE,
        ReconcileAction.MISSING_TERM_META,
        ReconcileAction.MISSING_POST_META,
    ),
    ReconcileMode.DEEP_SYNC: (ReconcileAction.CREATE,),
}


@dataclass(frozen=True, slots=True, kw_only=True)
class PlannedAction:
    """One unit of reconciliation work.

    ``record_id`` and ``node_id`` identify the pair involved; either may be
    ``None`` when that side does not exist yet (create) or is missing (delete).
    """

    action: ReconcileAction
    record_id: int | None = None
    node_id: int | None = None
    label: str = ""

    def describe(self) -> str:
        subject = f"{self.label!r} " if self.label else ""
        return f"{self.action.value} {subject}(record={self.record_id}, node={self.node_id})"


@dataclass(slots=True, kw_only=True)
class ReconcileReport:
    """Outcome of one reconciliation pass."""

    mode: ReconcileMode
    source_kind: str
    mirror_kind: str
    dry_run: bool = False
    planned: Counter[ReconcileAction] = field(default_factory=Counter[ReconcileAction])
    applied: Counter[ReconcileAction] = field(default_factory=Counter[ReconcileAction])
    skipped: list[PlannedAction] = field(default_factory=list["PlannedAction"])
    failed: list[PlannedAction] = field(default_factory=list["PlannedAction"])

    def record_planned(self, planned: PlannedAction) -> None:
        self.planned[planned.action] += 1

    def record_applied(self, planned: PlannedAction) -> None:
        self.applied[planned.action] += 1

    def record_skipped(self, planned: PlannedAction) -> None:
        self.skipped.append(planned)

    def record_failed(self, planned: PlannedAction) -> None:
        self.failed.append(planned)

    @property
    def actions(self) -> tuple[ReconcileAction, ...]:
        return ACTIONS_BY_MODE[self.mode]

    @property
    def total(self) -> int:
        return sum(self.planned.values())

    @property
    def applied_total(self) -> int:
        return sum(self.applied.values())

    @property
    def in_sync(self) -> bool:
        return self.total == 0

    def count(self, action: ReconcileAction) -> int:
        return self.planned[action]

    def rows(self) -> list[dict[str, object]]:
        """Return ``action``/``count`` rows in the mode's reporting order."""

        return [{"action": action.value, "count": self.planned[action]} for action in self.actions]
