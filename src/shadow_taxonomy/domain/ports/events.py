"""Ports for subscribing to record lifecycle events."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import RecordEvent

type RecordEventHandler = Callable[[int], object]


@runtime_checkable
class RecordEventSource(Protocol):
    """A store that notifies handlers synchronously about record changes.

    Handlers receive the record id. ``RecordEvent.SAVED`` fires after the write
    is committed; ``RecordEvent.DELETING`` fires while the record still exists.
    """

    def subscribe(
        self,
        event: RecordEvent,
        record_kind: str,
        handler: RecordEventHandler,
    ) -> None: ...


__all__ = ["RecordEventHandler", "RecordEventSource"]
