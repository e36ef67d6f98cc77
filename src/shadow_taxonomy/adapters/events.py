"""In-process record event dispatch used by store adapters."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import RecordEvent
    from shadow_taxonomy.domain.ports import RecordEventHandler

log = logging.getLogger(__name__)


class RecordEventDispatcher:
    """Synchronous subscriber registry keyed by ``(event, record_kind)``.

    Handler failures are logged and never reach the write that fired the
    event.
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[tuple[RecordEvent, str], list[RecordEventHandler]] = (
            defaultdict(list)
        )

    def subscribe(
        self,
        event: RecordEvent,
        record_kind: str,
        handler: RecordEventHandler,
    ) -> None:
        self._handlers[(event, record_kind)].append(handler)

    def handlers_for(self, event: RecordEvent, record_kind: str) -> tuple[RecordEventHandler, ...]:
        return tuple(self._handlers.get((event, record_kind), ()))

    def dispatch(self, event: RecordEvent, record_kind: str, record_id: int) -> None:
        for handler in self.handlers_for(event, record_kind):
            try:
                handler(record_id)
            except Exception:
                log.exception(
                    "Handler for %s %s record %s failed",
                    event.value,
                    record_kind,
                    record_id,
                )


if TYPE_CHECKING:
    from shadow_taxonomy.domain.ports import RecordEventSource

    _dispatcher_check: RecordEventSource = RecordEventDispatcher()
