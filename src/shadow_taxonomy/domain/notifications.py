"""Notifications emitted when the incremental handler changes a mirror node."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from shadow_taxonomy.domain.model import Node, Record

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeCreated:
    node: Node
    record_id: int
    mirror_kind: str


@dataclass(frozen=True, slots=True)
class NodeUpdated:
    node: Node
    record: Record
    mirror_kind: str


@dataclass(frozen=True, slots=True)
class NodeDeleted:
    node: Node
    record_id: int
    mirror_kind: str


type MirrorNotification = NodeCreated | NodeUpdated | NodeDeleted
type NotificationListener = Callable[[MirrorNotification], object]


@dataclass(slots=True)
class MirrorNotifier:
    """Fan out notifications to listeners registered per notification type.

    Listeners are for external observers only; nothing in the sync path
    consumes them, so a failing listener is logged and skipped.
    """

    _listeners: dict[type, list[NotificationListener]] = field(
        default_factory=lambda: defaultdict[type, list[NotificationListener]](list)
    )

    def connect(self, notification_type: type, listener: NotificationListener) -> None:
        self._listeners[notification_type].append(listener)

    def disconnect(self, notification_type: type, listener: NotificationListener) -> None:
        listeners = self._listeners.get(notification_type, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, notification: MirrorNotification) -> None:
        for listener in tuple(self._listeners.get(type(notification), ())):
            try:
                listener(notification)
            except Exception:
                log.exception("Notification listener failed for %s", type(notification).__name__)
