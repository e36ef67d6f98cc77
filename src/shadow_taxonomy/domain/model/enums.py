"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordStatus(StrEnum):
    PUBLISH = "publish"
    DRAFT = "draft"
    PENDING = "pending"
    PRIVATE = "private"
    FUTURE = "future"
    TRASH = "trash"

    # Placeholder written by editors before the first real save
    AUTO_DRAFT = "auto-draft"


class PointerType(StrEnum):
    """Which side of a relationship a metadata pointer lives on.

    ``TERM_ID`` is stored on the record and points at its node; ``POST_ID`` is
    stored on the node and points back at its record.
    """

    TERM_ID = "term_id"
    POST_ID = "post_id"


class RecordEvent(StrEnum):
    """Record lifecycle events a store notifies subscribers about."""

    SAVED = "saved"  # after create/update commit
    DELETING = "deleting"  # before the record is removed
