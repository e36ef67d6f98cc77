"""Reconciliation defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from shadow_taxonomy.domain.model import RecordStatus

from .errors import ConfigurationError

DEFAULT_BATCH_SIZE: Final[int] = 100
BATCH_SIZE_ENV: Final[str] = "SHADOW_TAXONOMY_BATCH_SIZE"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    candidate_status: RecordStatus = RecordStatus.PUBLISH


def get_sync_config() -> SyncConfig:
    raw = os.getenv(BATCH_SIZE_ENV)
    if raw is None or not raw.strip():
        return SyncConfig()
    try:
        batch_size = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{BATCH_SIZE_ENV} must be an integer, got {raw!r}") from exc
    if batch_size < 1:
        raise ConfigurationError(f"{BATCH_SIZE_ENV} must be positive, got {batch_size}")
    return SyncConfig(batch_size=batch_size)
