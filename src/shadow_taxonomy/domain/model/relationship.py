"""Static relationship configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class RelationshipDefinition:
    """Binds a record kind to the taxonomy that mirrors it.

    Records of ``source_kind`` get exactly one node in ``mirror_kind``; records
    of ``consumer_kinds`` may be classified under those nodes to express a
    relationship to the source record.
    """

    source_kind: str
    mirror_kind: str
    consumer_kinds: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.source_kind.strip():
            raise ValueError("source_kind must not be blank")
        if not self.mirror_kind.strip():
            raise ValueError("mirror_kind must not be blank")

    def qualifies(self, kind: str) -> bool:
        return kind == self.source_kind
