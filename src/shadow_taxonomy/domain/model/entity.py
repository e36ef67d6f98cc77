"""
Base building blocks:
store-assigned identity shared by records and nodes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False, kw_only=True)
class Entity:
    """Identity is assigned by the store on first flush."""

    id: int | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def persisted_id(self) -> int:
        """Return the store id, failing loudly for transient entities."""
        if self.id is None:
            raise ValueError(f"{type(self).__name__} has not been persisted yet")
        return self.id
