"""Domain error definitions.

"Not found" is never an error here: lookups return ``None`` instead.
"""

from __future__ import annotations


class ShadowTaxonomyError(RuntimeError):
    """Base class for errors raised by the mirror domain."""


class ValidationError(ShadowTaxonomyError):
    """Raised when a caller names an unknown kind, taxonomy, or identifier.

    Always raised before any mutation starts, and aborts the whole invocation.
    """


class MutationFailure(ShadowTaxonomyError):
    """Raised by a store when it rejects a node create/update.

    Non-fatal at the single-item level: callers log it, skip the item, and
    leave it for the next reconciliation pass.
    """

    def __init__(
        self, message: str, *, taxonomy: str | None = None, slug: str | None = None
    ) -> None:
        super().__init__(message)
        self.taxonomy = taxonomy
        self.slug = slug
