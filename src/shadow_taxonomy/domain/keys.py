"""Metadata key naming for relationship pointers."""

from __future__ import annotations

import re
from typing import Final

from shadow_taxonomy.domain.model.enums import PointerType

_UNSAFE_KEY_CHARS: Final = re.compile(r"[^a-z0-9_\-]")
_SLUG_SEPARATORS: Final = re.compile(r"[^a-z0-9]+")


def sanitize_key(value: str) -> str:
    """Lower-case ``value`` and drop every character outside ``[a-z0-9_-]``."""

    return _UNSAFE_KEY_CHARS.sub("", value.lower())


def build_meta_key(mirror_kind: str, pointer_type: PointerType | str = PointerType.TERM_ID) -> str:
    """Build the metadata key holding one side of a relationship pointer.

    >>> build_meta_key("_actor", PointerType.TERM_ID)
    'shadow__actor_term_id'
    """

    pointer = PointerType(pointer_type)
    return sanitize_key(f"shadow_{mirror_kind}_{pointer.value}")


def slugify(value: str) -> str:
    """Derive a URL-safe slug from a display name."""

    return _SLUG_SEPARATORS.sub("-", value.lower()).strip("-")
