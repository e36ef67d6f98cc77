"""SQLAlchemy mapping metadata for the shadow taxonomy domain model."""

from __future__ import annotations

import json
import logging
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    JSON,
    Column,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from shadow_taxonomy.domain.model import Node, Record, RecordStatus, Taxonomy

log = logging.getLogger(__name__)

KIND_LENGTH = 20
TAXONOMY_LENGTH = 32
META_KEY_LENGTH = 255


class StringTupleType(TypeDecorator[tuple[str, ...]]):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: tuple[str, ...] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> tuple[str, ...]:
        _ = dialect
        if value is None:
            return ()
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return ()
        items = cast(list[Any], loaded)
        return tuple(item for item in items if isinstance(item, str))


def _status_values(enum_cls: type[RecordStatus]) -> list[str]:
    return [member.value for member in enum_cls]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Records ---------------------------------------------------------------------

record_table = Table(
    "record",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", String(KIND_LENGTH), nullable=False),
    Column("title", Text, nullable=False, default=""),
    Column("slug", String(200), nullable=False, default=""),
    Column(
        "status",
        Enum(RecordStatus, native_enum=False, values_callable=_status_values, length=20),
        nullable=False,
    ),
    Index("ix_record_kind_status", "kind", "status"),
)

record_meta_table = Table(
    "record_meta",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "record_id",
        Integer,
        ForeignKey("record.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("meta_key", String(META_KEY_LENGTH), nullable=False),
    Column("meta_value", Text, nullable=True),
    UniqueConstraint("record_id", "meta_key"),
    Index("ix_record_meta_key", "meta_key"),
)

# Taxonomies and nodes --------------------------------------------------------

taxonomy_table = Table(
    "taxonomy",
    mapper_registry.metadata,
    Column("name", String(TAXONOMY_LENGTH), primary_key=True),
    Column("object_kinds", StringTupleType(), nullable=False, default=()),
    Column("options", JSON, nullable=False, default=dict),
)

node_table = Table(
    "node",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("taxonomy", String(TAXONOMY_LENGTH), nullable=False),
    Column("name", String(200), nullable=False),
    Column("slug", String(200), nullable=False),
    UniqueConstraint("taxonomy", "slug"),
)

node_meta_table = Table(
    "node_meta",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "node_id",
        Integer,
        ForeignKey("node.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("meta_key", String(META_KEY_LENGTH), nullable=False),
    Column("meta_value", Text, nullable=True),
    UniqueConstraint("node_id", "meta_key"),
    Index("ix_node_meta_key", "meta_key"),
)

node_membership_table = Table(
    "node_membership",
    mapper_registry.metadata,
    Column(
        "record_id",
        Integer,
        ForeignKey("record.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "node_id",
        Integer,
        ForeignKey("node.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Index("ix_node_membership_node", "node_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Record, record_table)
    mapper_registry.map_imperatively(Node, node_table)
    mapper_registry.map_imperatively(Taxonomy, taxonomy_table)

    configure_mappers()
    return mapper_registry
