"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import and_, delete, exists, insert, select, update
from sqlalchemy.exc import IntegrityError

from shadow_taxonomy.adapters.sqlalchemy.mappings import (
    node_membership_table,
    node_meta_table,
    node_table,
    record_meta_table,
    record_table,
    taxonomy_table,
)
from shadow_taxonomy.domain.errors import MutationFailure
from shadow_taxonomy.domain.keys import slugify
from shadow_taxonomy.domain.model import Node, Record, Taxonomy

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy import Column, Table
    from sqlalchemy.orm import Session

    from shadow_taxonomy.domain.model import RecordStatus


class _SqlAlchemyMetaRepository:
    """Shared key-value metadata access for one ``*_meta`` table."""

    def __init__(self, session: Session, meta_table: Table, owner_column: str) -> None:
        self.session = session
        self._meta_table = meta_table
        self._owner: Column[int] = meta_table.c[owner_column]

    def get_meta(self, entity_id: int, key: str) -> str | None:
        stmt = (
            select(self._meta_table.c.meta_value)
            .where(self._owner == entity_id)
            .where(self._meta_table.c.meta_key == key)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def set_meta(self, entity_id: int, key: str, value: str | int) -> None:
        where = and_(self._owner == entity_id, self._meta_table.c.meta_key == key)
        stored = str(value)
        existing = self.session.execute(select(self._meta_table.c.id).where(where)).first()
        if existing is None:
            self.session.execute(
                insert(self._meta_table).values(
                    {self._owner.name: entity_id, "meta_key": key, "meta_value": stored}
                )
            )
        else:
            self.session.execute(update(self._meta_table).where(where).values(meta_value=stored))

    def delete_meta(self, entity_id: int, key: str) -> None:
        self.session.execute(
            delete(self._meta_table)
            .where(self._owner == entity_id)
            .where(self._meta_table.c.meta_key == key)
        )

    def _delete_all_meta(self, entity_id: int) -> None:
        self.session.execute(delete(self._meta_table).where(self._owner == entity_id))


class SqlAlchemyRecordRepository(_SqlAlchemyMetaRepository):
    def __init__(self, session: Session) -> None:
        super().__init__(session, record_meta_table, "record_id")

    def add(self, record: Record) -> None:
        self.session.add(record)
        self.session.flush()

    def get(self, record_id: int) -> Record | None:
        return self.session.get(Record, record_id)

    def remove(self, record: Record) -> None:
        record_id = record.persisted_id
        self._delete_all_meta(record_id)
        self.session.execute(
            delete(node_membership_table).where(node_membership_table.c.record_id == record_id)
        )
        self.session.delete(record)
        self.session.flush()

    def find_missing_meta(
        self,
        kind: str,
        key: str,
        *,
        status: RecordStatus | None = None,
        after_id: int = 0,
        limit: int = 100,
    ) -> list[Record]:
        has_value = exists().where(
            record_meta_table.c.record_id == record_table.c.id,
            record_meta_table.c.meta_key == key,
            record_meta_table.c.meta_value.is_not(None),
            record_meta_table.c.meta_value != "",
        )
        stmt = (
            select(Record)
            .where(record_table.c.kind == kind)
            .where(record_table.c.id > after_id)
            .where(~has_value)
            .order_by(record_table.c.id)
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(record_table.c.status == status)
        return list(self.session.execute(stmt).scalars())

    def find_by_node(
        self,
        node_id: int,
        *,
        kind: str,
        status: RecordStatus | None = None,
        limit: int = 1,
    ) -> list[Record]:
        stmt = (
            select(Record)
            .join(node_membership_table, node_membership_table.c.record_id == record_table.c.id)
            .where(node_membership_table.c.node_id == node_id)
            .where(record_table.c.kind == kind)
            .order_by(record_table.c.id)
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(record_table.c.status == status)
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyNodeRepository(_SqlAlchemyMetaRepository):
    """Node persistence; rejects blank names and slug collisions within a taxonomy."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, node_meta_table, "node_id")

    def create(self, taxonomy: str, name: str, *, slug: str = "") -> Node:
        name = name.strip()
        if not name:
            raise MutationFailure("A name is required for this term.", taxonomy=taxonomy)
        resolved_slug = slug or slugify(name)
        self._ensure_slug_free(taxonomy, resolved_slug)
        node = Node(taxonomy=taxonomy, name=name, slug=resolved_slug)
        self.session.add(node)
        self._flush(node)
        return node

    def update(self, node: Node, *, name: str, slug: str) -> Node:
        name = name.strip()
        if not name:
            raise MutationFailure("A name is required for this term.", taxonomy=node.taxonomy)
        resolved_slug = slug or slugify(name)
        if resolved_slug != node.slug:
            self._ensure_slug_free(node.taxonomy, resolved_slug, exclude_id=node.id)
        node.name = name
        node.slug = resolved_slug
        self._flush(node)
        return node

    def delete(self, node: Node) -> None:
        node_id = node.persisted_id
        self._delete_all_meta(node_id)
        self.session.execute(
            delete(node_membership_table).where(node_membership_table.c.node_id == node_id)
        )
        self.session.delete(node)
        self.session.flush()

    def get(self, node_id: int, taxonomy: str) -> Node | None:
        node = self.session.get(Node, node_id)
        if node is None or node.taxonomy != taxonomy:
            return None
        return node

    def get_by_slug(self, taxonomy: str, slug: str) -> Node | None:
        stmt = (
            select(Node)
            .where(node_table.c.taxonomy == taxonomy)
            .where(node_table.c.slug == slug)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def page(self, taxonomy: str, *, after_id: int = 0, limit: int = 100) -> list[Node]:
        stmt = (
            select(Node)
            .where(node_table.c.taxonomy == taxonomy)
            .where(node_table.c.id > after_id)
            .order_by(node_table.c.id)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def for_record(self, record_id: int, taxonomy: str) -> list[Node]:
        stmt = (
            select(Node)
            .join(node_membership_table, node_membership_table.c.node_id == node_table.c.id)
            .where(node_membership_table.c.record_id == record_id)
            .where(node_table.c.taxonomy == taxonomy)
            .order_by(node_table.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def attach(self, node: Node, record_id: int) -> None:
        node_id = node.persisted_id
        already = self.session.execute(
            select(node_membership_table.c.node_id)
            .where(node_membership_table.c.node_id == node_id)
            .where(node_membership_table.c.record_id == record_id)
        ).first()
        if already is None:
            self.session.execute(
                insert(node_membership_table).values(node_id=node_id, record_id=record_id)
            )

    def detach(self, node: Node, record_id: int) -> None:
        self.session.execute(
            delete(node_membership_table)
            .where(node_membership_table.c.node_id == node.persisted_id)
            .where(node_membership_table.c.record_id == record_id)
        )

    def _ensure_slug_free(self, taxonomy: str, slug: str, *, exclude_id: int | None = None) -> None:
        stmt = (
            select(node_table.c.id)
            .where(node_table.c.taxonomy == taxonomy)
            .where(node_table.c.slug == slug)
        )
        if exclude_id is not None:
            stmt = stmt.where(node_table.c.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise MutationFailure(
                f"A term with the slug {slug!r} already exists in {taxonomy}.",
                taxonomy=taxonomy,
                slug=slug,
            )

    def _flush(self, node: Node) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise MutationFailure(
                f"Store rejected term {node.name!r}: {exc.orig}",
                taxonomy=node.taxonomy,
                slug=node.slug,
            ) from exc


class SqlAlchemyTaxonomyRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def register(
        self,
        name: str,
        object_kinds: Iterable[str],
        options: Mapping[str, Any] | None = None,
    ) -> Taxonomy:
        kinds = tuple(object_kinds)
        taxonomy = self.session.get(Taxonomy, name)
        if taxonomy is None:
            taxonomy = Taxonomy(name=name, object_kinds=kinds, options=dict(options or {}))
            self.session.add(taxonomy)
        else:
            merged = taxonomy.object_kinds + tuple(
                kind for kind in kinds if kind not in taxonomy.object_kinds
            )
            taxonomy.object_kinds = merged
            taxonomy.options = {**taxonomy.options, **(options or {})}
        self.session.flush()
        return taxonomy

    def get(self, name: str) -> Taxonomy | None:
        return self.session.get(Taxonomy, name)

    def exists(self, name: str) -> bool:
        stmt = select(taxonomy_table.c.name).where(taxonomy_table.c.name == name)
        return self.session.execute(stmt).first() is not None


if TYPE_CHECKING:
    from shadow_taxonomy.domain.ports import (
        NodeRepository,
        RecordRepository,
        TaxonomyRepository,
    )

    _session = cast("Session", object())
    _record_check: RecordRepository = SqlAlchemyRecordRepository(_session)
    _node_check: NodeRepository = SqlAlchemyNodeRepository(_session)
    _taxonomy_check: TaxonomyRepository = SqlAlchemyTaxonomyRepository(_session)
