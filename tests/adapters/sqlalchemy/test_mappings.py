from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect, select, text

from shadow_taxonomy.adapters.sqlalchemy.mappings import taxonomy_table
from shadow_taxonomy.domain.model import Record, RecordStatus, Taxonomy

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session

EXPECTED_TABLES = {"record", "record_meta", "taxonomy", "node", "node_meta", "node_membership"}


def test_migrations_create_every_table(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert EXPECTED_TABLES <= tables
    assert "alembic_version" in tables


def test_record_status_is_stored_by_value(sqlite_session: Session) -> None:
    sqlite_session.add(Record(kind="actor", title="Draft", status=RecordStatus.AUTO_DRAFT))
    sqlite_session.commit()

    raw = sqlite_session.execute(text("SELECT status FROM record")).scalar_one()
    loaded = sqlite_session.execute(select(Record)).scalar_one()

    assert raw == "auto-draft"
    assert loaded.status is RecordStatus.AUTO_DRAFT


def test_taxonomy_round_trips_kinds_and_options(sqlite_session: Session) -> None:
    sqlite_session.add(
        Taxonomy(name="_actor", object_kinds=("movie", "series"), options={"label": "Actors"})
    )
    sqlite_session.commit()
    sqlite_session.expunge_all()

    raw_kinds = sqlite_session.execute(select(taxonomy_table.c.object_kinds)).scalar_one()
    loaded = sqlite_session.get(Taxonomy, "_actor")

    assert raw_kinds == ("movie", "series")
    assert loaded is not None
    assert loaded.object_kinds == ("movie", "series")
    assert loaded.options == {"label": "Actors"}
