"""
tests/conftest.py

Shared fixtures: an in-memory SQLite database built from the ORM metadata
and seeded with a small set of reference entities.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401
from db.base import Base
from db.models.reference import Category, DataSource, State, Statistic
from db.session import build_session_factory

HEADER = "state,category,statistic,value,year"

SEED_STATES = (
    ("California", "CA"),
    ("Texas", "TX"),
    ("New York", "NY"),
    ("Florida", "FL"),
    ("Ohio", "OH"),
    ("Utah", "UT"),
    ("Nevada", "NV"),
)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
def engine() -> Iterator[Engine]:
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(test_engine)
        test_engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine):
    return build_session_factory(engine)


@pytest.fixture()
def seeded_ids(session_factory) -> dict[str, int]:
    """Insert reference entities once and return their ids by name."""

    with session_factory() as seed_session:
        bea = DataSource(name="BEA", description="Bureau of Economic Analysis", is_active=True)
        census = DataSource(name="US Census Bureau", is_active=True)
        economy = Category(name="Economy", sort_order=1, is_active=True)
        education = Category(name="Education", sort_order=2, is_active=True)
        seed_session.add_all([bea, census, economy, education])
        seed_session.flush()

        states = [State(name=name, abbreviation=abbr, is_active=True) for name, abbr in SEED_STATES]
        seed_session.add_all(states)

        gdp = Statistic(
            ra_number="1001",
            name="GDP",
            unit="USD millions",
            category_id=economy.id,
            data_source_id=bea.id,
            is_active=True,
        )
        grad_rate = Statistic(
            ra_number="2001",
            name="Graduation Rate",
            unit="percent",
            category_id=education.id,
            data_source_id=census.id,
            is_active=True,
        )
        seed_session.add_all([gdp, grad_rate])
        seed_session.commit()

        ids = {state.name: state.id for state in states}
        ids.update(
            {
                "BEA": bea.id,
                "US Census Bureau": census.id,
                "Economy": economy.id,
                "Education": education.id,
                "GDP": gdp.id,
                "Graduation Rate": grad_rate.id,
            }
        )
        return ids


@pytest.fixture()
def db_session(session_factory, seeded_ids) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def build_csv(*rows: str, header: str = HEADER) -> bytes:
    return ("\n".join((header, *rows)) + "\n").encode("utf-8")


@pytest.fixture()
def make_csv():
    return build_csv
