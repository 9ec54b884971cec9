"""
Batched name lookups for reference entities.

Each method issues at most one query regardless of how many names are
passed, so a whole file resolves in a fixed number of round trips.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.reference import Category, DataSource, State, Statistic


class ReferenceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def state_ids_by_name(self, names: Iterable[str]) -> dict[str, int]:
        wanted = sorted(set(names))
        if not wanted:
            return {}
        stmt = select(State.name, State.id).where(State.name.in_(wanted))
        return {name: state_id for name, state_id in self._session.execute(stmt).all()}

    def category_ids_by_name(self, names: Iterable[str]) -> dict[str, int]:
        wanted = sorted(set(names))
        if not wanted:
            return {}
        stmt = select(Category.name, Category.id).where(Category.name.in_(wanted))
        return {name: category_id for name, category_id in self._session.execute(stmt).all()}

    def statistics_by_name(self, names: Iterable[str]) -> dict[str, tuple[int, int | None]]:
        """
        Map statistic name -> (statistic id, data source id).

        Duplicate names resolve to the lowest id.
        """

        wanted = sorted(set(names))
        if not wanted:
            return {}
        stmt = (
            select(Statistic.name, Statistic.id, Statistic.data_source_id)
            .where(Statistic.name.in_(wanted))
            .order_by(Statistic.id)
        )
        resolved: dict[str, tuple[int, int | None]] = {}
        for name, statistic_id, data_source_id in self._session.execute(stmt).all():
            resolved.setdefault(name, (statistic_id, data_source_id))
        return resolved

    def data_source_ids_by_name(self, names: Iterable[str]) -> dict[str, int]:
        wanted = sorted(set(names))
        if not wanted:
            return {}
        stmt = select(DataSource.name, DataSource.id).where(DataSource.name.in_(wanted))
        return {name: source_id for name, source_id in self._session.execute(stmt).all()}
