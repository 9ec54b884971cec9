"""
stats_import/repositories/data_point_repository.py

Persistence layer for import sessions and committed data points.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import insert
from sqlalchemy.orm import Session

from db.models.import_session import DataPoint, ImportSession

_DEFAULT_BATCH_SIZE = 1000


class DataPointRepository:
    """
    Repository for lineage sessions and bulk data point writes.

    Nothing here commits; callers own the transaction boundary.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def create_import_session(
        self,
        *,
        name: str,
        description: str | None,
        data_source_id: int | None,
        csv_import_id: int | None,
        data_year: int | None,
        record_count: int,
    ) -> ImportSession:
        import_session = ImportSession(
            name=name,
            description=description,
            data_source_id=data_source_id,
            csv_import_id=csv_import_id,
            data_year=data_year,
            record_count=record_count,
            is_active=True,
        )
        self._session.add(import_session)
        self._session.flush()
        return import_session

    def bulk_insert(
        self,
        payloads: Sequence[dict[str, Any]],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        Insert data point payloads with chunked executemany INSERTs.
        """

        if not payloads:
            return 0

        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            chunk = list(payloads[start : start + size])
            self._session.execute(insert(DataPoint), chunk)
            inserted += len(chunk)
        return inserted
