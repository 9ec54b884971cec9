"""
stats_import/services/import_committer.py

All-or-nothing write of a fully validated file.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stats_import.domain.csv_import import CommitResult, NormalizedRow, ReferenceSnapshot
from stats_import.logging_utils import log_event
from stats_import.repositories.data_point_repository import DataPointRepository

logger = logging.getLogger(__name__)


class ImportCommitError(RuntimeError):
    """
    Raised when validated rows cannot be written.
    """


class ImportCommitter:
    """
    Resolves references, creates the lineage session, and bulk-writes the
    data points.

    Writes are flushed into the caller's open transaction and never
    committed here, so the caller decides whether the whole set becomes
    durable together with the final status or is rolled back as a unit.
    """

    def __init__(self, *, batch_size: int = 1000) -> None:
        self._batch_size = max(1, batch_size)

    def commit(
        self,
        *,
        db: Session,
        import_id: int,
        file_name: str,
        rows: Sequence[NormalizedRow],
        snapshot: ReferenceSnapshot,
    ) -> CommitResult:
        started = time.perf_counter()
        if not rows:
            return CommitResult(import_session_id=None, records_written=0, elapsed_ms=0)

        repository = DataPointRepository(db)
        try:
            payloads = self._build_payloads(rows, snapshot)
            first = rows[0]
            import_session = repository.create_import_session(
                name=f"CSV Import - {file_name}",
                description=f"Import from file: {file_name}",
                data_source_id=snapshot.data_source_for(first.statistic),
                csv_import_id=import_id,
                data_year=first.year,
                record_count=len(payloads),
            )
            for payload in payloads:
                payload["import_session_id"] = import_session.id

            written = repository.bulk_insert(payloads, batch_size=self._batch_size)
            db.flush()
        except SQLAlchemyError as exc:
            raise ImportCommitError(f"Failed to write validated rows: {exc}") from exc

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        log_event(
            logger,
            logging.INFO,
            "import_rows_written",
            import_id=import_id,
            import_session_id=import_session.id,
            records_written=written,
            elapsed_ms=elapsed_ms,
        )
        return CommitResult(
            import_session_id=import_session.id,
            records_written=written,
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _build_payloads(
        rows: Sequence[NormalizedRow],
        snapshot: ReferenceSnapshot,
    ) -> list[dict[str, Any]]:
        payloads: list[dict[str, Any]] = []
        for row in rows:
            state_id = snapshot.states_by_name.get(row.state)
            statistic_id = snapshot.statistics_by_name.get(row.statistic)
            if state_id is None or statistic_id is None:
                # Rows reach the committer only after the reference check.
                raise ImportCommitError(
                    f"Row {row.row_number}: unresolved reference for state "
                    f"'{row.state}' or statistic '{row.statistic}'"
                )
            payloads.append(
                {
                    "state_id": state_id,
                    "statistic_id": statistic_id,
                    "value": row.value,
                    "year": row.year,
                }
            )
        return payloads
