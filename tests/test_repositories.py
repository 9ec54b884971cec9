"""
tests/test_repositories.py

Repository tests against an in-memory SQLite database.
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.csv_import import CSVImportStatus
from db.models.import_session import DataPoint, ImportSession
from db.models.reference import Statistic
from db.repositories.csv_import_repository import CSVImportRepository
from db.repositories.errors import ImportNotFoundError, InvalidStatusTransitionError
from db.repositories.import_log_repository import ImportLogRepository
from db.repositories.reference_repository import ReferenceRepository
from stats_import.repositories.data_point_repository import DataPointRepository


def _create(repo: CSVImportRepository, content_hash: str = "a" * 64, **overrides):
    params = {
        "file_name": "stats.csv",
        "file_size": 120,
        "content_hash": content_hash,
        "uploaded_by": 7,
    }
    params.update(overrides)
    return repo.create_import(**params)


class TestCSVImportRepository:
    def test_create_and_find_by_hash(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)

        record = _create(repo)
        db_session.commit()

        found = repo.find_by_content_hash("a" * 64)
        assert found is not None
        assert found.id == record.id
        assert found.status == CSVImportStatus.UPLOADED
        assert found.filename == "stats.csv"
        assert repo.find_by_content_hash("b" * 64) is None

    def test_duplicate_hash_violates_unique_constraint(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        _create(repo)
        db_session.commit()

        with pytest.raises(IntegrityError):
            _create(repo, file_name="copy.csv")
        db_session.rollback()

    def test_require_import_raises_for_unknown_id(self, db_session: Session) -> None:
        with pytest.raises(ImportNotFoundError) as excinfo:
            CSVImportRepository(db_session).require_import(999)

        assert excinfo.value.import_id == 999

    def test_forward_transitions_stamp_timestamps(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        record = _create(repo)

        repo.transition(import_id=record.id, status=CSVImportStatus.VALIDATING)
        assert record.validated_at is None

        repo.transition(import_id=record.id, status=CSVImportStatus.IMPORTING)
        assert record.validated_at is not None
        assert record.completed_at is None

        repo.transition(import_id=record.id, status=CSVImportStatus.IMPORTED)
        assert record.completed_at is not None

    def test_rejects_backward_and_skipping_transitions(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        record = _create(repo)

        with pytest.raises(InvalidStatusTransitionError):
            repo.transition(import_id=record.id, status=CSVImportStatus.IMPORTED)

        repo.transition(import_id=record.id, status=CSVImportStatus.VALIDATING)
        repo.transition(
            import_id=record.id,
            status=CSVImportStatus.VALIDATION_FAILED,
            error_message="Validation failed - 1 errors found",
        )

        with pytest.raises(InvalidStatusTransitionError) as excinfo:
            repo.transition(import_id=record.id, status=CSVImportStatus.VALIDATING)

        assert excinfo.value.current == CSVImportStatus.VALIDATION_FAILED
        assert record.error_message == "Validation failed - 1 errors found"

    def test_any_non_terminal_state_can_fail(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        record = _create(repo)

        repo.transition(import_id=record.id, status=CSVImportStatus.FAILED, error_message="boom")

        assert record.status == CSVImportStatus.FAILED
        assert record.completed_at is not None

    def test_list_imports_newest_first_with_status_filter(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        first = _create(repo, content_hash="1" * 64)
        second = _create(repo, content_hash="2" * 64, uploaded_by=8)
        repo.transition(import_id=second.id, status=CSVImportStatus.VALIDATING)
        db_session.commit()

        assert [record.id for record in repo.list_imports()] == [second.id, first.id]
        assert [record.id for record in repo.list_imports(status=CSVImportStatus.UPLOADED)] == [first.id]
        assert [record.id for record in repo.list_imports(uploaded_by=8)] == [second.id]
        assert len(repo.list_imports(limit=1)) == 1

    def test_record_row_counts(self, db_session: Session) -> None:
        repo = CSVImportRepository(db_session)
        record = _create(repo)

        repo.record_row_counts(
            import_id=record.id,
            total_rows=10,
            valid_rows=8,
            error_rows=2,
            processing_time_ms=15,
        )

        assert (record.total_rows, record.valid_rows, record.error_rows) == (10, 8, 2)
        assert record.processing_time_ms == 15


class TestReferenceRepository:
    def test_lookups_return_only_known_names(self, db_session: Session, seeded_ids: dict[str, int]) -> None:
        repo = ReferenceRepository(db_session)

        assert repo.state_ids_by_name(["California", "Atlantis"]) == {"California": seeded_ids["California"]}
        assert repo.category_ids_by_name(["Economy"]) == {"Economy": seeded_ids["Economy"]}
        assert repo.data_source_ids_by_name(["BEA", "Nowhere"]) == {"BEA": seeded_ids["BEA"]}

    def test_empty_name_lists_skip_queries(self, db_session: Session) -> None:
        repo = ReferenceRepository(db_session)

        assert repo.state_ids_by_name([]) == {}
        assert repo.category_ids_by_name(set()) == {}
        assert repo.statistics_by_name(()) == {}
        assert repo.data_source_ids_by_name([]) == {}

    def test_duplicate_statistic_names_resolve_to_lowest_id(
        self,
        db_session: Session,
        seeded_ids: dict[str, int],
    ) -> None:
        db_session.add(
            Statistic(
                name="GDP",
                unit="USD",
                category_id=seeded_ids["Education"],
                data_source_id=seeded_ids["US Census Bureau"],
                is_active=True,
            )
        )
        db_session.commit()

        resolved = ReferenceRepository(db_session).statistics_by_name(["GDP"])

        assert resolved == {"GDP": (seeded_ids["GDP"], seeded_ids["BEA"])}


class TestImportLogRepository:
    def test_logs_listed_in_both_orders(self, db_session: Session) -> None:
        record = _create(CSVImportRepository(db_session))
        repo = ImportLogRepository(db_session)
        for message in ("first", "second", "third"):
            repo.add_log(csv_import_id=record.id, log_level="info", message=message)
        repo.add_log(csv_import_id=record.id, log_level="validation_error", message="bad", row_number=2)
        db_session.flush()

        newest = [entry.message for entry in repo.list_logs(record.id)]
        oldest = [entry.message for entry in repo.list_logs(record.id, log_level="info", newest_first=False)]

        assert newest == ["bad", "third", "second", "first"]
        assert oldest == ["first", "second", "third"]

    def test_upsert_summary_keeps_one_row_per_phase(self, db_session: Session) -> None:
        record = _create(CSVImportRepository(db_session))
        repo = ImportLogRepository(db_session)
        params = {
            "csv_import_id": record.id,
            "phase": "validation",
            "total_rows": 3,
            "valid_rows": 2,
            "error_rows": 1,
            "failure_breakdown": {"data_type": 1},
            "validation_time_ms": 4,
        }

        first = repo.upsert_summary(status="validated_failed", **params)
        db_session.flush()
        second = repo.upsert_summary(status="validated_passed", **params)
        db_session.commit()

        assert first.id == second.id
        stored = repo.get_summary(record.id, phase="validation")
        assert stored is not None
        assert stored.status == "validated_passed"
        assert stored.failure_breakdown == {"data_type": 1}
        assert repo.get_summary(record.id, phase="commit") is None


class TestDataPointRepository:
    def test_bulk_insert_in_batches(self, db_session: Session, seeded_ids: dict[str, int]) -> None:
        record = _create(CSVImportRepository(db_session))
        repo = DataPointRepository(db_session)
        import_session = repo.create_import_session(
            name="CSV Import - stats.csv",
            description=None,
            data_source_id=seeded_ids["BEA"],
            csv_import_id=record.id,
            data_year=2020,
            record_count=5,
        )
        payloads = [
            {
                "import_session_id": import_session.id,
                "state_id": seeded_ids["California"],
                "statistic_id": seeded_ids["GDP"],
                "value": float(index),
                "year": 2020,
            }
            for index in range(5)
        ]

        written = repo.bulk_insert(payloads, batch_size=2)
        db_session.commit()

        assert written == 5
        stored = db_session.scalar(
            select(func.count()).select_from(DataPoint).where(DataPoint.import_session_id == import_session.id)
        )
        assert stored == 5
        linked = db_session.scalars(select(ImportSession.id).where(ImportSession.csv_import_id == record.id)).all()
        assert list(linked) == [import_session.id]
        assert repo.bulk_insert([]) == 0
