from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.import_session import DataPoint, ImportSession
from db.repositories.csv_import_repository import CSVImportRepository
from stats_import.domain.csv_import import NormalizedRow, ReferenceSnapshot
from stats_import.services.import_committer import ImportCommitError, ImportCommitter


def _rows(*states: str) -> list[NormalizedRow]:
    return [
        NormalizedRow(row_number=index + 2, state=state, category="Economy", statistic="GDP", value=1.5, year=2021)
        for index, state in enumerate(states)
    ]


def _snapshot(seeded_ids: dict[str, int], **state_overrides: int) -> ReferenceSnapshot:
    states = {name: seeded_ids[name] for name in ("California", "Texas", "Ohio")}
    states.update(state_overrides)
    return ReferenceSnapshot(
        states_by_name=states,
        categories_by_name={"Economy": seeded_ids["Economy"]},
        statistics_by_name={"GDP": seeded_ids["GDP"]},
        data_sources_by_statistic={"GDP": seeded_ids["BEA"]},
    )


@pytest.fixture()
def import_id(db_session: Session) -> int:
    record = CSVImportRepository(db_session).create_import(
        file_name="gdp.csv",
        file_size=10,
        content_hash="c" * 64,
        uploaded_by=1,
    )
    db_session.commit()
    return record.id


def _count(db_session: Session, model) -> int:
    return int(db_session.scalar(select(func.count()).select_from(model)) or 0)


class TestImportCommitter:
    def test_writes_session_and_points(self, db_session: Session, seeded_ids: dict[str, int], import_id: int) -> None:
        result = ImportCommitter(batch_size=2).commit(
            db=db_session,
            import_id=import_id,
            file_name="gdp.csv",
            rows=_rows("California", "Texas", "Ohio"),
            snapshot=_snapshot(seeded_ids),
        )
        db_session.commit()

        assert result.records_written == 3
        import_session = db_session.get(ImportSession, result.import_session_id)
        assert import_session is not None
        assert import_session.name == "CSV Import - gdp.csv"
        assert import_session.description == "Import from file: gdp.csv"
        assert import_session.record_count == 3
        assert import_session.data_year == 2021
        assert import_session.data_source_id == seeded_ids["BEA"]
        assert import_session.csv_import_id == import_id

        points = db_session.scalars(select(DataPoint).order_by(DataPoint.id)).all()
        assert [point.state_id for point in points] == [
            seeded_ids["California"],
            seeded_ids["Texas"],
            seeded_ids["Ohio"],
        ]
        assert {point.import_session_id for point in points} == {import_session.id}

    def test_no_rows_creates_nothing(self, db_session: Session, seeded_ids: dict[str, int], import_id: int) -> None:
        result = ImportCommitter().commit(
            db=db_session,
            import_id=import_id,
            file_name="empty.csv",
            rows=[],
            snapshot=_snapshot(seeded_ids),
        )

        assert result.import_session_id is None
        assert result.records_written == 0
        assert _count(db_session, ImportSession) == 0

    def test_unresolved_reference_raises_before_writing(
        self,
        db_session: Session,
        seeded_ids: dict[str, int],
        import_id: int,
    ) -> None:
        with pytest.raises(ImportCommitError):
            ImportCommitter().commit(
                db=db_session,
                import_id=import_id,
                file_name="gdp.csv",
                rows=_rows("California", "Atlantis"),
                snapshot=_snapshot(seeded_ids),
            )

        assert _count(db_session, ImportSession) == 0

    def test_database_error_is_wrapped_and_rolls_back_whole_write(
        self,
        db_session: Session,
        seeded_ids: dict[str, int],
        import_id: int,
    ) -> None:
        # A state deleted after validation surfaces as a foreign key violation.
        with pytest.raises(ImportCommitError) as excinfo:
            ImportCommitter(batch_size=1).commit(
                db=db_session,
                import_id=import_id,
                file_name="gdp.csv",
                rows=_rows("California", "Texas"),
                snapshot=_snapshot(seeded_ids, Texas=99_999),
            )
        db_session.rollback()

        assert "Failed to write validated rows" in str(excinfo.value)
        assert _count(db_session, ImportSession) == 0
        assert _count(db_session, DataPoint) == 0
