"""
stats_import/api/routers/csv_imports.py

Statistic CSV import HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.orm import Session

from db.repositories.errors import ImportNotFoundError
from db.session import get_db
from stats_import.api.dependencies import get_csv_upload, read_upload_content
from stats_import.config import CSVImportSettings, get_csv_import_settings
from stats_import.schemas.csv_import import (
    CSVImportResponse,
    ImportDetailsResponse,
    ImportListResponse,
    ImportLogResponse,
    ImportResultResponse,
    ImportResultSummaryResponse,
    ImportStatsResponse,
    ValidationSummaryResponse,
)
from stats_import.services.csv_import_service import CSVImportService, get_csv_import_service

router = APIRouter(prefix="/csv-imports", tags=["csv-imports"])


@router.post("", response_model=ImportResultResponse)
def upload_csv_import(
    response: Response,
    file: UploadFile = Depends(get_csv_upload),
    uploader_id: int = Form(..., ge=1, description="Identifier of the authorized uploader"),
    db: Session = Depends(get_db),
    settings: CSVImportSettings = Depends(get_csv_import_settings),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> ImportResultResponse:
    """
    Validate one CSV file completely and import it only if every row passes.
    """

    content = read_upload_content(file, max_bytes=settings.max_upload_bytes)
    result = import_service.import_csv(
        db=db,
        uploader_id=uploader_id,
        file_name=file.filename or "upload.csv",
        file_bytes=content,
    )

    if result.success:
        response.status_code = status.HTTP_201_CREATED
    elif result.duplicate:
        response.status_code = status.HTTP_409_CONFLICT
    else:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    return ImportResultResponse(
        success=result.success,
        import_id=result.import_id,
        message=result.message,
        duplicate=result.duplicate,
        stats=ImportStatsResponse(
            total_rows=result.stats.total_rows,
            valid_rows=result.stats.valid_rows,
            error_rows=result.stats.error_rows,
        ),
        summary=(
            ImportResultSummaryResponse(
                failure_breakdown=dict(result.summary.failure_breakdown),
                processing_time=result.summary.processing_time,
            )
            if result.summary is not None
            else None
        ),
    )


@router.get("", response_model=ImportListResponse)
def list_csv_imports(
    limit: int = Query(default=50, ge=1, le=500),
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> ImportListResponse:
    records = import_service.list_imports(db=db, limit=limit, status=status_filter)
    return ImportListResponse(imports=[CSVImportResponse.model_validate(record) for record in records])


@router.get("/{import_id}", response_model=ImportDetailsResponse)
def get_csv_import(
    import_id: int,
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> ImportDetailsResponse:
    try:
        details = import_service.get_import_details(db=db, import_id=import_id)
    except ImportNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    summary = details.summary
    return ImportDetailsResponse(
        import_record=CSVImportResponse.model_validate(details.import_record),
        logs=[ImportLogResponse.model_validate(entry) for entry in details.logs],
        summary=(
            ValidationSummaryResponse(
                total_rows=summary.total_rows,
                valid_rows=summary.valid_rows,
                error_rows=summary.error_rows,
                failure_breakdown=dict(summary.failure_breakdown),
                validation_time_ms=summary.validation_time_ms,
                status=summary.status.value,
            )
            if summary is not None
            else None
        ),
    )


@router.get("/{import_id}/failed-rows")
def download_failed_rows(
    import_id: int,
    db: Session = Depends(get_db),
    import_service: CSVImportService = Depends(get_csv_import_service),
) -> Response:
    """
    Download every validation error of an import as CSV.
    """

    try:
        payload = import_service.get_failed_rows_csv(db=db, import_id=import_id)
    except ImportNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No failed rows found for this import.",
        )

    return Response(
        content=payload,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="failed-rows-import-{import_id}.csv"'},
    )
