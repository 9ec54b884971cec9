"""
stats_import/schemas/csv_import.py

Response schemas for statistic CSV import endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ImportStatsResponse(BaseModel):
    total_rows: int = Field(0, ge=0)
    valid_rows: int = Field(0, ge=0)
    error_rows: int = Field(0, ge=0)


class ImportResultSummaryResponse(BaseModel):
    failure_breakdown: dict[str, int] = Field(default_factory=dict)
    processing_time: str


class ImportResultResponse(BaseModel):
    """
    API response model for one upload attempt.
    """

    success: bool
    import_id: int | None = None
    message: str
    duplicate: bool = False
    stats: ImportStatsResponse = Field(default_factory=ImportStatsResponse)
    summary: ImportResultSummaryResponse | None = None


class CSVImportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    filename: str
    file_size: int
    content_hash: str
    status: str
    uploaded_by: int
    error_message: str | None = None
    total_rows: int | None = None
    valid_rows: int | None = None
    error_rows: int | None = None
    processing_time_ms: int | None = None
    validated_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ImportLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    log_level: str
    row_number: int | None = None
    field_name: str | None = None
    field_value: str | None = None
    expected_value: str | None = None
    failure_category: str | None = None
    message: str
    details: dict[str, Any] | None = None
    created_at: datetime | None = None


class ValidationSummaryResponse(BaseModel):
    total_rows: int = Field(..., ge=0)
    valid_rows: int = Field(..., ge=0)
    error_rows: int = Field(..., ge=0)
    failure_breakdown: dict[str, int] = Field(default_factory=dict)
    validation_time_ms: int = Field(0, ge=0)
    status: str


class ImportDetailsResponse(BaseModel):
    """
    API response model for one import with its audit trail.
    """

    import_record: CSVImportResponse
    logs: list[ImportLogResponse] = Field(default_factory=list)
    summary: ValidationSummaryResponse | None = None


class ImportListResponse(BaseModel):
    imports: list[CSVImportResponse] = Field(default_factory=list)
