"""
stats_import/schemas package marker.
"""

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

__all__ = [
    "CSVImportResponse",
    "ImportDetailsResponse",
    "ImportListResponse",
    "ImportLogResponse",
    "ImportResultResponse",
    "ImportResultSummaryResponse",
    "ImportStatsResponse",
    "ValidationSummaryResponse",
]
