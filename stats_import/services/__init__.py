"""
stats_import/services package marker.
"""

from stats_import.services.csv_import_service import CSVImportService, get_csv_import_service
from stats_import.services.import_audit_log import ImportAuditLog
from stats_import.services.import_committer import ImportCommitError, ImportCommitter
from stats_import.services.reference_resolver import ReferenceResolver
from stats_import.services.validation_runner import ValidationRunner

__all__ = [
    "CSVImportService",
    "get_csv_import_service",
    "ImportAuditLog",
    "ImportCommitError",
    "ImportCommitter",
    "ReferenceResolver",
    "ValidationRunner",
]
