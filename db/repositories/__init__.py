"""
Repository layer exports.
"""

from db.repositories.csv_import_repository import CSVImportRepository
from db.repositories.errors import (
    ImportNotFoundError,
    ImportRepositoryError,
    InvalidStatusTransitionError,
)
from db.repositories.import_log_repository import ImportLogRepository
from db.repositories.reference_repository import ReferenceRepository

__all__ = [
    "CSVImportRepository",
    "ImportLogRepository",
    "ReferenceRepository",
    "ImportRepositoryError",
    "ImportNotFoundError",
    "InvalidStatusTransitionError",
]
