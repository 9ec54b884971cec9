"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.csv_import import CSVImport, CSVImportStatus
from db.models.import_log import ImportLog, ImportValidationSummary
from db.models.import_session import DataPoint, ImportSession
from db.models.reference import Category, DataSource, State, Statistic

__all__ = [
    "Category",
    "CSVImport",
    "CSVImportStatus",
    "DataPoint",
    "DataSource",
    "ImportLog",
    "ImportSession",
    "ImportValidationSummary",
    "State",
    "Statistic",
]
