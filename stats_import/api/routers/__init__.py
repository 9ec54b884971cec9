"""
stats_import/api/routers package marker.
"""

from stats_import.api.routers.csv_imports import router as csv_imports_router

__all__ = [
    "csv_imports_router",
]
