"""
stats_import/repositories package marker.
"""

from stats_import.repositories.data_point_repository import DataPointRepository

__all__ = [
    "DataPointRepository",
]
