"""
stats_import/validators package marker.
"""

from stats_import.validators.row_validator import RowValidator

__all__ = [
    "RowValidator",
]
