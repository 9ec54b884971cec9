"""
stats_import/parsers package marker.
"""

from stats_import.parsers.csv_parser import CSVParsingError, CSVTableParser

__all__ = [
    "CSVParsingError",
    "CSVTableParser",
]
