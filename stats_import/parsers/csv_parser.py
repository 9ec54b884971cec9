"""
stats_import/parsers/csv_parser.py

Turns uploaded bytes into ordered, trimmed rows keyed by header name.
"""

from __future__ import annotations

import csv
import io

from stats_import.domain.csv_import import RawRow


class CSVParsingError(ValueError):
    """
    Raised when uploaded bytes cannot be read as delimited text with a header.
    """


class CSVTableParser:
    """
    Parses a whole CSV upload held in memory.
    """

    def __init__(self, *, encoding: str = "utf-8-sig") -> None:
        self._encoding = encoding

    def parse(self, content: bytes) -> list[RawRow]:
        try:
            text = content.decode(self._encoding)
        except UnicodeDecodeError as exc:
            raise CSVParsingError("CSV must be UTF-8 encoded.") from exc

        reader = csv.reader(io.StringIO(text, newline=""))
        try:
            headers = [name.strip() for name in next(reader, [])]
            if not any(headers):
                raise CSVParsingError("CSV header row is missing.")

            rows: list[RawRow] = []
            while True:
                # A record is numbered by the physical line it starts on.
                row_number = reader.line_num + 1
                cells = next(reader, None)
                if cells is None:
                    break
                fields = self._trim_fields(headers, cells)
                if all(value == "" for value in fields.values()):
                    continue
                rows.append(RawRow(row_number=row_number, fields=fields))
        except csv.Error as exc:
            raise CSVParsingError(f"Invalid CSV format: {exc}") from exc

        return rows

    @staticmethod
    def _trim_fields(headers: list[str], cells: list[str]) -> dict[str, str]:
        # Missing cells read as empty; cells beyond the header are dropped.
        fields: dict[str, str] = {}
        for index, key in enumerate(headers):
            if not key:
                continue
            fields[key] = cells[index].strip() if index < len(cells) else ""
        return fields
