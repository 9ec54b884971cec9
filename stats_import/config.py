"""
stats_import/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


@dataclass(frozen=True)
class CSVImportSettings:
    """
    Runtime settings for the CSV import pipeline.

    min_year / max_year bound accepted observation years in addition to
    the "not in the future" rule.
    """

    min_year: int = 1990
    max_year: int = 2030
    insert_batch_size: int = 1000
    log_validation_errors: bool = True
    max_upload_bytes: int = 50 * 1024 * 1024


@lru_cache(maxsize=1)
def get_csv_import_settings() -> CSVImportSettings:
    """
    Return cached CSV import settings from environment variables.
    """

    min_year = _get_int_env("CSV_IMPORT_MIN_YEAR", 1990)
    max_year = _get_int_env("CSV_IMPORT_MAX_YEAR", 2030)
    if max_year < min_year:
        raise RuntimeError(
            f"CSV_IMPORT_MAX_YEAR ({max_year}) must not be lower than "
            f"CSV_IMPORT_MIN_YEAR ({min_year})."
        )

    return CSVImportSettings(
        min_year=min_year,
        max_year=max_year,
        insert_batch_size=max(1, _get_int_env("CSV_IMPORT_INSERT_BATCH_SIZE", 1000)),
        log_validation_errors=_get_bool_env("CSV_IMPORT_LOG_VALIDATION_ERRORS", True),
        max_upload_bytes=max(1, _get_int_env("CSV_IMPORT_MAX_UPLOAD_BYTES", 50 * 1024 * 1024)),
    )
