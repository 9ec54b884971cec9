from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from db.config import load_env_files, normalize_postgres_url, resolve_database_url
from db.session import create_db_engine
from stats_import.config import CSVImportSettings, get_csv_import_settings

_SETTINGS_ENV = (
    "CSV_IMPORT_MIN_YEAR",
    "CSV_IMPORT_MAX_YEAR",
    "CSV_IMPORT_INSERT_BATCH_SIZE",
    "CSV_IMPORT_LOG_VALIDATION_ERRORS",
    "CSV_IMPORT_MAX_UPLOAD_BYTES",
)

_DATABASE_ENV = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT")


@pytest.fixture()
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
    get_csv_import_settings.cache_clear()
    yield
    get_csv_import_settings.cache_clear()


@pytest.fixture()
def clean_database_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _DATABASE_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("db.config.load_env_files", lambda project_root=None: None)


class TestCSVImportSettings:
    def test_defaults(self, clean_settings: None) -> None:
        assert get_csv_import_settings() == CSVImportSettings()

    def test_reads_environment(self, clean_settings: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSV_IMPORT_MIN_YEAR", "2000")
        monkeypatch.setenv("CSV_IMPORT_MAX_YEAR", "2024")
        monkeypatch.setenv("CSV_IMPORT_INSERT_BATCH_SIZE", "250")
        monkeypatch.setenv("CSV_IMPORT_LOG_VALIDATION_ERRORS", "off")
        monkeypatch.setenv("CSV_IMPORT_MAX_UPLOAD_BYTES", "1024")

        settings = get_csv_import_settings()

        assert settings == CSVImportSettings(
            min_year=2000,
            max_year=2024,
            insert_batch_size=250,
            log_validation_errors=False,
            max_upload_bytes=1024,
        )

    def test_invalid_integers_fall_back_to_defaults(
        self,
        clean_settings: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("CSV_IMPORT_INSERT_BATCH_SIZE", "lots")
        monkeypatch.setenv("CSV_IMPORT_MAX_UPLOAD_BYTES", "0")

        settings = get_csv_import_settings()

        assert settings.insert_batch_size == 1000
        assert settings.max_upload_bytes == 1

    def test_inverted_year_bounds_are_rejected(
        self,
        clean_settings: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("CSV_IMPORT_MIN_YEAR", "2030")
        monkeypatch.setenv("CSV_IMPORT_MAX_YEAR", "1990")

        with pytest.raises(RuntimeError, match="CSV_IMPORT_MAX_YEAR"):
            get_csv_import_settings()


class TestDatabaseConfig:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("postgres://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
            ("postgresql+psycopg://u:p@h/db", "postgresql+psycopg://u:p@h/db"),
        ],
    )
    def test_normalize_postgres_url(self, raw: str, expected: str) -> None:
        assert normalize_postgres_url(raw) == expected

    def test_database_url_wins(self, clean_database_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "postgres://direct/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

        assert resolve_database_url() == "postgresql+psycopg://direct/db"

    def test_cloud_url_only_in_cloud_like_environments(
        self,
        clean_database_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")

        assert resolve_database_url() == "postgresql+psycopg://local/db"

        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_database_url() == "postgresql+psycopg://cloud/db"

    def test_missing_url_raises(self, clean_database_env: None) -> None:
        with pytest.raises(RuntimeError, match="No database URL configured"):
            resolve_database_url()

    def test_missing_url_error_names_cloud_environments(self, clean_database_env: None) -> None:
        with pytest.raises(RuntimeError, match="ENVIRONMENT is one of cloud, prod, production, staging"):
            resolve_database_url()

    def test_engine_rejects_non_postgres_urls(self) -> None:
        with pytest.raises(RuntimeError, match="PostgreSQL"):
            create_db_engine("sqlite:///:memory:")

    def test_env_files_do_not_override_process_environment(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("STATS_IMPORT_KEEP", "process")
        monkeypatch.delenv("STATS_IMPORT_NEW", raising=False)
        (tmp_path / ".env").write_text(
            "# comment\nSTATS_IMPORT_KEEP=file\nexport STATS_IMPORT_NEW='from-file'\nnot a pair\n",
            encoding="utf-8",
        )

        load_env_files(tmp_path)

        assert os.environ["STATS_IMPORT_KEEP"] == "process"
        assert os.environ["STATS_IMPORT_NEW"] == "from-file"
        monkeypatch.delenv("STATS_IMPORT_NEW")
