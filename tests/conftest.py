"""Shared fixtures for voter import tests."""

from __future__ import annotations

import csv
import io
import sqlite3
from pathlib import Path
from typing import Callable, Iterator

import pytest

from voter_import.core.settings import get_settings
from voter_import.domain.voters.schema import FIELD_NAMES
from voter_import.pipeline.ingest.voters.services.storage import (
    ensure_schema_columns,
    initialize_database,
    open_connection,
)

ENV_VARIABLES = (
    "VOTER_DB_PATH",
    "IMPORT_BUFFER_SIZE",
    "IMPORT_READ_CHUNK_SIZE",
    "IMPORT_PROGRESS_INTERVAL",
    "IMPORT_FILE_ENCODING",
    "IMPORT_LOG_LEVEL",
)

DEFAULT_ROW: dict[str, str] = {
    "last_name": "SMITH",
    "first_name": "JANE",
    "middle_initial": "Q",
    "house_num": "12",
    "street": "MAIN ST",
    "city": "ROCHESTER",
    "state": "NY",
    "zip_code": "14604",
    "party": "DEM",
    "gender": "F",
    "dob": "03/15/1985",
    "election_district": "7",
    "county_leg_district": "21",
    "state_assembly_district": "136",
    "state_senate_district": "56",
    "congressional_district": "25",
    "town_code": "ROC",
    "last_update": "01/10/2024",
    "original_reg_date": "09/01/2003",
    "statevid": "NY000000000012345678",
}


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from ambient import settings."""
    for name in ENV_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_row() -> Callable[..., dict[str, str | None]]:
    """Build a full raw voter row with overridable fields."""

    def _make_row(vrcnum: str | None = "V0001", **overrides: str | None) -> dict[str, str | None]:
        row: dict[str, str | None] = {name: DEFAULT_ROW.get(name, "") for name in FIELD_NAMES}
        row["vrcnum"] = vrcnum
        row.update(overrides)
        return row

    return _make_row


@pytest.fixture
def to_csv() -> Callable[[list[dict[str, str | None]]], bytes]:
    """Render raw rows as a headerless voter file."""

    def _to_csv(rows: list[dict[str, str | None]]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        for row in rows:
            writer.writerow(["" if row.get(name) is None else row.get(name) for name in FIELD_NAMES])
        return buffer.getvalue().encode("utf-8")

    return _to_csv


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "db" / "voters.db"


@pytest.fixture
def connection(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Open an initialized voter database."""
    connection = open_connection(db_path)
    initialize_database(connection)
    ensure_schema_columns(connection)
    try:
        yield connection
    finally:
        connection.close()
