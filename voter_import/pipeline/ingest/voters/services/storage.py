from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Mapping, Sequence

from voter_import.core.errors import DuplicateCategorySnapshotError
from voter_import.core.sqlite_schema import add_missing_columns
from voter_import.domain.voters.schema import (
    ARCHIVE_BATCH_COLUMNS,
    CATEGORY_FIELDS,
    COLUMN_SPECS,
    IDENTIFIER_FIELD,
)
from voter_import.domain.voters.versioning import BatchKey
from voter_import.pipeline.ingest.voters.models import CategorySnapshot
from voter_import.pipeline.ingest.voters.services.sql_schema import (
    ARCHIVE_TABLE,
    CATEGORY_TABLE,
    INDEXES_SQL,
    LATEST_TABLE,
    create_archive_table_sql,
    create_category_table_sql,
    create_latest_table_sql,
)

DEFAULT_SNAPSHOT_ID = 1


def open_connection(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(db_path)
    connection.execute("PRAGMA foreign_keys = ON;")
    return connection


def initialize_database(connection: sqlite3.Connection) -> None:
    with connection:
        connection.execute(create_archive_table_sql())
        connection.execute(create_latest_table_sql())
        connection.execute(create_category_table_sql())
        for index_sql in INDEXES_SQL:
            connection.execute(index_sql)


def ensure_schema_columns(connection: sqlite3.Connection) -> list[str]:
    field_columns = [
        (spec.name, spec.sqlite_type)
        for spec in COLUMN_SPECS
        if spec.name != IDENTIFIER_FIELD
    ]
    added: list[str] = []
    with connection:
        added.extend(add_missing_columns(connection, ARCHIVE_TABLE, field_columns))
        added.extend(add_missing_columns(connection, LATEST_TABLE, field_columns))
        added.extend(
            add_missing_columns(
                connection,
                CATEGORY_TABLE,
                [(name, "TEXT NOT NULL DEFAULT '[]'") for name in CATEGORY_FIELDS],
            )
        )
    return added


def purge_batch(connection: sqlite3.Connection, batch_key: BatchKey) -> int:
    year_column, number_column = ARCHIVE_BATCH_COLUMNS
    with connection:
        cursor = connection.execute(
            f"DELETE FROM {ARCHIVE_TABLE} WHERE {year_column} = ? AND {number_column} = ?;",
            (batch_key.period, batch_key.sequence),
        )
    return max(cursor.rowcount, 0)


def count_archive_rows(connection: sqlite3.Connection, batch_key: BatchKey) -> int:
    year_column, number_column = ARCHIVE_BATCH_COLUMNS
    row = connection.execute(
        f"SELECT COUNT(*) FROM {ARCHIVE_TABLE} WHERE {year_column} = ? AND {number_column} = ?;",
        (batch_key.period, batch_key.sequence),
    ).fetchone()
    return int(row[0]) if row else 0


def _decode_values(raw: object) -> list[str]:
    if raw is None or raw == "":
        return []
    decoded = json.loads(str(raw))
    if not isinstance(decoded, list):
        return []
    return [str(item) for item in decoded]


def load_category_snapshot(connection: sqlite3.Connection) -> CategorySnapshot | None:
    columns = ", ".join(CATEGORY_FIELDS)
    rows = connection.execute(f"SELECT id, {columns} FROM {CATEGORY_TABLE};").fetchall()
    if len(rows) > 1:
        raise DuplicateCategorySnapshotError(
            "More than one dropdown list snapshot exists.",
            details={"rows": len(rows)},
        )
    if not rows:
        return None

    snapshot_id, *raw_lists = rows[0]
    values = {
        name: _decode_values(raw)
        for name, raw in zip(CATEGORY_FIELDS, raw_lists)
    }
    return CategorySnapshot(snapshot_id=int(snapshot_id), values=values)


def save_category_snapshot(
    connection: sqlite3.Connection,
    values: Mapping[str, Sequence[str]],
    *,
    snapshot_id: int = DEFAULT_SNAPSHOT_ID,
) -> None:
    columns = ["id", *CATEGORY_FIELDS]
    placeholders = ", ".join("?" for _ in columns)
    assignments = ", ".join(f"{name} = excluded.{name}" for name in CATEGORY_FIELDS)
    parameters = [snapshot_id] + [json.dumps(list(values.get(name, []))) for name in CATEGORY_FIELDS]
    with connection:
        connection.execute(
            f"INSERT INTO {CATEGORY_TABLE} ({', '.join(columns)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {assignments};",
            parameters,
        )
