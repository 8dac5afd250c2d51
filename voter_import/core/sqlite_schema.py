from __future__ import annotations

import re
import sqlite3

TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_table_name(table_name: str) -> str:
    candidate = table_name.strip()
    if not TABLE_NAME_PATTERN.fullmatch(candidate):
        raise ValueError(f"Unsafe table name: {table_name}")
    return candidate


def table_columns_from_connection(
    connection: sqlite3.Connection,
    table_name: str,
) -> list[tuple[str, str]]:
    safe_table_name = _validate_table_name(table_name)
    rows = connection.execute(f"PRAGMA table_info({safe_table_name});").fetchall()
    columns: list[tuple[str, str]] = []
    for row in rows:
        if len(row) < 3:
            continue
        name = str(row[1]).strip()
        sqlite_type = str(row[2]).strip().upper() or "TEXT"
        if name:
            columns.append((name, sqlite_type))
    return columns


def table_column_names(connection: sqlite3.Connection, table_name: str) -> set[str]:
    return {name for name, _ in table_columns_from_connection(connection, table_name)}


def add_missing_columns(
    connection: sqlite3.Connection,
    table_name: str,
    columns: list[tuple[str, str]],
) -> list[str]:
    safe_table_name = _validate_table_name(table_name)
    existing_columns = table_column_names(connection, safe_table_name)
    added: list[str] = []
    for name, sqlite_type in columns:
        if name in existing_columns:
            continue
        safe_column = _validate_table_name(name)
        connection.execute(f"ALTER TABLE {safe_table_name} ADD COLUMN {safe_column} {sqlite_type};")
        added.append(safe_column)
    return added
