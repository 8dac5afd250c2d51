from __future__ import annotations

from voter_import.domain.voters.schema import (
    ARCHIVE_BATCH_COLUMNS,
    CATEGORY_FIELDS,
    COLUMN_SPECS,
    DISCREPANCY_COLUMN,
    IDENTIFIER_FIELD,
    LATEST_BATCH_COLUMNS,
)

ARCHIVE_TABLE = "voter_record_archive"
LATEST_TABLE = "voter_record"
CATEGORY_TABLE = "dropdown_lists"


def _field_definitions(*, identifier_suffix: str) -> list[str]:
    definitions: list[str] = []
    for spec in COLUMN_SPECS:
        if spec.name == IDENTIFIER_FIELD:
            definitions.append(f"{spec.name} {spec.sqlite_type} {identifier_suffix}")
            continue
        definitions.append(f"{spec.name} {spec.sqlite_type}")
    return definitions


def create_archive_table_sql() -> str:
    year_column, number_column = ARCHIVE_BATCH_COLUMNS
    column_definitions = ["id INTEGER PRIMARY KEY AUTOINCREMENT"]
    column_definitions.extend(_field_definitions(identifier_suffix="NOT NULL"))
    column_definitions.append(f"{year_column} INTEGER NOT NULL")
    column_definitions.append(f"{number_column} INTEGER NOT NULL")
    column_definitions.append(f"UNIQUE ({IDENTIFIER_FIELD}, {year_column}, {number_column})")
    definition_sql = ",\n            ".join(column_definitions)
    return f"""
        CREATE TABLE IF NOT EXISTS {ARCHIVE_TABLE} (
            {definition_sql}
        );
    """.strip()


def create_latest_table_sql() -> str:
    year_column, number_column = LATEST_BATCH_COLUMNS
    column_definitions = _field_definitions(identifier_suffix="PRIMARY KEY")
    column_definitions.append(f"{year_column} INTEGER NOT NULL")
    column_definitions.append(f"{number_column} INTEGER NOT NULL")
    column_definitions.append(f"{DISCREPANCY_COLUMN} INTEGER NOT NULL DEFAULT 0")
    definition_sql = ",\n            ".join(column_definitions)
    return f"""
        CREATE TABLE IF NOT EXISTS {LATEST_TABLE} (
            {definition_sql}
        );
    """.strip()


def create_category_table_sql() -> str:
    column_definitions = ["id INTEGER PRIMARY KEY"]
    column_definitions.extend(f"{name} TEXT NOT NULL DEFAULT '[]'" for name in CATEGORY_FIELDS)
    definition_sql = ",\n            ".join(column_definitions)
    return f"""
        CREATE TABLE IF NOT EXISTS {CATEGORY_TABLE} (
            {definition_sql}
        );
    """.strip()


INDEXES_SQL: tuple[str, ...] = (
    f"CREATE INDEX IF NOT EXISTS idx_archive_batch ON {ARCHIVE_TABLE}(record_entry_year, record_entry_number);",
    f"CREATE INDEX IF NOT EXISTS idx_archive_vrcnum ON {ARCHIVE_TABLE}(vrcnum);",
    f"CREATE INDEX IF NOT EXISTS idx_latest_batch ON {LATEST_TABLE}(latest_record_entry_year, latest_record_entry_number);",
)
