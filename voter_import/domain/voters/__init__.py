"""Voter file domain: field schema and batch recency."""

from voter_import.domain.voters.schema import (
    CATEGORY_FIELDS,
    COLUMN_SPECS,
    FIELD_NAMES,
    IDENTIFIER_FIELD,
    ColumnSpec,
    archive_insert_columns,
    latest_insert_columns,
)
from voter_import.domain.voters.versioning import BatchKey, is_newer

__all__ = [
    "BatchKey",
    "CATEGORY_FIELDS",
    "COLUMN_SPECS",
    "ColumnSpec",
    "FIELD_NAMES",
    "IDENTIFIER_FIELD",
    "archive_insert_columns",
    "is_newer",
    "latest_insert_columns",
]
