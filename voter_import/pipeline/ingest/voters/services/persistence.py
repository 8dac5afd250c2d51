from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from voter_import.domain.voters.schema import (
    DISCREPANCY_COLUMN,
    IDENTIFIER_FIELD,
    LATEST_BATCH_COLUMNS,
    archive_insert_columns,
    data_column_specs,
    latest_insert_columns,
)
from voter_import.domain.voters.versioning import BatchKey, is_newer
from voter_import.pipeline.ingest.voters.models import ArchiveRecord, BulkSaveOutcome
from voter_import.pipeline.ingest.voters.services.sql_schema import ARCHIVE_TABLE, LATEST_TABLE


@dataclass(frozen=True)
class LatestPlan:
    creates: list[ArchiveRecord]
    updates: list[ArchiveRecord]
    skipped: int


def _sql_value(value: object) -> object:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def _json_value(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _build_insert_statement(table: str, columns: Sequence[str]) -> str:
    placeholders = ", ".join("?" for _ in columns)
    return (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({placeholders});"
    )


def _cast_type(sqlite_type: str) -> str:
    return "INTEGER" if sqlite_type == "INTEGER" else "TEXT"


def _build_bulk_update_statement() -> str:
    """UPDATE joined against a value table expanded from one JSON parameter.

    Each element of the bound JSON array is an object keyed by column name;
    every column is cast to its storage type so absent values land as NULL.
    """
    year_column, number_column = LATEST_BATCH_COLUMNS
    typed_columns: list[tuple[str, str]] = [(IDENTIFIER_FIELD, "TEXT")]
    typed_columns.extend((spec.name, _cast_type(spec.sqlite_type)) for spec in data_column_specs())
    typed_columns.extend(
        [
            (year_column, "INTEGER"),
            (number_column, "INTEGER"),
            (DISCREPANCY_COLUMN, "INTEGER"),
        ]
    )

    select_sql = ",\n                ".join(
        f"CAST(json_extract(value, '$.{name}') AS {cast_type}) AS {name}"
        for name, cast_type in typed_columns
    )
    assignments = ",\n            ".join(
        f"{name} = incoming.{name}"
        for name, _ in typed_columns
        if name != IDENTIFIER_FIELD
    )
    return f"""
        UPDATE {LATEST_TABLE}
        SET
            {assignments}
        FROM (
            SELECT
                {select_sql}
            FROM json_each(?)
        ) AS incoming
        WHERE {LATEST_TABLE}.{IDENTIFIER_FIELD} = incoming.{IDENTIFIER_FIELD};
    """.strip()


def _build_lookup_statement() -> str:
    year_column, number_column = LATEST_BATCH_COLUMNS
    return (
        f"SELECT {IDENTIFIER_FIELD}, {year_column}, {number_column} "
        f"FROM {LATEST_TABLE} "
        f"WHERE {IDENTIFIER_FIELD} IN (SELECT value FROM json_each(?));"
    )


def archive_row(record: ArchiveRecord) -> tuple[object, ...]:
    values: list[object] = [record.voter_id]
    values.extend(_sql_value(record.get(spec.name)) for spec in data_column_specs())
    values.extend([record.batch_key.period, record.batch_key.sequence])
    return tuple(values)


def latest_row(record: ArchiveRecord) -> tuple[object, ...]:
    values: list[object] = [record.voter_id]
    values.extend(_sql_value(record.get(spec.name)) for spec in data_column_specs())
    values.extend([record.batch_key.period, record.batch_key.sequence, 0])
    return tuple(values)


def latest_update_payload(record: ArchiveRecord) -> dict[str, object]:
    year_column, number_column = LATEST_BATCH_COLUMNS
    payload: dict[str, object] = {IDENTIFIER_FIELD: record.voter_id}
    for spec in data_column_specs():
        payload[spec.name] = _json_value(record.get(spec.name))
    payload[year_column] = record.batch_key.period
    payload[number_column] = record.batch_key.sequence
    payload[DISCREPANCY_COLUMN] = False
    return payload


def plan_latest_changes(
    records: Sequence[ArchiveRecord],
    existing: dict[str, BatchKey],
) -> LatestPlan:
    """Split records into latest-table creates and updates.

    A record updates when its batch is newer than the stored one, creates when
    the voter has no latest row yet, and is skipped otherwise. Several records
    for one voter collapse into the newest of them; the ingest pipeline never
    sends those (one batch per run, and the archive key rejects repeats), but
    direct `BatchPersister` callers may mix batches in one save.
    """
    known = dict(existing)
    creates: dict[str, ArchiveRecord] = {}
    updates: dict[str, ArchiveRecord] = {}
    skipped = 0
    for record in records:
        stored = known.get(record.voter_id)
        if stored is None:
            creates[record.voter_id] = record
        elif is_newer(record.batch_key, stored):
            if record.voter_id in creates:
                creates[record.voter_id] = record
            else:
                updates[record.voter_id] = record
        else:
            skipped += 1
            continue
        known[record.voter_id] = record.batch_key
    return LatestPlan(
        creates=list(creates.values()),
        updates=list(updates.values()),
        skipped=skipped,
    )


class BatchPersister:
    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection = connection
        self._archive_insert = _build_insert_statement(ARCHIVE_TABLE, archive_insert_columns())
        self._latest_insert = _build_insert_statement(LATEST_TABLE, latest_insert_columns())
        self._latest_lookup = _build_lookup_statement()
        self._latest_update = _build_bulk_update_statement()

    def bulk_save(self, records: Sequence[ArchiveRecord]) -> BulkSaveOutcome:
        if not records:
            return BulkSaveOutcome(created=0, updated=0)

        with self.connection:
            self.connection.executemany(self._archive_insert, [archive_row(record) for record in records])

            existing = self.load_latest_batch_keys(record.voter_id for record in records)
            plan = plan_latest_changes(records, existing)

            if plan.creates:
                self.connection.executemany(self._latest_insert, [latest_row(record) for record in plan.creates])
            if plan.updates:
                payload = json.dumps([latest_update_payload(record) for record in plan.updates])
                self.connection.execute(self._latest_update, (payload,))

        return BulkSaveOutcome(
            created=len(plan.creates),
            updated=len(plan.updates),
            skipped=plan.skipped,
        )

    def load_latest_batch_keys(self, voter_ids: Iterable[str]) -> dict[str, BatchKey]:
        identifiers = sorted(set(voter_ids))
        if not identifiers:
            return {}
        rows = self.connection.execute(self._latest_lookup, (json.dumps(identifiers),)).fetchall()
        return {
            str(voter_id): BatchKey(period=int(year), sequence=int(number))
            for voter_id, year, number in rows
        }
