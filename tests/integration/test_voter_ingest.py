"""Integration tests for the voter ingest pipeline."""

from __future__ import annotations

import json
import sqlite3
import threading
from typing import Iterator

import pytest

from tests.db_helpers import count_rows, fetch_one
from voter_import.cli.ingest_voters import main
from voter_import.core.errors import DateFormatError, IngestCancelledError
from voter_import.domain.voters.versioning import BatchKey
from voter_import.pipeline.ingest.voters.pipeline import (
    VoterIngestPipeline,
    ingest_voter_bytes,
    ingest_voter_file,
)
from voter_import.pipeline.ingest.voters.services.storage import (
    initialize_database,
    load_category_snapshot,
    open_connection,
    save_category_snapshot,
)


def _latest(db_path, vrcnum: str) -> dict[str, object] | None:
    with sqlite3.connect(db_path) as connection:
        return fetch_one(connection, "SELECT * FROM voter_record WHERE vrcnum = ?;", (vrcnum,))


def _archive_count(db_path) -> int:
    with sqlite3.connect(db_path) as connection:
        return count_rows(connection, "voter_record_archive")


def test_newer_batch_replaces_latest_record(db_path, make_row) -> None:
    """Two runs for one voter should leave the second run's values as latest."""
    pipeline = VoterIngestPipeline()

    first = pipeline.process(
        rows=[make_row("V1", last_name="SMITH")],
        batch_key=BatchKey(2024, 1),
        db_path=db_path,
    )
    second = pipeline.process(
        rows=[make_row("V1", last_name="JONES")],
        batch_key=BatchKey(2024, 2),
        db_path=db_path,
    )

    assert first.to_dict() == {
        "rows_processed": 1,
        "rows_created": 1,
        "rows_updated": 0,
        "categories_updated": True,
    }
    assert (second.rows_created, second.rows_updated) == (0, 1)
    latest = _latest(db_path, "V1")
    assert latest is not None
    assert latest["last_name"] == "JONES"
    assert (latest["latest_record_entry_year"], latest["latest_record_entry_number"]) == (2024, 2)
    assert _archive_count(db_path) == 2


def _latest_table(db_path) -> list[tuple[object, ...]]:
    with sqlite3.connect(db_path) as connection:
        return connection.execute("SELECT * FROM voter_record ORDER BY vrcnum;").fetchall()


def test_reingesting_same_batch_is_idempotent(db_path, make_row) -> None:
    """Running a batch twice should not duplicate archive rows or change latest."""
    pipeline = VoterIngestPipeline()
    rows = [make_row(f"V{index}", house_num=str(index)) for index in range(7)]

    pipeline.process(rows=rows, batch_key=BatchKey(2024, 1), db_path=db_path, buffer_size=3)
    before = _latest_table(db_path)
    rerun = pipeline.process(rows=rows, batch_key=BatchKey(2024, 1), db_path=db_path, buffer_size=3)

    assert rerun.rows_processed == 7
    assert (rerun.rows_created, rerun.rows_updated) == (0, 0)
    assert _archive_count(db_path) == 7
    assert len(before) == 7
    assert _latest_table(db_path) == before


def test_older_batch_does_not_override_latest(db_path, make_row) -> None:
    """A late-arriving older batch is archived but never becomes latest."""
    pipeline = VoterIngestPipeline()
    pipeline.process(rows=[make_row("V1", party="REP")], batch_key=BatchKey(2024, 5), db_path=db_path)

    stale = pipeline.process(rows=[make_row("V1", party="DEM")], batch_key=BatchKey(2024, 4), db_path=db_path)

    assert (stale.rows_created, stale.rows_updated) == (0, 0)
    latest = _latest(db_path, "V1")
    assert latest is not None
    assert latest["party"] == "REP"
    assert _archive_count(db_path) == 2


def test_categories_union_with_stored_snapshot(db_path, make_row) -> None:
    """Observed values are merged into, not written over, the stored lists."""
    connection = open_connection(db_path)
    try:
        initialize_database(connection)
        save_category_snapshot(connection, {"city": ["BUFFALO"], "party": ["REP"]})
    finally:
        connection.close()

    statistics = VoterIngestPipeline().process(
        rows=[make_row("V1", city="ROCHESTER"), make_row("V2", city="ALBANY", party="")],
        batch_key=BatchKey(2024, 1),
        db_path=db_path,
    )

    assert statistics.categories_updated is True
    connection = open_connection(db_path)
    try:
        snapshot = load_category_snapshot(connection)
    finally:
        connection.close()
    assert snapshot is not None
    assert snapshot.values["city"] == ["ALBANY", "BUFFALO", "ROCHESTER"]
    assert snapshot.values["party"] == ["DEM", "REP"]
    assert snapshot.values["election_district"] == ["7"]


def test_bad_row_aborts_run_with_partial_statistics(db_path, make_row) -> None:
    """A malformed date stops the run; earlier flushes stay committed."""
    rows = [make_row("V1"), make_row("V2"), make_row("V3", dob="02/30/1990"), make_row("V4")]

    with pytest.raises(DateFormatError) as raised:
        VoterIngestPipeline().process(
            rows=rows,
            batch_key=BatchKey(2024, 1),
            db_path=db_path,
            buffer_size=2,
        )

    statistics = raised.value.statistics
    assert statistics is not None
    assert statistics.rows_processed == 2
    assert statistics.rows_created == 2
    assert statistics.categories_updated is False
    assert _latest(db_path, "V4") is None


def _orphaned_latest_rows(db_path) -> list[str]:
    with sqlite3.connect(db_path) as connection:
        rows = connection.execute(
            "SELECT latest.vrcnum FROM voter_record AS latest "
            "LEFT JOIN voter_record_archive AS archive "
            "ON archive.vrcnum = latest.vrcnum "
            "AND archive.record_entry_year = latest.latest_record_entry_year "
            "AND archive.record_entry_number = latest.latest_record_entry_number "
            "WHERE archive.id IS NULL;"
        ).fetchall()
    return [str(row[0]) for row in rows]


def test_cancellation_keeps_latest_rows_backed_by_archive(db_path, make_row) -> None:
    """Cancelling drops unflushed rows; flushed voters keep their archive rows."""
    cancel_event = threading.Event()

    def rows() -> Iterator[dict[str, str | None]]:
        yield make_row("V1")
        yield make_row("V2")
        yield make_row("V3")
        cancel_event.set()
        yield make_row("V4")

    with pytest.raises(IngestCancelledError) as raised:
        VoterIngestPipeline().process(
            rows=rows(),
            batch_key=BatchKey(2024, 1),
            db_path=db_path,
            buffer_size=2,
            cancel_event=cancel_event,
        )

    assert raised.value.statistics is not None
    assert raised.value.statistics.rows_processed == 3
    assert raised.value.statistics.rows_created == 2
    assert _archive_count(db_path) == 2
    assert _latest(db_path, "V1") is not None
    assert _latest(db_path, "V2") is not None
    assert _latest(db_path, "V3") is None
    assert _orphaned_latest_rows(db_path) == []


def test_rerun_after_cancellation_completes_batch(db_path, make_row) -> None:
    """Re-running a cancelled batch replaces its partial archive and finishes."""
    cancel_event = threading.Event()
    cancel_event.set()
    rows = [make_row(f"V{index}") for index in range(4)]
    pipeline = VoterIngestPipeline()

    with pytest.raises(IngestCancelledError):
        pipeline.process(rows=rows, batch_key=BatchKey(2024, 1), db_path=db_path, cancel_event=cancel_event)
    completed = pipeline.process(rows=rows, batch_key=BatchKey(2024, 1), db_path=db_path, buffer_size=3)

    assert completed.rows_created == 4
    assert _archive_count(db_path) == 4
    assert _orphaned_latest_rows(db_path) == []


def test_runs_with_separate_contexts_do_not_share_state(tmp_path, make_row) -> None:
    """One pipeline instance can serve runs in parallel threads."""
    pipeline = VoterIngestPipeline()
    results: dict[str, int] = {}
    errors: list[Exception] = []

    def run(name: str, count: int) -> None:
        try:
            statistics = pipeline.process(
                rows=[make_row(f"{name}{index}") for index in range(count)],
                batch_key=BatchKey(2024, 1),
                db_path=tmp_path / f"{name}.db",
                buffer_size=2,
            )
            results[name] = statistics.rows_created
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=run, args=("A", 5)), threading.Thread(target=run, args=("B", 9))]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert results == {"A": 5, "B": 9}


def test_ingest_voter_bytes_and_file(tmp_path, db_path, make_row, to_csv) -> None:
    """CSV input from memory or disk should flow through the pipeline."""
    content = to_csv([make_row("V1", house_num=""), make_row("V2")])
    input_path = tmp_path / "voters.csv"
    input_path.write_bytes(to_csv([make_row("V1", street="ELM ST")]))

    from_bytes = ingest_voter_bytes(content, db_path, 2024, 1)
    from_file = ingest_voter_file(input_path, db_path, 2024, 2)

    assert (from_bytes.rows_processed, from_bytes.rows_created) == (2, 2)
    assert (from_file.rows_processed, from_file.rows_updated) == (1, 1)
    latest = _latest(db_path, "V1")
    assert latest is not None
    assert latest["street"] == "ELM ST"
    assert latest["house_num"] == 12


def test_cli_prints_statistics(tmp_path, db_path, make_row, to_csv, capsys) -> None:
    """The CLI should report run statistics as JSON."""
    input_path = tmp_path / "voters.csv"
    input_path.write_bytes(to_csv([make_row("V1"), make_row("V2")]))

    exit_code = main(
        ["--input", str(input_path), "--year", "2024", "--entry-number", "3", "--db", str(db_path)]
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["rows_processed"] == 2
    assert payload["rows_created"] == 2


def test_cli_reports_import_errors(tmp_path, db_path, make_row, to_csv, capsys) -> None:
    """Domain failures should print the error payload and exit non-zero."""
    input_path = tmp_path / "voters.csv"
    input_path.write_bytes(to_csv([make_row("V1", last_update="2024-01-10")]))

    exit_code = main(
        ["--input", str(input_path), "--year", "2024", "--entry-number", "1", "--db", str(db_path)]
    )

    assert exit_code == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["type"] == "DATE_FORMAT_INVALID"
    assert payload["statistics"]["rows_processed"] == 0
