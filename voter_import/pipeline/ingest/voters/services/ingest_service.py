from __future__ import annotations

import logging
import sqlite3
import time

from voter_import.core.errors import IngestCancelledError, to_error_dict
from voter_import.core.logging import INGEST_LOGGER_NAME, log_event
from voter_import.pipeline.ingest.voters.context import VoterIngestContext
from voter_import.pipeline.ingest.voters.services.normalization import transform_row
from voter_import.pipeline.ingest.voters.services.persistence import BatchPersister
from voter_import.pipeline.ingest.voters.services.storage import (
    DEFAULT_SNAPSHOT_ID,
    ensure_schema_columns,
    initialize_database,
    load_category_snapshot,
    open_connection,
    purge_batch,
    save_category_snapshot,
)

LOGGER = logging.getLogger(INGEST_LOGGER_NAME)
COMPONENT = "voter_ingest"


def _elapsed_ms(started_at: float) -> int:
    return int((time.perf_counter() - started_at) * 1000)


class VoterIngestService:
    def open(self, context: VoterIngestContext) -> VoterIngestContext:
        if context.db_path is None:
            raise ValueError("db_path is required.")
        if context.buffer_size < 1:
            raise ValueError("buffer_size must be at least 1.")
        if context.progress_interval < 1:
            raise ValueError("progress_interval must be at least 1.")

        context.started_at = time.perf_counter()
        connection = open_connection(context.db_path)
        try:
            initialize_database(connection)
            added_columns = ensure_schema_columns(connection)
        except Exception:
            connection.close()
            raise
        if added_columns:
            LOGGER.info("Added missing columns: %s", ", ".join(added_columns))
        context.connection = connection
        context.persister = BatchPersister(connection)
        return context

    def purge_batch(self, context: VoterIngestContext) -> VoterIngestContext:
        started_at = time.perf_counter()
        context.purged_rows = purge_batch(self._connection(context), context.batch_key)
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="purge",
            status="ok",
            duration_ms=_elapsed_ms(started_at),
            batch=str(context.batch_key),
            purged_rows=context.purged_rows,
        )
        return context

    def reset_categories(self, context: VoterIngestContext) -> VoterIngestContext:
        context.aggregator.reset()
        context.buffer.clear()
        return context

    def stream_rows(self, context: VoterIngestContext) -> VoterIngestContext:
        for row in context.rows:
            if context.cancelled:
                self.cancel(context)
            context.buffer.append(transform_row(row, context.batch_key))
            context.aggregator.observe(row)
            context.rows_processed += 1

            if len(context.buffer) >= context.buffer_size:
                self.flush(context)
            if context.rows_processed % context.progress_interval == 0:
                LOGGER.info("Processed %s rows", context.rows_processed)
        return context

    def drain(self, context: VoterIngestContext) -> VoterIngestContext:
        self.flush(context)
        return context

    def flush(self, context: VoterIngestContext) -> None:
        if context.cancelled:
            self.cancel(context)
        if not context.buffer:
            return

        started_at = time.perf_counter()
        outcome = self._persister(context).bulk_save(context.buffer)
        context.rows_created += outcome.created
        context.rows_updated += outcome.updated
        context.rows_skipped += outcome.skipped
        context.flush_count += 1
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="flush",
            status="ok",
            duration_ms=_elapsed_ms(started_at),
            records=len(context.buffer),
            created=outcome.created,
            updated=outcome.updated,
            skipped=outcome.skipped,
        )
        context.buffer.clear()

    def persist_categories(self, context: VoterIngestContext) -> VoterIngestContext:
        connection = self._connection(context)
        started_at = time.perf_counter()
        snapshot = load_category_snapshot(connection)
        merged = context.aggregator.merged_snapshot(snapshot.values if snapshot else None)
        save_category_snapshot(
            connection,
            merged,
            snapshot_id=snapshot.snapshot_id if snapshot else DEFAULT_SNAPSHOT_ID,
        )
        context.categories_updated = True
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="save_categories",
            status="ok",
            duration_ms=_elapsed_ms(started_at),
            observed_values=context.aggregator.observed_count,
        )
        return context

    def cancel(self, context: VoterIngestContext) -> None:
        """Abort the run, discarding only records that were never flushed.

        Flushed archive rows stay so every latest record written by this run
        keeps its archive snapshot; re-running the batch replaces them.
        """
        discarded = len(context.buffer)
        context.buffer.clear()
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="cancel",
            status="warning",
            duration_ms=_elapsed_ms(context.started_at),
            batch=str(context.batch_key),
            rows_processed=context.rows_processed,
            discarded_records=discarded,
            flushes=context.flush_count,
        )
        raise IngestCancelledError(
            "Voter import was cancelled.",
            details={"batch": str(context.batch_key), "rows_processed": context.rows_processed},
        )

    def log_summary(self, context: VoterIngestContext) -> None:
        LOGGER.info("Ingest completed.")
        LOGGER.info("DB path: %s", context.db_path)
        LOGGER.info("Batch: %s", context.batch_key)
        LOGGER.info("Rows purged from archive: %s", context.purged_rows)
        LOGGER.info("Rows processed: %s", context.rows_processed)
        LOGGER.info("Latest records created: %s", context.rows_created)
        LOGGER.info("Latest records updated: %s", context.rows_updated)
        if context.rows_skipped:
            LOGGER.info("Rows not newer than stored latest: %s", context.rows_skipped)
        LOGGER.info("Flushes: %s", context.flush_count)
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="ingest",
            status="ok",
            duration_ms=_elapsed_ms(context.started_at),
            **context.statistics().to_dict(),
        )

    def log_failure(self, context: VoterIngestContext, error: Exception) -> None:
        payload = to_error_dict(error)
        log_event(
            LOGGER,
            run_id=context.run_id,
            component=COMPONENT,
            operation="ingest",
            status="error",
            duration_ms=_elapsed_ms(context.started_at) if context.started_at else 0,
            error_code=payload["type"],
            stage=context.debug.get("stage"),
            message=payload["message"],
            **context.statistics().to_dict(),
        )

    def close(self, context: VoterIngestContext) -> None:
        if context.connection is not None:
            context.connection.close()
            context.connection = None
        context.persister = None

    def _connection(self, context: VoterIngestContext) -> sqlite3.Connection:
        if context.connection is None:
            raise ValueError("Database connection is not open.")
        return context.connection

    def _persister(self, context: VoterIngestContext) -> BatchPersister:
        if context.persister is None:
            raise ValueError("Batch persister is not initialized.")
        return context.persister
