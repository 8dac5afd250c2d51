from __future__ import annotations

import threading
import uuid
from pathlib import Path
from typing import Iterable

from voter_import.core.errors import VoterImportError
from voter_import.core.settings import get_settings
from voter_import.domain.voters.versioning import BatchKey
from voter_import.pipeline.ingest.voters.context import VoterIngestContext
from voter_import.pipeline.ingest.voters.models import IngestStatistics, RawVoterRow
from voter_import.pipeline.ingest.voters.orchestrator import VoterIngestOrchestrator
from voter_import.pipeline.ingest.voters.services.ingest_service import VoterIngestService
from voter_import.pipeline.ingest.voters.services.normalization import VoterFileSource, iter_voter_rows
from voter_import.pipeline.ingest.voters.stages import (
    DrainStage,
    PersistCategoriesStage,
    PurgeStage,
    ResetCategoriesStage,
    StreamStage,
)


class VoterIngestPipeline:
    def __init__(
        self,
        *,
        service: VoterIngestService | None = None,
    ) -> None:
        ingest_service = service or VoterIngestService()
        self.service = ingest_service
        self.orchestrator = VoterIngestOrchestrator(
            stages=[
                PurgeStage(ingest_service),
                ResetCategoriesStage(ingest_service),
                StreamStage(ingest_service),
                DrainStage(ingest_service),
                PersistCategoriesStage(ingest_service),
            ]
        )

    def process(
        self,
        *,
        rows: Iterable[RawVoterRow],
        batch_key: BatchKey,
        db_path: Path | None = None,
        buffer_size: int | None = None,
        progress_interval: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> IngestStatistics:
        """Run one batch through purge, stream, drain and category persistence.

        Each call gets its own context and connection. On failure the partial
        statistics are logged and, for a VoterImportError, attached to the
        exception before it propagates.
        """
        settings = get_settings()
        context = VoterIngestContext(
            batch_key=batch_key,
            rows=rows,
            db_path=db_path if db_path is not None else settings.db_path,
            run_id=uuid.uuid4().hex,
            buffer_size=buffer_size if buffer_size is not None else settings.import_buffer_size,
            progress_interval=(
                progress_interval if progress_interval is not None else settings.import_progress_interval
            ),
            cancel_event=cancel_event,
        )
        try:
            self.service.open(context)
            completed = self.orchestrator.run(context)
            self.service.log_summary(completed)
            return completed.statistics()
        except Exception as exc:
            self.service.log_failure(context, exc)
            if isinstance(exc, VoterImportError):
                exc.statistics = context.statistics()
            raise
        finally:
            self.service.close(context)


def ingest_voter_file(
    input_path: Path,
    db_path: Path | None,
    year: int,
    record_entry_number: int,
    *,
    buffer_size: int | None = None,
    cancel_event: threading.Event | None = None,
) -> IngestStatistics:
    return _ingest_source(
        input_path,
        db_path=db_path,
        batch_key=BatchKey(period=year, sequence=record_entry_number),
        buffer_size=buffer_size,
        cancel_event=cancel_event,
    )


def ingest_voter_bytes(
    content: bytes,
    db_path: Path | None,
    year: int,
    record_entry_number: int,
    *,
    buffer_size: int | None = None,
    cancel_event: threading.Event | None = None,
) -> IngestStatistics:
    return _ingest_source(
        content,
        db_path=db_path,
        batch_key=BatchKey(period=year, sequence=record_entry_number),
        buffer_size=buffer_size,
        cancel_event=cancel_event,
    )


def _ingest_source(
    source: VoterFileSource,
    *,
    db_path: Path | None,
    batch_key: BatchKey,
    buffer_size: int | None,
    cancel_event: threading.Event | None,
) -> IngestStatistics:
    settings = get_settings()
    rows = iter_voter_rows(
        source,
        chunk_size=settings.import_read_chunk_size,
        encoding=settings.import_file_encoding,
    )
    pipeline = VoterIngestPipeline()
    return pipeline.process(
        rows=rows,
        batch_key=batch_key,
        db_path=db_path,
        buffer_size=buffer_size,
        cancel_event=cancel_event,
    )
