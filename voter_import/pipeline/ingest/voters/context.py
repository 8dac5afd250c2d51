from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from voter_import.domain.voters.versioning import BatchKey
from voter_import.pipeline.ingest.voters.models import ArchiveRecord, IngestStatistics, RawVoterRow
from voter_import.pipeline.ingest.voters.services.categories import CategoryAggregator
from voter_import.pipeline.ingest.voters.services.persistence import BatchPersister


@dataclass
class VoterIngestContext:
    batch_key: BatchKey
    rows: Iterable[RawVoterRow] = field(default_factory=list)
    db_path: Path | None = None
    run_id: str = ""
    buffer_size: int = 5000
    progress_interval: int = 100000
    cancel_event: threading.Event | None = None

    connection: sqlite3.Connection | None = None
    persister: BatchPersister | None = None
    aggregator: CategoryAggregator = field(default_factory=CategoryAggregator)
    buffer: list[ArchiveRecord] = field(default_factory=list)

    purged_rows: int = 0
    rows_processed: int = 0
    rows_created: int = 0
    rows_updated: int = 0
    rows_skipped: int = 0
    flush_count: int = 0
    categories_updated: bool = False
    started_at: float = 0.0
    debug: dict[str, object] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def statistics(self) -> IngestStatistics:
        return IngestStatistics(
            rows_processed=self.rows_processed,
            rows_created=self.rows_created,
            rows_updated=self.rows_updated,
            categories_updated=self.categories_updated,
        )
