from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from voter_import.domain.voters.versioning import BatchKey

RawVoterRow = Mapping[str, str | None]


@dataclass(frozen=True)
class ArchiveRecord:
    voter_id: str
    batch_key: BatchKey
    fields: Mapping[str, object] = field(default_factory=dict)

    def get(self, name: str) -> object | None:
        return self.fields.get(name)


@dataclass(frozen=True)
class BulkSaveOutcome:
    created: int
    updated: int
    skipped: int = 0


@dataclass(frozen=True)
class CategorySnapshot:
    snapshot_id: int
    values: dict[str, list[str]]


@dataclass(frozen=True)
class IngestStatistics:
    rows_processed: int
    rows_created: int
    rows_updated: int
    categories_updated: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_processed": self.rows_processed,
            "rows_created": self.rows_created,
            "rows_updated": self.rows_updated,
            "categories_updated": self.categories_updated,
        }
