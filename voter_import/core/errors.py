from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from voter_import.pipeline.ingest.voters.models import IngestStatistics


class ErrorCode(str, Enum):
    DATE_FORMAT_INVALID = "DATE_FORMAT_INVALID"
    IDENTIFIER_MISSING = "IDENTIFIER_MISSING"
    CATEGORY_SNAPSHOT_DUPLICATE = "CATEGORY_SNAPSHOT_DUPLICATE"
    INGEST_CANCELLED = "INGEST_CANCELLED"
    INGEST_FAILED = "INGEST_FAILED"


class VoterImportError(Exception):
    code: ErrorCode = ErrorCode.INGEST_FAILED

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.statistics: IngestStatistics | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.code.value,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.statistics is not None:
            payload["statistics"] = self.statistics.to_dict()
        return payload


class DateFormatError(VoterImportError, ValueError):
    code = ErrorCode.DATE_FORMAT_INVALID


class MissingIdentifierError(VoterImportError, ValueError):
    code = ErrorCode.IDENTIFIER_MISSING


class DuplicateCategorySnapshotError(VoterImportError):
    code = ErrorCode.CATEGORY_SNAPSHOT_DUPLICATE


class IngestCancelledError(VoterImportError):
    code = ErrorCode.INGEST_CANCELLED


def to_error_dict(error: Exception) -> dict[str, Any]:
    if isinstance(error, VoterImportError):
        return error.to_dict()
    return {
        "type": ErrorCode.INGEST_FAILED.value,
        "message": str(error),
    }
