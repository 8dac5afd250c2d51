from __future__ import annotations

from typing import Protocol, runtime_checkable

from voter_import.pipeline.ingest.voters.context import VoterIngestContext


@runtime_checkable
class VoterIngestStage(Protocol):
    """One step of a voter ingest run; stages share and return the run context."""

    name: str

    def run(self, context: VoterIngestContext) -> VoterIngestContext:
        ...
