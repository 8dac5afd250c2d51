from __future__ import annotations

from voter_import.pipeline.ingest.voters.context import VoterIngestContext
from voter_import.pipeline.ingest.voters.services.ingest_service import VoterIngestService


class DrainStage:
    name = "drain"

    def __init__(self, service: VoterIngestService) -> None:
        self.service = service

    def run(self, context: VoterIngestContext) -> VoterIngestContext:
        return self.service.drain(context)
