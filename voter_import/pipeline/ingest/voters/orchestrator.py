from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from voter_import.pipeline.ingest.contracts import VoterIngestStage
from voter_import.pipeline.ingest.voters.context import VoterIngestContext


@dataclass
class VoterIngestOrchestrator:
    stages: Sequence[VoterIngestStage] = field(default_factory=list)

    def run(self, context: VoterIngestContext) -> VoterIngestContext:
        current = context
        for stage in self.stages:
            current.debug["stage"] = stage.name
            current = stage.run(current)
        return current
