from voter_import.pipeline.ingest.voters.context import VoterIngestContext
from voter_import.pipeline.ingest.voters.orchestrator import VoterIngestOrchestrator
from voter_import.pipeline.ingest.voters.pipeline import VoterIngestPipeline
from voter_import.pipeline.ingest.voters.models import IngestStatistics

__all__ = [
    "IngestStatistics",
    "VoterIngestContext",
    "VoterIngestOrchestrator",
    "VoterIngestPipeline",
]
